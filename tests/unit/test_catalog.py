import pytest

from voxscribe.models import CATALOG, ModelType, describe


def test_every_model_type_has_a_catalog_entry():
    assert set(CATALOG) == set(ModelType)
    for model_type, descriptor in CATALOG.items():
        assert descriptor.id is model_type
        assert descriptor.expected_size_bytes > 0
        assert descriptor.cache_filename == f"ggml-{model_type.value}.bin"
        assert descriptor.remote_url.endswith("/" + descriptor.cache_filename)


def test_catalog_is_read_only():
    with pytest.raises(TypeError):
        CATALOG[ModelType.TINY] = CATALOG[ModelType.BASE]


def test_english_only_flag():
    assert ModelType.TINY_EN.english_only
    assert not ModelType.LARGE_V3.english_only


@pytest.mark.parametrize(
    "text, expected",
    [
        ("tiny.en", ModelType.TINY_EN),
        ("TINY_EN", ModelType.TINY_EN),
        ("tiny-en", ModelType.TINY_EN),
        ("large-v3", ModelType.LARGE_V3),
        ("large_v2", ModelType.LARGE_V2),
        (" base ", ModelType.BASE),
    ],
)
def test_parse_accepts_common_spellings(text, expected):
    assert ModelType.parse(text) is expected


def test_parse_rejects_unknown_name():
    with pytest.raises(ValueError, match="unknown model"):
        ModelType.parse("gigantic")


def test_describe_with_mirror_keeps_filename_and_size():
    descriptor = describe(ModelType.SMALL, "https://mirror.example/whisper/")

    assert descriptor.remote_url == "https://mirror.example/whisper/ggml-small.bin"
    assert descriptor.expected_size_bytes == CATALOG[ModelType.SMALL].expected_size_bytes
