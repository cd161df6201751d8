"""Static table of downloadable whisper.cpp (ggml) model artifacts."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from ..settings import DEFAULT_MODEL_BASE_URL


class ModelType(str, Enum):
    """Closed set of supported model identifiers.

    Members ending in ``_EN`` are fine-tuned for English only.
    """

    TINY_EN = "tiny.en"
    TINY = "tiny"
    BASE_EN = "base.en"
    BASE = "base"
    SMALL_EN = "small.en"
    SMALL = "small"
    MEDIUM_EN = "medium.en"
    MEDIUM = "medium"
    LARGE_V1 = "large-v1"
    LARGE_V2 = "large-v2"
    LARGE_V3 = "large-v3"

    def __str__(self) -> str:
        return self.value

    @property
    def english_only(self) -> bool:
        return self.value.endswith(".en")

    @classmethod
    def parse(cls, text: str) -> "ModelType":
        """Accept ``tiny.en``, ``tiny-en`` or ``TINY_EN`` style names."""
        key = text.strip()
        for member in cls:
            if key == member.value or key.upper() == member.name:
                return member
        normalized = key.lower().replace("_", "-")
        for member in cls:
            if normalized == member.value.replace(".", "-"):
                return member
        choices = ", ".join(member.value for member in cls)
        raise ValueError(f"unknown model '{text}' (choose from: {choices})")


@dataclass(frozen=True)
class ModelDescriptor:
    id: ModelType
    remote_url: str
    expected_size_bytes: int
    cache_filename: str


# Byte sizes of the published ggml artifacts.
_EXPECTED_SIZES: Mapping[ModelType, int] = {
    ModelType.TINY_EN: 77_704_715,
    ModelType.TINY: 77_691_713,
    ModelType.BASE_EN: 147_964_211,
    ModelType.BASE: 147_951_465,
    ModelType.SMALL_EN: 487_614_201,
    ModelType.SMALL: 487_601_967,
    ModelType.MEDIUM_EN: 1_533_774_781,
    ModelType.MEDIUM: 1_533_763_059,
    ModelType.LARGE_V1: 3_094_623_691,
    ModelType.LARGE_V2: 3_094_623_691,
    ModelType.LARGE_V3: 3_095_033_483,
}


def cache_filename(model_type: ModelType) -> str:
    return f"ggml-{model_type.value}.bin"


def _build_catalog(base_url: str) -> Mapping[ModelType, ModelDescriptor]:
    base_url = base_url.rstrip("/")
    table = {
        member: ModelDescriptor(
            id=member,
            remote_url=f"{base_url}/{cache_filename(member)}",
            expected_size_bytes=_EXPECTED_SIZES[member],
            cache_filename=cache_filename(member),
        )
        for member in ModelType
    }
    return MappingProxyType(table)


CATALOG = _build_catalog(DEFAULT_MODEL_BASE_URL)

assert set(CATALOG) == set(ModelType), "every ModelType needs a catalog entry"


def describe(model_type: ModelType, base_url: str = DEFAULT_MODEL_BASE_URL) -> ModelDescriptor:
    """Look up the descriptor for ``model_type``; a mirror ``base_url`` swaps only the host path."""
    descriptor = CATALOG[model_type]
    if base_url.rstrip("/") == DEFAULT_MODEL_BASE_URL:
        return descriptor
    return ModelDescriptor(
        id=descriptor.id,
        remote_url=f"{base_url.rstrip('/')}/{descriptor.cache_filename}",
        expected_size_bytes=descriptor.expected_size_bytes,
        cache_filename=descriptor.cache_filename,
    )


__all__ = ["ModelType", "ModelDescriptor", "CATALOG", "describe", "cache_filename"]
