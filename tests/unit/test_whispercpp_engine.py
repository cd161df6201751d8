import sys
import types

import numpy as np
import pytest

from voxscribe.engine import TranscribeOptions, WhisperCppEngine
from voxscribe.errors import EngineError, ModelNotFoundError


class _FakeSegment:
    def __init__(self, t0, t1, text):
        self.t0 = t0
        self.t1 = t1
        self.text = text


class _FakeModel:
    instances = []

    def __init__(self, model, **params):
        self.model = model
        self.params = params
        self.calls = []
        self.active = {}
        self._ctx = object()
        _FakeModel.instances.append(self)

    def transcribe(self, media, **params):
        # overrides stay set for later calls, as in pywhispercpp
        self.active.update(params)
        self.calls.append((media, params))
        return [_FakeSegment(0, 150, " Hello"), _FakeSegment(150, 320, " world")]


@pytest.fixture
def fake_pywhispercpp(monkeypatch):
    _FakeModel.instances = []
    package = types.ModuleType("pywhispercpp")
    model_module = types.ModuleType("pywhispercpp.model")
    model_module.Model = _FakeModel
    package.model = model_module
    monkeypatch.setitem(sys.modules, "pywhispercpp", package)
    monkeypatch.setitem(sys.modules, "pywhispercpp.model", model_module)

    tokens = {0: [("[_BEG_]", 0, 0), (" Hello", 0, 150)], 1: [(" world", 150, 320), ("[_TT_16]", 320, 320)]}
    native = types.ModuleType("_pywhispercpp")
    native.whisper_full_n_tokens = lambda ctx, seg: len(tokens[seg])
    native.whisper_full_get_token_text = lambda ctx, seg, tok: tokens[seg][tok][0]
    native.whisper_full_get_token_data = lambda ctx, seg, tok: types.SimpleNamespace(
        t0=tokens[seg][tok][1], t1=tokens[seg][tok][2]
    )
    monkeypatch.setitem(sys.modules, "_pywhispercpp", native)
    return _FakeModel


@pytest.fixture
def model_file(tmp_path):
    path = tmp_path / "ggml-tiny.en.bin"
    path.write_bytes(b"ggml")
    return path


def test_missing_model_file_raises(tmp_path, fake_pywhispercpp):
    with pytest.raises(ModelNotFoundError):
        WhisperCppEngine(tmp_path / "absent.bin")


def test_load_configures_beam_search(model_file, fake_pywhispercpp):
    WhisperCppEngine(model_file, threads=4, beam_size=5)

    [model] = fake_pywhispercpp.instances
    assert model.model == str(model_file)
    assert model.params["n_threads"] == 4
    assert model.params["params_sampling_strategy"] == 1
    assert model.params["beam_search"] == {"beam_size": 5, "patience": 1.0}


def test_greedy_when_beam_size_is_one(model_file, fake_pywhispercpp):
    WhisperCppEngine(model_file, threads=1, beam_size=1)

    [model] = fake_pywhispercpp.instances
    assert model.params["params_sampling_strategy"] == 0
    assert "beam_search" not in model.params


def test_transcribe_converts_centiseconds(model_file, fake_pywhispercpp):
    engine = WhisperCppEngine(model_file, threads=2)

    result = engine.transcribe(
        np.zeros(16000, dtype=np.float32),
        TranscribeOptions(translate=True, initial_prompt="hint", language="en", threads=2),
    )

    assert [(s.start_ms, s.end_ms, s.text) for s in result.segments] == [(0, 1500, " Hello"), (1500, 3200, " world")]
    assert result.tokens is None
    [(media, params)] = fake_pywhispercpp.instances[0].calls
    assert media.dtype == np.float32
    assert params == {
        "n_threads": 2,
        "translate": True,
        "token_timestamps": False,
        "initial_prompt": "hint",
        "language": "en",
    }


def test_transcribe_collects_tokens_without_special_markers(model_file, fake_pywhispercpp):
    engine = WhisperCppEngine(model_file, threads=1)

    result = engine.transcribe(np.zeros(16000, dtype=np.float32), TranscribeOptions(token_timestamps=True))

    assert [(t.start_ms, t.end_ms, t.text) for t in result.tokens] == [(0, 1500, " Hello"), (1500, 3200, " world")]


def test_transcribe_failure_becomes_engine_error(model_file, fake_pywhispercpp, mocker):
    engine = WhisperCppEngine(model_file, threads=1)
    mocker.patch.object(fake_pywhispercpp.instances[0], "transcribe", side_effect=RuntimeError("ggml abort"))

    with pytest.raises(EngineError):
        engine.transcribe(np.zeros(160, dtype=np.float32), TranscribeOptions())


def test_load_failure_becomes_engine_error(model_file, monkeypatch):
    def broken(*args, **kwargs):
        raise ValueError("invalid model file")

    model_module = types.ModuleType("pywhispercpp.model")
    model_module.Model = broken
    package = types.ModuleType("pywhispercpp")
    package.model = model_module
    monkeypatch.setitem(sys.modules, "pywhispercpp", package)
    monkeypatch.setitem(sys.modules, "pywhispercpp.model", model_module)

    with pytest.raises(EngineError):
        WhisperCppEngine(model_file)


def test_prompt_and_language_do_not_leak_into_later_calls(model_file, fake_pywhispercpp):
    engine = WhisperCppEngine(model_file, threads=1)
    audio = np.zeros(1600, dtype=np.float32)

    engine.transcribe(audio, TranscribeOptions(initial_prompt="Valve Steam", language="de"))
    engine.transcribe(audio, TranscribeOptions())

    model = fake_pywhispercpp.instances[0]
    assert model.active["initial_prompt"] == ""
    assert model.active["language"] == ""
    assert [(params["initial_prompt"], params["language"]) for _, params in model.calls] == [
        ("Valve Steam", "de"),
        ("", ""),
    ]
