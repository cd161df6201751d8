import numpy as np
import pytest

from voxscribe.audio import PcmBuffer
from voxscribe.engine import EngineResult, InferenceEngine, MockEngine, Segment, TranscriptionSession, build_engine
from voxscribe.errors import EngineError
from voxscribe.models import CachedModel


def _pcm(seconds: float = 1.0) -> PcmBuffer:
    return PcmBuffer(samples=np.zeros(int(16000 * seconds), dtype=np.float32))


class _ExplodingEngine(InferenceEngine):
    name = "exploding"

    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    def transcribe(self, pcm, options):
        raise self.exc


def test_session_defaults_threads_to_cpu_count(mocker):
    mocker.patch("voxscribe.engine.session.default_thread_count", return_value=6)

    session = TranscriptionSession(MockEngine())

    assert session.threads == 6


def test_session_passes_options_to_engine():
    engine = MockEngine()
    session = TranscriptionSession(engine, threads=3)

    transcript = session.transcribe(_pcm(0.5), translate=True, initial_prompt="names: Ada", language="de")

    [options] = engine.calls
    assert options.threads == 3
    assert options.translate is True
    assert options.token_timestamps is False
    assert options.initial_prompt == "names: Ada"
    assert options.language == "de"
    assert [(s.start_ms, s.end_ms) for s in transcript.segments] == [(0, 500)]
    assert transcript.token_segments is None
    assert transcript.processing_time >= 0.0


def test_session_returns_token_segments_when_requested():
    session = TranscriptionSession(MockEngine(), threads=1)

    transcript = session.transcribe(_pcm(), with_token_timestamps=True)

    assert transcript.token_segments == transcript.segments


def test_session_rejects_wrong_sample_rate():
    session = TranscriptionSession(MockEngine(), threads=1)

    with pytest.raises(ValueError):
        session.transcribe(PcmBuffer(samples=np.zeros(100, dtype=np.float32), sample_rate=8000))


def test_session_wraps_unexpected_engine_failures():
    boom = MemoryError("out of memory")
    session = TranscriptionSession(_ExplodingEngine(boom), threads=1)

    with pytest.raises(EngineError) as excinfo:
        session.transcribe(_pcm())

    assert excinfo.value.__cause__ is boom


def test_session_passes_engine_errors_through():
    original = EngineError("model rejected input")
    session = TranscriptionSession(_ExplodingEngine(original), threads=1)

    with pytest.raises(EngineError) as excinfo:
        session.transcribe(_pcm())

    assert excinfo.value is original


def test_session_rejects_unordered_engine_output():
    engine = MockEngine(
        segments=[
            Segment(start_ms=800, end_ms=900, text="late"),
            Segment(start_ms=0, end_ms=100, text="early"),
        ]
    )
    session = TranscriptionSession(engine, threads=1)

    with pytest.raises(EngineError):
        session.transcribe(_pcm())


def test_session_close_releases_engine(mocker):
    engine = MockEngine()
    close = mocker.spy(engine, "close")

    with TranscriptionSession(engine, threads=1):
        pass

    close.assert_called_once_with()


def test_load_builds_named_engine(tmp_path):
    model = CachedModel(local_path=tmp_path / "ggml-tiny.bin", size_bytes=0)

    session = TranscriptionSession.load(model, threads=2, provider="mock")

    assert isinstance(session.engine, MockEngine)
    assert session.threads == 2


def test_build_engine_rejects_unknown_provider(tmp_path):
    with pytest.raises(RuntimeError):
        build_engine("onnx", tmp_path / "model.bin")


@pytest.mark.asyncio
async def test_atranscribe_runs_off_loop():
    session = TranscriptionSession(MockEngine(), threads=1)

    transcript = await session.atranscribe(_pcm(0.25))

    assert transcript.segments[0].end_ms == 250


def test_engine_result_defaults_tokens_to_none():
    assert EngineResult(segments=[]).tokens is None
