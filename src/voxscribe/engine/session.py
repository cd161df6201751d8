from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from pydantic import ValidationError

from ..audio.types import TARGET_SAMPLE_RATE, PcmBuffer
from ..errors import EngineError
from ..models.manager import CachedModel
from ..settings import EngineSettings, default_thread_count
from ..transcript import Transcript
from .providers import InferenceEngine, build_engine
from .types import TranscribeOptions

logger = logging.getLogger(__name__)


class TranscriptionSession:
    """A loaded model plus the thread count handed to the engine on every call."""

    def __init__(self, engine: InferenceEngine, *, threads: Optional[int] = None) -> None:
        self._engine = engine
        self._threads = threads if threads and threads > 0 else default_thread_count()

    @classmethod
    def load(
        cls,
        model: CachedModel,
        *,
        threads: Optional[int] = None,
        provider: str = "whispercpp",
        beam_size: int = 5,
    ) -> "TranscriptionSession":
        session_threads = threads if threads and threads > 0 else default_thread_count()
        engine = build_engine(provider, model.local_path, threads=session_threads, beam_size=beam_size)
        return cls(engine, threads=session_threads)

    @classmethod
    def from_settings(cls, model: CachedModel, cfg: EngineSettings) -> "TranscriptionSession":
        return cls.load(model, threads=cfg.threads, provider=cfg.provider, beam_size=cfg.beam_size)

    @property
    def engine(self) -> InferenceEngine:
        return self._engine

    @property
    def threads(self) -> int:
        return self._threads

    def transcribe(
        self,
        pcm: PcmBuffer,
        *,
        translate: bool = False,
        with_token_timestamps: bool = False,
        initial_prompt: Optional[str] = None,
        language: Optional[str] = None,
    ) -> Transcript:
        """Run the engine over ``pcm``. Blocks until the engine returns."""
        if pcm.sample_rate != TARGET_SAMPLE_RATE:
            raise ValueError(f"engine input must be {TARGET_SAMPLE_RATE} Hz, got {pcm.sample_rate} Hz")

        options = TranscribeOptions(
            translate=translate,
            token_timestamps=with_token_timestamps,
            initial_prompt=initial_prompt,
            language=language,
            threads=self._threads,
        )
        logger.debug(
            "engine.transcribe.started",
            extra={
                "engine": self._engine.name,
                "samples": len(pcm),
                "threads": self._threads,
                "translate": translate,
                "tokenTimestamps": with_token_timestamps,
            },
        )

        started = time.perf_counter()
        try:
            result = self._engine.transcribe(pcm.samples, options)
        except EngineError:
            raise
        except Exception as exc:
            raise EngineError(f"{self._engine.name} engine failed: {exc}") from exc
        elapsed = time.perf_counter() - started

        try:
            transcript = Transcript(
                segments=result.segments,
                processing_time=elapsed,
                token_segments=result.tokens if with_token_timestamps else None,
            )
        except ValidationError as exc:
            raise EngineError(f"{self._engine.name} engine returned malformed segments: {exc}") from exc

        logger.info(
            "engine.transcribe.done",
            extra={
                "engine": self._engine.name,
                "segments": len(transcript.segments),
                "audioSeconds": round(pcm.duration_seconds, 2),
                "elapsedSeconds": round(elapsed, 2),
            },
        )
        return transcript

    async def atranscribe(
        self,
        pcm: PcmBuffer,
        *,
        translate: bool = False,
        with_token_timestamps: bool = False,
        initial_prompt: Optional[str] = None,
        language: Optional[str] = None,
    ) -> Transcript:
        return await asyncio.to_thread(
            self.transcribe,
            pcm,
            translate=translate,
            with_token_timestamps=with_token_timestamps,
            initial_prompt=initial_prompt,
            language=language,
        )

    def close(self) -> None:
        self._engine.close()

    def __enter__(self) -> "TranscriptionSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["TranscriptionSession"]
