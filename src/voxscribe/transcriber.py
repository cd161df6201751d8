from __future__ import annotations

import asyncio
import logging
import threading
from typing import Dict, Optional

from .audio import AudioPipeline, PcmBuffer
from .engine import TranscriptionSession
from .models import ModelManager, ModelType
from .settings import Settings, default_thread_count
from .transcript import Transcript

logger = logging.getLogger(__name__)


class Transcriber:
    """Coordinates model resolution, audio normalization and inference.

    Sessions are loaded lazily, one per model type, and reused.
    """

    def __init__(
        self,
        *,
        model_manager: ModelManager,
        pipeline: Optional[AudioPipeline] = None,
        engine: str = "whispercpp",
        threads: Optional[int] = None,
        beam_size: int = 5,
        language: Optional[str] = None,
    ) -> None:
        self._model_manager = model_manager
        self._pipeline = pipeline or AudioPipeline()
        self._engine = engine
        self._threads = threads or default_thread_count()
        self._beam_size = beam_size
        self._language = language
        self._sessions: Dict[ModelType, TranscriptionSession] = {}
        self._sessions_lock = threading.Lock()

    @classmethod
    def from_settings(cls, cfg: Settings, *, model_manager: Optional[ModelManager] = None) -> "Transcriber":
        return cls(
            model_manager=model_manager or ModelManager.from_settings(cfg.models),
            pipeline=AudioPipeline.from_settings(cfg.audio),
            engine=cfg.engine.provider,
            threads=cfg.engine.threads,
            beam_size=cfg.engine.beam_size,
            language=cfg.engine.language,
        )

    @property
    def model_manager(self) -> ModelManager:
        return self._model_manager

    @property
    def pipeline(self) -> AudioPipeline:
        return self._pipeline

    def load(self, model_type: ModelType) -> TranscriptionSession:
        with self._sessions_lock:
            session = self._sessions.get(model_type)
        if session is not None:
            return session

        # Downloads and engine loads run unlocked; the first session stored wins.
        cached = self._model_manager.resolve(model_type)
        loaded = TranscriptionSession.load(
            cached,
            threads=self._threads,
            provider=self._engine,
            beam_size=self._beam_size,
        )
        with self._sessions_lock:
            session = self._sessions.setdefault(model_type, loaded)
        if session is not loaded:
            loaded.close()
        return session

    def transcribe_audio(
        self,
        data: bytes,
        model_type: ModelType,
        *,
        hint: Optional[str] = None,
        translate: bool = False,
        word_timestamps: bool = False,
        initial_prompt: Optional[str] = None,
        language: Optional[str] = None,
    ) -> Transcript:
        session = self.load(model_type)
        pcm = self._pipeline.normalize(data, hint)
        return self._run(session, pcm, translate, word_timestamps, initial_prompt, language)

    def transcribe_pcm(
        self,
        pcm: PcmBuffer,
        model_type: ModelType,
        *,
        translate: bool = False,
        word_timestamps: bool = False,
        initial_prompt: Optional[str] = None,
        language: Optional[str] = None,
    ) -> Transcript:
        session = self.load(model_type)
        return self._run(session, pcm, translate, word_timestamps, initial_prompt, language)

    async def atranscribe_audio(
        self,
        data: bytes,
        model_type: ModelType,
        *,
        hint: Optional[str] = None,
        translate: bool = False,
        word_timestamps: bool = False,
        initial_prompt: Optional[str] = None,
        language: Optional[str] = None,
    ) -> Transcript:
        return await asyncio.to_thread(
            self.transcribe_audio,
            data,
            model_type,
            hint=hint,
            translate=translate,
            word_timestamps=word_timestamps,
            initial_prompt=initial_prompt,
            language=language,
        )

    def close(self) -> None:
        with self._sessions_lock:
            for session in self._sessions.values():
                session.close()
            self._sessions.clear()

    def _run(
        self,
        session: TranscriptionSession,
        pcm: PcmBuffer,
        translate: bool,
        word_timestamps: bool,
        initial_prompt: Optional[str],
        language: Optional[str],
    ) -> Transcript:
        return session.transcribe(
            pcm,
            translate=translate,
            with_token_timestamps=word_timestamps,
            initial_prompt=initial_prompt,
            language=language or self._language,
        )


__all__ = ["Transcriber"]
