from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np

from ...errors import EngineError, ModelNotFoundError
from ...settings import default_thread_count
from ..types import EngineResult, Segment, TranscribeOptions
from .base import InferenceEngine

logger = logging.getLogger(__name__)

# whisper.cpp reports times in centiseconds.
_MS_PER_TICK = 10


class WhisperCppEngine(InferenceEngine):
    """Engine backed by whisper.cpp through the ``pywhispercpp`` bindings.

    Loads a single ggml model file. One whisper.cpp context is not safe for
    concurrent use, so calls on the same engine are serialized.
    """

    name = "whispercpp"

    def __init__(
        self,
        model_path: str | Path,
        *,
        threads: Optional[int] = None,
        beam_size: int = 5,
    ) -> None:
        path = Path(model_path)
        if not path.is_file():
            raise ModelNotFoundError(f"model file not found: {path}")

        # Native extension, imported on first use.
        try:
            from pywhispercpp.model import Model
        except ImportError as exc:
            raise RuntimeError(f"pywhispercpp must be installed to use WhisperCppEngine: {exc}") from exc

        self._model_path = path
        self._threads = threads or default_thread_count()
        self._lock = threading.Lock()

        load_params: Dict[str, Any] = {
            "n_threads": self._threads,
            "print_progress": False,
            "print_realtime": False,
            "print_timestamps": False,
            "print_special": False,
            "split_on_word": True,
        }
        sampling_strategy = 0
        if beam_size > 1:
            sampling_strategy = 1
            load_params["beam_search"] = {"beam_size": beam_size, "patience": 1.0}

        logger.info("engine.whispercpp.load", extra={"path": str(path), "threads": self._threads})
        try:
            self._model = Model(str(path), params_sampling_strategy=sampling_strategy, **load_params)
        except Exception as exc:
            raise EngineError(f"failed to load whisper.cpp model '{path}': {exc}") from exc

    @property
    def model_path(self) -> Path:
        return self._model_path

    def transcribe(self, pcm: np.ndarray, options: TranscribeOptions) -> EngineResult:
        params: Dict[str, Any] = {
            "n_threads": options.threads or self._threads,
            "translate": options.translate,
            "token_timestamps": options.token_timestamps,
            # pywhispercpp keeps overrides across calls; "" clears the prompt and selects auto language.
            "initial_prompt": options.initial_prompt or "",
            "language": options.language or "",
        }

        audio = np.ascontiguousarray(pcm, dtype=np.float32)
        with self._lock:
            try:
                raw_segments = self._model.transcribe(audio, **params)
            except Exception as exc:
                raise EngineError(f"whisper.cpp transcription failed: {exc}") from exc

            segments = [
                Segment(start_ms=int(seg.t0) * _MS_PER_TICK, end_ms=int(seg.t1) * _MS_PER_TICK, text=seg.text)
                for seg in raw_segments
            ]
            tokens = self._collect_tokens(len(segments)) if options.token_timestamps else None

        return EngineResult(segments=segments, tokens=tokens)

    def _collect_tokens(self, n_segments: int) -> List[Segment]:
        try:
            import _pywhispercpp as pw
        except ImportError as exc:
            raise EngineError("token timestamps need the _pywhispercpp extension") from exc

        ctx = getattr(self._model, "_ctx", None)
        if ctx is None:
            raise EngineError("token timestamps are not available from this pywhispercpp build")

        tokens: List[Segment] = []
        try:
            for seg_idx in range(n_segments):
                for tok_idx in range(pw.whisper_full_n_tokens(ctx, seg_idx)):
                    text = pw.whisper_full_get_token_text(ctx, seg_idx, tok_idx)
                    # Special tokens such as [_BEG_] or [_TT_150] carry no speech.
                    if text.startswith("[_"):
                        continue
                    data = pw.whisper_full_get_token_data(ctx, seg_idx, tok_idx)
                    start = max(0, int(data.t0)) * _MS_PER_TICK
                    end = max(start, int(data.t1) * _MS_PER_TICK)
                    tokens.append(Segment(start_ms=start, end_ms=end, text=text))
        except Exception as exc:
            raise EngineError(f"failed to read token timestamps: {exc}") from exc
        return tokens

    def close(self) -> None:
        self._model = None
