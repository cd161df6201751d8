from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from ..types import EngineResult, Segment, TranscribeOptions
from .base import InferenceEngine


class MockEngine(InferenceEngine):
    name = "mock"

    def __init__(self, segments: Optional[Sequence[Segment]] = None) -> None:
        self._segments = list(segments) if segments is not None else None
        self.calls: List[TranscribeOptions] = []

    def transcribe(self, pcm: np.ndarray, options: TranscribeOptions) -> EngineResult:
        self.calls.append(options)
        if self._segments is not None:
            segments = list(self._segments)
        else:
            duration_ms = int(round(len(pcm) * 1000 / 16000))
            segments = [Segment(start_ms=0, end_ms=duration_ms, text="mock transcription")]
        tokens = list(segments) if options.token_timestamps else None
        return EngineResult(segments=segments, tokens=tokens)
