from __future__ import annotations

import abc

import numpy as np

from ..types import EngineResult, TranscribeOptions


class InferenceEngine(abc.ABC):
    """Interface for speech recognition engines.

    Input is mono float32 PCM at 16 kHz; output is ordered segments with
    millisecond timestamps. Calls block until the engine finishes.
    """

    name: str

    @abc.abstractmethod
    def transcribe(self, pcm: np.ndarray, options: TranscribeOptions) -> EngineResult:
        """Produce segments for the provided samples."""
        raise NotImplementedError

    def close(self) -> None:
        """Release engine resources. Default is a no-op."""
