"""Inference engine boundary and transcription sessions."""

from .providers import InferenceEngine, MockEngine, WhisperCppEngine, build_engine
from .session import TranscriptionSession
from .types import EngineResult, Segment, TranscribeOptions

__all__ = [
    "EngineResult",
    "InferenceEngine",
    "MockEngine",
    "Segment",
    "TranscribeOptions",
    "TranscriptionSession",
    "WhisperCppEngine",
    "build_engine",
]
