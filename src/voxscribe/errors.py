"""Exception types raised by voxscribe."""

from __future__ import annotations

from typing import Optional


class VoxscribeError(RuntimeError):
    """Base class for recoverable voxscribe failures."""


class TranscodeError(VoxscribeError):
    """Raised when input audio cannot be turned into engine-ready PCM."""


class DecodeError(TranscodeError):
    """Raised when the input bytes are not a supported or parseable audio container."""

    def __init__(self, message: str, *, reason: Optional[str] = None) -> None:
        super().__init__(message if reason is None else f"{message}: {reason}")
        self.reason = reason


class EmptyAudioError(TranscodeError):
    """Raised when a decoded stream holds zero frames."""


class AudioLimitError(TranscodeError):
    """Raised when a payload exceeds the configured size or duration limit."""


class ModelError(VoxscribeError):
    """Raised when a model artifact cannot be made available locally."""


class NetworkError(ModelError):
    """Transport failure while downloading a model."""


class StorageError(ModelError):
    """Local filesystem failure while writing or reading the model cache."""


class IncompleteDownloadError(ModelError):
    """The downloaded byte count does not match the catalog size."""

    def __init__(self, url: str, *, expected: int, received: int) -> None:
        super().__init__(f"incomplete download from {url}: expected {expected} bytes, received {received}")
        self.url = url
        self.expected = expected
        self.received = received


class ModelNotFoundError(ModelError):
    """An explicitly given model path does not exist."""


class EngineError(VoxscribeError):
    """Opaque failure from the inference engine; the original exception is kept as ``__cause__``."""


__all__ = [
    "VoxscribeError",
    "TranscodeError",
    "DecodeError",
    "EmptyAudioError",
    "AudioLimitError",
    "ModelError",
    "NetworkError",
    "StorageError",
    "IncompleteDownloadError",
    "ModelNotFoundError",
    "EngineError",
]
