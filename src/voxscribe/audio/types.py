from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import numpy as np

TARGET_SAMPLE_RATE = 16000


def _frozen_array(data: np.ndarray) -> np.ndarray:
    if data.flags.writeable:
        data = data.copy()
        data.setflags(write=False)
    return data


@dataclass(slots=True)
class AudioPayload:
    """Raw audio payload supplied by callers."""

    data: bytes
    content_type: Optional[str] = None

    @classmethod
    def from_path(cls, path: str | Path) -> "AudioPayload":
        path = Path(path)
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(data=path.read_bytes(), content_type=content_type)


@dataclass(frozen=True, slots=True, eq=False)
class SampleStream:
    """Float samples shaped ``(frames, channels)`` at a known rate.

    The array is stored read-only; pipeline stages always build a new
    stream rather than writing into the one they were given.
    """

    samples: np.ndarray
    sample_rate: int
    channel_count: int = field(init=False)

    def __post_init__(self) -> None:
        data = np.asarray(self.samples, dtype=np.float32)
        if data.ndim == 1:
            data = data[:, None]
        if data.ndim != 2:
            raise ValueError(f"samples must be 1-D or 2-D, got shape {data.shape}")
        if data.shape[1] < 1:
            raise ValueError("a sample stream needs at least one channel")
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        object.__setattr__(self, "samples", _frozen_array(data))
        object.__setattr__(self, "channel_count", int(data.shape[1]))

    @property
    def frames(self) -> int:
        return int(self.samples.shape[0])

    @property
    def is_empty(self) -> bool:
        return self.frames == 0

    @property
    def duration_seconds(self) -> float:
        return self.frames / float(self.sample_rate)


@dataclass(frozen=True, slots=True, eq=False)
class PcmBuffer:
    """Mono float32 PCM at the engine's sample rate, ready for inference."""

    samples: np.ndarray
    sample_rate: int = TARGET_SAMPLE_RATE

    def __post_init__(self) -> None:
        data = np.asarray(self.samples, dtype=np.float32)
        if data.ndim == 2 and data.shape[1] == 1:
            data = data[:, 0]
        if data.ndim != 1:
            raise ValueError(f"PCM buffer must be mono, got shape {data.shape}")
        object.__setattr__(self, "samples", _frozen_array(data))

    @classmethod
    def from_stream(cls, stream: SampleStream) -> "PcmBuffer":
        if stream.channel_count != 1:
            raise ValueError(f"expected a mono stream, got {stream.channel_count} channels")
        return cls(samples=stream.samples[:, 0], sample_rate=stream.sample_rate)

    def __len__(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration_seconds(self) -> float:
        return len(self) / float(self.sample_rate)
