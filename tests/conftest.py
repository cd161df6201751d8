import io
from contextlib import contextmanager
from types import MappingProxyType
from typing import Iterator, List, Optional

import numpy as np
import pytest
import soundfile as sf

from voxscribe.errors import NetworkError
from voxscribe.models.catalog import ModelDescriptor, ModelType, cache_filename


def make_sine(
    frequency: float,
    *,
    sample_rate: int = 16000,
    seconds: float = 1.0,
    channels: int = 1,
    amplitude: float = 0.5,
) -> np.ndarray:
    t = np.arange(int(round(sample_rate * seconds))) / sample_rate
    tone = (amplitude * np.sin(2 * np.pi * frequency * t)).astype(np.float32)
    if channels == 1:
        return tone
    return np.repeat(tone[:, None], channels, axis=1)


def wav_bytes(samples: np.ndarray, sample_rate: int) -> bytes:
    buffer = io.BytesIO()
    sf.write(buffer, samples, sample_rate, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


class FakeFetcher:
    """Serves canned bodies by URL and records every request."""

    def __init__(self, bodies: Optional[dict] = None, *, chunk_size: int = 4, error: Optional[Exception] = None):
        self.bodies = dict(bodies or {})
        self.chunk_size = chunk_size
        self.error = error
        self.calls: List[str] = []

    @contextmanager
    def fetch(self, url: str) -> Iterator[Iterator[bytes]]:
        self.calls.append(url)
        if url not in self.bodies:
            raise NetworkError(f"GET {url} returned HTTP 404")
        yield self._chunks(self.bodies[url])

    def _chunks(self, body: bytes) -> Iterator[bytes]:
        for offset in range(0, len(body), self.chunk_size):
            if self.error is not None and offset > 0:
                raise self.error
            yield body[offset : offset + self.chunk_size]


SMALL_SIZE = 16


@pytest.fixture
def small_catalog():
    table = {
        member: ModelDescriptor(
            id=member,
            remote_url=f"https://models.test/{cache_filename(member)}",
            expected_size_bytes=SMALL_SIZE,
            cache_filename=cache_filename(member),
        )
        for member in ModelType
    }
    return MappingProxyType(table)


@pytest.fixture
def model_body():
    return bytes(range(SMALL_SIZE))


@pytest.fixture
def fake_fetcher(small_catalog, model_body):
    return FakeFetcher({descriptor.remote_url: model_body for descriptor in small_catalog.values()})


@pytest.fixture
def sine_wav_44k_stereo():
    return wav_bytes(make_sine(440.0, sample_rate=44100, channels=2), 44100)
