"""Pure audio transformations applied between decoding and inference.

Every stage takes a :class:`SampleStream` and returns a new one; inputs are
never modified. The order used by :class:`~voxscribe.audio.AudioPipeline`
is downmix, resample, band filter.
"""

from __future__ import annotations

from functools import lru_cache

import numpy as np
import resampy
from scipy import signal

from ..errors import EmptyAudioError
from .types import TARGET_SAMPLE_RATE, SampleStream

HIGHPASS_HZ = 200
LOWPASS_HZ = 3000
FILTER_ORDER = 2


def downmix(stream: SampleStream) -> SampleStream:
    """Average all channels of each frame into a single channel.

    A mono stream is returned as-is.
    """
    if stream.is_empty:
        raise EmptyAudioError("cannot downmix an empty stream")
    if stream.channel_count == 1:
        return stream
    mixed = np.mean(stream.samples, axis=1, keepdims=True, dtype=np.float64).astype(np.float32)
    return SampleStream(samples=mixed, sample_rate=stream.sample_rate)


def expected_length(frames: int, source_rate: int, target_rate: int) -> int:
    """``round(frames * target_rate / source_rate)`` with halves rounded up."""
    return (2 * frames * target_rate + source_rate) // (2 * source_rate)


def resample(stream: SampleStream, target_rate: int = TARGET_SAMPLE_RATE) -> SampleStream:
    """Band-limited sinc resampling of a mono stream to ``target_rate``."""
    if stream.channel_count != 1:
        raise ValueError(f"resample expects mono input, got {stream.channel_count} channels")
    if stream.sample_rate == target_rate:
        return stream

    target_len = expected_length(stream.frames, stream.sample_rate, target_rate)
    if target_len == 0:
        raise EmptyAudioError(
            f"{stream.frames} frames at {stream.sample_rate} Hz is too short to resample to {target_rate} Hz"
        )

    mono = np.ascontiguousarray(stream.samples[:, 0])
    if stream.frames * target_rate < stream.sample_rate:
        # resampy rejects inputs that would produce less than one sample.
        out = np.repeat(mono[:1], target_len)
    else:
        out = resampy.resample(mono, stream.sample_rate, target_rate, filter="kaiser_best")

    # resampy floors the output length; pin it to the rounded length.
    if out.shape[0] > target_len:
        out = out[:target_len]
    elif out.shape[0] < target_len:
        out = np.pad(out, (0, target_len - out.shape[0]))
    return SampleStream(samples=out.astype(np.float32), sample_rate=target_rate)


@lru_cache(maxsize=8)
def _speech_band_sos(sample_rate: int) -> np.ndarray:
    highpass = signal.butter(FILTER_ORDER, HIGHPASS_HZ, btype="highpass", fs=sample_rate, output="sos")
    lowpass = signal.butter(FILTER_ORDER, LOWPASS_HZ, btype="lowpass", fs=sample_rate, output="sos")
    return np.vstack([highpass, lowpass])


def band_filter(stream: SampleStream) -> SampleStream:
    """Attenuate energy below 200 Hz and above 3000 Hz.

    High-pass then low-pass, each a second-order Butterworth section.
    Length and sample rate are preserved exactly.
    """
    if stream.channel_count != 1:
        raise ValueError(f"band_filter expects mono input, got {stream.channel_count} channels")
    if stream.sample_rate <= 2 * LOWPASS_HZ:
        raise ValueError(f"sample rate {stream.sample_rate} Hz cannot represent a {LOWPASS_HZ} Hz cutoff")
    if stream.is_empty:
        return stream
    sos = _speech_band_sos(stream.sample_rate)
    filtered = signal.sosfilt(sos, stream.samples[:, 0].astype(np.float64))
    return SampleStream(samples=filtered.astype(np.float32), sample_rate=stream.sample_rate)


__all__ = [
    "HIGHPASS_HZ",
    "LOWPASS_HZ",
    "downmix",
    "resample",
    "band_filter",
    "expected_length",
]
