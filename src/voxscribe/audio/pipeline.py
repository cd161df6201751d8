from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from ..errors import AudioLimitError, EmptyAudioError
from ..settings import AudioSettings
from .decoder import Decoder, SoundfileDecoder
from .stages import HIGHPASS_HZ, LOWPASS_HZ, band_filter, downmix, resample
from .types import TARGET_SAMPLE_RATE, PcmBuffer, SampleStream

logger = logging.getLogger(__name__)


class AudioPipeline:
    """Normalizes arbitrary audio into the PCM format the inference engine requires.

    Stages run in a fixed order: decode, downmix, resample, band filter.
    The first failing stage aborts the run and its error propagates as-is.
    """

    def __init__(
        self,
        *,
        decoder: Optional[Decoder] = None,
        max_bytes: int = 0,
        max_duration_seconds: float = 0.0,
    ) -> None:
        self._decoder = decoder or SoundfileDecoder()
        self._max_bytes = max_bytes
        self._max_duration_seconds = max_duration_seconds

    @classmethod
    def from_settings(cls, cfg: AudioSettings | None, *, decoder: Optional[Decoder] = None) -> "AudioPipeline":
        if cfg is None:
            return cls(decoder=decoder)
        if cfg.target_sample_rate != TARGET_SAMPLE_RATE:
            raise ValueError(f"the engine requires {TARGET_SAMPLE_RATE} Hz input, got {cfg.target_sample_rate}")
        if (cfg.highpass_hz, cfg.lowpass_hz) != (HIGHPASS_HZ, LOWPASS_HZ):
            raise ValueError(f"band filter cutoffs are fixed at {HIGHPASS_HZ}-{LOWPASS_HZ} Hz")
        return cls(
            decoder=decoder,
            max_bytes=cfg.max_bytes,
            max_duration_seconds=cfg.max_duration_seconds,
        )

    @property
    def decoder(self) -> Decoder:
        return self._decoder

    def normalize(self, data: bytes, hint: Optional[str] = None) -> PcmBuffer:
        if self._max_bytes and len(data) > self._max_bytes:
            raise AudioLimitError(f"audio payload of {len(data)} bytes exceeds the {self._max_bytes} byte limit")
        stream = self._decoder.decode(data, hint)
        return self.normalize_stream(stream)

    def normalize_stream(self, stream: SampleStream) -> PcmBuffer:
        if stream.is_empty:
            raise EmptyAudioError("decoded audio contains no frames")
        if self._max_duration_seconds and stream.duration_seconds > self._max_duration_seconds:
            raise AudioLimitError(
                f"audio duration {stream.duration_seconds:.1f}s exceeds the {self._max_duration_seconds:.1f}s limit"
            )

        started = time.perf_counter()
        mono = downmix(stream)
        resampled = resample(mono, TARGET_SAMPLE_RATE)
        filtered = band_filter(resampled)
        pcm = PcmBuffer.from_stream(filtered)

        logger.info(
            "audio.pipeline.normalized",
            extra={
                "sourceRate": stream.sample_rate,
                "sourceChannels": stream.channel_count,
                "sourceFrames": stream.frames,
                "samples": len(pcm),
                "elapsedMs": round((time.perf_counter() - started) * 1000, 1),
            },
        )
        return pcm

    async def anormalize(self, data: bytes, hint: Optional[str] = None) -> PcmBuffer:
        return await asyncio.to_thread(self.normalize, data, hint)


__all__ = ["AudioPipeline"]
