from __future__ import annotations

import io
import logging
from typing import Optional, Protocol

import soundfile as sf

from ..errors import DecodeError, EmptyAudioError
from .types import SampleStream

logger = logging.getLogger(__name__)


class Decoder(Protocol):
    """Turns container bytes into a :class:`SampleStream` at the source's native rate."""

    def decode(self, data: bytes, hint: Optional[str] = None) -> SampleStream: ...


class SoundfileDecoder:
    """Decoder backed by libsndfile (WAV, FLAC, OGG/Vorbis, Opus and MP3 on recent builds).

    The container hint is informational only; libsndfile sniffs the real
    format from the header.
    """

    def decode(self, data: bytes, hint: Optional[str] = None) -> SampleStream:
        if not data:
            raise DecodeError("cannot decode audio", reason="empty payload")
        try:
            audio_array, sample_rate = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
        except Exception as exc:
            logger.debug("audio.decode.failed", extra={"hint": hint, "error": repr(exc)})
            raise DecodeError("unsupported audio encoding", reason=str(exc) or type(exc).__name__) from exc

        stream = SampleStream(samples=audio_array, sample_rate=int(sample_rate))
        if stream.is_empty:
            raise EmptyAudioError("decoded audio contains no frames")
        logger.debug(
            "audio.decode.done",
            extra={
                "hint": hint,
                "sampleRate": stream.sample_rate,
                "channels": stream.channel_count,
                "frames": stream.frames,
            },
        )
        return stream


__all__ = ["Decoder", "SoundfileDecoder"]
