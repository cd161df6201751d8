"""Audio decoding and normalization for speech inference."""

from .decoder import Decoder, SoundfileDecoder
from .pipeline import AudioPipeline
from .stages import HIGHPASS_HZ, LOWPASS_HZ, band_filter, downmix, resample
from .types import TARGET_SAMPLE_RATE, AudioPayload, PcmBuffer, SampleStream

__all__ = [
    "AudioPipeline",
    "AudioPayload",
    "Decoder",
    "SoundfileDecoder",
    "PcmBuffer",
    "SampleStream",
    "TARGET_SAMPLE_RATE",
    "HIGHPASS_HZ",
    "LOWPASS_HZ",
    "band_filter",
    "downmix",
    "resample",
]
