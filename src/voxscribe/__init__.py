"""
voxscribe - time-aligned transcripts from arbitrary audio with whisper.cpp models.

    from voxscribe import ModelType, Transcriber, settings

    transcriber = Transcriber.from_settings(settings)
    transcript = transcriber.transcribe_audio(mp3_bytes, ModelType.BASE_EN)
    print(transcript.as_text())
    print(transcript.as_srt())
"""

from .audio import AudioPipeline, PcmBuffer, SampleStream
from .engine import TranscriptionSession
from .errors import (
    DecodeError,
    EmptyAudioError,
    EngineError,
    IncompleteDownloadError,
    ModelError,
    NetworkError,
    StorageError,
    TranscodeError,
    VoxscribeError,
)
from .models import CachedModel, ModelManager, ModelType
from .settings import load_settings, settings
from .transcriber import Transcriber
from .transcript import Segment, Transcript, parse_srt

__all__ = [
    "AudioPipeline",
    "CachedModel",
    "DecodeError",
    "EmptyAudioError",
    "EngineError",
    "IncompleteDownloadError",
    "ModelError",
    "ModelManager",
    "ModelType",
    "NetworkError",
    "PcmBuffer",
    "SampleStream",
    "Segment",
    "StorageError",
    "TranscodeError",
    "Transcriber",
    "Transcript",
    "TranscriptionSession",
    "VoxscribeError",
    "load_settings",
    "parse_srt",
    "settings",
]

__version__ = "0.1.0"
