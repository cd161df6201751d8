"""Runtime configuration helpers for voxscribe."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

_BOOL_TRUTHY = {"1", "true", "yes", "on"}

DEFAULT_MODEL_BASE_URL = "https://huggingface.co/ggerganov/whisper.cpp/resolve/main"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _BOOL_TRUTHY


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _default_cache_dir() -> Path:
    xdg = os.getenv("XDG_CACHE_HOME")
    base = Path(xdg) if xdg else Path.home() / ".cache"
    return base / "voxscribe"


def default_thread_count() -> int:
    return os.cpu_count() or 1


@dataclass(frozen=True)
class ModelSettings:
    cache_dir: Path
    default_model: str
    download_timeout: float
    chunk_size: int
    base_url: str


@dataclass(frozen=True)
class AudioSettings:
    target_sample_rate: int
    highpass_hz: int
    lowpass_hz: int
    max_bytes: int
    max_duration_seconds: float


@dataclass(frozen=True)
class EngineSettings:
    provider: str
    threads: int
    language: str | None
    beam_size: int
    translate: bool


@dataclass(frozen=True)
class LogSettings:
    level: str


@dataclass(frozen=True)
class Settings:
    models: ModelSettings
    audio: AudioSettings
    engine: EngineSettings
    log: LogSettings


def load_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""

    cache_dir = os.getenv("VOXSCRIBE_CACHE_DIR")
    model_settings = ModelSettings(
        cache_dir=Path(cache_dir).expanduser() if cache_dir else _default_cache_dir(),
        default_model=os.getenv("VOXSCRIBE_MODEL", "tiny.en"),
        download_timeout=_env_float("VOXSCRIBE_DOWNLOAD_TIMEOUT", 60.0),
        chunk_size=_env_int("VOXSCRIBE_DOWNLOAD_CHUNK_SIZE", 1024 * 1024),
        base_url=os.getenv("VOXSCRIBE_MODEL_BASE_URL", DEFAULT_MODEL_BASE_URL).rstrip("/"),
    )

    # Fixed by the engine input format and the band filter; not read from env.
    audio_settings = AudioSettings(
        target_sample_rate=16000,
        highpass_hz=200,
        lowpass_hz=3000,
        max_bytes=_env_int("VOXSCRIBE_MAX_BYTES", 0),
        max_duration_seconds=_env_float("VOXSCRIBE_MAX_DURATION_SECONDS", 0.0),
    )

    threads = _env_int("VOXSCRIBE_THREADS", 0)
    engine_settings = EngineSettings(
        provider=os.getenv("VOXSCRIBE_ENGINE", "whispercpp"),
        threads=threads if threads > 0 else default_thread_count(),
        language=os.getenv("VOXSCRIBE_LANGUAGE") or None,
        beam_size=_env_int("VOXSCRIBE_BEAM_SIZE", 5),
        translate=_env_bool("VOXSCRIBE_TRANSLATE", False),
    )

    log_settings = LogSettings(level=os.getenv("VOXSCRIBE_LOG_LEVEL", "INFO").upper())

    return Settings(
        models=model_settings,
        audio=audio_settings,
        engine=engine_settings,
        log=log_settings,
    )


settings = load_settings()

__all__ = [
    "Settings",
    "ModelSettings",
    "AudioSettings",
    "EngineSettings",
    "LogSettings",
    "DEFAULT_MODEL_BASE_URL",
    "default_thread_count",
    "settings",
    "load_settings",
]
