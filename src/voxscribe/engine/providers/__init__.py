"""Inference engine implementations."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .base import InferenceEngine
from .mock import MockEngine
from .whispercpp import WhisperCppEngine


def build_engine(
    name: str,
    model_path: str | Path,
    *,
    threads: Optional[int] = None,
    beam_size: int = 5,
) -> InferenceEngine:
    lname = (name or "").strip().lower()
    if lname in {"mock", "fake"}:
        return MockEngine()
    if lname in {"whispercpp", "whisper.cpp", "whisper"}:
        return WhisperCppEngine(model_path, threads=threads, beam_size=beam_size)
    raise RuntimeError(f"unsupported inference engine: {name}")


__all__ = [
    "InferenceEngine",
    "MockEngine",
    "WhisperCppEngine",
    "build_engine",
]
