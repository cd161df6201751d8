from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from ..transcript import Segment


@dataclass(slots=True)
class TranscribeOptions:
    translate: bool = False
    token_timestamps: bool = False
    initial_prompt: Optional[str] = None
    language: Optional[str] = None
    threads: Optional[int] = None


@dataclass(slots=True)
class EngineResult:
    segments: List[Segment]
    tokens: Optional[List[Segment]] = None


__all__ = ["Segment", "TranscribeOptions", "EngineResult"]
