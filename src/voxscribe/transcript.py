"""Transcript data model and its text, SRT and WebVTT renderings.

Timestamps are integer milliseconds throughout. Rendering never mutates the
transcript; :func:`parse_srt` reads back what :meth:`Transcript.as_srt`
writes.
"""

from __future__ import annotations

import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_MS_PER_HOUR = 3_600_000
_MS_PER_MINUTE = 60_000
_MS_PER_SECOND = 1_000

_TIMING_RE = re.compile(
    r"^\s*(\d{2,}):(\d{2}):(\d{2})[,.](\d{3})\s*-->\s*(\d{2,}):(\d{2}):(\d{2})[,.](\d{3})\s*$"
)


class Segment(BaseModel):
    """One timestamped span of recognized text."""

    model_config = ConfigDict(frozen=True)

    start_ms: int = Field(ge=0)
    end_ms: int = Field(ge=0)
    text: str

    @model_validator(mode="after")
    def _check_bounds(self) -> "Segment":
        if self.end_ms < self.start_ms:
            raise ValueError(f"segment ends before it starts ({self.start_ms} > {self.end_ms})")
        return self


class Transcript(BaseModel):
    """Ordered segments returned by a transcription run."""

    segments: List[Segment] = Field(default_factory=list)
    processing_time: float = 0.0
    token_segments: Optional[List[Segment]] = None

    @field_validator("segments")
    @classmethod
    def _check_order(cls, segments: List[Segment]) -> List[Segment]:
        for previous, current in zip(segments, segments[1:]):
            if current.start_ms < previous.start_ms:
                raise ValueError("segment start times must be non-decreasing")
        return segments

    def as_text(self) -> str:
        return "\n".join(text for text in (segment.text.strip() for segment in self.segments) if text)

    def as_srt(self) -> str:
        blocks = []
        for index, segment in enumerate(self.segments, start=1):
            blocks.append(
                f"{index}\n"
                f"{format_timestamp(segment.start_ms)} --> {format_timestamp(segment.end_ms)}\n"
                f"{_cue_text(segment.text)}\n\n"
            )
        return "".join(blocks)

    def as_vtt(self) -> str:
        blocks = ["WEBVTT\n\n"]
        for segment in self.segments:
            blocks.append(
                f"{format_timestamp(segment.start_ms, decimal_marker='.')} --> "
                f"{format_timestamp(segment.end_ms, decimal_marker='.')}\n"
                f"{_cue_text(segment.text)}\n\n"
            )
        return "".join(blocks)

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)


def _cue_text(text: str) -> str:
    # A cue is a single line and must not contain the timing arrow.
    return " ".join(text.split()).replace("-->", "->")


def format_timestamp(ms: int, always_include_hours: bool = True, decimal_marker: str = ",") -> str:
    """Format ``ms`` as ``HH:MM:SS,mmm``; hours grow past two digits when needed."""
    if ms < 0:
        raise ValueError(f"non-negative timestamp expected, got {ms}")
    hours, remainder = divmod(ms, _MS_PER_HOUR)
    minutes, remainder = divmod(remainder, _MS_PER_MINUTE)
    seconds, milliseconds = divmod(remainder, _MS_PER_SECOND)
    hours_marker = f"{hours:02d}:" if always_include_hours or hours else ""
    return f"{hours_marker}{minutes:02d}:{seconds:02d}{decimal_marker}{milliseconds:03d}"


def _timing_to_ms(hours: str, minutes: str, seconds: str, millis: str) -> int:
    return int(hours) * _MS_PER_HOUR + int(minutes) * _MS_PER_MINUTE + int(seconds) * _MS_PER_SECOND + int(millis)


def parse_srt(content: str) -> List[Segment]:
    """Parse SRT text into segments.

    Multi-line cue text is joined with single spaces. Raises ``ValueError``
    on a block without a numeric index or a valid timing line.
    """
    lines = content.lstrip("\ufeff").replace("\r\n", "\n").split("\n")
    segments: List[Segment] = []
    i = 0
    while i < len(lines):
        if not lines[i].strip():
            i += 1
            continue
        if not lines[i].strip().isdigit():
            raise ValueError(f"line {i + 1}: expected a cue number, got {lines[i]!r}")
        i += 1
        match = _TIMING_RE.match(lines[i]) if i < len(lines) else None
        if match is None:
            raise ValueError(f"line {i + 1}: expected a timing line")
        i += 1
        text_lines = []
        while i < len(lines) and lines[i].strip():
            text_lines.append(lines[i].strip())
            i += 1
        segments.append(
            Segment(
                start_ms=_timing_to_ms(*match.group(1, 2, 3, 4)),
                end_ms=_timing_to_ms(*match.group(5, 6, 7, 8)),
                text=" ".join(text_lines),
            )
        )
    return segments


__all__ = ["Segment", "Transcript", "format_timestamp", "parse_srt"]
