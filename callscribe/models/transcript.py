"""Transcription and persisted transcript data models."""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

# PostgREST trims fractional seconds and may shorten the offset to "+00"
_TIMESTAMP_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[T ](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<offset>Z|[+-]\d{2}(?::?\d{2})?)?$"
)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 / Postgres timestamp string.

    Raises:
        ValueError: if the string is not a timestamp
    """
    match = _TIMESTAMP_RE.match(value.strip())
    if match is None:
        return datetime.fromisoformat(value)

    text = f"{match['date']}T{match['time']}"
    if match["fraction"]:
        text += "." + match["fraction"][:6].ljust(6, "0")
    offset = match["offset"]
    if offset == "Z":
        text += "+00:00"
    elif offset:
        digits = offset[1:].replace(":", "")
        text += f"{offset[0]}{digits[:2]}:{digits[2:4] or '00'}"
    return datetime.fromisoformat(text)


@dataclass
class WordTimestamp:
    """A single recognised word with its audio offsets (seconds)."""
    word: str
    start: float
    end: float
    speaker: Optional[str] = None


@dataclass
class TranscriptSegment:
    """A contiguous stretch of speech."""
    id: int
    start: float
    end: float
    text: str
    speaker: Optional[str] = None
    confidence: Optional[float] = None


@dataclass
class TranscriptionResult:
    """Result of transcribing one audio file."""
    text: str
    service: str
    language: str = "en-US"
    duration: Optional[float] = None
    sentiment: Optional[str] = None
    keywords: List[str] = field(default_factory=list)
    call_score: Optional[int] = None
    filler_word_count: Optional[int] = None
    objection_count: Optional[int] = None
    segments: List[TranscriptSegment] = field(default_factory=list)
    words: List[WordTimestamp] = field(default_factory=list)
    processing_time: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class TranscriptRecord:
    """A transcript as stored by a persistence backend."""
    id: str
    user_id: str
    filename: str
    text: str
    created_at: datetime
    duration: Optional[float] = None
    sentiment: Optional[str] = None
    keywords: List[str] = field(default_factory=list)
    call_score: Optional[int] = None
    filler_word_count: Optional[int] = None
    objection_count: Optional[int] = None
    transcript_segments: Optional[List[Dict[str, Any]]] = None

    def to_row(self) -> Dict[str, Any]:
        """Serialize to a flat dict suitable for a JSON file or table insert."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "filename": self.filename,
            "text": self.text,
            "duration": self.duration,
            "sentiment": self.sentiment,
            "keywords": list(self.keywords),
            "call_score": self.call_score,
            "filler_word_count": self.filler_word_count,
            "objection_count": self.objection_count,
            "transcript_segments": self.transcript_segments,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "TranscriptRecord":
        created_at = row.get("created_at")
        if isinstance(created_at, str):
            created_at = parse_timestamp(created_at)
        return cls(
            id=str(row["id"]),
            user_id=row.get("user_id") or "",
            filename=row.get("filename") or "",
            text=row.get("text") or "",
            created_at=created_at or datetime.now(timezone.utc),
            duration=row.get("duration"),
            sentiment=row.get("sentiment"),
            keywords=list(row.get("keywords") or []),
            call_score=row.get("call_score"),
            filler_word_count=row.get("filler_word_count"),
            objection_count=row.get("objection_count"),
            transcript_segments=row.get("transcript_segments"),
        )
