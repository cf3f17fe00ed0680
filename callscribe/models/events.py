"""Event payloads published by the upload queue and processor."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .upload import UploadFile


@dataclass
class UploadStartedEvent:
    """A batch run has picked up `count` queued files."""
    count: int
    file_ids: List[str]
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class UploadCompletedEvent:
    """A batch run finished. Failed files are absent from `transcript_ids`."""
    count: int
    file_ids: List[str]
    transcript_ids: List[str]
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class QueueChangedEvent:
    """Snapshot of the queue after any mutation."""
    files: List[UploadFile]
    changed_id: Optional[str] = None


@dataclass
class BatchResult:
    """Outcome of one `process_queue` call."""
    success: bool
    error: Optional[str] = None
    processed: int = 0
    success_count: int = 0
    error_count: int = 0
    aborted: bool = False
    file_ids: List[str] = field(default_factory=list)
    transcript_ids: List[str] = field(default_factory=list)
