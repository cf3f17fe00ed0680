"""Upload queue data models."""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union
from pathlib import Path


class UploadStatus(Enum):
    """Lifecycle status of a queued upload."""
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETE = "complete"
    ERROR = "error"


# Allowed forward moves. ERROR -> QUEUED is only reachable through an explicit retry.
STATUS_TRANSITIONS = {
    UploadStatus.QUEUED: {UploadStatus.PROCESSING},
    UploadStatus.PROCESSING: {UploadStatus.COMPLETE, UploadStatus.ERROR},
    UploadStatus.COMPLETE: set(),
    UploadStatus.ERROR: set(),
}


@dataclass
class UploadFile:
    """One audio file in the upload queue plus its processing state."""
    name: str
    source: Union[str, Path, bytes]
    size: int
    mime_type: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: UploadStatus = UploadStatus.QUEUED
    progress: int = 0
    error: Optional[str] = None
    transcript_id: Optional[str] = None
    assignee_id: Optional[str] = None
    last_updated: float = field(default_factory=time.time)

    def read_bytes(self) -> bytes:
        """Return the raw audio content of this upload."""
        if isinstance(self.source, bytes):
            return self.source
        return Path(self.source).read_bytes()

    @property
    def extension(self) -> str:
        return Path(self.name).suffix.lower().lstrip(".")


@dataclass
class RejectedFile:
    """An input that was refused by the queue and never entered it."""
    name: str
    reason: str


@dataclass
class IncomingFile:
    """A file handed to the queue from memory rather than from disk."""
    name: str
    data: bytes
    mime_type: Optional[str] = None
