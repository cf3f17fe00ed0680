"""Data models for CallScribe."""

from .upload import (
    UploadStatus,
    UploadFile,
    IncomingFile,
    RejectedFile,
    STATUS_TRANSITIONS,
)
from .transcript import (
    WordTimestamp,
    TranscriptSegment,
    TranscriptionResult,
    TranscriptRecord,
)
from .events import (
    UploadStartedEvent,
    UploadCompletedEvent,
    QueueChangedEvent,
    BatchResult,
)

__all__ = [
    "UploadStatus",
    "UploadFile",
    "IncomingFile",
    "RejectedFile",
    "STATUS_TRANSITIONS",
    "WordTimestamp",
    "TranscriptSegment",
    "TranscriptionResult",
    "TranscriptRecord",
    # Events
    "UploadStartedEvent",
    "UploadCompletedEvent",
    "QueueChangedEvent",
    "BatchResult",
]
