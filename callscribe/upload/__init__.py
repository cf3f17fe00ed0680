"""Bulk upload queue, processing lock and batch driver."""

from .events import UploadEvents, TOPIC_STARTED, TOPIC_COMPLETED, TOPIC_QUEUE_CHANGED
from .lock import ProcessingLock, LockState
from .queue import UploadQueue, is_audio, AUDIO_EXTENSIONS
from .processor import BulkUploadProcessor, ALREADY_PROCESSING

__all__ = [
    "UploadEvents",
    "TOPIC_STARTED",
    "TOPIC_COMPLETED",
    "TOPIC_QUEUE_CHANGED",
    "ProcessingLock",
    "LockState",
    "UploadQueue",
    "is_audio",
    "AUDIO_EXTENSIONS",
    "BulkUploadProcessor",
    "ALREADY_PROCESSING",
]
