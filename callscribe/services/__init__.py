"""Services layer for CallScribe application logic."""

from .transcription_service import TranscriptionService
from .upload_service import BulkUploadService, create_store

__all__ = [
    "TranscriptionService",
    "BulkUploadService",
    "create_store",
]
