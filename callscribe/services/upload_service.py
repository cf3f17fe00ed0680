"""Bulk upload service wiring the queue, processor, transcription and storage."""

import logging
from typing import Iterable, List, Optional, Tuple

from ..config import CallScribeConfig
from ..errors import ConfigError, PersistenceError
from ..models.events import BatchResult
from ..models.transcript import TranscriptRecord
from ..models.upload import RejectedFile, UploadFile
from ..storage import AbstractTranscriptStore, SupabaseTranscriptStore, TranscriptFileStore
from ..upload import BulkUploadProcessor, ProcessingLock, UploadEvents, UploadQueue
from ..upload.queue import FileInput
from .transcription_service import TranscriptionService

logger = logging.getLogger(__name__)


def create_store(config: CallScribeConfig) -> AbstractTranscriptStore:
    """Build the transcript store named by ``storage.backend``."""
    backend = config.get('storage.backend', 'file')
    if backend == 'file':
        return TranscriptFileStore(config.get_data_directory())
    if backend == 'supabase':
        return SupabaseTranscriptStore.from_credentials(
            config.get('supabase.url'),
            config.get('supabase.key'),
            table=config.get('supabase.table', 'call_transcripts'),
            max_retries=config.get('supabase.max_retries', 2),
            retry_delay_seconds=config.get('supabase.retry_delay_seconds', 1.5),
        )
    raise ConfigError(f"Unknown storage backend: {backend}")


class BulkUploadService:
    """High-level API for the bulk upload workflow.

    Holds one queue, one processing lock and one event publisher, and keeps
    a cached copy of the upload history.
    """

    def __init__(self,
                 config: CallScribeConfig,
                 transcription_service: Optional[TranscriptionService] = None,
                 store: Optional[AbstractTranscriptStore] = None,
                 events: Optional[UploadEvents] = None):
        self.config = config
        self.events = events or UploadEvents()
        self.queue = UploadQueue(self.events)
        self.lock = ProcessingLock()
        self.transcription_service = transcription_service or TranscriptionService(config)
        self.store = store or create_store(config)
        self.processor = BulkUploadProcessor(
            queue=self.queue,
            transcriber=self.transcription_service,
            store=self.store,
            lock=self.lock,
        )

        self.upload_history: List[TranscriptRecord] = []
        self.has_loaded_history = False

        logger.info("BulkUploadService initialized")

    @property
    def files(self) -> List[UploadFile]:
        return self.queue.files

    @property
    def is_processing(self) -> bool:
        return self.lock.is_locked

    def add_files(self, files: Iterable[FileInput],
                  assignee_id: Optional[str] = None) -> Tuple[List[UploadFile], List[RejectedFile]]:
        accepted, rejected = self.queue.add_files(files, assignee_id)
        for item in rejected:
            logger.warning(f"Invalid file type: {item.reason}")
        return accepted, rejected

    def remove_file(self, file_id: str) -> bool:
        return self.queue.remove_file(file_id)

    def retry_file(self, file_id: str) -> bool:
        return self.queue.retry_file(file_id)

    def clear_completed(self) -> int:
        return self.queue.clear_completed()

    async def process_queue(self, assignee_id: Optional[str] = None) -> BatchResult:
        result = await self.processor.process_queue(assignee_id)
        if result.success_count:
            # New transcripts make the cached history stale
            self.has_loaded_history = False
        return result

    def close(self) -> None:
        """Close the batch from the UI side: free the lock and drop the queue."""
        self.lock.force_release()
        self.queue.reset()

    async def load_upload_history(self, force: bool = False) -> List[TranscriptRecord]:
        """Load saved transcripts, newest first. Cached until new uploads complete."""
        if self.has_loaded_history and not force:
            return self.upload_history
        try:
            self.upload_history = await self.store.load_history()
        except PersistenceError as e:
            logger.error(f"Error loading upload history: {e}")
            raise
        self.has_loaded_history = True
        return self.upload_history

    def shutdown(self) -> None:
        self.transcription_service.shutdown()
