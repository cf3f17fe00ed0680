"""Batch driver that transcribes and persists queued uploads one at a time."""

import logging
import uuid
from typing import Optional, Protocol

from ..errors import TranscriptionError
from ..models.events import BatchResult, UploadCompletedEvent, UploadStartedEvent
from ..models.transcript import TranscriptionResult
from ..models.upload import UploadFile, UploadStatus
from .lock import ProcessingLock
from .queue import UploadQueue

logger = logging.getLogger(__name__)

ALREADY_PROCESSING = "Processing already in progress"

# Progress reported once transcription returned and the transcript is being saved
TRANSCRIBED_PROGRESS = 50


class Transcriber(Protocol):
    """Anything that turns an upload into a transcription result."""

    async def transcribe(self, upload_file: UploadFile) -> TranscriptionResult:
        ...


class TranscriptSaver(Protocol):
    """Anything that persists a transcription and returns its id."""

    async def save(self, result: TranscriptionResult, upload_file: UploadFile,
                   assignee_id: Optional[str]) -> str:
        ...


class BulkUploadProcessor:
    """Runs batches over the queue's Queued entries.

    A batch holds the processing lock for its whole duration. Files are
    handled sequentially in FIFO order; a failing file is marked Error and
    the batch carries on.
    """

    def __init__(self,
                 queue: UploadQueue,
                 transcriber: Transcriber,
                 store: TranscriptSaver,
                 lock: Optional[ProcessingLock] = None):
        self.queue = queue
        self.events = queue.events
        self.transcriber = transcriber
        self.store = store
        self.lock = lock or ProcessingLock()

    @property
    def is_processing(self) -> bool:
        return self.lock.is_locked

    async def process_queue(self, assignee_id: Optional[str] = None) -> BatchResult:
        """Process every entry that is Queued when the call starts.

        Args:
            assignee_id: User to assign transcripts to. Falls back to the
                assignee recorded when each file was added.

        Returns:
            BatchResult; ``success`` is False only when another batch holds the lock.
        """
        batch_id = str(uuid.uuid4())
        # Acquire before the first await so back-to-back calls cannot both start
        if not self.lock.acquire(owner=batch_id):
            logger.warning("Processing already in progress, skipping new process_queue call")
            return BatchResult(success=False, error=ALREADY_PROCESSING)

        result = BatchResult(success=True)
        try:
            snapshot = self.queue.queued()
            if not snapshot:
                logger.info("No files in queue to process")
                return result

            result.file_ids = [f.id for f in snapshot]
            logger.info(f"Starting batch {batch_id} for {len(snapshot)} queued files")
            self.events.publish_started(UploadStartedEvent(count=len(snapshot), file_ids=list(result.file_ids)))

            for entry in snapshot:
                if self.lock.owner != batch_id:
                    logger.warning(f"Batch {batch_id} lock was released externally, stopping")
                    result.aborted = True
                    break

                current = self.queue.get(entry.id)
                if current is None or current.status is not UploadStatus.QUEUED:
                    logger.debug(f"Skipping {entry.name}: removed or no longer queued")
                    continue

                transcript_id = await self._process_file(current, assignee_id or current.assignee_id)
                result.processed += 1
                if transcript_id is not None:
                    result.success_count += 1
                    result.transcript_ids.append(transcript_id)
                else:
                    result.error_count += 1
        finally:
            self.lock.release(owner=batch_id)

        logger.info(f"Batch {batch_id} finished. Success: {result.success_count}, "
                    f"Errors: {result.error_count}, Aborted: {result.aborted}")
        self.events.publish_completed(UploadCompletedEvent(
            count=result.processed,
            file_ids=list(result.file_ids),
            transcript_ids=list(result.transcript_ids),
        ))
        return result

    async def _process_file(self, entry: UploadFile, assignee_id: Optional[str]) -> Optional[str]:
        """Transcribe and save one entry. Returns the transcript id, or None on failure."""
        self.queue.update_file(entry.id, status=UploadStatus.PROCESSING, progress=0)

        try:
            logger.info(f"Transcribing {entry.name} ({entry.size} bytes)")
            transcription = await self.transcriber.transcribe(entry)
            if transcription is None or not transcription.text.strip():
                raise TranscriptionError("Transcription failed or returned empty response")
            self.queue.update_file(entry.id, progress=TRANSCRIBED_PROGRESS)

            transcript_id = await self.store.save(transcription, entry, assignee_id)
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error(f"Error processing file {entry.name}: {message}", exc_info=True)
            self.queue.update_file(entry.id, status=UploadStatus.ERROR, error=message)
            return None

        self.queue.update_file(entry.id, status=UploadStatus.COMPLETE, progress=100,
                               transcript_id=transcript_id)
        logger.info(f"Completed {entry.name} -> transcript {transcript_id}")
        return transcript_id
