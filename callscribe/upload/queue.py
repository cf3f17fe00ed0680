"""In-memory upload queue holding audio files and their processing state."""

import dataclasses
import logging
import mimetypes
import time
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from ..errors import InvalidStatusTransition
from ..models.events import QueueChangedEvent
from ..models.upload import (
    STATUS_TRANSITIONS,
    IncomingFile,
    RejectedFile,
    UploadFile,
    UploadStatus,
)
from .events import UploadEvents

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = frozenset({"wav", "mp3", "m4a", "ogg", "webm", "flac", "aac"})

_UPDATABLE_FIELDS = frozenset({"status", "progress", "error", "transcript_id"})

FileInput = Union[str, Path, IncomingFile]


def is_audio(name: str, mime_type: Optional[str]) -> bool:
    """Decide whether a file looks like audio from its MIME type or extension."""
    if mime_type == "text/plain":
        return False
    if mime_type and mime_type.startswith("audio/"):
        return True
    return Path(name).suffix.lower().lstrip(".") in AUDIO_EXTENSIONS


class UploadQueue:
    """Ordered collection of upload entries.

    Every mutation publishes a ``QueueChangedEvent`` so views can re-render.
    """

    def __init__(self, events: Optional[UploadEvents] = None):
        self.events = events or UploadEvents()
        self._files: List[UploadFile] = []

    @property
    def files(self) -> List[UploadFile]:
        """Copy of the entries in insertion order."""
        return list(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def get(self, file_id: str) -> Optional[UploadFile]:
        for entry in self._files:
            if entry.id == file_id:
                return entry
        return None

    def queued(self) -> List[UploadFile]:
        """Entries currently waiting to be processed, FIFO."""
        return [f for f in self._files if f.status is UploadStatus.QUEUED]

    def add_files(self, files: Iterable[FileInput],
                  assignee_id: Optional[str] = None) -> Tuple[List[UploadFile], List[RejectedFile]]:
        """Append audio files as Queued entries. Does not start processing.

        Args:
            files: Paths on disk or in-memory ``IncomingFile`` objects
            assignee_id: User the resulting transcripts are assigned to

        Returns:
            (accepted entries, one RejectedFile per refused input)
        """
        accepted: List[UploadFile] = []
        rejected: List[RejectedFile] = []

        for item in files:
            if isinstance(item, IncomingFile):
                name, source, size = item.name, item.data, len(item.data)
                mime_type = item.mime_type or mimetypes.guess_type(item.name)[0]
            else:
                path = Path(item)
                name, source = path.name, path
                mime_type = mimetypes.guess_type(path.name)[0]
                if not path.is_file():
                    rejected.append(RejectedFile(name=name, reason=f"{name} does not exist"))
                    continue
                size = path.stat().st_size

            if not is_audio(name, mime_type):
                logger.warning(f"Rejected non-audio file: {name} ({mime_type})")
                rejected.append(RejectedFile(
                    name=name,
                    reason=f"{name} is not a supported audio file. Please upload audio files only.",
                ))
                continue

            accepted.append(UploadFile(
                name=name,
                source=source,
                size=size,
                mime_type=mime_type or "application/octet-stream",
                assignee_id=assignee_id,
            ))

        if accepted:
            self._files.extend(accepted)
            logger.info(f"Added {len(accepted)} files to upload queue")
            self._notify()

        return accepted, rejected

    def update_file(self, file_id: str, **fields) -> bool:
        """Merge status/progress/error/transcript_id into an entry.

        Returns False (and changes nothing) when the id is unknown, which
        happens when a late update arrives for a removed entry.

        Raises:
            InvalidStatusTransition: if the status change is not allowed
            ValueError: if progress is outside 0..100
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise TypeError(f"Cannot update upload fields: {sorted(unknown)}")

        entry = self.get(file_id)
        if entry is None:
            logger.debug(f"Ignoring update for unknown upload {file_id}")
            return False

        status = fields.get("status")
        if status is not None and status is not entry.status:
            if status not in STATUS_TRANSITIONS[entry.status]:
                raise InvalidStatusTransition(file_id, entry.status, status)

        progress = fields.get("progress")
        if progress is not None and not 0 <= progress <= 100:
            raise ValueError(f"Progress must be within 0..100, got {progress}")

        for key, value in fields.items():
            if key in ("status", "progress") and value is None:
                continue
            setattr(entry, key, value)
        entry.last_updated = time.time()

        logger.debug(f"Updated upload {file_id}: status={entry.status.value} progress={entry.progress}")
        self._notify(file_id)
        return True

    def remove_file(self, file_id: str) -> bool:
        """Remove an entry. In-flight (Processing) entries are left in place."""
        entry = self.get(file_id)
        if entry is None:
            return False
        if entry.status is UploadStatus.PROCESSING:
            logger.debug(f"Not removing {file_id}: still processing")
            return False
        self._files.remove(entry)
        self._notify(file_id)
        return True

    def clear_completed(self) -> int:
        """Remove every Complete entry; Error entries stay for the user to handle."""
        before = len(self._files)
        self._files = [f for f in self._files if f.status is not UploadStatus.COMPLETE]
        removed = before - len(self._files)
        if removed:
            logger.info(f"Cleared {removed} completed uploads")
            self._notify()
        return removed

    def retry_file(self, file_id: str) -> bool:
        """Put a failed entry back in the queue (Error -> Queued)."""
        entry = self.get(file_id)
        if entry is None or entry.status is not UploadStatus.ERROR:
            return False
        entry.status = UploadStatus.QUEUED
        entry.progress = 0
        entry.error = None
        entry.last_updated = time.time()
        logger.info(f"Re-queued failed upload {entry.name}")
        self._notify(file_id)
        return True

    def reset(self) -> None:
        """Drop every entry, including in-flight ones."""
        self._files = []
        self._notify()

    def _notify(self, changed_id: Optional[str] = None) -> None:
        snapshot = [dataclasses.replace(f) for f in self._files]
        self.events.publish_queue_changed(QueueChangedEvent(files=snapshot, changed_id=changed_id))
