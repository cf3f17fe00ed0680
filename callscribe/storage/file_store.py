"""Transcript store that keeps one JSON file per transcript on disk."""

import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional, List

from ..errors import PersistenceError
from ..models.transcript import TranscriptionResult, TranscriptRecord
from ..models.upload import UploadFile
from .base import AbstractTranscriptStore, build_record

logger = logging.getLogger(__name__)


class TranscriptFileStore(AbstractTranscriptStore):
    """Manages transcript files under a data directory."""

    def __init__(self, data_dir: str = "./data"):
        """Initialize file store with data directory.

        Args:
            data_dir: Base directory for storing all data
        """
        self.data_dir = Path(data_dir)
        self.transcripts_dir = self.data_dir / "transcripts"
        self.logs_dir = self.data_dir / "logs"

        self._ensure_directories()

        logger.info(f"TranscriptFileStore initialized with data_dir: {self.data_dir}")

    def _ensure_directories(self) -> None:
        """Ensure all required directories exist."""
        for directory in [self.data_dir, self.transcripts_dir, self.logs_dir]:
            directory.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Ensured directory exists: {directory}")

    def _path_for(self, transcript_id: str) -> Path:
        return self.transcripts_dir / f"{transcript_id}.json"

    async def save(self, result: TranscriptionResult, upload_file: UploadFile,
                   assignee_id: Optional[str]) -> str:
        record = build_record(result, upload_file, assignee_id)
        return self.save_record(record)

    def save_record(self, record: TranscriptRecord) -> str:
        """Write a record to its JSON file and return its id."""
        path = self._path_for(record.id)
        try:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(record.to_row(), f, indent=2)
        except OSError as e:
            logger.error(f"Error saving transcript {record.id}: {e}")
            raise PersistenceError(f"Failed to save transcript: {e}") from e

        logger.info(f"Transcript saved: {path} ({len(record.text)} chars)")
        return record.id

    def _read(self, path: Path) -> TranscriptRecord:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return TranscriptRecord.from_row(json.load(f))
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise PersistenceError(f"Failed to read transcript {path.name}: {e}") from e

    async def load_history(self, limit: Optional[int] = None) -> List[TranscriptRecord]:
        records = []
        for path in self.transcripts_dir.glob("*.json"):
            try:
                records.append(self._read(path))
            except PersistenceError as e:
                logger.warning(f"Skipping unreadable transcript: {e}")

        records.sort(key=lambda r: r.created_at, reverse=True)
        logger.debug(f"Loaded {len(records)} transcripts from {self.transcripts_dir}")
        return records[:limit] if limit else records

    def get_storage_stats(self) -> Dict[str, Any]:
        """Get storage usage statistics.

        Returns:
            Dictionary with storage statistics
        """
        files = [p for p in self.transcripts_dir.glob("*.json") if p.is_file()]
        total_size = sum(p.stat().st_size for p in files)
        return {
            "total_size_bytes": total_size,
            "total_size_mb": round(total_size / (1024 * 1024), 2),
            "transcript_count": len(files),
            "data_directory": str(self.data_dir),
        }
