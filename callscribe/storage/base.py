"""Abstract transcript store and record construction."""

import dataclasses
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional

from ..models.transcript import TranscriptionResult, TranscriptRecord
from ..models.upload import UploadFile

logger = logging.getLogger(__name__)


def anonymous_user_id() -> str:
    return f"anonymous-{uuid.uuid4().hex[:8]}"


def build_record(result: TranscriptionResult, upload_file: UploadFile,
                 assignee_id: Optional[str]) -> TranscriptRecord:
    """Turn a transcription into the record shape both stores persist."""
    user_id = assignee_id or anonymous_user_id()
    segments = [dataclasses.asdict(s) for s in result.segments] or None
    return TranscriptRecord(
        id=str(uuid.uuid4()),
        user_id=user_id,
        filename=upload_file.name,
        text=result.text,
        created_at=datetime.now(timezone.utc),
        duration=result.duration,
        sentiment=result.sentiment,
        keywords=list(result.keywords),
        call_score=result.call_score,
        filler_word_count=result.filler_word_count,
        objection_count=result.objection_count,
        transcript_segments=segments,
    )


class AbstractTranscriptStore(ABC):
    """Persists finished transcripts and lists them back."""

    @abstractmethod
    async def save(self, result: TranscriptionResult, upload_file: UploadFile,
                   assignee_id: Optional[str]) -> str:
        """Store a transcript. Returns its id.

        Raises:
            PersistenceError: if the transcript could not be stored
        """
        ...

    @abstractmethod
    async def load_history(self, limit: Optional[int] = None) -> List[TranscriptRecord]:
        """Saved transcripts, newest first."""
        ...
