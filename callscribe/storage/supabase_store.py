"""Transcript store backed by a Supabase ``call_transcripts`` table."""

import asyncio
import logging
from functools import partial
from typing import List, Optional

from supabase import Client, create_client

from ..errors import PersistenceError
from ..models.transcript import TranscriptionResult, TranscriptRecord
from ..models.upload import UploadFile
from .base import AbstractTranscriptStore, build_record

logger = logging.getLogger(__name__)

DUPLICATE_REQUEST_MARKER = "Duplicate request"


class SupabaseTranscriptStore(AbstractTranscriptStore):
    """Inserts transcripts into a Supabase table and reads history back."""

    def __init__(self,
                 client: Client,
                 table: str = "call_transcripts",
                 max_retries: int = 2,
                 retry_delay_seconds: float = 1.5):
        """
        Args:
            client: Supabase client (service role or authenticated user)
            table: Table holding transcript rows
            max_retries: Extra insert attempts after a duplicate-request rejection
            retry_delay_seconds: Wait between those attempts
        """
        self.client = client
        self.table = table
        self.max_retries = max_retries
        self.retry_delay_seconds = retry_delay_seconds

    @classmethod
    def from_credentials(cls, url: str, key: str, **kwargs) -> "SupabaseTranscriptStore":
        if not url or not key:
            raise PersistenceError("SUPABASE_URL and SUPABASE_KEY must be set")
        return cls(create_client(url, key), **kwargs)

    async def _run(self, fn):
        # supabase-py is synchronous
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn)

    def _insert(self, row: dict):
        return self.client.table(self.table).insert(row).execute()

    def _select(self, limit: Optional[int]):
        query = self.client.table(self.table).select("*").order("created_at", desc=True)
        if limit:
            query = query.limit(limit)
        return query.execute()

    async def save(self, result: TranscriptionResult, upload_file: UploadFile,
                   assignee_id: Optional[str]) -> str:
        record = build_record(result, upload_file, assignee_id)
        row = record.to_row()
        logger.info(f"Saving transcript {record.id} for user {record.user_id} ({upload_file.name})")

        attempt = 0
        while True:
            try:
                response = await self._run(partial(self._insert, row))
                break
            except Exception as e:
                if DUPLICATE_REQUEST_MARKER in str(e) and attempt < self.max_retries:
                    attempt += 1
                    logger.info(f"Retry {attempt}/{self.max_retries} due to duplicate request error")
                    await asyncio.sleep(self.retry_delay_seconds)
                    continue
                logger.error(f"Error inserting transcript into {self.table}: {e}")
                raise PersistenceError(f"Failed to save transcript: {e}") from e

        if response.data:
            return str(response.data[0].get("id", record.id))
        return record.id

    async def load_history(self, limit: Optional[int] = None) -> List[TranscriptRecord]:
        try:
            response = await self._run(partial(self._select, limit))
        except Exception as e:
            logger.error(f"Error loading upload history: {e}")
            raise PersistenceError(f"Failed to load history: {e}") from e

        rows = response.data or []
        try:
            records = [TranscriptRecord.from_row(row) for row in rows]
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed row in {self.table}: {e}")
            raise PersistenceError(f"Failed to parse upload history: {e}") from e

        logger.info(f"Loaded {len(records)} items from upload history")
        return records
