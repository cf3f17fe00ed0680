"""Unit tests for TranscriptFileStore."""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from callscribe.errors import PersistenceError
from callscribe.models.transcript import TranscriptionResult, TranscriptRecord, TranscriptSegment
from callscribe.models.upload import UploadFile
from callscribe.storage import TranscriptFileStore, build_record


def make_upload(name="call.wav"):
    return UploadFile(name=name, source=b"RIFF", size=4, mime_type="audio/wav")


def make_result(text="Thank you, the demo was great."):
    return TranscriptionResult(
        text=text,
        service="test",
        duration=12.5,
        sentiment="positive",
        keywords=["demo"],
        call_score=87,
        filler_word_count=1,
        objection_count=0,
        segments=[TranscriptSegment(id=0, start=0.0, end=2.0, text="Thank you", speaker="Agent")],
    )


@pytest.mark.unit
class TestBuildRecord:

    def test_copies_result_fields(self):
        record = build_record(make_result(), make_upload(), "rep-1")

        assert record.user_id == "rep-1"
        assert record.filename == "call.wav"
        assert record.duration == 12.5
        assert record.call_score == 87
        assert record.filler_word_count == 1
        assert record.objection_count == 0
        assert record.transcript_segments[0]["speaker"] == "Agent"
        assert record.created_at.tzinfo is not None

    def test_anonymous_user_without_assignee(self):
        record = build_record(make_result(), make_upload(), None)
        assert record.user_id.startswith("anonymous-")

    def test_no_segments_stored_as_none(self):
        result = TranscriptionResult(text="hello", service="test")
        assert build_record(result, make_upload(), "rep-1").transcript_segments is None


@pytest.mark.unit
class TestTranscriptFileStore:
    """Test cases for TranscriptFileStore class."""

    def test_initialization(self, temp_data_dir):
        store = TranscriptFileStore(temp_data_dir)

        assert store.data_dir == Path(temp_data_dir)
        assert store.transcripts_dir == Path(temp_data_dir) / "transcripts"
        assert store.transcripts_dir.exists()
        assert store.logs_dir.exists()

    def test_save_writes_json(self, temp_data_dir):
        store = TranscriptFileStore(temp_data_dir)

        transcript_id = asyncio.run(store.save(make_result(), make_upload(), "rep-1"))

        path = store.transcripts_dir / f"{transcript_id}.json"
        assert path.exists()
        with open(path, 'r', encoding='utf-8') as f:
            row = json.load(f)
        assert row["id"] == transcript_id
        assert row["text"] == "Thank you, the demo was great."
        assert row["keywords"] == ["demo"]
        assert row["user_id"] == "rep-1"
        assert row["filler_word_count"] == 1
        assert row["objection_count"] == 0

    def test_history_round_trips_record(self, temp_data_dir):
        store = TranscriptFileStore(temp_data_dir)
        transcript_id = asyncio.run(store.save(make_result(), make_upload(), "rep-1"))

        record, = asyncio.run(store.load_history())

        assert record.id == transcript_id
        assert record.sentiment == "positive"
        assert record.filler_word_count == 1
        assert record.objection_count == 0
        assert record.transcript_segments[0]["text"] == "Thank you"

    def test_save_failure_raises_persistence_error(self, temp_data_dir):
        store = TranscriptFileStore(temp_data_dir)

        with patch("callscribe.storage.file_store.open", side_effect=OSError("disk full"), create=True):
            with pytest.raises(PersistenceError, match="disk full"):
                asyncio.run(store.save(make_result(), make_upload(), "rep-1"))

    def test_load_history_newest_first(self, temp_data_dir):
        store = TranscriptFileStore(temp_data_dir)
        now = datetime.now(timezone.utc)
        for i, age in enumerate([3, 1, 2]):
            store.save_record(TranscriptRecord(
                id=f"t-{i}", user_id="rep-1", filename=f"call_{i}.wav", text="hello",
                created_at=now - timedelta(hours=age),
            ))

        history = asyncio.run(store.load_history())
        assert [r.id for r in history] == ["t-1", "t-2", "t-0"]

        limited = asyncio.run(store.load_history(limit=2))
        assert [r.id for r in limited] == ["t-1", "t-2"]

    def test_load_history_skips_corrupt_files(self, temp_data_dir):
        store = TranscriptFileStore(temp_data_dir)
        asyncio.run(store.save(make_result(), make_upload(), "rep-1"))
        (store.transcripts_dir / "broken.json").write_text("{not json")

        history = asyncio.run(store.load_history())
        assert len(history) == 1

    def test_storage_stats(self, temp_data_dir):
        store = TranscriptFileStore(temp_data_dir)
        asyncio.run(store.save(make_result(), make_upload(), "rep-1"))

        stats = store.get_storage_stats()
        assert stats["transcript_count"] == 1
        assert stats["total_size_bytes"] > 0
        assert stats["data_directory"] == str(Path(temp_data_dir))
