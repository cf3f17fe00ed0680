"""Integration tests for the complete bulk upload workflow."""

import asyncio
import json

import pytest
from rich.console import Console

from callscribe.errors import TranscriptionError
from callscribe.models.transcript import TranscriptionResult
from callscribe.models.upload import UploadStatus
from callscribe.services import BulkUploadService, TranscriptionService
from callscribe.storage import TranscriptFileStore
from callscribe.transcription import AbstractTranscriptionBackend
from callscribe.ui import UploadProgressView, render_history
from callscribe.upload import ALREADY_PROCESSING


class ScriptedBackend(AbstractTranscriptionBackend):
    """Backend that answers per file name."""

    def __init__(self, failures=()):
        super().__init__()
        self.failures = set(failures)

    async def transcribe(self, upload_file):
        await asyncio.sleep(0.01)
        if upload_file.name in self.failures:
            raise TranscriptionError("Transcription API error: 500 - upstream failure")
        return TranscriptionResult(
            text=f"Thank you for the demo. We discussed pricing for {upload_file.name}.",
            service="scripted",
        )

    def initialize(self) -> bool:
        return True


@pytest.fixture
def service(test_config):
    def build(failures=()):
        transcription = TranscriptionService(test_config, backend=ScriptedBackend(failures))
        store = TranscriptFileStore(test_config.get_data_directory())
        return BulkUploadService(test_config, transcription_service=transcription, store=store)
    return build


@pytest.mark.integration
class TestBulkUploadWorkflow:

    def test_mixed_batch_end_to_end(self, service, call_recordings):
        svc = service(failures={"call_2.wav"})

        accepted, rejected = svc.add_files(call_recordings, assignee_id="rep-42")
        assert [r.name for r in rejected] == ["notes.txt"]

        result = asyncio.run(svc.process_queue())

        statuses = {f.name: f.status for f in svc.files}
        assert statuses == {
            "call_1.wav": UploadStatus.COMPLETE,
            "call_2.wav": UploadStatus.ERROR,
            "call_3.wav": UploadStatus.COMPLETE,
        }
        assert result.success_count == 2
        assert result.error_count == 1

        # Each completed entry points at a transcript file on disk
        for entry in svc.files:
            if entry.status is UploadStatus.COMPLETE:
                path = svc.store.transcripts_dir / f"{entry.transcript_id}.json"
                row = json.loads(path.read_text())
                assert row["filename"] == entry.name
                assert row["user_id"] == "rep-42"
                assert row["duration"] == pytest.approx(1.0)
                assert row["sentiment"] == "positive"
                assert "pricing" in row["keywords"]
                assert row["filler_word_count"] == 0
                assert row["objection_count"] == 0

        history = asyncio.run(svc.load_upload_history())
        assert sorted(r.filename for r in history) == ["call_1.wav", "call_3.wav"]

    def test_retry_after_failure(self, service, call_recordings):
        svc = service(failures={"call_1.wav"})
        accepted, _ = svc.add_files(call_recordings[:1])
        asyncio.run(svc.process_queue())
        assert svc.files[0].status is UploadStatus.ERROR

        svc.transcription_service.backend.failures.clear()
        assert svc.retry_file(accepted[0].id)
        asyncio.run(svc.process_queue())

        assert svc.files[0].status is UploadStatus.COMPLETE
        assert svc.clear_completed() == 1
        assert svc.files == []

    def test_second_trigger_is_refused(self, service, call_recordings):
        svc = service()
        svc.add_files(call_recordings[:3])

        async def double_trigger():
            return await asyncio.gather(svc.process_queue(), svc.process_queue())

        first, second = asyncio.run(double_trigger())

        assert first.success_count == 3
        assert second.error == ALREADY_PROCESSING
        assert len(asyncio.run(svc.load_upload_history())) == 3

    def test_history_cache_invalidated_by_new_transcripts(self, service, call_recordings):
        svc = service()
        assert asyncio.run(svc.load_upload_history()) == []
        assert svc.has_loaded_history

        svc.add_files(call_recordings[:1])
        asyncio.run(svc.process_queue())

        assert not svc.has_loaded_history
        assert len(asyncio.run(svc.load_upload_history())) == 1

    def test_close_releases_lock_and_clears_queue(self, service, call_recordings):
        svc = service()
        svc.add_files(call_recordings[:2])
        svc.lock.acquire(owner="stuck")

        svc.close()

        assert not svc.is_processing
        assert svc.files == []

    def test_progress_view_renders_queue(self, service, call_recordings):
        svc = service(failures={"call_3.wav"})
        console = Console(record=True, width=200)
        view = UploadProgressView(svc.events, console)
        svc.add_files(call_recordings[:3])

        asyncio.run(svc.process_queue())
        console.print(view.build_table())
        view.close()

        output = console.export_text()
        assert "Processing 3 file(s)" in output
        assert "2 transcribed" in output
        assert "complete" in output
        assert "error" in output

        history = asyncio.run(svc.load_upload_history())
        table = render_history(history, console)
        assert table.row_count == 2
