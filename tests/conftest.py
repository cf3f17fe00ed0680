"""Pytest configuration and fixtures for CallScribe tests."""

import asyncio
import pytest
import tempfile
import logging
import wave
from pathlib import Path

import numpy as np

from callscribe.config import CallScribeConfig
from callscribe.errors import PersistenceError, TranscriptionError
from callscribe.models.transcript import TranscriptionResult
from callscribe.upload import (
    TOPIC_COMPLETED,
    TOPIC_QUEUE_CHANGED,
    TOPIC_STARTED,
    UploadEvents,
)


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def sample_audio_chunk():
    """One second of 16 kHz, 16-bit mono sine wave."""
    sample_rate = 16000
    t = np.linspace(0, 1.0, sample_rate, False)
    wave_data = np.sin(2 * np.pi * 440 * t)
    return (wave_data * 32767).astype(np.int16).tobytes()


def write_wav(path: Path, frames: bytes, sample_rate: int = 16000) -> Path:
    with wave.open(str(path), 'wb') as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(frames)
    return path


@pytest.fixture
def sample_audio_file(temp_data_dir, sample_audio_chunk):
    """A 3 second WAV file."""
    return write_wav(Path(temp_data_dir) / "test_call.wav", sample_audio_chunk * 3)


@pytest.fixture
def call_recordings(temp_data_dir, sample_audio_chunk):
    """Three WAV recordings and one text file, in that order."""
    folder = Path(temp_data_dir) / "uploads"
    folder.mkdir()
    paths = [write_wav(folder / f"call_{i}.wav", sample_audio_chunk) for i in (1, 2, 3)]
    notes = folder / "notes.txt"
    notes.write_text("meeting notes, not audio")
    return paths + [notes]


@pytest.fixture
def test_config(temp_data_dir):
    """Configuration writing everything under the temp directory."""
    return CallScribeConfig.from_dict({
        "storage": {"backend": "file", "data_directory": str(Path(temp_data_dir) / "data")},
        "logging": {"file_path": str(Path(temp_data_dir) / "logs" / "callscribe.log")},
    })


class FakeTranscriber:
    """Transcriber double that records calls and fails for chosen file names."""

    def __init__(self, fail_names=(), empty_names=(), text="Thank you, the demo was great."):
        self.fail_names = set(fail_names)
        self.empty_names = set(empty_names)
        self.text = text
        self.calls = []
        self.hook = None

    async def transcribe(self, upload_file):
        self.calls.append(upload_file.id)
        if self.hook is not None:
            await self.hook(upload_file)
        await asyncio.sleep(0)
        if upload_file.name in self.fail_names:
            raise TranscriptionError(f"Transcription API error: 500 - {upload_file.name}")
        text = "" if upload_file.name in self.empty_names else self.text
        return TranscriptionResult(text=text, service="fake", duration=1.0)


class FakeStore:
    """Store double that hands out sequential ids."""

    def __init__(self, fail_names=()):
        self.fail_names = set(fail_names)
        self.saved = []

    async def save(self, result, upload_file, assignee_id):
        await asyncio.sleep(0)
        if upload_file.name in self.fail_names:
            raise PersistenceError("Failed to save transcript: connection refused")
        transcript_id = f"transcript-{len(self.saved) + 1}"
        self.saved.append((transcript_id, upload_file.name, assignee_id))
        return transcript_id

    async def load_history(self, limit=None):
        return []


@pytest.fixture
def make_transcriber():
    return FakeTranscriber


@pytest.fixture
def make_store():
    return FakeStore


class EventRecorder:
    """Collects every event published on an UploadEvents instance."""

    def __init__(self, events: UploadEvents):
        self.started = []
        self.completed = []
        self.changes = []
        events.subscribe(self.on_started, TOPIC_STARTED)
        events.subscribe(self.on_completed, TOPIC_COMPLETED)
        events.subscribe(self.on_queue_changed, TOPIC_QUEUE_CHANGED)

    def on_started(self, event):
        self.started.append(event)

    def on_completed(self, event):
        self.completed.append(event)

    def on_queue_changed(self, event):
        self.changes.append(event)

    def status_history(self, file_id):
        """Distinct consecutive statuses a file went through."""
        history = []
        for change in self.changes:
            for entry in change.files:
                if entry.id == file_id and (not history or history[-1] != entry.status):
                    history.append(entry.status)
        return history


@pytest.fixture
def upload_events():
    return UploadEvents()


@pytest.fixture
def recorder(upload_events):
    return EventRecorder(upload_events)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests with no I/O beyond a temp directory")
    config.addinivalue_line("markers", "integration: tests wiring several components together")
