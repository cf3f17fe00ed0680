"""Abstract base class for transcription backends."""

from abc import ABC, abstractmethod
import logging

from ..models.transcript import TranscriptionResult
from ..models.upload import UploadFile

logger = logging.getLogger(__name__)


class AbstractTranscriptionBackend(ABC):
    """Abstract base class for transcription backends."""

    def __init__(self, language: str = "en-US"):
        """Initialize backend with language preference."""
        self.language = language

    @abstractmethod
    async def transcribe(self, upload_file: UploadFile) -> TranscriptionResult:
        """Transcribe a whole uploaded audio file.

        Args:
            upload_file: Queue entry whose audio should be transcribed

        Returns:
            TranscriptionResult with text, segments and metadata

        Raises:
            TranscriptionError: if the backend fails
        """
        pass

    @abstractmethod
    def initialize(self) -> bool:
        """Initialize backend resources and verify configuration.

        Returns:
            True if initialization successful, False otherwise
        """
        pass

    def cleanup(self) -> None:
        """Clean up backend resources."""
        pass
