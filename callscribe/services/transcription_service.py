"""Transcription service: backend selection plus transcript analysis."""

import io
import logging
import wave
from typing import Optional

from ..analysis import TranscriptAnalyzer
from ..config import CallScribeConfig
from ..errors import ConfigError, TranscriptionError
from ..models.transcript import TranscriptionResult
from ..models.upload import UploadFile
from ..transcription import (
    AbstractTranscriptionBackend,
    GoogleSpeechBackend,
    HttpTranscriptionBackend,
)

logger = logging.getLogger(__name__)


def wav_duration(upload_file: UploadFile) -> Optional[float]:
    """Duration in seconds read from a WAV header, or None for other formats."""
    if upload_file.extension != "wav":
        return None
    try:
        with wave.open(io.BytesIO(upload_file.read_bytes()), 'rb') as wf:
            rate = wf.getframerate()
            return wf.getnframes() / float(rate) if rate else None
    except (wave.Error, EOFError) as e:
        logger.debug(f"Could not read WAV header of {upload_file.name}: {e}")
        return None


class TranscriptionService:
    """Transcribes uploads with the configured backend and enriches the result."""

    def __init__(self,
                 config: CallScribeConfig,
                 backend: Optional[AbstractTranscriptionBackend] = None,
                 analyzer: Optional[TranscriptAnalyzer] = None):
        """Initialize transcription service.

        Args:
            config: Application configuration
            backend: Backend to use instead of the configured one
            analyzer: Analyzer to use instead of one built from config
        """
        self.config = config
        self.num_speakers = config.get('transcription.num_speakers', 2)
        self.analyzer = analyzer or TranscriptAnalyzer(
            sentiment_margin=config.get('analysis.sentiment_margin', 1.0))
        self.backend = backend or self._create_backend()

    def _create_backend(self) -> AbstractTranscriptionBackend:
        name = self.config.get('transcription.backend', 'http')
        logger.info(f"Initializing {name} transcription backend...")

        if name == 'http':
            backend = HttpTranscriptionBackend(
                endpoint=self.config.require('transcription.endpoint'),
                api_key=self.config.get('transcription.api_key'),
                num_speakers=self.num_speakers,
                timeout_seconds=self.config.get('transcription.timeout_seconds', 120.0),
            )
        elif name == 'google':
            backend = GoogleSpeechBackend(
                credentials_path=self.config.get_google_credentials_path(),
                language=self.config.get('google_cloud.language', 'en-US'),
                use_enhanced=self.config.get('google_cloud.use_enhanced_model', True),
                enable_automatic_punctuation=self.config.get(
                    'google_cloud.enable_automatic_punctuation', True),
            )
        else:
            raise ConfigError(f"Unknown transcription backend: {name}")

        if not backend.initialize():
            raise ConfigError(f"{name} transcription backend failed to initialize")

        logger.info(f"✅ {name} transcription backend initialized successfully")
        return backend

    async def transcribe(self, upload_file: UploadFile) -> TranscriptionResult:
        """Transcribe one upload and attach sentiment, keywords and score.

        Raises:
            TranscriptionError: if the backend fails or returns no text
        """
        result = await self.backend.transcribe(upload_file)
        if result is None or not result.text.strip():
            raise TranscriptionError(f"Transcription of {upload_file.name} returned no usable text")

        if result.duration is None:
            result.duration = wav_duration(upload_file)

        self.analyzer.enrich(result, num_speakers=self.num_speakers)
        logger.info(f"Transcribed {upload_file.name}: {len(result.text)} chars, "
                    f"sentiment={result.sentiment}, keywords={len(result.keywords)}")
        return result

    def shutdown(self) -> None:
        self.backend.cleanup()
