"""Google Speech-to-Text transcription backend."""

import asyncio
import concurrent.futures
import time
import logging
from datetime import datetime
from typing import Optional, List

from .base import AbstractTranscriptionBackend
from ..errors import TranscriptionError
from ..models.transcript import TranscriptionResult, TranscriptSegment, WordTimestamp
from ..models.upload import UploadFile

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

logger = logging.getLogger(__name__)

# Containers whose headers carry encoding and sample rate
SUPPORTED_EXTENSIONS = ("wav", "flac")


def _seconds(offset) -> float:
    """Convert a proto Duration / timedelta offset to seconds."""
    if offset is None:
        return 0.0
    return offset.total_seconds()


class GoogleSpeechBackend(AbstractTranscriptionBackend):
    """Google Speech-to-Text API backend for whole-file transcription."""

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 language: str = "en-US",
                 use_enhanced: bool = True,
                 enable_automatic_punctuation: bool = True,
                 timeout_seconds: float = 600.0):
        """Initialize Google Speech backend.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            language: Language code (e.g., 'en-US', 'es-ES')
            use_enhanced: Whether to use enhanced model (costs more but better quality)
            enable_automatic_punctuation: Enable automatic punctuation
            timeout_seconds: How long to wait for the long-running operation
        """
        super().__init__(language)
        self.credentials_path = credentials_path
        if not self.credentials_path:
            raise ValueError("Google credentials path is required - cannot initialize without credentials")
        self.use_enhanced = use_enhanced
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.timeout_seconds = timeout_seconds
        self.client = None
        self.project_id = None
        self.service_name = "Google Speech-to-Text"
        self.config = speech.RecognitionConfig(
            language_code=self.language,
            use_enhanced=self.use_enhanced,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
            enable_word_time_offsets=True,
            model="phone_call",
        )

    def initialize(self) -> bool:
        """Initialize Google Speech client and verify credentials."""
        logger.info(f"Loading Google credentials from: {self.credentials_path}")
        credentials = service_account.Credentials.from_service_account_file(self.credentials_path)

        self.client = speech.SpeechClient(credentials=credentials)
        self.project_id = credentials.project_id
        logger.info(f"Using Google Cloud project: {self.project_id}")

        logger.info("Google Speech-to-Text backend initialized successfully")
        return True

    async def transcribe(self, upload_file: UploadFile) -> TranscriptionResult:
        if upload_file.extension not in SUPPORTED_EXTENSIONS:
            raise TranscriptionError(
                f"Google Speech backend cannot read .{upload_file.extension} files "
                f"(supported: {', '.join(SUPPORTED_EXTENSIONS)})")
        if self.client is None:
            raise TranscriptionError("Google Speech backend is not initialized")

        audio_bytes = upload_file.read_bytes()
        loop = asyncio.get_running_loop()
        # The SDK blocks, so keep it off the event loop
        return await loop.run_in_executor(None, self._recognize, upload_file.name, audio_bytes)

    def _recognize(self, name: str, audio_bytes: bytes) -> TranscriptionResult:
        start_time = time.time()
        logger.debug(f"File: {name}; {len(audio_bytes)} bytes; Language: {self.language}; "
                     f"Enhanced model: {self.use_enhanced}")

        audio = speech.RecognitionAudio(content=audio_bytes)
        try:
            operation = self.client.long_running_recognize(config=self.config, audio=audio)
            response = operation.result(timeout=self.timeout_seconds)
        except concurrent.futures.TimeoutError as e:
            logger.error("Google STT operation timed out for %s", name)
            raise TranscriptionError(f"Google Speech recognize timeout ({name})") from e
        except gax_exceptions.ServiceUnavailable as e:
            logger.error("Google STT service unavailable for %s", name)
            raise TranscriptionError(f"Google Speech service unavailable ({name}): {e}") from e
        except gax_exceptions.GoogleAPICallError as e:
            logger.error("Google STT API call error for %s: %s", name, e)
            raise TranscriptionError(f"Google Speech API error ({name}): {e}") from e
        processing_time = time.time() - start_time

        if not response.results:
            logger.debug(f"--- NO SPEECH DETECTED in {name} ---")
            raise TranscriptionError(f"No speech detected in {name}")

        return self.__extract_transcription_result(response, processing_time)

    def __extract_transcription_result(self, response, processing_time: float) -> TranscriptionResult:
        texts: List[str] = []
        segments: List[TranscriptSegment] = []
        words: List[WordTimestamp] = []
        previous_end = 0.0

        for index, recognition_result in enumerate(response.results):
            if not recognition_result.alternatives:
                continue
            alternative = recognition_result.alternatives[0]
            texts.append(alternative.transcript.strip())

            for info in alternative.words:
                words.append(WordTimestamp(
                    word=info.word,
                    start=_seconds(info.start_time),
                    end=_seconds(info.end_time),
                ))

            end = _seconds(recognition_result.result_end_time)
            segments.append(TranscriptSegment(
                id=index,
                start=previous_end,
                end=end,
                text=alternative.transcript.strip(),
                confidence=alternative.confidence,
            ))
            previous_end = end

        logger.debug(f"✅ TRANSCRIPTION SUCCESS: {len(segments)} segments, "
                     f"{len(words)} words (processing_time: {processing_time:.3f}s)")
        return TranscriptionResult(
            text=" ".join(t for t in texts if t),
            service=self.service_name,
            language=self.language,
            duration=previous_end or None,
            segments=segments,
            words=words,
            processing_time=processing_time,
            timestamp=datetime.now(),
        )
