"""Transcription backend for an HTTP endpoint that accepts base64 audio."""

import asyncio
import base64
import logging
import time
from typing import List, Optional

import aiohttp
from pydantic import BaseModel, ValidationError

from ..errors import TranscriptionError
from ..models.transcript import TranscriptionResult, TranscriptSegment, WordTimestamp
from ..models.upload import UploadFile
from .base import AbstractTranscriptionBackend

logger = logging.getLogger(__name__)


class SegmentPayload(BaseModel):
    id: int = 0
    start: float = 0.0
    end: float = 0.0
    text: str = ""
    speaker: Optional[str] = None
    confidence: Optional[float] = None


class WordPayload(BaseModel):
    word: str
    start: float
    end: float
    speaker: Optional[str] = None


class TranscribeResponse(BaseModel):
    """Body returned by the transcription endpoint."""
    text: str
    language: Optional[str] = None
    duration: Optional[float] = None
    sentiment: Optional[str] = None
    keywords: List[str] = []
    segments: List[SegmentPayload] = []
    words: List[WordPayload] = []


class HttpTranscriptionBackend(AbstractTranscriptionBackend):
    """Posts each file as JSON ``{audio, numSpeakers, ...}`` to a transcription endpoint."""

    def __init__(self,
                 endpoint: str,
                 api_key: Optional[str] = None,
                 num_speakers: int = 2,
                 timeout_seconds: float = 120.0,
                 language: str = "en-US"):
        """Initialize HTTP transcription backend.

        Args:
            endpoint: URL of the transcription endpoint
            api_key: Optional bearer token
            num_speakers: Speaker count hint forwarded to the endpoint
            timeout_seconds: Total timeout per request
        """
        super().__init__(language)
        if not endpoint:
            raise ValueError("Transcription endpoint is required")
        self.endpoint = endpoint
        self.api_key = api_key
        self.num_speakers = num_speakers
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.service_name = "HTTP Transcription"

        logger.info(f"HttpTranscriptionBackend initialized with endpoint: {endpoint}")

    def initialize(self) -> bool:
        return True

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def transcribe(self, upload_file: UploadFile) -> TranscriptionResult:
        start_time = time.time()
        payload = {
            "audio": base64.b64encode(upload_file.read_bytes()).decode("ascii"),
            "numSpeakers": self.num_speakers,
            "filename": upload_file.name,
            "mimeType": upload_file.mime_type,
        }

        logger.debug(f"Posting {upload_file.name} ({upload_file.size} bytes) to {self.endpoint}")
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.endpoint, headers=self._headers(), json=payload) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise TranscriptionError(
                            f"Transcription API error: {response.status} - {error_text}")
                    body = await response.json()
        except aiohttp.ClientError as e:
            raise TranscriptionError(f"Transcription request failed for {upload_file.name}: {e}") from e
        except asyncio.TimeoutError as e:
            raise TranscriptionError(f"Transcription request timed out for {upload_file.name}") from e

        try:
            parsed = TranscribeResponse.model_validate(body)
        except ValidationError as e:
            raise TranscriptionError(f"Invalid transcription response: {e}") from e

        processing_time = time.time() - start_time
        logger.debug(f"Transcribed {upload_file.name} in {processing_time:.2f}s "
                     f"({len(parsed.text)} chars, {len(parsed.segments)} segments)")

        return TranscriptionResult(
            text=parsed.text,
            service=self.service_name,
            language=parsed.language or self.language,
            duration=parsed.duration,
            sentiment=parsed.sentiment,
            keywords=list(parsed.keywords),
            segments=[TranscriptSegment(**s.model_dump()) for s in parsed.segments],
            words=[WordTimestamp(**w.model_dump()) for w in parsed.words],
            processing_time=processing_time,
        )
