"""Transcription backends for CallScribe."""

from .base import AbstractTranscriptionBackend
from .http_backend import HttpTranscriptionBackend
from .google_backend import GoogleSpeechBackend

__all__ = [
    "AbstractTranscriptionBackend",
    "HttpTranscriptionBackend",
    "GoogleSpeechBackend",
]
