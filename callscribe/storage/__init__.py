"""Transcript persistence backends."""

from .base import AbstractTranscriptStore, build_record
from .file_store import TranscriptFileStore
from .supabase_store import SupabaseTranscriptStore

__all__ = [
    "AbstractTranscriptStore",
    "build_record",
    "TranscriptFileStore",
    "SupabaseTranscriptStore",
]
