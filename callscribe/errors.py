"""Exception types raised across CallScribe."""


class CallScribeError(Exception):
    """Base class for CallScribe errors."""


class ConfigError(CallScribeError):
    """Configuration is missing or invalid."""


class TranscriptionError(CallScribeError):
    """Transcription backend failed or returned no usable text."""


class PersistenceError(CallScribeError):
    """Transcript could not be saved or loaded."""


class InvalidStatusTransition(CallScribeError, ValueError):
    """An upload entry was asked to move to a status it cannot reach."""

    def __init__(self, file_id: str, current, requested):
        self.file_id = file_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Upload {file_id}: cannot move from {current.value} to {requested.value}"
        )
