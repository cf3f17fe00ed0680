"""CallScribe - bulk transcription and review of sales-call recordings."""

__version__ = "0.1.0"
