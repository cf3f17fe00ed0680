"""Terminal views for CallScribe."""

from .progress_view import UploadProgressView, render_history

__all__ = ["UploadProgressView", "render_history"]
