"""Heuristic transcript analysis (sentiment, keywords, call metrics)."""

from .analyzer import TranscriptAnalyzer, Sentiment

__all__ = ["TranscriptAnalyzer", "Sentiment"]
