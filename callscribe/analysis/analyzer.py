"""Word-list heuristics for transcript sentiment, keywords and call metrics.

These are plain word counts over the text, not NLP. Results are
approximate and only feed dashboards and scores.
"""

import logging
import re
from collections import OrderedDict
from dataclasses import replace
from enum import Enum
from typing import Dict, List, Tuple

from ..models.transcript import TranscriptionResult, TranscriptSegment

logger = logging.getLogger(__name__)


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


POSITIVE_WORDS = ('great', 'good', 'excellent', 'happy', 'pleased', 'thank',
                  'appreciate', 'yes', 'perfect', 'love')
NEGATIVE_WORDS = ('bad', 'terrible', 'unhappy', 'disappointed', 'issue',
                  'problem', 'no', 'not', 'cannot', 'wrong')

# Fixed sales vocabulary used for keyword tagging
SALES_KEYWORDS = (
    'price', 'pricing', 'discount', 'budget', 'contract', 'demo', 'trial',
    'proposal', 'quote', 'renewal', 'upgrade', 'integration', 'onboarding',
    'support', 'competitor', 'decision', 'timeline', 'roi', 'features',
    'implementation', 'follow up', 'next steps', 'purchase', 'subscription',
)

OBJECTION_PHRASES = (
    'too expensive', "can't afford", 'not in budget', 'price is too high',
    'need to think about it', 'not ready', 'need more time',
    'need to talk to', 'get approval', 'check with',
    'competitor', 'other option', 'alternative',
    'not interested', "don't need", "don't see the value",
    "won't work for us", 'too complicated',
)

FILLER_WORDS = ('um', 'uh', 'like', 'actually', 'you know', 'so',
                'kind of', 'sort of', 'basically', 'right', 'okay', 'just')

GOOD_PHRASES = ('how can i help', 'thank you', 'appreciate', 'understand',
                'let me explain', 'would you like')

BASE_CALL_SCORE = 70

# Distinct texts remembered per analyzer
CACHE_SIZE = 256


def _phrase_pattern(phrase: str) -> re.Pattern:
    return re.compile(rf"\b{re.escape(phrase)}\b", re.IGNORECASE)


def _remember(cache: OrderedDict, key: str, value) -> None:
    cache[key] = value
    cache.move_to_end(key)
    while len(cache) > CACHE_SIZE:
        cache.popitem(last=False)


def _count(patterns: Dict[str, re.Pattern], text: str) -> Dict[str, int]:
    counts = {}
    for phrase, pattern in patterns.items():
        found = len(pattern.findall(text))
        if found:
            counts[phrase] = found
    return counts


class TranscriptAnalyzer:
    """Derives sentiment, keywords and simple call metrics from transcript text."""

    def __init__(self, sentiment_margin: float = 1.0):
        """
        Args:
            sentiment_margin: One side's word count must exceed the other's
                times this factor to win; otherwise the text is neutral.
        """
        if sentiment_margin < 1.0:
            raise ValueError("sentiment_margin must be >= 1.0")
        self.sentiment_margin = sentiment_margin

        self._positive = {w: _phrase_pattern(w) for w in POSITIVE_WORDS}
        self._negative = {w: _phrase_pattern(w) for w in NEGATIVE_WORDS}
        self._keywords = {w: _phrase_pattern(w) for w in SALES_KEYWORDS}
        self._objections = {w: _phrase_pattern(w) for w in OBJECTION_PHRASES}
        self._fillers = {w: _phrase_pattern(w) for w in FILLER_WORDS}

        self._sentiment_cache: "OrderedDict[str, Sentiment]" = OrderedDict()
        self._keyword_cache: "OrderedDict[str, List[str]]" = OrderedDict()

    def sentiment_counts(self, text: str) -> Tuple[int, int]:
        """Return (positive, negative) whole-word match counts."""
        positive = sum(_count(self._positive, text).values())
        negative = sum(_count(self._negative, text).values())
        return positive, negative

    def analyze_sentiment(self, text: str) -> Sentiment:
        cached = self._sentiment_cache.get(text)
        if cached is not None:
            self._sentiment_cache.move_to_end(text)
            return cached

        positive, negative = self.sentiment_counts(text)
        if positive > negative * self.sentiment_margin:
            sentiment = Sentiment.POSITIVE
        elif negative > positive * self.sentiment_margin:
            sentiment = Sentiment.NEGATIVE
        else:
            sentiment = Sentiment.NEUTRAL

        logger.debug(f"Sentiment {sentiment.value}: +{positive} / -{negative}")
        _remember(self._sentiment_cache, text, sentiment)
        return sentiment

    def extract_keywords(self, text: str) -> List[str]:
        """Sales vocabulary terms present in the text, in vocabulary order."""
        cached = self._keyword_cache.get(text)
        if cached is not None:
            self._keyword_cache.move_to_end(text)
            return list(cached)

        keywords = [word for word, pattern in self._keywords.items() if pattern.search(text)]
        _remember(self._keyword_cache, text, keywords)
        return list(keywords)

    def detect_objections(self, text: str) -> Dict[str, int]:
        return _count(self._objections, text)

    def count_filler_words(self, text: str) -> Dict[str, int]:
        return _count(self._fillers, text)

    def call_score(self, text: str, sentiment: str) -> int:
        """Score a call 0..100 from its sentiment and courteous phrasing."""
        score = BASE_CALL_SCORE
        if sentiment == Sentiment.POSITIVE:
            score += 15
        elif sentiment == Sentiment.NEGATIVE:
            score -= 10

        lowered = text.lower()
        score += 2 * sum(1 for phrase in GOOD_PHRASES if phrase in lowered)
        return max(0, min(100, score))

    def split_by_speaker(self, segments: List[TranscriptSegment],
                         num_speakers: int = 2) -> List[TranscriptSegment]:
        """Label unattributed segments by alternating Agent / Customer turns."""
        if num_speakers < 2:
            return segments

        labelled = []
        for index, segment in enumerate(segments):
            if segment.speaker:
                labelled.append(segment)
                continue
            speaker = "Agent" if index % num_speakers == 0 else "Customer"
            labelled.append(replace(segment, speaker=speaker))
        return labelled

    def enrich(self, result: TranscriptionResult, num_speakers: int = 2) -> TranscriptionResult:
        """Fill in sentiment, keywords, call metrics and speakers where missing."""
        if result.sentiment is None:
            result.sentiment = self.analyze_sentiment(result.text).value
        if not result.keywords:
            result.keywords = self.extract_keywords(result.text)
        if result.call_score is None:
            result.call_score = self.call_score(result.text, result.sentiment)
        if result.filler_word_count is None:
            result.filler_word_count = sum(self.count_filler_words(result.text).values())
        if result.objection_count is None:
            result.objection_count = sum(self.detect_objections(result.text).values())
        if result.segments:
            result.segments = self.split_by_speaker(result.segments, num_speakers)
        return result
