"""
Keyword emotion scoring for caller utterances.

Each emotion has a fixed keyword set. A hit contributes weight by keyword
length, and the total is normalized by utterance length so a single
"thanks" in a long sentence scores lower than a bare "thanks".

Usage:
    analyze_text("thank you so much, that's perfect")
    estimate_sentiment(["this is taking forever", "i'm worried"])  # Sentiment.NEGATIVE
"""

import logging
from dataclasses import dataclass
from typing import Iterable

from licence_assistant.schemas.memory_schema import Sentiment
from licence_assistant.utils import find_keyword

logger = logging.getLogger(__name__)

EMOTION_KEYWORDS: dict[str, tuple[str, ...]] = {
    "excitement": ("excited", "great", "awesome", "amazing", "wonderful", "fantastic", "love"),
    "interest": ("interested", "curious", "want to know", "tell me", "what about"),
    "determination": ("need to", "must", "have to", "going to", "will do", "ready"),
    "satisfaction": ("thank you", "thanks", "perfect", "exactly", "good", "helpful"),
    "concern": ("worried", "concerned", "problem", "issue", "trouble", "confused", "frustrated"),
    "politeness": ("please", "kindly", "would you", "could you", "may i"),
}

POSITIVE_EMOTIONS = frozenset({"excitement", "satisfaction"})
NEGATIVE_EMOTIONS = frozenset({"concern"})
TOP_EMOTIONS = 3


@dataclass(frozen=True)
class EmotionScore:
    """One detected emotion with a score in (0, 1]."""
    name: str
    score: float


def _score(text: str, keywords: tuple[str, ...], word_count: int) -> float:
    hits = [kw for kw in keywords if find_keyword(text, (kw,))]
    if not hits:
        return 0.0
    weight = sum(len(kw) / 10 for kw in hits)
    return min(1.0, weight * len(hits) / (word_count * 0.5))


def analyze_text(text: str) -> list[EmotionScore]:
    """Return the strongest emotions in an utterance, highest first."""
    lowered = text.lower().strip()
    word_count = len(lowered.split())
    if word_count == 0:
        return []

    scores: list[EmotionScore] = []
    for name, keywords in EMOTION_KEYWORDS.items():
        score = _score(lowered, keywords, word_count)
        if score > 0:
            scores.append(EmotionScore(name=name, score=round(score, 3)))
    scores.sort(key=lambda e: e.score, reverse=True)
    return scores[:TOP_EMOTIONS]


def estimate_sentiment(utterances: Iterable[str]) -> Sentiment:
    """Collapse emotion scores across utterances into one sentiment."""
    positive = negative = 0.0
    for utterance in utterances:
        for emotion in analyze_text(utterance):
            if emotion.name in POSITIVE_EMOTIONS:
                positive += emotion.score
            elif emotion.name in NEGATIVE_EMOTIONS:
                negative += emotion.score

    if positive > negative:
        return Sentiment.POSITIVE
    if negative > positive:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL
