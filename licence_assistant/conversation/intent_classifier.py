"""
Keyword intent classification and yes/no detection.

Utterances are matched against fixed keyword sets in priority order:
booking, then information, then greeting. Matching is whole-word or
whole-phrase containment on the lowercased utterance. Information
requests are further split into topics for the info flow.
"""

import logging
from enum import Enum
from typing import Optional

from licence_assistant.schemas.dialogue_schema import Intent, IntentResult
from licence_assistant.utils import find_keyword

logger = logging.getLogger(__name__)

BOOKING_KEYWORDS = (
    "book", "booking", "appointment", "appointments", "schedule", "reserve",
    "set up", "apply", "apply for", "want to book", "like to book",
    "i need a new", "i want a new",
    "renew my", "replace my", "lost my", "change my address", "update my address",
)

INFO_KEYWORDS = (
    "info", "information", "details", "know", "about", "tell me",
    "document", "documents", "requirement", "requirements", "required", "bring",
    "fee", "fees", "cost", "costs", "price", "charge", "charges", "how much",
    "where", "location", "located", "directions",
    "hours", "timings", "open", "opening", "closed",
)

GREETING_KEYWORDS = (
    "hello", "hi", "hey", "good morning", "good afternoon", "good evening", "namaste",
)

CONFIRMATION_KEYWORDS = (
    "yes", "yeah", "yep", "yup", "correct", "right", "okay", "ok", "sure",
    "absolutely", "definitely", "confirm", "confirmed", "good", "fine", "perfect",
    "sounds good", "looks good", "that's right", "that works",
)

NEGATION_KEYWORDS = ("no", "nope", "nah", "not", "incorrect", "wrong", "cancel")

_INTENT_SETS: list[tuple[Intent, tuple[str, ...]]] = [
    (Intent.BOOK_APPOINTMENT, BOOKING_KEYWORDS),
    (Intent.GET_INFO, INFO_KEYWORDS),
    (Intent.GREETING, GREETING_KEYWORDS),
]


class InfoTopic(str, Enum):
    """What an information request is about, in answer priority order."""
    DOCUMENTS = "documents"
    FEES = "fees"
    LOCATION = "location"
    HOURS = "hours"


_TOPIC_SETS: list[tuple[InfoTopic, tuple[str, ...]]] = [
    (InfoTopic.DOCUMENTS, (
        "document", "documents", "required", "requirement", "requirements",
        "need", "bring", "papers", "carry",
    )),
    (InfoTopic.FEES, ("fee", "fees", "cost", "costs", "price", "charge", "charges", "how much", "pay")),
    (InfoTopic.LOCATION, ("location", "address", "where", "located", "directions")),
    (InfoTopic.HOURS, ("hours", "time", "timings", "open", "opening", "closed", "when")),
]


def classify(utterance: str, has_active_intent: bool = False) -> IntentResult:
    """Classify an utterance into booking, info, greeting or none.

    While a flow is active a greeting carries no new intent, so it is
    reported as none and the flow keeps the turn.
    """
    text = utterance.lower().strip()
    for intent, keywords in _INTENT_SETS:
        keyword = find_keyword(text, keywords)
        if keyword is None:
            continue
        if intent == Intent.GREETING and has_active_intent:
            break
        logger.debug("Intent '%s' matched on '%s'", intent.value, keyword)
        return IntentResult(intent=intent, matched_keyword=keyword)
    return IntentResult(intent=Intent.NONE)


def classify_info_topic(utterance: str) -> Optional[InfoTopic]:
    text = utterance.lower().strip()
    for topic, keywords in _TOPIC_SETS:
        if find_keyword(text, keywords):
            return topic
    return None


def is_negation(utterance: str) -> bool:
    return find_keyword(utterance.lower(), NEGATION_KEYWORDS) is not None


def is_explicit_confirmation(utterance: str) -> bool:
    """A recognizable 'yes' that is not also a 'no'."""
    text = utterance.lower()
    return not is_negation(text) and find_keyword(text, CONFIRMATION_KEYWORDS) is not None


def is_confirmation(utterance: str) -> bool:
    """Whether a reply counts as agreement.

    Any non-empty reply that is not a negation counts, so noisy
    transcriptions of an acknowledgement still go through.
    """
    if is_negation(utterance):
        return False
    return is_explicit_confirmation(utterance) or bool(utterance.strip())
