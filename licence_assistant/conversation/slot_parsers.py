"""
Slot parsers: pull a service, date, time, contact number, or name out of
a raw utterance.

Each parser is a pure function over the lowercased utterance that returns
the extracted value or None. "Today" is passed in explicitly so date
resolution is deterministic.

Usage:
    parse_date("15th of august", today=date(2025, 8, 1))  # 'Friday, August 15'
    parse_time("2:30 pm")                                  # '2:30 PM'
    parse_contact("nine eight seven six five four three two one zero")
"""

import logging
import re
from datetime import date, timedelta
from typing import Optional

from licence_assistant.config import settings
from licence_assistant.tools.services import SERVICE_KEYWORDS, ServiceId
from licence_assistant.tools.time_slots import snap_to_slot
from licence_assistant.utils import find_keyword, normalize_phone

logger = logging.getLogger(__name__)

MONTHS = (
    "january", "february", "march", "april", "may", "june", "july",
    "august", "september", "october", "november", "december",
)
MONTH_ABBREVIATIONS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "jun": 6, "jul": 7,
    "aug": 8, "sep": 9, "sept": 9, "oct": 10, "nov": 11, "dec": 12,
}
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_MONTH_ALT = "|".join(list(MONTHS) + sorted(MONTH_ABBREVIATIONS, key=len, reverse=True))
_ORDINAL = r"(?:st|nd|rd|th)?"
_DAY_MONTH = re.compile(rf"\b(\d{{1,2}}){_ORDINAL}\s+(?:of\s+)?({_MONTH_ALT})\b")
_MONTH_DAY = re.compile(rf"\b({_MONTH_ALT})\s+(\d{{1,2}}){_ORDINAL}\b")
_BARE_DAY = re.compile(rf"^(?:the\s+)?(\d{{1,2}}){_ORDINAL}$")
_NUMERIC_DATE = re.compile(r"\b(\d{1,2})[/\-.](\d{1,2})\b")

HOUR_WORDS = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6,
    "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11, "twelve": 12,
}
_MERIDIEM_TIME = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*(a\.?\s?m\.?|p\.?\s?m\.?)(?![a-z])")
_OCLOCK_TIME = re.compile(rf"\b(\d{{1,2}}|{'|'.join(HOUR_WORDS)})\s*o'?\s?clock\b")
_BARE_TIME = re.compile(r"\b(\d{1,2})(?::?(\d{2}))?\b")
AFTERNOON_MARKERS = ("afternoon", "pm", "p.m.", "p.m", "p m")

# Checked in order; "afternoon" beats "late" in "late afternoon".
TIME_WORDS: tuple[tuple[str, tuple[int, int]], ...] = (
    ("morning", (10, 0)),
    ("afternoon", (14, 0)),
    ("early", (9, 0)),
    ("late", (16, 0)),
)

# Speech-to-text frequently hears digits as these homophones.
NUMBER_WORDS = {
    "zero": "0", "oh": "0", "o": "0",
    "one": "1", "won": "1",
    "two": "2", "to": "2", "too": "2",
    "three": "3", "tree": "3",
    "four": "4", "for": "4", "fore": "4",
    "five": "5",
    "six": "6", "sex": "6",
    "seven": "7",
    "eight": "8", "ate": "8",
    "nine": "9", "niner": "9",
}
CONTACT_DIGITS = 10

_NAME_FILLERS = re.compile(r"\b(?:my name is|this is|i am|i'm|call me)\b")
MIN_NAME_LENGTH = 2


# --------------------------------------------------------------------- #
# Service
# --------------------------------------------------------------------- #

def extract_service(text: str) -> Optional[ServiceId]:
    """Match an utterance against the service keyword groups, first group wins."""
    for service_id, keywords in SERVICE_KEYWORDS:
        keyword = find_keyword(text, keywords)
        if keyword:
            logger.debug("Service '%s' matched on '%s'", service_id.value, keyword)
            return service_id
    return None


# --------------------------------------------------------------------- #
# Date
# --------------------------------------------------------------------- #

def format_date(value: date) -> str:
    """Render a date as 'Weekday, Month Day'."""
    return f"{value:%A}, {value:%B} {value.day}"


def _month_number(token: str) -> int:
    if token in MONTHS:
        return MONTHS.index(token) + 1
    return MONTH_ABBREVIATIONS[token]


def _resolve(today: date, month: int, day: int) -> Optional[date]:
    """Build a date in this year, rolling a past date into next year."""
    try:
        target = date(today.year, month, day)
    except ValueError:
        return None
    if target < today:
        try:
            target = target.replace(year=today.year + 1)
        except ValueError:
            return None
    return target


def _resolve_bare_day(today: date, day: int) -> Optional[date]:
    """A bare day number means this month, or next month once it has passed."""
    month, year = today.month, today.year
    if day < today.day:
        month, year = (1, year + 1) if month == 12 else (month + 1, year)
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _match_date(text: str, today: date) -> Optional[date]:
    if find_keyword(text, ("today",)):
        return today
    if find_keyword(text, ("tomorrow",)):
        return today + timedelta(days=1)

    match = _DAY_MONTH.search(text)
    if match:
        resolved = _resolve(today, _month_number(match.group(2)), int(match.group(1)))
        if resolved:
            return resolved

    match = _MONTH_DAY.search(text)
    if match:
        resolved = _resolve(today, _month_number(match.group(1)), int(match.group(2)))
        if resolved:
            return resolved

    match = _BARE_DAY.match(text.strip().rstrip(".!?"))
    if match:
        resolved = _resolve_bare_day(today, int(match.group(1)))
        if resolved:
            return resolved

    match = _NUMERIC_DATE.search(text)
    if match:
        resolved = _resolve(today, int(match.group(2)), int(match.group(1)))
        if resolved:
            return resolved

    weekday = find_keyword(text, WEEKDAYS)
    if weekday:
        days_ahead = (WEEKDAYS.index(weekday) - today.weekday()) % 7 or 7
        return today + timedelta(days=days_ahead)
    return None


def parse_date(text: str, today: date) -> Optional[str]:
    """Resolve a spoken date to 'Weekday, Month Day', or None.

    Recognized, in order: today/tomorrow, "15th of August",
    "August 15th", a bare day number, "15/8" (day first), and a weekday
    name (always 1-7 days ahead, never today).
    """
    resolved = _match_date(text.lower(), today)
    if resolved is None:
        return None
    logger.debug("Date parsed from '%s': %s", text, resolved.isoformat())
    return format_date(resolved)


# --------------------------------------------------------------------- #
# Time
# --------------------------------------------------------------------- #

def _infer_hour(hour: int, text: str) -> int:
    """Turn a spoken hour without AM/PM into a 24-hour hour.

    1-5 is afternoon only when the caller said so; 6-11 is morning;
    12 is noon; anything else is already a 24-hour value.
    """
    if 1 <= hour <= 5:
        return hour + 12 if find_keyword(text, AFTERNOON_MARKERS) else hour
    return hour


def _valid(hour: int, minute: int) -> bool:
    return 0 <= hour <= 23 and 0 <= minute <= 59


def _match_time(text: str) -> Optional[tuple[int, int]]:
    match = _MERIDIEM_TIME.search(text)
    if match:
        hour = int(match.group(1))
        minute = int(match.group(2) or 0)
        if 1 <= hour <= 12 and minute <= 59:
            is_pm = match.group(3).startswith("p")
            hour = hour % 12 + (12 if is_pm else 0)
            return hour, minute

    match = _OCLOCK_TIME.search(text)
    if match:
        token = match.group(1)
        hour = int(token) if token.isdigit() else HOUR_WORDS[token]
        hour = _infer_hour(hour, text)
        if _valid(hour, 0):
            return hour, 0

    match = _BARE_TIME.search(text)
    if match:
        hour = _infer_hour(int(match.group(1)), text)
        minute = int(match.group(2) or 0)
        if _valid(hour, minute):
            return hour, minute

    for word, hour_minute in TIME_WORDS:
        if find_keyword(text, (word,)):
            return hour_minute
    return None


def parse_time(text: str) -> Optional[str]:
    """Resolve a spoken time to the nearest bookable slot label, or None."""
    matched = _match_time(text.lower().strip())
    if matched is None:
        return None
    return snap_to_slot(*matched)


# --------------------------------------------------------------------- #
# Contact number
# --------------------------------------------------------------------- #

def parse_contact(text: str, country_code: Optional[str] = None) -> Optional[str]:
    """Extract a 10-digit contact number from digits or spoken number words."""
    code = settings.dialogue.country_code if country_code is None else country_code
    phone = normalize_phone(text, code)
    if phone:
        return phone

    spoken = ""
    for token in re.split(r"[\s,;]+", text.lower()):
        token = token.strip(".!?'\"()-")
        if token in NUMBER_WORDS:
            spoken += NUMBER_WORDS[token]
        elif token.isdigit():
            spoken += token
    if len(spoken) == CONTACT_DIGITS:
        logger.debug("Contact number assembled from spoken words")
        return spoken
    return None


# --------------------------------------------------------------------- #
# Name
# --------------------------------------------------------------------- #

def format_name(text: str) -> Optional[str]:
    """Strip filler phrases and punctuation, then title-case each word."""
    cleaned = _NAME_FILLERS.sub(" ", text.lower())
    cleaned = re.sub(r"[^\w\s]|[\d_]", "", cleaned)
    words = cleaned.split()
    if len(" ".join(words)) < MIN_NAME_LENGTH:
        return None
    return " ".join(word[:1].upper() + word[1:] for word in words)
