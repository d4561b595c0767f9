"""Shared utilities used across the licence assistant."""

import re
from typing import Iterable, Optional

_PHONE_TOKEN = re.compile(r"(?<!\d)\+?\d[\d\s().-]{8,16}\d(?!\d)")


def find_keyword(text: str, keywords: Iterable[str]) -> Optional[str]:
    """Return the first keyword that occurs in text as a whole word or phrase.

    Examples:
        >>> find_keyword("i want to renew my licence", ["renew", "new licence"])
        'renew'
        >>> find_keyword("renew licence", ["new licence"]) is None
        True
    """
    for keyword in keywords:
        if re.search(rf"(?<![\w']){re.escape(keyword)}(?![\w'])", text):
            return keyword
    return None


def digits_only(value: str) -> str:
    """Strip everything except digits.

    Examples:
        >>> digits_only("98765 43210")
        '9876543210'
        >>> digits_only("+91 (987) 654-3210")
        '919876543210'
    """
    return re.sub(r"[^\d]", "", value)


def normalize_phone(value: str, country_code: str) -> Optional[str]:
    """Reduce a phone number to its 10 local digits, or None if it isn't one.

    Accepts exactly 10 digits, or 11+ digits that start with the given
    country code and leave 10 digits once it is removed.

    Examples:
        >>> normalize_phone("98765 43210", "91")
        '9876543210'
        >>> normalize_phone("+91 98765 43210", "91")
        '9876543210'
        >>> normalize_phone("12345", "91") is None
        True
    """
    digits = digits_only(value)
    if len(digits) == 10:
        return digits
    if len(digits) == 10 + len(country_code) and digits.startswith(country_code):
        return digits[len(country_code):]
    return None


def find_phone_token(text: str, country_code: str) -> Optional[str]:
    """Find the first phone-like token in free text and normalize it.

    Grouped numbers ("98765 43210") are tried first, then contiguous
    digit runs, so trailing numbers like "at 10" don't hide a phone.
    """
    candidates = [m.group(0) for m in _PHONE_TOKEN.finditer(text)]
    candidates += re.findall(r"\d+", text)
    for candidate in candidates:
        phone = normalize_phone(candidate, country_code)
        if phone:
            return phone
    return None
