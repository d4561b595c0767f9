"""
Fixed appointment time-slot table.

The office books half-hour slots from 9:00 AM to 11:30 AM and from
2:00 PM to 4:30 PM; lunch is never offered. These twelve labels are the
only bookable times.
"""

import logging
from enum import Enum
from typing import Optional

from licence_assistant.config import settings

logger = logging.getLogger(__name__)

TIME_SLOTS: tuple[str, ...] = (
    "9:00 AM",
    "9:30 AM",
    "10:00 AM",
    "10:30 AM",
    "11:00 AM",
    "11:30 AM",
    "2:00 PM",
    "2:30 PM",
    "3:00 PM",
    "3:30 PM",
    "4:00 PM",
    "4:30 PM",
)


class TimeOfDay(str, Enum):
    """Coarse time-of-day bucket used for preference tracking."""
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


def label_to_minutes(label: str) -> int:
    """Convert an 'H:MM AM' label to minutes since midnight."""
    clock, period = label.split(" ")
    hour_str, minute_str = clock.split(":")
    hour = int(hour_str) % 12
    if period.upper() == "PM":
        hour += 12
    return hour * 60 + int(minute_str)


def snap_to_slot(hour: int, minute: int) -> str:
    """Return the bookable slot closest to a 24-hour time.

    Distance is absolute minutes; on a tie the earlier table entry wins.
    """
    target = hour * 60 + minute
    closest = TIME_SLOTS[0]
    closest_diff: Optional[int] = None
    for slot in TIME_SLOTS:
        diff = abs(target - label_to_minutes(slot))
        if closest_diff is None or diff < closest_diff:
            closest, closest_diff = slot, diff
    if closest_diff:
        logger.debug("Snapped %02d:%02d to slot %s", hour, minute, closest)
    return closest


def categorize_time(label: str) -> TimeOfDay:
    """Bucket a slot label into morning, afternoon or evening."""
    hour = label_to_minutes(label) // 60
    if hour < settings.dialogue.morning_cutoff_hour:
        return TimeOfDay.MORNING
    if hour < settings.dialogue.evening_cutoff_hour:
        return TimeOfDay.AFTERNOON
    return TimeOfDay.EVENING


def get_available_slots(date: str, preferred: Optional[TimeOfDay] = None) -> list[str]:
    """Slots open on a date, optionally narrowed to a half of the day.

    There is no calendar behind the office, so every table entry is open.
    A preference that would leave no slots is ignored.
    """
    slots = list(TIME_SLOTS)
    if preferred is not None:
        narrowed = [s for s in slots if categorize_time(s) == preferred]
        if narrowed:
            slots = narrowed
    logger.debug("%d slots available on %s (preferred=%s)", len(slots), date, preferred)
    return slots
