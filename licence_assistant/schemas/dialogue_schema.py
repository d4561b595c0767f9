"""Dialogue state, slot values, and turn output models."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from licence_assistant.tools.services import ServiceId
from licence_assistant.tools.time_slots import TIME_SLOTS

MIN_STEP = 0
MAX_STEP = 6


class Intent(str, Enum):
    """Classifier outcomes; only NONE and the two flows are dialogue states."""
    NONE = "none"
    BOOK_APPOINTMENT = "book_appointment"
    GET_INFO = "get_info"
    GREETING = "greeting"


class BookingSlots(BaseModel):
    """Typed slot values for the booking flow; unfilled slots are None.

    Assignment is validated, so a slot can only ever hold a catalog
    service, a formatted name, a resolved date, one of the fixed
    time-slot labels, or a 10-digit contact number.
    """

    model_config = ConfigDict(validate_assignment=True)

    service: Optional[ServiceId] = None
    name: Optional[str] = Field(default=None, min_length=2)
    date: Optional[str] = Field(default=None, min_length=1)
    time: Optional[str] = None
    contact: Optional[str] = Field(default=None, pattern=r"^\d{10}$")

    @field_validator("time")
    @classmethod
    def _time_is_bookable(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in TIME_SLOTS:
            raise ValueError(f"'{value}' is not a bookable time slot")
        return value

    def filled(self) -> dict[str, str]:
        """Export filled slots as a flat dict of plain strings."""
        return {
            name: value.value if isinstance(value, Enum) else value
            for name, value in self.model_dump().items()
            if value is not None
        }

    def missing(self) -> list[str]:
        """Names of slots still unfilled, in collection order."""
        return [name for name, value in self.model_dump().items() if value is None]


class DialogueState(BaseModel):
    """Transient per-session conversation state."""

    model_config = ConfigDict(validate_assignment=True)

    intent: Intent = Intent.NONE
    step: int = Field(default=MIN_STEP, ge=MIN_STEP, le=MAX_STEP)
    slots: BookingSlots = Field(default_factory=BookingSlots)
    # Service mentioned in the last info answer that offered a booking.
    offered_service: Optional[ServiceId] = None

    @field_validator("intent")
    @classmethod
    def _intent_is_a_flow(cls, value: Intent) -> Intent:
        if value == Intent.GREETING:
            raise ValueError("a greeting is not a dialogue flow")
        return value

    @property
    def has_active_intent(self) -> bool:
        return self.intent != Intent.NONE

    def reset(self) -> None:
        """Return to the empty state: no intent, step 0, no slots."""
        self.intent = Intent.NONE
        self.step = MIN_STEP
        self.slots = BookingSlots()
        self.offered_service = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "intent": self.intent.value,
            "step": self.step,
            "slots": self.slots.filled(),
        }


class Appointment(BaseModel):
    """A booked appointment handed back to the caller."""

    model_config = ConfigDict(frozen=True)

    service: ServiceId
    name: str
    date: str
    time: str
    contact: str
    documents: tuple[str, ...]


class IntentResult(BaseModel):
    """Outcome of keyword intent classification."""

    intent: Intent
    matched_keyword: Optional[str] = None


class TurnResponse(BaseModel):
    """One assistant turn; ``message`` is all a speech collaborator needs."""

    message: str
    intent: Optional[Intent] = None
    completed: Optional[bool] = None
    appointment: Optional[Appointment] = None
    suggestions: Optional[list[str]] = None
