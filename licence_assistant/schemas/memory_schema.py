"""User memory models: profiles, preferences, and conversation history."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from licence_assistant.schemas.dialogue_schema import Appointment
from licence_assistant.tools.services import ServiceId
from licence_assistant.tools.time_slots import TimeOfDay


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class CommunicationStyle(str, Enum):
    FORMAL = "formal"
    CASUAL = "casual"
    FRIENDLY = "friendly"


class ReminderPreference(str, Enum):
    SMS = "sms"
    EMAIL = "email"
    BOTH = "both"
    NONE = "none"


class LanguagePreference(str, Enum):
    ENGLISH = "english"
    HINDI = "hindi"
    MIXED = "mixed"


class SatisfactionTrend(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


class Message(BaseModel):
    """A single utterance in a session transcript."""
    role: Role
    content: str
    timestamp: datetime


class UserProfile(BaseModel):
    """Everything remembered about one caller, keyed by phone."""

    model_config = ConfigDict(validate_assignment=True)

    name: str = ""
    preferred_name: Optional[str] = None
    phone: str
    email: Optional[str] = None
    address: Optional[str] = None
    preferred_time_slots: list[TimeOfDay] = Field(default_factory=list)
    preferred_services: list[ServiceId] = Field(default_factory=list)
    last_visit: Optional[datetime] = None
    total_appointments: int = Field(default=0, ge=0)
    notes: list[str] = Field(default_factory=list)

    @property
    def first_name(self) -> str:
        """Name to address the caller by."""
        if self.preferred_name:
            return self.preferred_name
        return self.name.split(" ")[0] if self.name else ""


class UserPreferences(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    communication_style: CommunicationStyle = CommunicationStyle.FRIENDLY
    reminder_preference: ReminderPreference = ReminderPreference.SMS
    appointment_buffer: int = Field(default=30, ge=0)
    language_preference: LanguagePreference = LanguagePreference.ENGLISH
    accessibility_needs: list[str] = Field(default_factory=list)


class ConversationRecord(BaseModel):
    """One finished session for a contact."""

    id: str
    timestamp: datetime
    messages: list[Message] = Field(default_factory=list)
    intent: str
    completed: bool = False
    appointment: Optional[Appointment] = None
    user_sentiment: Sentiment = Sentiment.NEUTRAL


class PatternAnalysis(BaseModel):
    """Aggregated habits derived from a contact's history."""

    most_used_services: list[str] = Field(default_factory=list)
    preferred_times: list[str] = Field(default_factory=list)
    satisfaction_trend: SatisfactionTrend = SatisfactionTrend.STABLE
    common_issues: list[str] = Field(default_factory=list)


class MemorySnapshot(BaseModel):
    """Serializable form of the whole store, as handed to persistence."""

    profiles: dict[str, UserProfile] = Field(default_factory=dict)
    conversation_history: dict[str, list[ConversationRecord]] = Field(default_factory=dict)
    preferences: dict[str, UserPreferences] = Field(default_factory=dict)


class UserDataExport(BaseModel):
    """Everything held for one contact, for privacy requests."""

    profile: Optional[UserProfile] = None
    preferences: Optional[UserPreferences] = None
    conversation_history: list[ConversationRecord] = Field(default_factory=list)
