"""
User memory store: profiles, preferences, and conversation history.

One store is shared by every session in the process and keyed by the
caller's 10-digit phone number. Profiles are created lazily on first
reference and only removed by an explicit privacy erase.

Every mutation is followed by a save through the pluggable backend.
Backend failures are logged and swallowed; the store then keeps working
from memory alone.

Usage:
    store = MemoryStore(backend=JsonFileBackend("memory.json"))
    profile = store.identify_user(phone="9876543210")
    store.update_user_profile("9876543210", name="Priya Sharma")
    greeting = store.generate_personalized_greeting("9876543210")
"""

import logging
import threading
import uuid
from collections import Counter
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Iterator, Optional

from licence_assistant.config import settings
from licence_assistant.memory.persistence import InMemoryBackend, MemoryBackend
from licence_assistant.prompts import responses
from licence_assistant.schemas.dialogue_schema import Appointment, Intent
from licence_assistant.schemas.memory_schema import (
    CommunicationStyle,
    ConversationRecord,
    MemorySnapshot,
    Message,
    PatternAnalysis,
    SatisfactionTrend,
    Sentiment,
    UserDataExport,
    UserPreferences,
    UserProfile,
)
from licence_assistant.tools.time_slots import TimeOfDay, categorize_time

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

RECENT_SENTIMENT_WINDOW = 5
POLITE_PHRASES = ("please", "thank you")
CORRECTION_PHRASES = ("no, i meant", "no i meant", "actually")


def time_of_day_salutation(now: datetime) -> str:
    """'Good morning/afternoon/evening' with boundaries at noon and 5 PM."""
    if now.hour < settings.dialogue.morning_cutoff_hour:
        return "Good morning"
    if now.hour < settings.dialogue.evening_cutoff_hour:
        return "Good afternoon"
    return "Good evening"


def _satisfaction_trend(sentiments: list[Sentiment]) -> SatisfactionTrend:
    positive = sum(1 for s in sentiments if s == Sentiment.POSITIVE)
    negative = sum(1 for s in sentiments if s == Sentiment.NEGATIVE)
    if positive > negative:
        return SatisfactionTrend.IMPROVING
    if negative > positive:
        return SatisfactionTrend.DECLINING
    return SatisfactionTrend.STABLE


class MemoryStore:
    """
    Process-wide store of everything remembered about callers.

    ``_lock`` guards the three maps and snapshotting. ``contact_lock``
    serializes read-modify-write sequences for one contact; it is always
    taken before ``_lock``, never while holding it.
    """

    def __init__(
        self,
        backend: Optional[MemoryBackend] = None,
        clock: Clock = datetime.now,
    ) -> None:
        self._backend = backend if backend is not None else InMemoryBackend()
        self._clock = clock
        self._profiles: dict[str, UserProfile] = {}
        self._history: dict[str, list[ConversationRecord]] = {}
        self._preferences: dict[str, UserPreferences] = {}
        self._lock = threading.RLock()
        self._contact_locks: dict[str, threading.RLock] = {}
        self._current_contact: Optional[str] = None
        self.persistence_available = True
        self._load()

    # ------------------------------------------------------------------ #
    # Persistence
    # ------------------------------------------------------------------ #

    def _load(self) -> None:
        try:
            snapshot = self._backend.load()
        except Exception:
            logger.exception("Failed to load memory snapshot, continuing in memory only")
            self.persistence_available = False
            return
        if snapshot is None:
            return
        with self._lock:
            self._profiles = dict(snapshot.profiles)
            self._history = {phone: list(h) for phone, h in snapshot.conversation_history.items()}
            self._preferences = dict(snapshot.preferences)
        logger.info("Memory loaded: %d profiles", len(self._profiles))

    def _snapshot(self) -> MemorySnapshot:
        with self._lock:
            return MemorySnapshot(
                profiles=dict(self._profiles),
                conversation_history={phone: list(h) for phone, h in self._history.items()},
                preferences=dict(self._preferences),
            )

    def _persist(self) -> None:
        """Save a snapshot; failures degrade the store to memory-only."""
        with self._lock:
            try:
                self._backend.save(self._snapshot())
            except Exception:
                logger.warning("Failed to save memory snapshot", exc_info=True)
                self.persistence_available = False
                return
            self.persistence_available = True

    @contextmanager
    def contact_lock(self, phone: str) -> Iterator[None]:
        """Hold the per-contact lock for a read-modify-write sequence."""
        with self._lock:
            lock = self._contact_locks.setdefault(phone, threading.RLock())
        with lock:
            yield

    # ------------------------------------------------------------------ #
    # Identification and profiles
    # ------------------------------------------------------------------ #

    @property
    def current_contact(self) -> Optional[str]:
        return self._current_contact

    def get_current_user_phone(self) -> Optional[str]:
        return self._current_contact

    def clear_session(self) -> None:
        self._current_contact = None

    def identify_user(
        self, phone: Optional[str] = None, name: Optional[str] = None
    ) -> Optional[UserProfile]:
        """Find (or create, by phone) a caller and make them the current contact.

        A phone always resolves to a profile. A name is matched
        case-insensitively as a substring of known names and preferred
        names. Returns None if neither yields a match.
        """
        if phone:
            self._current_contact = phone
            logger.info("Caller identified by phone: %s", phone)
            return self.get_user_profile(phone)

        needle = (name or "").lower().strip()
        if not needle:
            return None
        with self._lock:
            candidates = list(self._profiles.items())
        for profile_phone, profile in candidates:
            names = [profile.name, profile.preferred_name or ""]
            if any(n and needle in n.lower() for n in names):
                self._current_contact = profile_phone
                logger.info("Caller identified by name: %s", profile_phone)
                return profile
        return None

    def get_user_profile(self, phone: str) -> UserProfile:
        """Get the profile for a phone, creating an empty one if needed."""
        with self.contact_lock(phone):
            profile = self._profiles.get(phone)
            if profile is not None:
                return profile
            profile = UserProfile(phone=phone)
            with self._lock:
                self._profiles[phone] = profile
            logger.debug("Created profile for %s", phone)
            self._persist()
            return profile

    def update_user_profile(self, phone: str, **updates: Any) -> UserProfile:
        """Shallow-merge fields into a profile and persist."""
        unknown = set(updates) - set(UserProfile.model_fields)
        if unknown:
            raise ValueError(f"Unknown profile fields: {sorted(unknown)}")
        with self.contact_lock(phone):
            profile = self.get_user_profile(phone)
            for key, value in updates.items():
                setattr(profile, key, value)
            self._persist()
            return profile

    def get_user_preferences(self, phone: str) -> UserPreferences:
        """Get preferences for a phone, creating the defaults if needed."""
        with self.contact_lock(phone):
            preferences = self._preferences.get(phone)
            if preferences is not None:
                return preferences
            preferences = UserPreferences()
            with self._lock:
                self._preferences[phone] = preferences
            self._persist()
            return preferences

    def update_user_preferences(self, phone: str, **updates: Any) -> UserPreferences:
        unknown = set(updates) - set(UserPreferences.model_fields)
        if unknown:
            raise ValueError(f"Unknown preference fields: {sorted(unknown)}")
        with self.contact_lock(phone):
            preferences = self.get_user_preferences(phone)
            for key, value in updates.items():
                setattr(preferences, key, value)
            self._persist()
            return preferences

    def record_booking(self, appointment: Appointment) -> UserProfile:
        """Fold a completed booking into the caller's profile atomically."""
        phone = appointment.contact
        with self.contact_lock(phone):
            profile = self.get_user_profile(phone)
            profile.name = appointment.name
            profile.phone = phone
            profile.last_visit = self._clock()
            profile.total_appointments += 1
            if appointment.service not in profile.preferred_services:
                profile.preferred_services.append(appointment.service)
            time_category = categorize_time(appointment.time)
            if time_category not in profile.preferred_time_slots:
                profile.preferred_time_slots.append(time_category)
            self._persist()
            logger.info(
                "Booking recorded for %s (total appointments: %d)",
                phone, profile.total_appointments,
            )
            return profile

    # ------------------------------------------------------------------ #
    # Conversation history
    # ------------------------------------------------------------------ #

    def add_conversation(
        self,
        phone: str,
        messages: list[Message],
        intent: str,
        completed: bool,
        appointment: Optional[Appointment] = None,
        sentiment: Sentiment = Sentiment.NEUTRAL,
    ) -> ConversationRecord:
        """Prepend a conversation record and keep only the newest ones."""
        record = ConversationRecord(
            id=f"conv_{uuid.uuid4().hex[:12]}",
            timestamp=self._clock(),
            messages=list(messages),
            intent=intent,
            completed=completed,
            appointment=appointment,
            user_sentiment=sentiment,
        )
        with self.contact_lock(phone):
            with self._lock:
                history = self._history.setdefault(phone, [])
                history.insert(0, record)
                del history[settings.memory.history_limit:]
            self._persist()
        logger.debug("Conversation %s recorded for %s (intent=%s)", record.id, phone, intent)
        return record

    def get_conversation_history(self, phone: str, limit: int = 10) -> list[ConversationRecord]:
        """Most recent records first, at most ``limit`` of them."""
        with self._lock:
            return list(self._history.get(phone, [])[:limit])

    def get_recent_appointments(self, phone: str, limit: int = 5) -> list[Appointment]:
        with self._lock:
            history = list(self._history.get(phone, []))
        appointments = [r.appointment for r in history if r.completed and r.appointment]
        return appointments[:limit]

    # ------------------------------------------------------------------ #
    # Personalization
    # ------------------------------------------------------------------ #

    def analyze_user_patterns(self, phone: str) -> PatternAnalysis:
        """Summarize services, times, satisfaction and issues from history."""
        history = self.get_conversation_history(phone, settings.memory.pattern_window)

        service_count: Counter[str] = Counter()
        time_count: Counter[str] = Counter()
        issues: list[str] = []
        for record in history:
            if record.appointment is not None:
                service_count[record.appointment.service.value] += 1
                time_count[categorize_time(record.appointment.time).value] += 1
            if record.user_sentiment == Sentiment.NEGATIVE:
                issues.append(record.intent)

        recent = [r.user_sentiment for r in history[:RECENT_SENTIMENT_WINDOW]]
        return PatternAnalysis(
            most_used_services=[svc for svc, _ in service_count.most_common(3)],
            preferred_times=[t for t, _ in time_count.most_common(2)],
            satisfaction_trend=_satisfaction_trend(recent),
            common_issues=list(dict.fromkeys(issues)),
        )

    def generate_personalized_greeting(self, phone: str) -> str:
        profile = self.get_user_profile(phone)
        if not profile.name:
            return responses.generic_greeting()

        salutation = time_of_day_salutation(self._clock())
        history = self.get_conversation_history(phone, 1)
        latest = history[0] if history else None

        if latest and latest.intent == Intent.BOOK_APPOINTMENT.value and not latest.completed:
            variant, last_service = "resume", None
        elif latest and latest.completed and latest.appointment is not None:
            variant, last_service = "last_appointment", latest.appointment.service.value
        elif profile.total_appointments > 0:
            variant, last_service = "returning", None
        else:
            variant, last_service = "first_time", None
        return responses.build_personalized_greeting(
            salutation, profile.first_name, variant, last_service
        )

    def generate_contextual_suggestions(self, phone: str) -> list[str]:
        """Up to three next-step suggestions drawn from the caller's habits."""
        profile = self.get_user_profile(phone)
        patterns = self.analyze_user_patterns(phone)
        limit = settings.memory.max_suggestions
        suggestions: list[str] = []

        if patterns.most_used_services:
            suggestions.append(f"Book another {patterns.most_used_services[0]} appointment")
        if not profile.email:
            suggestions.append("Update your contact information")
        if profile.last_visit is not None:
            days_since = (self._clock() - profile.last_visit).days
            if days_since > settings.memory.renewal_nudge_days:
                suggestions.append("Check if your licence needs renewal")
        if TimeOfDay.MORNING.value in patterns.preferred_times:
            suggestions.append("Book a morning appointment")
        return suggestions[:limit]

    def get_personalized_response(self, phone: str, context: str) -> str:
        """Phrase a stock reply in the caller's communication style."""
        profile = self.get_user_profile(phone)
        preferences = self.get_user_preferences(phone)

        if context == "appointment_confirmation":
            return responses.build_styled_confirmation_opener(
                preferences.communication_style.value, profile.name, profile.first_name
            )
        if context == "service_suggestion":
            return responses.build_service_suggestion(profile.total_appointments > 3)
        return ""

    def learn_from_interaction(
        self,
        phone: str,
        user_input: str,
        assistant_response: str,
        satisfaction: Optional[Sentiment] = None,
    ) -> None:
        """Adjust style and notes from one exchange with the caller."""
        lowered = user_input.lower()
        with self.contact_lock(phone):
            profile = self.get_user_profile(phone)
            preferences = self.get_user_preferences(phone)
            if any(p in lowered for p in POLITE_PHRASES):
                if preferences.communication_style == CommunicationStyle.CASUAL:
                    preferences.communication_style = CommunicationStyle.FORMAL
            if any(p in lowered for p in CORRECTION_PHRASES):
                profile.notes.append(f"Correction needed: {user_input}")
            if satisfaction == Sentiment.NEGATIVE:
                profile.notes.append(f"Dissatisfaction: {assistant_response}")
            self._persist()

    # ------------------------------------------------------------------ #
    # Privacy
    # ------------------------------------------------------------------ #

    def export_user_data(self, phone: str) -> UserDataExport:
        """Copy of everything held for a contact."""
        with self.contact_lock(phone):
            with self._lock:
                profile = self._profiles.get(phone)
                preferences = self._preferences.get(phone)
                history = list(self._history.get(phone, []))
            return UserDataExport(
                profile=profile.model_copy(deep=True) if profile else None,
                preferences=preferences.model_copy(deep=True) if preferences else None,
                conversation_history=[r.model_copy(deep=True) for r in history],
            )

    def delete_user_data(self, phone: str) -> bool:
        """Erase a contact from all three maps, then persist once.

        Returns True if anything was held for the contact.
        """
        with self.contact_lock(phone):
            with self._lock:
                removed = [
                    self._profiles.pop(phone, None),
                    self._preferences.pop(phone, None),
                    self._history.pop(phone, None),
                ]
                if self._current_contact == phone:
                    self._current_contact = None
            self._persist()
        existed = any(item is not None for item in removed)
        logger.info("User data erased for %s (existed=%s)", phone, existed)
        return existed
