"""
Dialogue state machine for the licence office call flow.

Routes each caller utterance through intent recognition, the six-step
booking flow, or the information flow, and produces exactly one
assistant reply per turn. Booking steps move only along the explicit
transitions in ``TRANSITIONS``; anything else raises
``InvalidTransitionError``.

Booking steps:
    0 idle, 1 service, 2 name, 3 date, 4 time, 5 contact, 6 confirm

Usage:
    engine = DialogueStateMachine(memory=MemoryStore())
    engine.process_input("I want to book a new licence")
    engine.process_input("Priya Sharma")
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum
from typing import Callable, Optional

from licence_assistant.config import settings
from licence_assistant.conversation.intent_classifier import (
    InfoTopic,
    classify,
    classify_info_topic,
    is_confirmation,
    is_explicit_confirmation,
    is_negation,
)
from licence_assistant.conversation.sentiment import estimate_sentiment
from licence_assistant.conversation.slot_parsers import (
    extract_service,
    format_name,
    parse_contact,
    parse_date,
    parse_time,
)
from licence_assistant.logging_context import get_session_logger, set_session_id
from licence_assistant.memory.store import MemoryStore
from licence_assistant.prompts import responses
from licence_assistant.schemas.dialogue_schema import (
    Appointment,
    DialogueState,
    Intent,
    TurnResponse,
)
from licence_assistant.schemas.memory_schema import Message, Role, Sentiment, UserProfile
from licence_assistant.tools.services import ServiceId, get_service
from licence_assistant.tools.time_slots import TimeOfDay, get_available_slots
from licence_assistant.utils import find_phone_token

logger = get_session_logger(__name__)


class BookingStep(IntEnum):
    """Position in the booking flow; the value is the slot being collected."""
    IDLE = 0
    SERVICE = 1
    NAME = 2
    DATE = 3
    TIME = 4
    CONTACT = 5
    CONFIRM = 6


STEP_SLOTS = {
    BookingStep.SERVICE: "service",
    BookingStep.NAME: "name",
    BookingStep.DATE: "date",
    BookingStep.TIME: "time",
    BookingStep.CONTACT: "contact",
}


class TransitionTrigger(str, Enum):
    """Events that move the booking flow between steps."""
    BOOKING_REQUESTED = "booking_requested"
    SERVICE_FILLED = "service_filled"
    SERVICE_FILLED_KNOWN_CALLER = "service_filled_known_caller"
    NAME_FILLED = "name_filled"
    DATE_FILLED = "date_filled"
    TIME_FILLED = "time_filled"
    TIME_FILLED_KNOWN_CALLER = "time_filled_known_caller"
    CONTACT_FILLED = "contact_filled"
    CALLER_NEGATED = "caller_negated"
    BOOKING_FINALIZED = "booking_finalized"
    SESSION_RESET = "session_reset"


@dataclass
class Transition:
    """A single valid step transition."""
    from_step: BookingStep
    to_step: BookingStep
    trigger: TransitionTrigger


@dataclass
class StateEntry:
    """Recorded history entry for a step visit."""
    step: BookingStep
    entered_at: datetime
    trigger: Optional[TransitionTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current step."""


class IncompleteBookingError(Exception):
    """Raised when a booking is finalized with required slots still empty."""


class DialogueStateMachine:
    """
    One caller session: transient dialogue state plus the shared memory.

    The memory store is shared across sessions; everything else on this
    object belongs to a single conversation and is dropped by
    ``end_session``.
    """

    TRANSITIONS: list[Transition] = [
        # --- Booking start; a new request in the first two steps restarts ---
        Transition(BookingStep.IDLE, BookingStep.SERVICE, TransitionTrigger.BOOKING_REQUESTED),
        Transition(BookingStep.SERVICE, BookingStep.SERVICE, TransitionTrigger.BOOKING_REQUESTED),
        Transition(BookingStep.NAME, BookingStep.SERVICE, TransitionTrigger.BOOKING_REQUESTED),

        # --- Slot collection ---
        Transition(BookingStep.SERVICE, BookingStep.NAME, TransitionTrigger.SERVICE_FILLED),
        Transition(BookingStep.SERVICE, BookingStep.DATE,
                   TransitionTrigger.SERVICE_FILLED_KNOWN_CALLER),
        Transition(BookingStep.NAME, BookingStep.DATE, TransitionTrigger.NAME_FILLED),
        Transition(BookingStep.DATE, BookingStep.TIME, TransitionTrigger.DATE_FILLED),
        Transition(BookingStep.TIME, BookingStep.CONTACT, TransitionTrigger.TIME_FILLED),
        Transition(BookingStep.TIME, BookingStep.CONFIRM,
                   TransitionTrigger.TIME_FILLED_KNOWN_CALLER),
        Transition(BookingStep.CONTACT, BookingStep.CONFIRM, TransitionTrigger.CONTACT_FILLED),

        # --- Negation steps back once, never below service selection ---
        Transition(BookingStep.SERVICE, BookingStep.SERVICE, TransitionTrigger.CALLER_NEGATED),
        Transition(BookingStep.NAME, BookingStep.SERVICE, TransitionTrigger.CALLER_NEGATED),
        Transition(BookingStep.DATE, BookingStep.NAME, TransitionTrigger.CALLER_NEGATED),
        Transition(BookingStep.TIME, BookingStep.DATE, TransitionTrigger.CALLER_NEGATED),
        Transition(BookingStep.CONTACT, BookingStep.TIME, TransitionTrigger.CALLER_NEGATED),
        Transition(BookingStep.CONFIRM, BookingStep.CONTACT, TransitionTrigger.CALLER_NEGATED),

        # --- Completion ---
        Transition(BookingStep.CONFIRM, BookingStep.IDLE, TransitionTrigger.BOOKING_FINALIZED),
    ] + [
        Transition(step, BookingStep.IDLE, TransitionTrigger.SESSION_RESET)
        for step in BookingStep
    ]

    def __init__(
        self,
        memory: MemoryStore,
        contact: Optional[str] = None,
        clock: Callable[[], datetime] = datetime.now,
        session_id: Optional[str] = None,
    ) -> None:
        self.memory = memory
        self.state = DialogueState()
        self.session_id = session_id or f"session_{uuid.uuid4().hex[:8]}"
        self._clock = clock
        self._contact: Optional[str] = None
        self._messages: list[Message] = []
        self._history: list[StateEntry] = [
            StateEntry(step=BookingStep.IDLE, entered_at=clock())
        ]
        set_session_id(self.session_id)
        if contact:
            self._identify(contact)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    @property
    def contact(self) -> Optional[str]:
        return self._contact

    @property
    def current_step(self) -> BookingStep:
        return BookingStep(self.state.step)

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    def generate_initial_greeting(self) -> str:
        """Opening line: personalized for a known caller, generic otherwise."""
        if self._contact:
            return self.memory.generate_personalized_greeting(self._contact)
        return responses.generic_greeting()

    def process_input(self, utterance: str) -> TurnResponse:
        """Handle one caller utterance and return the assistant's reply."""
        set_session_id(self.session_id)
        self._messages.append(self._message(Role.USER, utterance))
        text = utterance.lower().strip()

        response = self._route(text)

        if self._contact:
            satisfaction = estimate_sentiment([utterance])
            self.memory.learn_from_interaction(
                self._contact, utterance, response.message,
                satisfaction if satisfaction == Sentiment.NEGATIVE else None,
            )
        return response

    def end_session(self) -> None:
        """Record the unfinished conversation, if any, and forget the caller."""
        if self._contact and self._messages:
            user_turns = [m.content for m in self._messages if m.role == Role.USER]
            intent = self.state.intent.value if self.state.has_active_intent else "general"
            completed = (
                self.state.intent == Intent.BOOK_APPOINTMENT
                and self.state.step >= BookingStep.CONFIRM
            )
            self.memory.add_conversation(
                self._contact, self._messages, intent, completed,
                sentiment=estimate_sentiment(user_turns),
            )
        logger.info("Session %s ended", self.session_id)
        self.memory.clear_session()
        self._messages = []
        self._transition(TransitionTrigger.SESSION_RESET)
        self.state.reset()
        self._contact = None

    def transition(self, trigger: TransitionTrigger) -> BookingStep:
        """
        Move the booking flow along a declared transition.

        Raises:
            InvalidTransitionError: If no transition exists for the trigger
                from the current step.
        """
        return self._transition(trigger)

    def get_valid_triggers(self) -> list[TransitionTrigger]:
        """Return all triggers valid from the current step."""
        return [t.trigger for t in self.TRANSITIONS if t.from_step == self.current_step]

    def get_history(self) -> list[StateEntry]:
        return list(self._history)

    def get_state_trace(self) -> list[int]:
        """Return the ordered list of steps visited."""
        return [int(entry.step) for entry in self._history]

    # ------------------------------------------------------------------ #
    # Routing
    # ------------------------------------------------------------------ #

    def _route(self, text: str) -> TurnResponse:
        state = self.state
        if state.has_active_intent and state.step >= BookingStep.CONTACT and is_confirmation(text):
            return self._handle_confirmation(text)
        if state.has_active_intent and is_negation(text):
            return self._handle_negation()
        if not state.has_active_intent or state.step <= BookingStep.NAME:
            response = self._recognize_intent(text)
            if response is not None:
                return response
        return self._continue_flow(text)

    def _recognize_intent(self, text: str) -> Optional[TurnResponse]:
        """New-intent handling; returns None to let an active flow keep the turn."""
        phone = find_phone_token(text, settings.dialogue.country_code)
        if phone:
            profile = self._identify(phone)
            if profile.name:
                return self._reply(
                    self.memory.generate_personalized_greeting(phone),
                    suggestions=self.memory.generate_contextual_suggestions(phone),
                )

        result = classify(text, has_active_intent=self.state.has_active_intent)
        if result.intent == Intent.BOOK_APPOINTMENT:
            return self._start_booking(extract_service(text) or self.state.offered_service)
        if result.intent == Intent.GET_INFO:
            offered = self.state.offered_service
            if self.state.step != BookingStep.IDLE:
                self._transition(TransitionTrigger.SESSION_RESET)
            self.state.reset()
            self.state.intent = Intent.GET_INFO
            self.state.offered_service = offered
            return self._handle_info(text)
        if self.state.has_active_intent:
            return None
        if result.intent == Intent.GREETING:
            return self._reply(responses.greeting_reply())

        suggestions = (
            self.memory.generate_contextual_suggestions(self._contact) if self._contact else []
        )
        return self._reply(
            responses.build_capability_summary(suggestions),
            suggestions=suggestions or None,
        )

    def _continue_flow(self, text: str) -> TurnResponse:
        if self.state.intent == Intent.BOOK_APPOINTMENT:
            return self._handle_booking_step(text)
        if self.state.intent == Intent.GET_INFO:
            return self._handle_info(text)
        return self._reply(responses.flow_fallback())

    def _handle_confirmation(self, text: str) -> TurnResponse:
        # Only the confirm step can finalize; at the contact step a "yes"
        # is most likely the number itself.
        if (
            self.state.intent == Intent.BOOK_APPOINTMENT
            and self.state.step == BookingStep.CONFIRM
        ):
            return self._finalize_booking()
        return self._continue_flow(text)

    def _handle_negation(self) -> TurnResponse:
        if self.state.intent == Intent.BOOK_APPOINTMENT:
            step = self._transition(TransitionTrigger.CALLER_NEGATED)
            return self._reply(responses.build_rewind(STEP_SLOTS[step]))
        self.state.reset()
        return self._reply(responses.info_closed())

    # ------------------------------------------------------------------ #
    # Booking flow
    # ------------------------------------------------------------------ #

    def _start_booking(self, service: Optional[ServiceId]) -> TurnResponse:
        self.state.intent = Intent.BOOK_APPOINTMENT
        self.state.offered_service = None
        self._transition(TransitionTrigger.BOOKING_REQUESTED)
        if service is not None:
            return self._accept_service(service)

        suggested = None
        if self._contact:
            patterns = self.memory.analyze_user_patterns(self._contact)
            if patterns.most_used_services:
                suggested = patterns.most_used_services[0]
        return self._reply(
            responses.build_service_menu(suggested), intent=Intent.BOOK_APPOINTMENT
        )

    def _accept_service(self, service: ServiceId) -> TurnResponse:
        slots = self.state.slots
        slots.service = service
        profile = self._known_profile()
        known_name = format_name(profile.name) if profile is not None and profile.name else None
        if known_name:
            slots.name = known_name
            slots.contact = self._contact
            self._transition(TransitionTrigger.SERVICE_FILLED_KNOWN_CALLER)
            message = responses.build_service_selected(service.value, known_name=known_name)
        else:
            self._transition(TransitionTrigger.SERVICE_FILLED)
            message = responses.build_service_selected(service.value)
        return self._reply(message, intent=Intent.BOOK_APPOINTMENT)

    def _handle_booking_step(self, text: str) -> TurnResponse:
        handlers = {
            BookingStep.SERVICE: self._collect_service,
            BookingStep.NAME: self._collect_name,
            BookingStep.DATE: self._collect_date,
            BookingStep.TIME: self._collect_time,
            BookingStep.CONTACT: self._collect_contact,
            BookingStep.CONFIRM: self._collect_confirmation,
        }
        handler = handlers.get(self.current_step)
        if handler is None:
            return self._reply(responses.restart_prompt())
        return handler(text)

    def _collect_service(self, text: str) -> TurnResponse:
        service = extract_service(text)
        if service is None:
            return self._reply(responses.service_reprompt())
        return self._accept_service(service)

    def _collect_name(self, text: str) -> TurnResponse:
        name = format_name(text)
        if name is None:
            return self._reply(responses.name_reprompt())
        self.state.slots.name = name
        self._transition(TransitionTrigger.NAME_FILLED)
        return self._reply(responses.build_name_received(name, self.state.slots.service.value))

    def _collect_date(self, text: str) -> TurnResponse:
        resolved = parse_date(text, self._clock().date())
        if resolved is None:
            return self._reply(responses.date_reprompt())
        self.state.slots.date = resolved
        self._transition(TransitionTrigger.DATE_FILLED)
        offered = get_available_slots(resolved, self._preferred_time_of_day())
        return self._reply(responses.build_date_received(
            resolved, offered[:settings.dialogue.max_offered_slots]
        ))

    def _collect_time(self, text: str) -> TurnResponse:
        slot = parse_time(text)
        if slot is None:
            return self._reply(responses.time_reprompt())
        slots = self.state.slots
        slots.time = slot
        if self._contact:
            slots.contact = self._contact
            self._transition(TransitionTrigger.TIME_FILLED_KNOWN_CALLER)
            return self._reply(self._summary(opener="Perfect!"))
        self._transition(TransitionTrigger.TIME_FILLED)
        return self._reply(responses.build_time_received(slots.date, slot))

    def _collect_contact(self, text: str) -> TurnResponse:
        phone = parse_contact(text, settings.dialogue.country_code)
        if phone is None:
            return self._reply(responses.contact_reprompt())
        self.state.slots.contact = phone
        self._identify(phone)
        self._transition(TransitionTrigger.CONTACT_FILLED)
        return self._reply(self._summary())

    def _collect_confirmation(self, text: str) -> TurnResponse:
        if is_confirmation(text):
            return self._finalize_booking()
        return self._reply(responses.confirm_reprompt())

    def _summary(self, opener: str = "Excellent!") -> str:
        slots = self.state.slots
        return responses.build_confirmation_summary(
            get_service(slots.service), slots.name, slots.date, slots.time, slots.contact,
            opener=opener,
        )

    def _finalize_booking(self) -> TurnResponse:
        slots = self.state.slots
        missing = slots.missing()
        if missing:
            raise IncompleteBookingError(
                f"Cannot finalize booking, missing slots: {', '.join(missing)}"
            )

        service = get_service(slots.service)
        appointment = Appointment(
            service=service.id,
            name=slots.name,
            date=slots.date,
            time=slots.time,
            contact=slots.contact,
            documents=service.documents,
        )
        profile = self.memory.record_booking(appointment)
        self._contact = appointment.contact
        opener = self.memory.get_personalized_response(
            appointment.contact, "appointment_confirmation"
        )
        message = responses.build_booking_confirmed(
            opener, service, appointment.date, appointment.time, appointment.contact,
            returning=profile.total_appointments > 1,
        )
        logger.info(
            "Booking confirmed: %s on %s at %s for %s",
            service.id.value, appointment.date, appointment.time, appointment.contact,
        )

        self._transition(TransitionTrigger.BOOKING_FINALIZED)
        self.state.reset()
        response = self._reply(message, completed=True, appointment=appointment)
        self.memory.add_conversation(
            appointment.contact, self._messages, Intent.BOOK_APPOINTMENT.value,
            True, appointment, Sentiment.POSITIVE,
        )
        self._messages = []
        return response

    # ------------------------------------------------------------------ #
    # Information flow
    # ------------------------------------------------------------------ #

    def _handle_info(self, text: str) -> TurnResponse:
        topic = classify_info_topic(text)
        service_id = extract_service(text)
        offered = self.state.offered_service
        self.state.offered_service = None

        if topic is None and offered is not None and is_explicit_confirmation(text):
            return self._start_booking(offered)

        if topic == InfoTopic.DOCUMENTS or (topic is None and service_id is not None):
            if service_id is None:
                return self._reply(responses.documents_which_service())
            self.state.offered_service = service_id
            return self._reply(responses.build_documents_answer(get_service(service_id)))
        if topic == InfoTopic.FEES:
            if service_id is None:
                return self._reply(responses.build_fee_answer())
            self.state.offered_service = service_id
            return self._reply(responses.build_fee_answer(get_service(service_id)))
        if topic == InfoTopic.LOCATION:
            return self._reply(responses.location_answer())
        if topic == InfoTopic.HOURS:
            return self._reply(responses.hours_answer())
        return self._reply(responses.info_menu())

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _transition(self, trigger: TransitionTrigger) -> BookingStep:
        current = self.current_step
        for t in self.TRANSITIONS:
            if t.from_step == current and t.trigger == trigger:
                self.state.step = int(t.to_step)
                self._history.append(StateEntry(
                    step=t.to_step, entered_at=self._clock(), trigger=trigger,
                ))
                logger.debug(
                    "Step transition: %d -> %d (trigger: %s)",
                    current, t.to_step, trigger.value,
                )
                return t.to_step

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from step {int(current)} "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def _identify(self, phone: str) -> UserProfile:
        self._contact = phone
        return self.memory.identify_user(phone=phone)

    def _known_profile(self) -> Optional[UserProfile]:
        if not self._contact:
            return None
        return self.memory.get_user_profile(self._contact)

    def _preferred_time_of_day(self) -> Optional[TimeOfDay]:
        if not self._contact:
            return None
        preferred = self.memory.analyze_user_patterns(self._contact).preferred_times
        if TimeOfDay.MORNING.value in preferred:
            return TimeOfDay.MORNING
        if TimeOfDay.AFTERNOON.value in preferred:
            return TimeOfDay.AFTERNOON
        return None

    def _message(self, role: Role, content: str) -> Message:
        return Message(role=role, content=content, timestamp=self._clock())

    def _reply(self, message: str, **fields) -> TurnResponse:
        self._messages.append(self._message(Role.ASSISTANT, message))
        return TurnResponse(message=message, **fields)
