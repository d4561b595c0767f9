from licence_assistant.conversation.intent_classifier import InfoTopic, classify
from licence_assistant.conversation.state_machine import (
    BookingStep,
    DialogueStateMachine,
    IncompleteBookingError,
    InvalidTransitionError,
    TransitionTrigger,
)

__all__ = [
    "DialogueStateMachine",
    "BookingStep",
    "TransitionTrigger",
    "InvalidTransitionError",
    "IncompleteBookingError",
    "InfoTopic",
    "classify",
]
