"""Assistant phrasing for every dialogue turn.

Office-specific values are injected from configuration. Everything the
assistant says is built here so the dialogue logic never formats text.
"""

from typing import Optional

from licence_assistant.config import settings
from licence_assistant.tools.services import ServiceDefinition, get_all_services

_office = settings.office


# --------------------------------------------------------------------- #
# Greetings and fallbacks
# --------------------------------------------------------------------- #

def generic_greeting() -> str:
    return (
        f"Hello! You've reached the {_office.authority_name}. "
        f"This is {_office.assistant_name}, your virtual assistant. "
        "How can I help you today?"
    )


def greeting_reply() -> str:
    return (
        f"Hello! I'm {_office.assistant_name}, your virtual assistant for the "
        f"{_office.authority_name}. I'm here to help you with appointments and "
        "information. What can I do for you today?"
    )


def build_capability_summary(suggestions: Optional[list[str]] = None) -> str:
    """Generic help text, with personalized suggestions when available."""
    parts = [
        "I'm here to help you with driving licence services. I can:\n"
        "  • Book appointments for various services\n"
        "  • Provide information about fees and requirements\n"
        "  • Tell you about office hours and location"
    ]
    if suggestions:
        parts.append(
            "Based on your history, you might want to:\n• " + "\n• ".join(suggestions)
        )
    parts.append("What would you like to do today?")
    return "\n\n".join(parts)


def flow_fallback() -> str:
    return "I understand. Could you tell me more about what you need help with?"


def restart_prompt() -> str:
    return "Let me help you start over. What service do you need today?"


def build_personalized_greeting(salutation: str, first_name: str, variant: str,
                                last_service: Optional[str] = None) -> str:
    """Greeting for an identified caller.

    ``variant`` is one of: resume, last_appointment, returning, first_time.
    """
    if variant == "resume":
        return (
            f"{salutation}, {first_name}! Welcome back. I see we were working on "
            "booking an appointment earlier. Would you like to continue with that, "
            "or is there something else I can help you with today?"
        )
    if variant == "last_appointment":
        return (
            f"{salutation}, {first_name}! Great to hear from you again. I hope your "
            f"{last_service} appointment went well. How can I assist you today?"
        )
    if variant == "returning":
        return (
            f"{salutation}, {first_name}! Welcome back to the {_office.authority_name}. "
            "How can I help you today?"
        )
    return (
        f"{salutation}, {first_name}! Welcome to the {_office.authority_name}. "
        f"I'm {_office.assistant_name}, your virtual assistant. How can I help you today?"
    )


# --------------------------------------------------------------------- #
# Booking flow
# --------------------------------------------------------------------- #

def build_service_menu(suggested_service: Optional[str] = None) -> str:
    """Catalog listing shown when a booking starts without a service."""
    lines = ["I'd be happy to help you book an appointment. What service do you need? We offer:"]
    lines.extend(f"  • {svc.display_name}" for svc in get_all_services())
    text = "\n".join(lines)
    if suggested_service:
        text += (
            "\n\nBased on your previous visits, you might be interested in "
            f"{suggested_service}."
        )
    return text + "\n\nWhich one interests you?"


def service_reprompt() -> str:
    names = [svc.id.value for svc in get_all_services()]
    return (
        "Which service would you like to book? Please tell me if you need a "
        f"{', '.join(names[:-1])}, or {names[-1]}."
    )


def build_service_selected(service: str, known_name: Optional[str] = None,
                           opener: str = "Great!") -> str:
    if known_name:
        return (
            f"{opener} I'll help you book an appointment for {service}. I have your "
            f"details as {known_name}. What date would work best for your appointment?"
        )
    return (
        f"{opener} I'll help you book an appointment for {service}. Could I have "
        "your full name, please? Take your time, I'll wait for you to finish speaking."
    )


def build_name_received(name: str, service: str) -> str:
    return (
        f"Thank you, {name}! What date would work best for your {service} "
        "appointment? You can say something like \"August 15th\" or \"next Monday\"."
    )


def name_reprompt() -> str:
    return (
        "I didn't catch your name clearly. Could you please tell me your full name "
        "again? Speak slowly and clearly."
    )


def build_date_received(date: str, offered_slots: list[str]) -> str:
    return (
        f"Perfect! I've got you down for {date}. Here are the available time slots: "
        f"{', '.join(offered_slots)}. What time works best for you?"
    )


def date_reprompt() -> str:
    return (
        "I didn't catch that date clearly. Could you try saying it like "
        "\"August 15th\", \"15th of August\", \"tomorrow\", or \"next Monday\"? "
        "What date would work for you?"
    )


def build_time_received(date: str, time: str) -> str:
    return (
        f"Perfect! I have you scheduled for {date} at {time}. Could I get your "
        "contact number for confirmation? Please speak the digits clearly."
    )


def time_reprompt() -> str:
    return (
        "What time would you prefer? You can choose from the slots I mentioned, "
        "or just say 'morning' or 'afternoon'."
    )


def contact_reprompt() -> str:
    return (
        "I didn't catch your phone number clearly. Could you please say your "
        "10-digit contact number again? Speak each digit clearly with small pauses."
    )


def build_confirmation_summary(
    service: ServiceDefinition,
    name: str,
    date: str,
    time: str,
    contact: str,
    opener: str = "Excellent!",
) -> str:
    """Full read-back before the caller confirms the booking."""
    return (
        f"{opener} Let me confirm your appointment details: {service.id.value} for "
        f"{name} on {date} at {time}. Contact: {contact}. Fee: {service.fee}. "
        f"Please bring: {', '.join(service.documents)}. Does everything look correct?"
    )


def confirm_reprompt() -> str:
    return "Please say 'yes' to confirm your appointment, or tell me what you'd like to change."


SLOT_QUESTIONS = {
    "service": "Which service would you like to book?",
    "name": "Could I have your full name, please?",
    "date": "What date would work best for you?",
    "time": "What time would you prefer?",
    "contact": "Could you tell me your 10-digit contact number again?",
}


def build_rewind(slot_name: str) -> str:
    return f"No problem! What would you like to change? {SLOT_QUESTIONS[slot_name]}"


def build_booking_confirmed(
    opener: str,
    service: ServiceDefinition,
    date: str,
    time: str,
    contact: str,
    returning: bool,
) -> str:
    text = (
        f"{opener} You're all set for {service.id.value} on {date} at {time}. "
        f"You'll receive a confirmation SMS at {contact}. Please remember to bring: "
        f"{', '.join(service.documents)}."
    )
    if returning:
        text += " Thank you for choosing us again!"
    return text + " Is there anything else I can help you with today?"


def build_styled_confirmation_opener(style: str, full_name: str, first_name: str) -> str:
    """Confirmation opener phrased in the caller's communication style."""
    if style == "formal":
        return f"Thank you, {full_name}. Your appointment has been confirmed."
    if style == "casual":
        return "All set! Your appointment is booked."
    return f"Perfect, {first_name}! Your appointment is all confirmed."


def build_service_suggestion(frequent_visitor: bool) -> str:
    if frequent_visitor:
        return "Based on your previous visits, I think this service would be perfect for you."
    return "This service is quite popular and should meet your needs well."


# --------------------------------------------------------------------- #
# Information flow
# --------------------------------------------------------------------- #

def build_documents_answer(service: ServiceDefinition) -> str:
    return (
        f"For {service.id.value}, you'll need to bring: {', '.join(service.documents)}. "
        f"The fee is {service.fee} and the process takes about {service.duration}. "
        "Would you like me to book an appointment for you?"
    )


def documents_which_service() -> str:
    names = [svc.id.value for svc in get_all_services()]
    return (
        "I can tell you the required documents for any service. Which service are "
        f"you interested in? {', '.join(n.capitalize() for n in names[:-1])}, "
        f"or {names[-1]}?"
    )


def build_fee_answer(service: Optional[ServiceDefinition] = None) -> str:
    if service is not None:
        return (
            f"The fee for {service.id.value} is {service.fee} and the appointment "
            f"takes about {service.duration}. Would you like me to book an appointment for you?"
        )
    fees = ", ".join(f"{svc.display_name} - {svc.fee}" for svc in get_all_services())
    return f"Here are our service fees: {fees}. Which service would you like to know more about?"


def location_answer() -> str:
    return (
        f"We're located at {_office.address}. Our office hours are {_office.hours}. "
        f"We're closed on {_office.closed_days}. Would you like to book an appointment?"
    )


def hours_answer() -> str:
    return (
        f"Our office hours are {_office.hours}. We're closed on {_office.closed_days}. "
        f"You can reach us at {_office.helpline}. How can I help you today?"
    )


def info_menu() -> str:
    return (
        "I can provide information about required documents, fees, office location, "
        "hours, and contact details. I can also help you book appointments. "
        "What would you like to know?"
    )


def info_closed() -> str:
    return "I understand. How else can I help you today?"
