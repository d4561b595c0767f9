"""Tests for the user memory store."""

import threading
from datetime import datetime, timedelta

import pytest

from licence_assistant.memory.store import MemoryStore, time_of_day_salutation
from licence_assistant.schemas.memory_schema import (
    CommunicationStyle,
    Message,
    Role,
    SatisfactionTrend,
    Sentiment,
)
from licence_assistant.tools.services import ServiceId
from licence_assistant.tools.time_slots import TimeOfDay
from tests.conftest import FIXED_NOW, PHONE, FailingBackend, make_appointment


def _messages(text: str = "hello") -> list[Message]:
    return [Message(role=Role.USER, content=text, timestamp=FIXED_NOW)]


class TestIdentification:
    def test_identify_by_phone_creates_profile(self, memory):
        profile = memory.identify_user(phone=PHONE)
        assert profile.phone == PHONE
        assert profile.name == ""
        assert profile.total_appointments == 0
        assert memory.get_current_user_phone() == PHONE

    def test_identify_by_name_substring(self, memory):
        memory.update_user_profile(PHONE, name="Priya Sharma")
        memory.clear_session()
        profile = memory.identify_user(name="sharma")
        assert profile is not None
        assert profile.phone == PHONE
        assert memory.current_contact == PHONE

    def test_identify_by_preferred_name(self, memory):
        memory.update_user_profile(PHONE, name="Priyanka Sharma", preferred_name="Pia")
        assert memory.identify_user(name="PIA").phone == PHONE

    def test_unknown_name(self, memory):
        assert memory.identify_user(name="nobody") is None
        assert memory.identify_user() is None

    def test_clear_session(self, memory):
        memory.identify_user(phone=PHONE)
        memory.clear_session()
        assert memory.get_current_user_phone() is None


class TestProfiles:
    def test_get_profile_is_idempotent(self, memory, backend):
        first = memory.get_user_profile(PHONE)
        saves = backend.save_count
        second = memory.get_user_profile(PHONE)
        assert first is second
        assert backend.save_count == saves

    def test_update_merges_fields(self, memory):
        memory.update_user_profile(PHONE, name="Priya Sharma")
        memory.update_user_profile(PHONE, email="priya@example.com")
        profile = memory.get_user_profile(PHONE)
        assert profile.name == "Priya Sharma"
        assert profile.email == "priya@example.com"

    def test_update_rejects_unknown_field(self, memory):
        with pytest.raises(ValueError, match="favourite_colour"):
            memory.update_user_profile(PHONE, favourite_colour="blue")

    def test_default_preferences(self, memory):
        preferences = memory.get_user_preferences(PHONE)
        assert preferences.communication_style == CommunicationStyle.FRIENDLY
        assert preferences.reminder_preference.value == "sms"
        assert preferences.appointment_buffer == 30
        assert preferences.language_preference.value == "english"
        assert preferences.accessibility_needs == []

    def test_update_preferences(self, memory):
        memory.update_user_preferences(PHONE, communication_style=CommunicationStyle.FORMAL)
        assert memory.get_user_preferences(PHONE).communication_style == CommunicationStyle.FORMAL

    def test_first_name(self, memory):
        memory.update_user_profile(PHONE, name="Priya Sharma")
        assert memory.get_user_profile(PHONE).first_name == "Priya"

    def test_record_booking(self, memory):
        memory.record_booking(make_appointment(time="10:00 AM"))
        profile = memory.record_booking(make_appointment(service=ServiceId.DRIVING_TEST))
        assert profile.name == "Priya Sharma"
        assert profile.total_appointments == 2
        assert profile.last_visit == FIXED_NOW
        assert profile.preferred_services == [ServiceId.NEW_LICENCE, ServiceId.DRIVING_TEST]
        assert profile.preferred_time_slots == [TimeOfDay.MORNING, TimeOfDay.AFTERNOON]


class TestConversationHistory:
    def test_newest_first(self, memory):
        memory.add_conversation(PHONE, _messages("first"), "general", False)
        memory.add_conversation(PHONE, _messages("second"), "general", False)
        history = memory.get_conversation_history(PHONE)
        assert [r.messages[0].content for r in history] == ["second", "first"]

    def test_record_fields(self, memory):
        record = memory.add_conversation(
            PHONE, _messages(), "book_appointment", True, make_appointment(), Sentiment.POSITIVE
        )
        assert record.id.startswith("conv_")
        assert record.timestamp == FIXED_NOW
        assert record.completed
        assert record.user_sentiment == Sentiment.POSITIVE

    def test_history_is_capped_at_fifty(self, memory):
        for i in range(55):
            memory.add_conversation(PHONE, _messages(f"call {i}"), "general", False)
        history = memory.get_conversation_history(PHONE, limit=100)
        assert len(history) == 50
        assert history[0].messages[0].content == "call 54"
        assert history[-1].messages[0].content == "call 5"

    def test_limit(self, memory):
        for _ in range(5):
            memory.add_conversation(PHONE, _messages(), "general", False)
        assert len(memory.get_conversation_history(PHONE, limit=3)) == 3

    def test_unknown_contact_has_no_history(self, memory):
        assert memory.get_conversation_history("1111111111") == []

    def test_recent_appointments(self, memory):
        memory.add_conversation(PHONE, _messages(), "general", False)
        memory.add_conversation(PHONE, _messages(), "book_appointment", True, make_appointment())
        appointments = memory.get_recent_appointments(PHONE)
        assert len(appointments) == 1
        assert appointments[0].service == ServiceId.NEW_LICENCE

    def test_concurrent_appends_are_not_lost(self, memory):
        def worker():
            for _ in range(10):
                memory.add_conversation(PHONE, _messages(), "general", False)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(memory.get_conversation_history(PHONE, limit=100)) == 40

    def test_concurrent_bookings_are_all_counted(self, memory):
        def worker():
            for _ in range(50):
                memory.record_booking(make_appointment())

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        profile = memory.get_user_profile(PHONE)
        assert profile.total_appointments == 200
        assert profile.preferred_services == [ServiceId.NEW_LICENCE]


class TestPatterns:
    def test_empty_history(self, memory):
        patterns = memory.analyze_user_patterns(PHONE)
        assert patterns.most_used_services == []
        assert patterns.preferred_times == []
        assert patterns.satisfaction_trend == SatisfactionTrend.STABLE
        assert patterns.common_issues == []

    def test_services_and_times_by_frequency(self, memory):
        memory.add_conversation(PHONE, _messages(), "book_appointment", True,
                                make_appointment(ServiceId.DRIVING_TEST, time="9:30 AM"))
        for _ in range(2):
            memory.add_conversation(PHONE, _messages(), "book_appointment", True,
                                    make_appointment(ServiceId.LICENCE_RENEWAL, time="3:00 PM"))
        patterns = memory.analyze_user_patterns(PHONE)
        assert patterns.most_used_services == ["licence renewal", "driving test"]
        assert patterns.preferred_times == ["afternoon", "morning"]

    def test_satisfaction_trend_and_issues(self, memory):
        memory.add_conversation(PHONE, _messages(), "get_info", False, sentiment=Sentiment.NEGATIVE)
        memory.add_conversation(PHONE, _messages(), "get_info", False, sentiment=Sentiment.NEGATIVE)
        memory.add_conversation(PHONE, _messages(), "general", False, sentiment=Sentiment.POSITIVE)
        patterns = memory.analyze_user_patterns(PHONE)
        assert patterns.satisfaction_trend == SatisfactionTrend.DECLINING
        assert patterns.common_issues == ["get_info"]


class TestGreetings:
    def test_salutation_boundaries(self):
        assert time_of_day_salutation(datetime(2025, 8, 1, 11, 59)) == "Good morning"
        assert time_of_day_salutation(datetime(2025, 8, 1, 12, 0)) == "Good afternoon"
        assert time_of_day_salutation(datetime(2025, 8, 1, 17, 0)) == "Good evening"

    def test_unnamed_contact_gets_generic_greeting(self, memory):
        greeting = memory.generate_personalized_greeting(PHONE)
        assert "How can I help you today?" in greeting
        assert "Good morning" not in greeting

    def test_first_time(self, memory):
        memory.update_user_profile(PHONE, name="Priya Sharma")
        greeting = memory.generate_personalized_greeting(PHONE)
        assert greeting.startswith("Good morning, Priya! Welcome to the")

    def test_last_appointment(self, memory):
        memory.record_booking(make_appointment(ServiceId.LICENCE_RENEWAL))
        memory.add_conversation(PHONE, _messages(), "book_appointment", True,
                                make_appointment(ServiceId.LICENCE_RENEWAL))
        greeting = memory.generate_personalized_greeting(PHONE)
        assert "I hope your licence renewal appointment went well" in greeting

    def test_resume_unfinished_booking(self, memory):
        memory.update_user_profile(PHONE, name="Priya Sharma")
        memory.add_conversation(PHONE, _messages(), "book_appointment", False)
        greeting = memory.generate_personalized_greeting(PHONE)
        assert "continue with that" in greeting

    def test_returning(self, memory):
        memory.record_booking(make_appointment())
        memory.add_conversation(PHONE, _messages(), "general", False)
        greeting = memory.generate_personalized_greeting(PHONE)
        assert greeting.startswith("Good morning, Priya! Welcome back to the")


class TestSuggestions:
    def test_new_contact(self, memory):
        assert memory.generate_contextual_suggestions(PHONE) == ["Update your contact information"]

    def test_capped_at_three(self, memory, backend):
        memory.add_conversation(PHONE, _messages(), "book_appointment", True,
                                make_appointment(time="10:00 AM"))
        memory.update_user_profile(PHONE, last_visit=FIXED_NOW - timedelta(days=45))
        suggestions = memory.generate_contextual_suggestions(PHONE)
        assert suggestions == [
            "Book another new licence appointment",
            "Update your contact information",
            "Check if your licence needs renewal",
        ]

    def test_morning_suggestion(self, memory):
        memory.update_user_profile(PHONE, email="priya@example.com")
        memory.add_conversation(PHONE, _messages(), "book_appointment", True,
                                make_appointment(time="9:00 AM"))
        assert memory.generate_contextual_suggestions(PHONE) == [
            "Book another new licence appointment",
            "Book a morning appointment",
        ]


class TestPersonalization:
    @pytest.mark.parametrize("style,expected", [
        (CommunicationStyle.FORMAL, "Thank you, Priya Sharma. Your appointment has been confirmed."),
        (CommunicationStyle.CASUAL, "All set! Your appointment is booked."),
        (CommunicationStyle.FRIENDLY, "Perfect, Priya! Your appointment is all confirmed."),
    ])
    def test_confirmation_opener_follows_style(self, memory, style, expected):
        memory.update_user_profile(PHONE, name="Priya Sharma")
        memory.update_user_preferences(PHONE, communication_style=style)
        assert memory.get_personalized_response(PHONE, "appointment_confirmation") == expected

    def test_service_suggestion_for_frequent_visitor(self, memory):
        memory.update_user_profile(PHONE, total_appointments=4)
        assert "previous visits" in memory.get_personalized_response(PHONE, "service_suggestion")

    def test_unknown_context(self, memory):
        assert memory.get_personalized_response(PHONE, "weather") == ""

    def test_politeness_makes_casual_formal(self, memory):
        memory.update_user_preferences(PHONE, communication_style=CommunicationStyle.CASUAL)
        memory.learn_from_interaction(PHONE, "Could you please check?", "Sure.")
        assert memory.get_user_preferences(PHONE).communication_style == CommunicationStyle.FORMAL

    def test_corrections_and_dissatisfaction_are_noted(self, memory):
        memory.learn_from_interaction(PHONE, "Actually, make it Monday", "Done.")
        memory.learn_from_interaction(PHONE, "ugh", "Sorry.", satisfaction=Sentiment.NEGATIVE)
        assert memory.get_user_profile(PHONE).notes == [
            "Correction needed: Actually, make it Monday",
            "Dissatisfaction: Sorry.",
        ]


class TestPrivacy:
    def test_export_is_a_copy(self, memory):
        memory.update_user_profile(PHONE, name="Priya Sharma")
        memory.add_conversation(PHONE, _messages(), "general", False)
        export = memory.export_user_data(PHONE)
        assert export.profile.name == "Priya Sharma"
        assert len(export.conversation_history) == 1

        export.profile.name = "Changed"
        assert memory.get_user_profile(PHONE).name == "Priya Sharma"

    def test_export_unknown_contact(self, memory):
        export = memory.export_user_data("1111111111")
        assert export.profile is None
        assert export.preferences is None
        assert export.conversation_history == []

    def test_delete_removes_everything_with_one_save(self, memory, backend):
        memory.identify_user(phone=PHONE)
        memory.get_user_preferences(PHONE)
        memory.add_conversation(PHONE, _messages(), "general", False)
        saves = backend.save_count

        assert memory.delete_user_data(PHONE) is True
        assert backend.save_count == saves + 1
        assert memory.get_current_user_phone() is None

        export = memory.export_user_data(PHONE)
        assert export.profile is None
        assert export.preferences is None
        assert export.conversation_history == []

        reloaded = MemoryStore(backend=backend)
        assert reloaded.export_user_data(PHONE).profile is None

    def test_delete_unknown_contact(self, memory):
        assert memory.delete_user_data("1111111111") is False


class TestDegradedPersistence:
    def test_save_failures_are_swallowed(self, clock):
        backend = FailingBackend()
        memory = MemoryStore(backend=backend, clock=clock)
        memory.update_user_profile(PHONE, name="Priya Sharma")
        assert memory.get_user_profile(PHONE).name == "Priya Sharma"
        assert backend.save_attempts > 0
        assert memory.persistence_available is False

    def test_load_failure_starts_empty(self, clock):
        memory = MemoryStore(backend=FailingBackend(fail_load=True), clock=clock)
        assert memory.persistence_available is False
        assert memory.export_user_data(PHONE).profile is None
