"""Tests for keyword intent classification and yes/no detection."""

import pytest

from licence_assistant.conversation.intent_classifier import (
    InfoTopic,
    classify,
    classify_info_topic,
    is_confirmation,
    is_explicit_confirmation,
    is_negation,
)
from licence_assistant.schemas.dialogue_schema import Intent


class TestClassify:
    def test_booking_request(self):
        result = classify("I want to book a new licence")
        assert result.intent == Intent.BOOK_APPOINTMENT
        assert result.matched_keyword == "book"

    def test_documents_question_is_info(self):
        assert classify("what documents do I need for renewal").intent == Intent.GET_INFO

    def test_wanting_to_know_is_not_a_booking(self):
        assert classify("I want to know about the fees").intent == Intent.GET_INFO

    @pytest.mark.parametrize("text", [
        "how much does it cost",
        "where is your office",
        "what are your opening hours",
    ])
    def test_info_questions(self, text):
        assert classify(text).intent == Intent.GET_INFO

    def test_booking_beats_info(self):
        assert classify("I'd like to book, how much is it?").intent == Intent.BOOK_APPOINTMENT

    def test_greeting(self):
        assert classify("Hello!").intent == Intent.GREETING

    def test_greeting_ignored_during_flow(self):
        assert classify("hello", has_active_intent=True).intent == Intent.NONE

    def test_whole_words_only(self):
        # "this" must not read as "hi"
        assert classify("this is Priya").intent == Intent.NONE

    def test_nothing_matched(self):
        result = classify("Priya Sharma")
        assert result.intent == Intent.NONE
        assert result.matched_keyword is None


class TestInfoTopic:
    @pytest.mark.parametrize("text,expected", [
        ("what documents do i need", InfoTopic.DOCUMENTS),
        ("how much is the fee", InfoTopic.FEES),
        ("where are you located", InfoTopic.LOCATION),
        ("what are your opening hours", InfoTopic.HOURS),
    ])
    def test_topics(self, text, expected):
        assert classify_info_topic(text) == expected

    def test_documents_take_priority_over_fees(self):
        assert classify_info_topic("documents and fees for renewal") == InfoTopic.DOCUMENTS

    def test_no_topic(self):
        assert classify_info_topic("renewal") is None


class TestYesNo:
    @pytest.mark.parametrize("text", ["no", "Nope", "that's not right", "wrong date", "cancel it"])
    def test_negations(self, text):
        assert is_negation(text)

    def test_know_is_not_no(self):
        assert not is_negation("i know")

    @pytest.mark.parametrize("text", ["yes", "Yeah that's right", "sounds good", "ok"])
    def test_explicit_confirmations(self, text):
        assert is_explicit_confirmation(text)
        assert is_confirmation(text)

    def test_negation_wins_over_confirmation_keyword(self):
        assert not is_confirmation("no that's not right")
        assert not is_explicit_confirmation("right, no")

    def test_any_non_empty_reply_confirms(self):
        assert is_confirmation("uh huh")
        assert not is_explicit_confirmation("uh huh")

    def test_empty_reply_does_not_confirm(self):
        assert not is_confirmation("   ")
