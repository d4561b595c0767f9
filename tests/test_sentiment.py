"""Tests for keyword emotion scoring."""

from licence_assistant.conversation.sentiment import analyze_text, estimate_sentiment
from licence_assistant.schemas.memory_schema import Sentiment


class TestAnalyzeText:
    def test_satisfaction_detected(self):
        emotions = analyze_text("thank you, that's perfect")
        assert emotions[0].name == "satisfaction"
        assert 0 < emotions[0].score <= 1

    def test_at_most_three_emotions(self):
        text = "thanks, great, i'm worried, please tell me, i must go"
        assert len(analyze_text(text)) == 3

    def test_sorted_by_score(self):
        emotions = analyze_text("please could you help, thank you, this is wonderful and amazing")
        scores = [e.score for e in emotions]
        assert scores == sorted(scores, reverse=True)

    def test_empty_text(self):
        assert analyze_text("   ") == []


class TestEstimateSentiment:
    def test_positive(self):
        assert estimate_sentiment(["great, thank you"]) == Sentiment.POSITIVE

    def test_negative(self):
        assert estimate_sentiment(["i'm worried there is a problem"]) == Sentiment.NEGATIVE

    def test_neutral_without_signals(self):
        assert estimate_sentiment(["tomorrow at 2 pm"]) == Sentiment.NEUTRAL
        assert estimate_sentiment([]) == Sentiment.NEUTRAL
