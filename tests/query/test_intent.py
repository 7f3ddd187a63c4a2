"""Tests for keyword-based query analysis."""

import pytest

from content_intelligence.query.intent import QueryIntentDetector, generate_suggestions


@pytest.fixture
def detector():
    return QueryIntentDetector()


@pytest.mark.parametrize(
    "query, expected",
    [
        ("what's urgent right now?", "importance"),
        ("anything important I forgot", "importance"),
        ("what did I save recently", "recency"),
        ("what am I thinking about lately?", "recency"),
        ("what have I been focused on", "importance"),
        ("pasta recipe with tomatoes", "semantic"),
    ],
)
def test_detect_intent(detector, query, expected):
    assert detector.detect_intent(query) == expected


def test_intent_hint_overrides_detection(detector):
    analysis = detector.analyze("what's urgent?", intent_hint="semantic")
    assert analysis.intent == "semantic"


def test_extract_kinds(detector):
    assert detector.extract_kinds("show me the pdf files and links") == ["file", "url"]
    assert detector.extract_kinds("my notes about cooking") == ["text"]
    assert detector.extract_kinds("cooking") == []


@pytest.mark.parametrize(
    "query, hours",
    [
        ("what did I save today", 24.0),
        ("links from yesterday", 48.0),
        ("notes from last week", 336.0),
        ("what have I saved recently", 168.0),
        ("articles this month", 720.0),
        ("pasta recipe", None),
    ],
)
def test_extract_time_window(detector, query, hours):
    assert detector.extract_time_window(query) == hours


def test_is_question(detector):
    assert detector.is_question("when is the dentist?")
    assert detector.is_question("where did I park")
    assert not detector.is_question("dentist appointment")


def test_analyze(detector):
    analysis = detector.analyze("What links did I save today?")

    assert analysis.original_query == "What links did I save today?"
    assert analysis.intent == "recency"
    assert analysis.kinds == ["url"]
    assert analysis.time_window_hours == 24.0
    assert analysis.is_question


def test_suggestions(detector):
    suggestions = generate_suggestions(detector.analyze("urgent pdf files from today"))

    assert any("wider time range" in s for s in suggestions)
    assert any("important" in s for s in suggestions)
    assert any("all content types" in s for s in suggestions)


def test_suggestions_always_offer_something(detector):
    assert generate_suggestions(detector.analyze("pasta")) != []
