import pytest

from haven.signals import MOOD_LABELS, classify, detect_mood, looks_like_crisis, mood_emoji


@pytest.mark.parametrize("text", [
    "I've been thinking about suicide",
    "sometimes I want to KILL MYSELF",
    "I just want to end it all.",
    "i want to die",
    "There is no point living like this",
    "everyone would be better off dead without me",
    "I might harm myself tonight",
])
def test_crisis_phrases_any_case_any_position(text):
    assert looks_like_crisis(text)
    assert classify(text).is_crisis is True


def test_no_crisis_for_ordinary_text():
    signal = classify("Work was long but I'm okay")
    assert signal.is_crisis is False
    assert signal.mood == "neutral"


@pytest.mark.parametrize("text,mood", [
    ("I feel hopeless", "distressed"),
    ("my anxiety is through the roof", "anxious"),
    ("feeling really lonely tonight", "depressed"),
    ("I'm so angry at my boss", "angry"),
    ("what a wonderful morning", "happy"),
    ("things are fine", "neutral"),
])
def test_mood_table(text, mood):
    assert detect_mood(text) == mood


def test_unmatched_and_empty_text_is_neutral():
    assert detect_mood("the bus was late") == "neutral"
    assert classify("").mood == "neutral"
    assert classify("").is_crisis is False


def test_priority_follows_table_order():
    # distressed beats happy even though "good" appears first in the text
    assert detect_mood("good news turned out hopeless") == "distressed"
    assert detect_mood("worried but happy") == "anxious"


def test_crisis_and_mood_are_independent():
    signal = classify("I'm happy to say I no longer want to die")
    assert signal.is_crisis is True
    assert signal.mood == "happy"


def test_classifier_is_deterministic():
    text = "Stressed and sad, maybe angry"
    assert {classify(text).mood for _ in range(20)} == {"anxious"}


def test_every_result_is_a_known_label():
    for text in ["", "x", "HATE this", "blessed", "normal day", "💥"]:
        assert classify(text).mood in MOOD_LABELS


def test_mood_emoji_defaults_to_neutral():
    assert mood_emoji("happy") == "😊"
    assert mood_emoji(None) == mood_emoji("neutral")
