# haven/signals.py
from __future__ import annotations
from typing import Dict, List, Tuple

from haven.models import MoodLabel, Signal

# --- Crisis heuristics (always evaluated first, independent of mood) ---
CRISIS_PHRASES = [
    "suicide",
    "kill myself",
    "end it all",
    "want to die",
    "no point living",
    "better off dead",
    "harm myself",
]

# Ordered by priority: the first table with a hit wins.
MOOD_KEYWORDS: List[Tuple[MoodLabel, List[str]]] = [
    ("distressed", ["hopeless", "cant go on", "helpless", "desperate"]),
    ("anxious", ["anxiety", "worried", "panic", "stress", "overwhelm"]),
    ("depressed", ["depressed", "sad", "lonely", "worthless", "empty"]),
    ("angry", ["angry", "mad", "furious", "rage", "hate"]),
    ("happy", ["happy", "good", "great", "wonderful", "blessed"]),
    ("neutral", ["okay", "fine", "alright", "normal"]),
]

MOOD_LABELS: Tuple[MoodLabel, ...] = tuple(label for label, _ in MOOD_KEYWORDS)

MOOD_EMOJI: Dict[str, str] = {
    "distressed": "😰",
    "anxious": "😟",
    "depressed": "😢",
    "angry": "😠",
    "happy": "😊",
    "neutral": "😐",
}


def looks_like_crisis(text: str) -> bool:
    t = (text or "").lower()
    return any(phrase in t for phrase in CRISIS_PHRASES)


def detect_mood(text: str) -> MoodLabel:
    """Return the first mood whose keywords appear in the text; `neutral` when nothing matches."""
    t = (text or "").lower()
    for label, keywords in MOOD_KEYWORDS:
        if any(k in t for k in keywords):
            return label
    return "neutral"


def classify(text: str) -> Signal:
    # Both checks always run; a crisis message can still carry e.g. "happy".
    is_crisis = looks_like_crisis(text)
    return Signal(mood=detect_mood(text), is_crisis=is_crisis)


def mood_emoji(mood: str | None) -> str:
    return MOOD_EMOJI.get(mood or "", MOOD_EMOJI["neutral"])
