from __future__ import annotations
from typing import Any, Dict, List, Mapping

CRISIS_RESOURCES: List[Dict[str, str]] = [
    {"name": "Emergency", "contact": "Call 911", "icon": "🚨"},
    {"name": "24/7 Crisis Support", "contact": "Call 988", "icon": "🆘"},
    {"name": "Crisis Text Line", "contact": "Text HOME to 741741", "icon": "💭"},
]

THERAPIST_PERSONA = (
    "You are an experienced, empathetic therapist. Your approach should be:\n"
    "1. Show deep empathy and understanding\n"
    "2. Help explore and process emotions safely\n"
    "3. Validate feelings while maintaining professional boundaries\n"
    "4. Keep responses concise but meaningful (2-3 sentences)"
)

CRISIS_DIRECTIVES = (
    "CRITICAL: User may be in crisis. Always:\n"
    "- Express immediate concern for their safety\n"
    "- Provide crisis resources (Emergency: 911, 988 Lifeline, Crisis Text Line: 741741)\n"
    "- Encourage professional help\n"
    "- Maintain calm, supportive presence"
)

COPING_NOTE = "Note: User shows signs of distress. Focus on emotional support and coping strategies."

COPING_MOODS = ("distressed", "depressed")


def format_resources() -> str:
    lines = ["Important Resources:"]
    for r in CRISIS_RESOURCES:
        lines.append(f"{r['icon']} {r['name']}: {r['contact']}")
    return "\n".join(lines)


CRISIS_RESPONSE = (
    "I'm very concerned about what you're sharing. Your life matters and help is available:\n\n"
    + "\n".join(f"- {r['name']}: {r['contact']}" for r in CRISIS_RESOURCES)
    + "\n\nWould you like to talk about what's bringing up these thoughts?"
)

CHAT_FALLBACK = "I'm sorry, I'm having trouble responding right now. Please try again in a moment."


def with_crisis_resources(text: str) -> str:
    return f"{text}\n\n{format_resources()}"


def build_system_prompt(mood: str, is_crisis: bool) -> str:
    """Compose the therapist instruction for one turn.

    The persona and the detected context are always present; crisis directives
    and the coping-strategies note are added only when the signals call for them.
    """
    parts = [
        THERAPIST_PERSONA,
        "Current context:\n"
        f"- User's detected mood: {mood}\n"
        f"- Crisis status: {'POTENTIAL CRISIS' if is_crisis else 'Normal'}",
    ]
    if is_crisis:
        parts.append(CRISIS_DIRECTIVES)
    if mood in COPING_MOODS:
        parts.append(COPING_NOTE)
    return "\n\n".join(parts)


# --- Journal summarization ---
def _text_or_default(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return "Not provided"


def _list_or_default(value: Any) -> str:
    if isinstance(value, (list, tuple)) and value:
        return ", ".join(str(v) for v in value)
    return "None"


def render_journal_context(responses: Mapping[str, Any], mood: str) -> str:
    r = responses or {}
    return "\n".join([
        "Today's Journal Entry:",
        f"- Current Mood: {mood or 'Not provided'}",
        f"- Daily Reflection: {_text_or_default(r.get('dayReflection'))}",
        f"- Coping Strategies Used: {_list_or_default(r.get('copingStrategies'))}",
        f"- Self-Care Activities: {_list_or_default(r.get('selfCare'))}",
        f"- Thought Patterns: {_text_or_default(r.get('thoughtPatterns'))}",
        f"- Gratitude: {_text_or_default(r.get('gratitude'))}",
        f"- Plans for Tomorrow: {_text_or_default(r.get('tomorrow'))}",
    ])


def build_summary_prompt(responses: Mapping[str, Any], mood: str) -> str:
    return (
        "You are a compassionate journaling assistant. Please create a brief, coherent summary of this journal entry.\n\n"
        "Requirements:\n"
        "1. Write in a natural, conversational tone\n"
        "2. Focus on the key emotional insights and activities\n"
        "3. Create clear, grammatically correct sentences\n"
        "4. Keep the summary concise (3-4 sentences maximum)\n"
        "5. Avoid repeating \"you\" at the start of each sentence\n"
        "6. Connect ideas smoothly using transitions\n"
        "7. Fix any typos or grammatical errors from the original entries\n"
        "8. Maintain a supportive and understanding tone\n\n"
        "Journal Entry to Summarize:\n"
        + render_journal_context(responses, mood)
    )


def fallback_summary(responses: Mapping[str, Any], mood: str) -> str:
    reflection = (responses or {}).get("dayReflection")
    if not isinstance(reflection, str):
        reflection = ""
    return f"Today you're feeling {mood}. {reflection.strip()}".strip()
