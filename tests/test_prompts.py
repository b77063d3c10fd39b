from haven.prompts import (
    CRISIS_RESPONSE,
    build_summary_prompt,
    build_system_prompt,
    fallback_summary,
    format_resources,
    render_journal_context,
    with_crisis_resources,
)

RESOURCE_MARKERS = ["911", "988", "741741"]


def test_persona_and_context_always_present():
    prompt = build_system_prompt("happy", False)
    assert "empathetic therapist" in prompt
    assert "2-3 sentences" in prompt
    assert "User's detected mood: happy" in prompt
    assert "Crisis status: Normal" in prompt
    assert "CRITICAL" not in prompt
    assert "coping strategies" not in prompt


def test_crisis_adds_safety_directives():
    prompt = build_system_prompt("neutral", True)
    assert "Crisis status: POTENTIAL CRISIS" in prompt
    assert "Encourage professional help" in prompt
    for marker in RESOURCE_MARKERS:
        assert marker in prompt


def test_distressed_and_depressed_foreground_coping():
    for mood in ("distressed", "depressed"):
        assert "coping strategies" in build_system_prompt(mood, False)
    assert "coping strategies" not in build_system_prompt("anxious", False)


def test_scripted_response_and_appendix_carry_all_resources():
    for marker in RESOURCE_MARKERS:
        assert marker in CRISIS_RESPONSE
        assert marker in format_resources()
    assert with_crisis_resources("I'm here.").startswith("I'm here.\n\n")


def test_journal_context_defaults_for_missing_fields():
    context = render_journal_context({}, "Sad")
    assert "- Current Mood: Sad" in context
    assert "- Daily Reflection: Not provided" in context
    assert "- Coping Strategies Used: None" in context
    assert "- Self-Care Activities: None" in context


def test_journal_context_renders_lists_and_text():
    context = render_journal_context(
        {"dayReflection": " Long meeting ", "selfCare": ["Took breaks", "Moved my body"], "copingStrategies": "oops"},
        "Calm",
    )
    assert "- Daily Reflection: Long meeting" in context
    assert "- Self-Care Activities: Took breaks, Moved my body" in context
    # a non-list answer for a list field is treated as missing
    assert "- Coping Strategies Used: None" in context


def test_summary_prompt_asks_for_short_summary():
    prompt = build_summary_prompt({"gratitude": "my dog"}, "Hopeful")
    assert "3-4 sentences maximum" in prompt
    assert "- Gratitude: my dog" in prompt


def test_fallback_summary_uses_mood_and_reflection():
    assert fallback_summary({"dayReflection": "It was hard"}, "Sad") == "Today you're feeling Sad. It was hard"
    assert fallback_summary({}, "Calm") == "Today you're feeling Calm."
