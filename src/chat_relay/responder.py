"""Deterministic keyword responder.

Used as the default reply when no provider answers and as the last-resort
fallback of the router. It never raises and never touches the network.
"""

GREETING_REPLY = "Hi there! How can I help you today?"
BOOKING_REPLY = "Sure! I can help you make a booking. What date do you want?"
HELP_REPLY = "Tell me what you need help with."
PRICING_REPLY = "Pricing depends on your requirements. Can you tell me more?"
FALLBACK_REPLY = "I am not sure I understand. Can you please rephrase?"

# First match wins; each rule is (keywords, reply)
RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("hello", "hi"), GREETING_REPLY),
    (("book",), BOOKING_REPLY),
    (("help",), HELP_REPLY),
    (("price", "cost"), PRICING_REPLY),
)


def compute_response(message: str | None) -> str:
    """Map a message to a canned reply using substring rules.

    Args:
        message: Raw user text. ``None`` is treated as empty.

    Returns:
        The reply of the first matching rule, or the fallback reply
    """
    text = str(message or "").lower()
    for keywords, reply in RULES:
        if any(keyword in text for keyword in keywords):
            return reply
    return FALLBACK_REPLY
