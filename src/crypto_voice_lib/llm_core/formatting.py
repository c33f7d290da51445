"""Wraps user queries with the instructions that keep answers speakable."""

SPEECH_INSTRUCTIONS = (
    "Please use the available cryptocurrency tools to get the data you need, then provide a complete, "
    "conversational response suitable for voice. Make your response short and concise, and if the answer "
    "involves a list, rewrite it in paragraph format so it can be read aloud naturally."
)


def format_query(raw_query: str) -> str:
    """Append the speech instructions to ``raw_query``.

    Pure function: the same input always gives the same output.
    """
    return f"{raw_query}\n\n{SPEECH_INSTRUCTIONS}"
