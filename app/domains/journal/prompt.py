"""Journal-entry prompt rendering.

The instruction text is kept verbatim so generated entries stay comparable
across deployments.
"""

from collections.abc import Sequence

from app.core.config import PromptOverflowEnum
from app.exceptions.journal import PromptTooLargeError
from app.schemas.message import TranscriptEntry

JOURNAL_ENTRY_INSTRUCTIONS = (
    "You will be given a conversation between a user and a chatbot. Your task is to rewrite this "
    "conversation as a first-person journal entry from the user's perspective, capturing the essence "
    "of their day and the interaction they had with the chatbot. Carefully read through the entire "
    "conversation to grasp the overall context, key points discussed, and the user's intent. Analyze "
    "the conversation: Identify the main themes or topics covered during the conversation. Note down "
    "important information, such as events, tasks, emotions, decisions, and any specific details the "
    "user shared. Highlight any actions taken or planned as a result of the conversation. Write the "
    "journal entry: Use a first-person perspective, writing as if you are the user. Begin with a brief "
    "introduction about the day or the reason for the conversation. Ensure that the narrative flows "
    "logically from one point to the next. Reflect the user's tone and emotions as conveyed in the "
    "conversation. Include any personal reflections or insights that the user might have shared. "
    "Mention the interaction with the chatbot naturally, as part of the day's events. Conclude with any "
    "final thoughts or plans for the future that emerged from the conversation. Style and tone: Mimic "
    "the user's writing style, vocabulary, and manner of expression as closely as possible. Maintain the "
    "emotional tone present in the user's messages throughout the journal entry. Content: Ensure all "
    "salient points from the conversation are included in the journal entry. Do not add any new "
    "information that wasn't present in the original conversation."
)

TRANSCRIPT_LEAD_IN = " Take the following conversation as input:\n\n"


def render_transcript(transcript: Sequence[TranscriptEntry]) -> str:
    """Render turns as ``sender: text`` lines in transcript order."""
    return "\n".join(f"{entry.sender.value}: {entry.text}" for entry in transcript)


def build_prompt(
    transcript: Sequence[TranscriptEntry],
    max_chars: int = 0,
    overflow: PromptOverflowEnum | str = PromptOverflowEnum.reject,
) -> str:
    """Render the journal-entry prompt for a transcript.

    Args:
        transcript: Turns in the order they should appear, oldest first.
        max_chars: Prompt budget in characters, 0 disables the check.
        overflow: ``reject`` raises when over budget, ``truncate`` drops the
            oldest turns until the prompt fits.

    Returns:
        The instructions followed by the rendered transcript.

    Raises:
        PromptTooLargeError: The prompt cannot be brought under ``max_chars``.
    """
    prefix = JOURNAL_ENTRY_INSTRUCTIONS + TRANSCRIPT_LEAD_IN
    prompt = prefix + render_transcript(transcript)
    if not max_chars or len(prompt) <= max_chars:
        return prompt

    if PromptOverflowEnum(overflow) == PromptOverflowEnum.reject:
        raise PromptTooLargeError(
            f"Conversation is too long to summarize ({len(prompt)} > {max_chars} characters)",
            details={"prompt_chars": len(prompt), "max_chars": max_chars},
        )

    # Keep the most recent turns that fit; each line costs its length plus a newline
    budget = max_chars - len(prefix)
    kept: list[TranscriptEntry] = []
    used = 0
    for entry in reversed(transcript):
        line_cost = len(f"{entry.sender.value}: {entry.text}") + (1 if kept else 0)
        if used + line_cost > budget:
            break
        kept.append(entry)
        used += line_cost

    if not kept:
        raise PromptTooLargeError(
            "Latest message alone exceeds the prompt budget",
            details={"max_chars": max_chars},
        )
    kept.reverse()
    return prefix + render_transcript(kept)
