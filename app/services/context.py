"""Context window selection and prompt assembly for chat turns.

Turns arrive oldest first. The last turn is always the message being
answered; everything before it is history.
"""
from dataclasses import dataclass, field
from typing import Optional, Sequence

from app.models.message import Message, MessageRole

DEFAULT_CONTEXT_WINDOW = 20

SPEAKER_USER = "user"
SPEAKER_ASSISTANT = "assistant"


@dataclass(frozen=True)
class GenerationParams:
    """Sampling parameters passed verbatim to the model backend."""
    max_output_tokens: int = 2048
    temperature: float = 0.7
    top_p: float = 0.8
    top_k: Optional[int] = None

    @classmethod
    def from_settings(cls, settings) -> "GenerationParams":
        return cls(
            max_output_tokens=settings.CHAT_MAX_OUTPUT_TOKENS,
            temperature=settings.CHAT_TEMPERATURE,
            top_p=settings.CHAT_TOP_P,
            top_k=settings.CHAT_TOP_K,
        )


@dataclass(frozen=True)
class AssembledPrompt:
    """
    Model input for one turn.

    history: prior (speaker, text) pairs, oldest first
    live_message: text sent as the new user message
    system_instruction: set only when the backend takes a native system role
    """
    history: list[tuple[str, str]] = field(default_factory=list)
    live_message: str = ""
    system_instruction: Optional[str] = None


def select_context(turns: Sequence[Message], window: int = DEFAULT_CONTEXT_WINDOW) -> list[Message]:
    """
    Keep the most recent `window` turns in chronological order.

    The newest turn (the one being answered) is always kept.
    """
    if window < 1:
        raise ValueError(f"window must be a positive integer, got {window!r}")
    return list(turns[-window:])


def speaker_for(role: str) -> str:
    """Map a stored role onto the two speaker tags the model understands."""
    return SPEAKER_ASSISTANT if role == MessageRole.ASSISTANT.value else SPEAKER_USER


def assemble_prompt(
    system_prompt: Optional[str],
    turns: Sequence[Message],
    native_system_role: bool = False,
) -> AssembledPrompt:
    """
    Build the model input from a project's system prompt and its context.

    By default the system prompt is folded into the live message as
    "[System: ...]\\n\\nUser: ..." because the history cannot carry a
    system role. With native_system_role the prompt is returned separately
    and the live message is sent verbatim.

    Raises:
        ValueError: If turns is empty
    """
    if not turns:
        raise ValueError("cannot assemble a prompt without a current message")

    *previous, current = turns
    history = [(speaker_for(turn.role), turn.content) for turn in previous]

    # Whitespace-only prompts count as absent
    has_system_prompt = bool(system_prompt and system_prompt.strip())

    if native_system_role:
        return AssembledPrompt(
            history=history,
            live_message=current.content,
            system_instruction=system_prompt if has_system_prompt else None,
        )

    if has_system_prompt:
        live_message = f"[System: {system_prompt}]\n\nUser: {current.content}"
    else:
        live_message = current.content

    return AssembledPrompt(history=history, live_message=live_message)
