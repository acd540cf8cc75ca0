# Bounded conversation context for text generators
from typing import Sequence

from case_records_service.app.models import ChatMessageDB

# Maximum number of messages handed to a generator by default
MAX_CONTEXT_MESSAGES = 10


def render_message(message: ChatMessageDB) -> str:
    role = "User" if message.is_user else "Assistant"
    rendered = f"{role}: {message.content}"
    if message.files:
        names = ", ".join(f.name for f in message.files)
        rendered += f"\n[Attached {len(message.files)} file(s): {names}]"
    return rendered


def build_context(messages: Sequence[ChatMessageDB], max_messages: int = MAX_CONTEXT_MESSAGES) -> str:
    """
    Renders the last `max_messages` messages as "User: ..." / "Assistant: ..."
    entries separated by a blank line. This is the only place history is cut
    down before it reaches a generator. A non-positive bound yields "".
    """
    if max_messages <= 0:
        return ""
    window = list(messages)[-max_messages:]
    return "\n\n".join(render_message(message) for message in window)
