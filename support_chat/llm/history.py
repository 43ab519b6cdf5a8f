"""
Conversation history formatting

Stored turns use the ``user`` / ``ai`` labels; chat models expect ``user`` /
``model`` turns made of text parts.
"""

from typing import Any, Dict, Iterable, List, Mapping, Union

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

from support_chat.config.constants import ASSISTANT_ROLES, ROLE_MODEL, ROLE_USER

FormattedTurn = Dict[str, Any]


def _field(message: Union[Mapping[str, Any], Any], name: str) -> Any:
    if isinstance(message, Mapping):
        return message[name]
    return getattr(message, name)


def format_history(messages: Iterable[Union[Mapping[str, Any], Any]]) -> List[FormattedTurn]:
    """
    Re-tag stored turns for the chat model.

    Accepts mappings or objects with ``role`` and ``text``. Order is kept and
    nothing is dropped; only the assistant label changes.

    Returns:
        [{"role": "user" | "model", "parts": [{"text": ...}]}, ...]
    """
    formatted = []
    for message in messages:
        role = _field(message, "role")
        formatted.append({
            "role": ROLE_MODEL if role in ASSISTANT_ROLES else role,
            "parts": [{"text": _field(message, "text")}],
        })
    return formatted


def to_langchain_messages(history: Iterable[FormattedTurn]) -> List[BaseMessage]:
    """Convert formatted turns into LangChain chat messages."""
    converted: List[BaseMessage] = []
    for turn in history:
        text = "".join(part.get("text", "") for part in turn.get("parts", []))
        if turn["role"] == ROLE_USER:
            converted.append(HumanMessage(content=text))
        else:
            converted.append(AIMessage(content=text))
    return converted
