"""
LLM layer - Client factory, history formatting and reply generation
"""

from support_chat.llm.client import create_llm
from support_chat.llm.history import format_history, to_langchain_messages
from support_chat.llm.reply_generator import (
    AttemptOutcome,
    LangChainReplyGenerator,
    ReplyGenerator,
    ReplyResult,
    classify_error,
)
from support_chat.llm.response_utils import extract_text_from_response, extract_token_usage

__all__ = [
    "create_llm",
    "format_history",
    "to_langchain_messages",
    "AttemptOutcome",
    "LangChainReplyGenerator",
    "ReplyGenerator",
    "ReplyResult",
    "classify_error",
    "extract_text_from_response",
    "extract_token_usage",
]
