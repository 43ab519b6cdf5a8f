"""
LLM response utilities for handling multi-format model outputs.

Supports both:
- Simple string responses (gpt-4o-mini, llama3, etc.)
- Structured content blocks (reasoning models return a list of typed blocks)
"""

from typing import Any, Optional
from loguru import logger


# Content block types that never belong in the reply shown to the customer
_HIDDEN_BLOCK_TYPES = frozenset({"reasoning", "thinking", "tool_use"})


def _block_text(block: Any) -> str:
    """Visible text of one content block ("" for hidden or non-text blocks)"""
    if isinstance(block, str):
        return block
    if not isinstance(block, dict) or block.get("type") in _HIDDEN_BLOCK_TYPES:
        return ""
    # {"type": "text", "text": ...} and untyped {"text": ...} both count
    text = block.get("text")
    return text if isinstance(text, str) else ""


def extract_text_from_response(response: Any) -> str:
    """
    Reply text from a chat model response.

    Args:
        response: AIMessage, plain string, or a list of content blocks

    Returns:
        The text to send back to the customer ("" when the model produced none)

    Example:
        AIMessage(content="Orders ship in 3-5 days.") -> "Orders ship in 3-5 days."
        AIMessage(content=[{"type": "reasoning", ...}, {"type": "text", "text": "Hi!"}]) -> "Hi!"
    """
    # LangChain messages carry the payload on .content
    content = getattr(response, "content", response)

    if not content:
        return ""

    # Chat models without reasoning return a plain string
    if isinstance(content, str):
        return content

    # Reasoning models return typed blocks; keep only the visible text
    if isinstance(content, list):
        reply = "".join(_block_text(block) for block in content)
        if not reply:
            logger.warning(f"No text blocks found in structured response: {str(content)[:200]}")
        return reply

    # Anything else: best effort
    return str(content)


def extract_token_usage(response: Any) -> Optional[int]:
    """
    Total token count reported by the provider, if any.

    LangChain exposes usage as ``usage_metadata`` on AIMessage; older
    integrations only put it in ``response_metadata``. Providers that report
    nothing yield None.
    """
    usage = getattr(response, "usage_metadata", None)
    if usage:
        total = usage.get("total_tokens")
        if total is not None:
            return int(total)

    metadata = getattr(response, "response_metadata", None) or {}
    token_usage = metadata.get("token_usage") or metadata.get("usage") or {}
    if isinstance(token_usage, dict) and token_usage.get("total_tokens") is not None:
        return int(token_usage["total_tokens"])

    # Ollama reports prompt/eval counts separately
    prompt_count = metadata.get("prompt_eval_count")
    eval_count = metadata.get("eval_count")
    if prompt_count is not None or eval_count is not None:
        return int(prompt_count or 0) + int(eval_count or 0)

    return None
