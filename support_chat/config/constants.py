"""
Application constants

Centralized constants used across the application.
"""

# ============================================================================
# Models
# ============================================================================

# Known-good models used when the configured model is rejected upstream
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_OLLAMA_MODEL = "llama3"


# ============================================================================
# Conversation roles
# ============================================================================

ROLE_USER = "user"
ROLE_AI = "ai"

# Label the chat model expects for assistant turns
ROLE_MODEL = "model"

# Stored labels that all mean "the assistant spoke"
ASSISTANT_ROLES = frozenset({ROLE_AI, ROLE_MODEL, "assistant"})


# ============================================================================
# Persona
# ============================================================================

DEFAULT_SYSTEM_INSTRUCTION = """You are a professional customer support agent for "Apex", an AI-powered customer engagement platform.

Domain Knowledge:
- Shipping: Standard shipping takes 3-5 business days
- Returns: We offer a 30-day return window for all products
- Support Hours: Monday-Friday, 9 AM - 6 PM PST
- Brand Voice: Professional, concise, helpful, and friendly

Guidelines:
- Always maintain the "Apex" brand voice
- Provide accurate information based on the domain knowledge above
- Be empathetic and solution-oriented
- Keep responses concise but complete
- If you don't know something, acknowledge it and offer to escalate to a human agent"""


# ============================================================================
# HTTP
# ============================================================================

MAX_MESSAGE_LENGTH = 2000
ANONYMOUS_RATE_LIMIT_KEY = "anonymous"
RATE_LIMIT_REMAINING_HEADER = "X-RateLimit-Remaining"
