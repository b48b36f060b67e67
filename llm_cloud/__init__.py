"""Top-level package exports for llm_cloud.

This package holds the LLM infrastructure:
    • provider.py – LLM client configuration and provider routing
    • chat.py     – the model call as one async operation with a timeout
"""

from .chat import ChatModel
from .provider import get_client

__all__ = [
    "ChatModel",
    "get_client",
]
