"""
chat.py – The model call as a single fallible async operation.

The orchestrator treats the language model as opaque: it sends an ordered list of
role-tagged messages and gets back text, or a `ModelCallError`. This module owns
everything in between: the provider client, the request settings from CONFIG, the
overall timeout, and the translation of provider exceptions, timeouts and empty
completions into that one error type. Raw provider errors never travel further.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from config import CONFIG
from monitoring.metrics import LLM_REQUEST_TIME, track_errors, track_latency
from shared.errors import ModelCallError

from .provider import get_client

logger = logging.getLogger(__name__)


class ChatModel:
    """
    Chat completion client bound to the configured model and settings.

    The underlying async client is built lazily on the first call, so constructing a
    ChatModel never requires API keys.
    """

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        settings: Optional[Dict[str, Any]] = None,
    ):
        llm_config = CONFIG.get("llm", {})
        self._client = client
        self.model = model or llm_config.get("model")
        self.timeout = float(timeout if timeout is not None else llm_config.get("timeout", 30))
        self.settings = settings if settings is not None else dict(llm_config.get("settings", {}))

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = get_client()
        return self._client

    @track_latency(LLM_REQUEST_TIME, lambda self: {'model': self.model})
    @track_errors('llm', 'chat_model')
    async def complete(self, messages: List[Dict[str, str]]) -> str:
        """
        Send the messages and return the assistant's text.

        Args:
            messages (List[Dict[str, str]]): Ordered chat messages with 'role' and 'content'.

        Returns:
            str: The completion text, stripped.

        Raises:
            ModelCallError: On provider/network/quota errors, on timeout, or when the
                response carries no text.
        """
        logger.info(
            "Making LLM request",
            extra={'extra_fields': {
                'model': self.model,
                'message_count': len(messages),
                'prompt_chars': sum(len(m.get("content", "")) for m in messages),
            }},
        )
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    **self.settings,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise ModelCallError(f"Model call timed out after {self.timeout:.0f}s") from e
        except OpenAIError as e:
            raise ModelCallError(f"Model call failed: {type(e).__name__}") from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise ModelCallError("Malformed model response") from e
        if not content or not content.strip():
            raise ModelCallError("Empty model response")
        return content.strip()
