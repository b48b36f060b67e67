"""
Unit tests for `llm_cloud/chat.py` – every failure of the model call surfaces as ModelCallError.

The OpenAI client is a MagicMock whose `chat.completions.create` is an AsyncMock, so no
network access happens.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from openai import OpenAIError

from llm_cloud.chat import ChatModel
from shared.errors import AssistantError, ModelCallError

MESSAGES = [{"role": "system", "content": "RULES"}, {"role": "user", "content": "hola"}]


def _response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _model(create, timeout=5):
    client = MagicMock()
    client.chat.completions.create = create
    return ChatModel(client=client, model="test-model", timeout=timeout, settings={"max_tokens": 50})


def test_complete_returns_stripped_text():
    create = AsyncMock(return_value=_response("  ¡Hola!  \n"))
    model = _model(create)

    assert asyncio.run(model.complete(MESSAGES)) == "¡Hola!"
    create.assert_awaited_once_with(model="test-model", messages=MESSAGES, max_tokens=50)


@pytest.mark.parametrize("content", [None, "", "   "])
def test_empty_completion_is_model_call_error(content):
    model = _model(AsyncMock(return_value=_response(content)))
    with pytest.raises(ModelCallError):
        asyncio.run(model.complete(MESSAGES))


def test_malformed_response_is_model_call_error():
    model = _model(AsyncMock(return_value=SimpleNamespace(choices=[])))
    with pytest.raises(ModelCallError):
        asyncio.run(model.complete(MESSAGES))


def test_provider_error_is_model_call_error():
    model = _model(AsyncMock(side_effect=OpenAIError("quota exceeded")))
    with pytest.raises(ModelCallError) as excinfo:
        asyncio.run(model.complete(MESSAGES))
    assert isinstance(excinfo.value.__cause__, OpenAIError)


def test_timeout_is_model_call_error():
    async def never_answers(**kwargs):
        await asyncio.sleep(1)

    model = _model(AsyncMock(side_effect=never_answers), timeout=0.01)
    with pytest.raises(ModelCallError):
        asyncio.run(model.complete(MESSAGES))


def test_model_call_error_is_an_assistant_error():
    assert issubclass(ModelCallError, AssistantError)
