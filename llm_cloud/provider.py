"""
provider.py – External LLM client with provider routing and validation. Build and return a configured async client
-------------------------------------------------------------------------------------------------------------------
In the overall data-flow this file sits at the infrastructure layer.
It is the single place where we talk to the external LLM platform (Nebius/OpenAI endpoints).

Why a *provider* module?
• Keeps third-party SDK initialisation separate from business logic.
• Offers a tiny, easily mockable `get_client()` function instead of a
  global singleton. Tests can monkey-patch this function or inject a fake
  client without importing heavy objects.
• `llm_cloud.chat.ChatModel` simply asks for a client; it does not need to
  know about base URLs or API keys.

Validation happens at client creation time (not import time) so the module stays
importable in tests and in notice mode, where no model is ever called.

Provider routing logic:
- "nebius": Uses the Nebius OpenAI-compatible API with LLM_API_KEY/NEBIUS_API_KEY
- "openai": Uses OpenAI's official API with OPENAI_API_KEY
- Unsupported providers raise ValueError with clear error message
"""

import logging
import os
from typing import Dict, List, Tuple

from openai import AsyncOpenAI
from config import CONFIG

logger = logging.getLogger(__name__)


def require_any_env(var_names: List[str]) -> Tuple[str, str]:
    """
    Check that at least one of the specified environment variables is present and non-empty.

    The secret value is returned to the caller but never logged; only the name of the
    variable that was found is suitable for logs.

    Args:
        var_names (List[str]): Environment variable names to check, in order of preference.

    Returns:
        Tuple[str, str]: (selected_var_name, value).

    Raises:
        RuntimeError: If none of the variables is set.
    """
    for var_name in var_names:
        value = os.getenv(var_name, "")
        if value:
            return var_name, value

    var_list = ", ".join(var_names)
    raise RuntimeError(
        f"Missing required environment variable. Set one of: {var_list}"
    )


def validate_env_for_provider(config: Dict) -> None:
    """
    Validate that required environment variables are present for the configured LLM provider.

    Args:
        config (Dict): The configuration dictionary, expected to contain an 'llm' section
            with a 'provider' key set to either 'nebius' or 'openai'.

    Raises:
        ValueError: If an unsupported provider is configured.
        RuntimeError: If the provider's API key variables are missing.
    """
    llm_config = config.get("llm", {})
    provider = llm_config.get("provider", "nebius").strip().lower()

    logger.info("LLM provider selected: %s", provider)

    if provider == "nebius":
        selected_var, _ = require_any_env(["LLM_API_KEY", "NEBIUS_API_KEY"])
        logger.info("Using environment variable: %s", selected_var)
    elif provider == "openai":
        selected_var, _ = require_any_env(["OPENAI_API_KEY"])
        logger.info("Using environment variable: %s", selected_var)
    else:
        raise ValueError(f"Unsupported LLM provider: {provider}")


def get_client() -> AsyncOpenAI:
    """
    Build and return a configured OpenAI-compatible async client for the selected provider.

    Returns:
        AsyncOpenAI: A ready-to-use client. Retries are disabled: a failed call is reported
        to the user as a generic apology and the next message starts afresh.

    Raises:
        RuntimeError: If required environment variables are missing.
        ValueError: If an unsupported provider is configured.
    """
    validate_env_for_provider(CONFIG)

    llm_config = CONFIG.get("llm", {})
    provider = llm_config.get("provider", "nebius").strip().lower()

    if provider == "nebius":
        _, api_key = require_any_env(["LLM_API_KEY", "NEBIUS_API_KEY"])
        base_url = llm_config.get("base_url", "https://api.studio.nebius.com/v1/")
    else:
        _, api_key = require_any_env(["OPENAI_API_KEY"])
        base_url = "https://api.openai.com/v1"

    logger.info("LLM client configured: provider=%s | base_url=%s", provider, base_url)

    return AsyncOpenAI(
        base_url=base_url,
        api_key=api_key,
        timeout=llm_config.get("timeout", 30),  # seconds
        max_retries=0,
    )
