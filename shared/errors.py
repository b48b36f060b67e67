"""
shared/errors.py

Exception types raised by the assistant's core.

Only two failures have a name of their own: the catalog could not be loaded, or the
language model call did not produce a usable answer. Everything the orchestrator
catches is converted into the same user-facing apology text; these types exist so
that logs and metrics can tell the cases apart.
"""


class AssistantError(Exception):
    """Base class for all errors raised by the assistant."""


class LoadError(AssistantError):
    """The catalog source is missing, unreadable, or its root is not a sequence."""


class ModelCallError(AssistantError):
    """
    The model call failed: network or quota error, timeout, or an empty/malformed response.

    Provider exceptions are chained as `__cause__` and never reach the user.
    """
