"""
services/__init__.py

Process-level state of the assistant: the per-conversation session store and the
scheduled job that evicts idle sessions from it.
"""
