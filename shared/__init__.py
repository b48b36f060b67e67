"""
shared/__init__.py

Shared models and error types used across multiple modules.

This package contains common definitions used by the catalog, the core
pipeline, the session store and the API layer:
- models: catalog entities, session state and HTTP payloads
- errors: the assistant's exception hierarchy
"""
