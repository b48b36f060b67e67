"""
HTTP routers of the course assistant.

- messages: POST /api/messages, the per-message entry point used by the messaging collaborator
- health:   GET /health, liveness plus a short summary of the assistant state
"""
