"""
core/__init__.py

The conversational course-assistant pipeline.

This package contains the per-message logic of the assistant:
- matcher: text normalization and title similarity
- shortcut: deterministic registration-link replies
- prompt_assembler: grounded prompt construction under a size budget
- postprocess: model output rewriting and suggestion extraction
- orchestrator: per-message coordination of all of the above
"""
