"""
conftest.py – shared pytest bootstrap.

Pytest imports this module before collecting any test file, so it is the place to:
  1) put the project root on `sys.path`, so `from core ...` / `from catalog ...` resolve
     without an editable install;
  2) provide the environment variables the configuration layer reads at import time
     (`NEBIUS_API_KEY`), so importing `config` never fails during collection.

It also offers a few small fixtures for building catalog courses and sessions.
"""

import os
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path for direct imports like `core`, `shared`, etc.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Provide required environment defaults for tests
os.environ.setdefault("NEBIUS_API_KEY", "test-key")
os.environ.setdefault("ASSISTANT_MODE", "grounded")

from shared.models import Course, CourseStatus  # noqa: E402


@pytest.fixture
def make_course():
    """Factory for catalog courses with sensible defaults."""
    def _make(course_id="c-1", titulo="Electricidad", estado=CourseStatus.OPEN, **kwargs):
        return Course(id=course_id, titulo=titulo, estado=estado, **kwargs)
    return _make


@pytest.fixture
def sample_catalog(make_course):
    return [
        make_course("c-001", "Electricidad domiciliaria", CourseStatus.OPEN,
                    formulario_inscripcion="https://forms.example/electricidad"),
        make_course("c-002", "Operador de autoelevadores", CourseStatus.IN_PROGRESS),
        make_course("c-003", "Programación web", CourseStatus.UPCOMING),
        make_course("c-004", "Panadería artesanal", CourseStatus.FINISHED),
    ]
