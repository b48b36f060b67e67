"""
catalog/__init__.py

Catalog ingestion: loading the course dataset and normalizing it into `Course` entities.
"""

from .normalizer import load_catalog, normalize, serialize_course

__all__ = [
    "load_catalog",
    "normalize",
    "serialize_course",
]
