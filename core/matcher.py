"""
core/matcher.py

Token-level text normalization and title similarity.

The matcher produces a small ranked list of catalog entries whose titles share
words with the user's message. The list is only a hint for the model: it is
placed in the prompt as a ranking aid, and the model still decides which
course(s) to talk about.
"""

import unicodedata
from typing import Iterable, List

from shared.models import Course, MatchCandidate


def _is_letter_or_digit(ch: str) -> bool:
    category = unicodedata.category(ch)
    return category.startswith("L") or category == "Nd"


def normalize_text(s: str) -> str:
    """
    Lowercase, strip diacritics, replace non letter/digit characters by spaces and collapse whitespace.

    Examples:
        normalize_text("¡Inscripción ABIERTA!") -> "inscripcion abierta"
        normalize_text("Auxiliar en Electricidad-Domiciliaria") -> "auxiliar en electricidad domiciliaria"
    """
    if not s:
        return ""
    decomposed = unicodedata.normalize("NFD", s.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    cleaned = "".join(ch if _is_letter_or_digit(ch) else " " for ch in stripped)
    return " ".join(cleaned.split())


def _tokens(s: str) -> set:
    return set(normalize_text(s).split())


def similarity(a: str, b: str) -> float:
    """
    Jaccard index of the token sets of two strings.

    Returns 0.0 when either side has no tokens, so an empty query never matches
    everything and an empty title never matches anything.
    """
    ta = _tokens(a)
    tb = _tokens(b)
    if not ta or not tb:
        return 0.0
    return len(ta & tb) / len(ta | tb)


def top_matches(courses: Iterable[Course], query: str, k: int = 3) -> List[MatchCandidate]:
    """
    Score every course title against the query and return the k best.

    Args:
        courses (Iterable[Course]): The normalized catalog, in catalog order.
        query (str): The user's message.
        k (int): How many candidates to return.

    Returns:
        List[MatchCandidate]: Highest score first; equal scores keep catalog order.
    """
    if k <= 0:
        return []
    scored = [
        MatchCandidate(id=course.id, title=course.titulo, score=similarity(course.titulo, query))
        for course in courses
    ]
    # sorted() is stable, so ties keep catalog order
    ranked = sorted(scored, key=lambda candidate: candidate.score, reverse=True)
    return ranked[:k]
