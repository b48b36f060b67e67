"""
core/postprocess.py

Rewrites model output into WhatsApp-safe text and extracts the suggested course.

Models tend to answer in Markdown or HTML even when told not to. WhatsApp renders
neither: it uses single-character emphasis (*bold*, _italic_) and shows everything
else literally. The rewrite pipeline below is order-sensitive:

    1. unwrap emphasis around date-like text (dates are never bold)
    2. **bold** -> *bold*, __italic__ -> _italic_
    3. [label](url) -> label: url
    4. <a href="url">label</a> -> label: url
    5. strip any remaining tags

After rewriting, the text is scanned for "Formulario de inscripción: {url}" and the
closest *title* before it. This is best effort: nothing guarantees the model follows
the expected shape, so a miss simply means no suggestion is recorded for this turn.
"""

import re
from typing import Optional, Tuple

from shared.models import SuggestedCourse

_MONTH_WORD = r"[A-Za-zÁÉÍÓÚáéíóúñÑ]+"
_DATE_LIKE = (
    r"(?:\d{4}-\d{2}-\d{2}"
    r"|\d{1,2}[/-]\d{1,2}(?:[/-]\d{2,4})?"
    rf"|\d{{1,2}}\s+de\s+{_MONTH_WORD}(?:\s+de\s+\d{{4}})?)"
)

DATE_EMPHASIS_RE = re.compile(rf"(?<![\w*])(\*\*|__|\*|_)([^*_\n]*?{_DATE_LIKE}[^*_\n]*?)\1(?![\w*])")
DOUBLE_BOLD_RE = re.compile(r"\*\*([^*\n]+?)\*\*")
DOUBLE_ITALIC_RE = re.compile(r"__([^_\n]+?)__")
MARKDOWN_LINK_RE = re.compile(r"\[([^\]\n]+)\]\(\s*(\S+?)\s*\)")
HTML_LINK_RE = re.compile(
    r"<a\s[^>]*?href\s*=\s*[\"']([^\"']+)[\"'][^>]*>(.*?)</a\s*>",
    re.IGNORECASE | re.DOTALL,
)
TAG_RE = re.compile(r"</?[A-Za-z][^>\n]*>")
EXTRA_BLANK_LINES_RE = re.compile(r"\n{3,}")

REGISTRATION_LINK_RE = re.compile(r"Formulario de inscripci[oó]n:\s*(https?://\S+)", re.IGNORECASE)
# The opening marker must touch the title, so a "* " list bullet never opens a span
EMPHASIZED_TITLE_RE = re.compile(r"\*(?=[^\s*])([^*\n]+?)(?<=\S)\*")

_URL_TRAILING_PUNCTUATION = ".,;:!?)]*_\"'"


def _markdown_link(match: "re.Match") -> str:
    label, url = match.group(1).strip(), match.group(2)
    return url if label == url else f"{label}: {url}"


def _html_link(match: "re.Match") -> str:
    url = match.group(1).strip()
    label = TAG_RE.sub("", match.group(2)).strip()
    if not label or label == url:
        return url
    return f"{label}: {url}"


def rewrite_for_channel(text: str) -> str:
    """Apply the five rewrite steps in order and tidy blank lines."""
    text = DATE_EMPHASIS_RE.sub(r"\2", text)
    text = DOUBLE_BOLD_RE.sub(r"*\1*", text)
    text = DOUBLE_ITALIC_RE.sub(r"_\1_", text)
    text = MARKDOWN_LINK_RE.sub(_markdown_link, text)
    text = HTML_LINK_RE.sub(_html_link, text)
    text = TAG_RE.sub("", text)
    return EXTRA_BLANK_LINES_RE.sub("\n\n", text).strip()


def extract_suggestion(text: str) -> Optional[SuggestedCourse]:
    """
    Find the first registration link and the emphasized title closest before it.

    Returns:
        Optional[SuggestedCourse]: None when no link is present; the title is "" when no
        emphasized span precedes the link.
    """
    link_match = REGISTRATION_LINK_RE.search(text)
    if link_match is None:
        return None
    link = link_match.group(1).rstrip(_URL_TRAILING_PUNCTUATION)
    if not link:
        return None

    title = ""
    for title_match in EMPHASIZED_TITLE_RE.finditer(text, 0, link_match.start()):
        title = title_match.group(1).strip()
    return SuggestedCourse(title=title, link=link)


def postprocess(raw_model_text: str) -> Tuple[str, Optional[SuggestedCourse]]:
    """
    Turn raw model output into channel text plus an optional suggestion.

    Args:
        raw_model_text (str): The completion text as returned by the model.

    Returns:
        Tuple[str, Optional[SuggestedCourse]]: The rewritten text, and the course whose
        registration link it mentions (None leaves the session's previous suggestion intact).
    """
    channel_text = rewrite_for_channel(raw_model_text or "")
    return channel_text, extract_suggestion(channel_text)
