"""
core/shortcut.py

Deterministic reply for "send me the link" follow-ups.

Once the assistant has handed out a registration link, users very often answer
"pasame el link" or "¿cómo me inscribo?". Re-running the full grounded prompt for that
costs a model call and risks the model quoting a different link than the one it just
gave. When the intent matches and the session remembers a link, the reply is built
here and the model is skipped.
"""

import re
from typing import Optional

from core.matcher import normalize_text
from services.session_store import SessionStore
from shared.models import ConversationSession

REGISTRATION_REPLY_TEMPLATE = "Formulario de inscripción: {link}"

# Matched against normalize_text() output: lowercase, no accents, single spaces
LINK_INTENT_RE = re.compile(
    r"\b(link|links|linck|enlace|enlaces|url|inscrib\w*|inscripcion\w*|anot\w*|formulario\w*|form)\b"
)


def is_link_request(user_text: str) -> bool:
    return LINK_INTENT_RE.search(normalize_text(user_text)) is not None


def try_shortcut(store: SessionStore, session: ConversationSession, user_text: str) -> Optional[str]:
    """
    Answer a registration-link request from session memory, without calling the model.

    Args:
        store (SessionStore): Store used to record both turns in the session history.
        session (ConversationSession): The caller must hold the conversation's lock.
        user_text (str): The inbound message.

    Returns:
        Optional[str]: "Formulario de inscripción: {link}" when the intent matches and a link
        was previously suggested; None otherwise (and the session is left untouched).
    """
    suggestion = session.last_suggested_course
    if suggestion is None or not suggestion.link:
        return None
    if not is_link_request(user_text):
        return None

    reply = REGISTRATION_REPLY_TEMPLATE.format(link=suggestion.link)
    store.append_turn(session, "user", user_text)
    store.append_turn(session, "assistant", reply)
    return reply
