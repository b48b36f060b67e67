"""
Per-conversation session memory with per-key serialization.

Each conversation (one user's message thread) gets a small, bounded session: the last
few user/assistant turns and the last course whose registration link was handed out.
Sessions live in process memory only and are lost on restart.

Messages are handled by independent asyncio tasks, and a single turn suspends while the
model answers. Without coordination two messages from the same user could interleave and
scramble the history or overwrite the suggested course with stale data. The store therefore
hands out sessions only through `conversation()`, an async context manager that holds a
per-conversation lock for the whole turn; different conversations never wait on each other.

The store also bounds its own size: idle sessions can be evicted by a periodic job
(see `services.session_janitor`), and creating a session beyond `max_sessions` evicts
the least recently used one. Sessions with a turn in flight are never evicted.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, Optional

from shared.models import ConversationSession, SuggestedCourse, Turn

logger = logging.getLogger(__name__)

ROLES = ("user", "assistant")


class SessionStore:
    """
    Process-scoped store of conversation sessions.

    Only three operations mutate a session: `get_or_create`, `append_turn` and
    `record_suggestion`. Callers obtain sessions through `conversation()` so that
    every read-modify-write sequence for one conversation runs under its lock.
    """

    def __init__(
        self,
        max_turns: int = 6,
        max_turn_chars: int = 1200,
        idle_ttl_seconds: Optional[float] = None,
        max_sessions: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            max_turns (int): History length kept per session (6 = three user/assistant pairs).
            max_turn_chars (int): Each stored turn is clamped to this many characters.
            idle_ttl_seconds (Optional[float]): Sessions idle longer than this are evicted by
                `evict_idle`. None disables idle eviction.
            max_sessions (Optional[int]): Upper bound on tracked conversations. None means unbounded.
            clock (Callable[[], float]): Monotonic time source, injectable for tests.
        """
        self.max_turns = max_turns
        self.max_turn_chars = max_turn_chars
        self.idle_ttl_seconds = idle_ttl_seconds
        self.max_sessions = max_sessions
        self._clock = clock
        self._sessions: "OrderedDict[str, ConversationSession]" = OrderedDict()
        self._locks: Dict[str, asyncio.Lock] = {}
        self._active: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, conversation_id: str) -> bool:
        return conversation_id in self._sessions

    @asynccontextmanager
    async def conversation(self, conversation_id: str) -> AsyncIterator[ConversationSession]:
        """
        Hold the conversation's lock and yield its session (created on first use).

        Example:
            async with store.conversation("5493415550000@c.us") as session:
                store.append_turn(session, "user", "hola")
        """
        self._active[conversation_id] = self._active.get(conversation_id, 0) + 1
        lock = self._locks.setdefault(conversation_id, asyncio.Lock())
        try:
            async with lock:
                yield self.get_or_create(conversation_id)
        finally:
            remaining = self._active[conversation_id] - 1
            if remaining:
                self._active[conversation_id] = remaining
            else:
                del self._active[conversation_id]

    def get_or_create(self, conversation_id: str) -> ConversationSession:
        """
        Return the session for a conversation, creating an empty one on first access.
        """
        session = self._sessions.get(conversation_id)
        if session is None:
            self._evict_overflow()
            session = ConversationSession(conversation_id=conversation_id, last_seen=self._clock())
            self._sessions[conversation_id] = session
            logger.debug("Session created", extra={'conversation_id': conversation_id})
        else:
            self._sessions.move_to_end(conversation_id)
            session.last_seen = self._clock()
        return session

    def append_turn(self, session: ConversationSession, role: str, text: str) -> None:
        """
        Append a turn clamped to `max_turn_chars`, then keep only the last `max_turns` entries.

        Raises:
            ValueError: If role is not 'user' or 'assistant'.
        """
        if role not in ROLES:
            raise ValueError(f"Unsupported role: {role}")
        session.history.append(Turn(role=role, text=(text or "")[: self.max_turn_chars]))
        if len(session.history) > self.max_turns:
            del session.history[: len(session.history) - self.max_turns]
        session.last_seen = self._clock()

    def record_suggestion(self, session: ConversationSession, title: str, link: str) -> None:
        """Remember the course whose registration link was just handed out, replacing any previous one."""
        session.last_suggested_course = SuggestedCourse(title=title, link=link)

    def evict_idle(self, now: Optional[float] = None) -> int:
        """
        Drop sessions idle for longer than `idle_ttl_seconds`.

        Returns:
            int: Number of sessions evicted.
        """
        if self.idle_ttl_seconds is None:
            return 0
        now = self._clock() if now is None else now
        expired = [
            conversation_id
            for conversation_id, session in self._sessions.items()
            if now - session.last_seen > self.idle_ttl_seconds and not self._is_busy(conversation_id)
        ]
        for conversation_id in expired:
            self._discard(conversation_id)
        if expired:
            logger.info("Evicted %d idle sessions (%d remaining)", len(expired), len(self._sessions))
        return len(expired)

    def _evict_overflow(self) -> None:
        if self.max_sessions is None:
            return
        # OrderedDict iteration starts with the least recently used session
        for conversation_id in list(self._sessions):
            if len(self._sessions) < self.max_sessions:
                break
            if not self._is_busy(conversation_id):
                self._discard(conversation_id)
                logger.info("Evicted least recently used session", extra={'conversation_id': conversation_id})

    def _is_busy(self, conversation_id: str) -> bool:
        return conversation_id in self._active

    def _discard(self, conversation_id: str) -> None:
        self._sessions.pop(conversation_id, None)
        self._locks.pop(conversation_id, None)
