"""
core/orchestrator.py

Per-message coordination of the course assistant.

For every inbound message this module:
1. Discards self-originated and empty messages
2. Answers with the fixed notice when the assistant runs in notice mode
3. Serializes the turn on the conversation's session lock
4. Tries the deterministic registration-link shortcut
5. Otherwise retrieves candidates, assembles the grounded prompt, calls the model
   and post-processes the answer
6. Records both turns (and any suggested course) in the session

Any failure is converted into the same apology text, and a failed turn leaves the
session history untouched.
"""

from typing import Any, Dict, List, Optional

from catalog.normalizer import load_catalog
from config.logging_config import get_logger
from llm_cloud.chat import ChatModel
from monitoring.metrics import (
    ACTIVE_SESSIONS,
    ERROR_COUNT,
    MESSAGE_COUNT,
    TURN_PROCESSING_TIME,
    track_latency,
)
from services.session_store import SessionStore
from shared.errors import ModelCallError
from shared.models import ConversationSession, ConversationState, Course, InboundMessage

from .matcher import top_matches
from .postprocess import postprocess
from .prompt_assembler import assemble
from .shortcut import try_shortcut

logger = get_logger(__name__)

DEFAULT_APOLOGY_TEXT = "Perdón, tuve un problema para responderte. ¿Podés intentar de nuevo en unos minutos?"


class ConversationOrchestrator:
    """
    Ties the catalog, session store, prompt assembly, model and post-processing together.

    One instance serves the whole process: it owns the catalog (loaded once) and the
    session store shared by all concurrent message tasks.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        catalog: Optional[List[Course]] = None,
        store: Optional[SessionStore] = None,
        model: Optional[ChatModel] = None,
    ):
        """
        Initialize the orchestrator from configuration.

        Args:
            config (Dict[str, Any]): Global configuration dictionary
            catalog (Optional[List[Course]]): Pre-normalized catalog; loaded from
                `paths.catalog_full_path` when omitted
            store (Optional[SessionStore]): Session store; built from the `sessions` section when omitted
            model (Optional[ChatModel]): Model client; a ChatModel bound to CONFIG when omitted
        """
        self.config = config
        assistant_cfg = config.get("assistant", {})
        prompt_cfg = config.get("prompt", {})
        sessions_cfg = config.get("sessions", {})

        self.mode = assistant_cfg.get("mode", "grounded")
        self.top_k = int(assistant_cfg.get("top_k", 3))
        self.apology_text = assistant_cfg.get("apology_text", DEFAULT_APOLOGY_TEXT)
        self.notice_text = assistant_cfg.get("notice_text", "")
        self.system_rules = config.get("system_rules", "")
        self.catalog_budget_chars = int(prompt_cfg.get("catalog_budget_chars", 18000))
        self.catalog_fallback_entries = int(prompt_cfg.get("catalog_fallback_entries", 40))

        if catalog is None:
            catalog = load_catalog(config.get("paths", {}).get("catalog_full_path", ""))
        self.catalog = catalog

        self.store = store if store is not None else SessionStore(
            max_turns=int(sessions_cfg.get("max_turns", 6)),
            max_turn_chars=int(sessions_cfg.get("max_turn_chars", 1200)),
            idle_ttl_seconds=sessions_cfg.get("idle_ttl_seconds"),
            max_sessions=sessions_cfg.get("max_sessions"),
        )
        self.model = model if model is not None else ChatModel()

        if not self.catalog and self.mode == "grounded":
            logger.warning("Running without catalog data: answers will not be grounded")
        logger.info(
            "Initialized (mode=%s, catalog=%d courses, top_k=%d)",
            self.mode, len(self.catalog), self.top_k,
        )

    @track_latency(TURN_PROCESSING_TIME)
    async def handle_message(self, message: InboundMessage) -> Optional[str]:
        """
        Main entry point: produce the reply for one inbound message.

        Args:
            message (InboundMessage): The turn delivered by the messaging collaborator.

        Returns:
            Optional[str]: Plain text to send back, or None when the message was discarded.
        """
        text = (message.text or "").strip()
        if message.is_self_originated or not text:
            MESSAGE_COUNT.labels(outcome="discarded").inc()
            logger.debug(
                "Discarded inbound message (self_originated=%s, empty=%s)",
                message.is_self_originated, not text,
            )
            return None

        log = get_logger(__name__, message.conversation_id)
        self._enter(log, ConversationState.RECEIVED)

        if self.mode == "notice":
            MESSAGE_COUNT.labels(outcome="notice").inc()
            log.info("Notice mode: replying with the fixed notice")
            return self.notice_text

        async with self.store.conversation(message.conversation_id) as session:
            reply = await self._handle_turn(session, text, log)

        ACTIVE_SESSIONS.set(len(self.store))
        self._enter(log, ConversationState.DONE)
        return reply

    async def _handle_turn(self, session: ConversationSession, text: str, log) -> str:
        """Run one turn under the conversation's lock; never raises."""
        state = ConversationState.SHORTCUT_CHECK
        try:
            self._enter(log, state)
            reply = try_shortcut(self.store, session, text)
            if reply is not None:
                self._enter(log, ConversationState.SHORTCUT_REPLIED)
                MESSAGE_COUNT.labels(outcome="shortcut").inc()
                return reply

            state = self._enter(log, ConversationState.RETRIEVE)
            candidates = top_matches(self.catalog, text, self.top_k)

            state = self._enter(log, ConversationState.ASSEMBLE)
            messages = assemble(
                self.system_rules,
                self.catalog,
                candidates,
                session.history,
                text,
                budget_chars=self.catalog_budget_chars,
                fallback_entries=self.catalog_fallback_entries,
            )

            state = self._enter(log, ConversationState.MODEL_CALL)
            raw_reply = await self.model.complete(messages)

            state = self._enter(log, ConversationState.POSTPROCESS)
            reply, suggestion = postprocess(raw_reply)
            if not reply:
                raise ModelCallError("Model reply is empty after post-processing")
        except Exception as e:
            self._enter(log, ConversationState.FAILED)
            MESSAGE_COUNT.labels(outcome="failed").inc()
            ERROR_COUNT.labels(type="orchestrator", location=state.value).inc()
            log.error(
                "Turn failed in state %s: %s: %s", state.value, type(e).__name__, e,
                exc_info=not isinstance(e, ModelCallError),
            )
            return self.apology_text

        self.store.append_turn(session, "user", text)
        self.store.append_turn(session, "assistant", reply)
        if suggestion is not None:
            self.store.record_suggestion(session, suggestion.title, suggestion.link)
            log.info("Recorded suggested course: %s", suggestion.title or "(untitled)")

        self._enter(log, ConversationState.REPLIED)
        MESSAGE_COUNT.labels(outcome="replied").inc()
        return reply

    @staticmethod
    def _enter(log, state: ConversationState) -> ConversationState:
        # LoggerAdapter replaces per-call extra, so the state goes through the wrapped logger
        log.logger.debug(
            "State -> %s", state.value,
            extra={**log.extra, 'state': state.value},
        )
        return state

    def get_status(self) -> Dict[str, Any]:
        """
        Summarize the orchestrator for health checks.

        Returns:
            Dict[str, Any]: mode, number of catalog courses and tracked sessions.
        """
        return {
            "mode": self.mode,
            "catalog_courses": len(self.catalog),
            "sessions": len(self.store),
        }
