"""
api/messages.py

Entry point for inbound chat messages.

The messaging collaborator (the WhatsApp bridge) posts every incoming message here
and relays the `reply` field back to the user when it is not null. Discarded
messages (self-originated or empty) produce `{"reply": null}`.

Endpoints:
  - POST /messages: Run one conversation turn and return the reply text.
"""

import logging
from typing import Optional

from fastapi import APIRouter

from config import CONFIG
from core.orchestrator import ConversationOrchestrator
from shared.models import InboundMessage, ReplyResponse

logger = logging.getLogger(__name__)

router = APIRouter()

_orchestrator: Optional[ConversationOrchestrator] = None


def get_orchestrator() -> ConversationOrchestrator:
    """
    Return the process-wide orchestrator, building it on first use.

    The orchestrator owns the catalog and the session store, so all requests must
    share the same instance.
    """
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = ConversationOrchestrator(CONFIG)
    return _orchestrator


@router.post("/messages", response_model=ReplyResponse)
async def handle_message(message: InboundMessage) -> ReplyResponse:
    """
    Process one inbound message and return the assistant's reply.

    Args:
        message (InboundMessage): Conversation id, message text and the self-originated flag.

    Returns:
        ReplyResponse: `reply` holds the text to send, or None when nothing should be sent.
            Pipeline failures are already converted into the apology text by the orchestrator,
            so this endpoint answers 200 for every well-formed request.
    """
    logger.info(
        "[handle_message] Received message for conversation %s (%d chars)",
        message.conversation_id, len(message.text or ""),
    )
    reply = await get_orchestrator().handle_message(message)
    return ReplyResponse(reply=reply)
