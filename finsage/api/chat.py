# =============================================================================
# Chat API — Financial Assistant Conversation
# =============================================================================
#
# ENDPOINTS:
#   POST   /chat          — send a message, get the assistant's reply
#   GET    /chat/history  — messages of this session, oldest first
#   DELETE /chat/history  — clear the conversation
#
# FLOW (POST /chat):
#   1. Record the user's message (skipped for blank input)
#   2. Resolve against the history BEFORE this message
#   3. Record and return the assistant's reply
#
# A failed resolution leaves the user's message in the history, the same
# way the chat window keeps it on screen next to the error notification.
# =============================================================================

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from finsage.api.deps import get_resolver, get_session
from finsage.models.requests import ChatRequest
from finsage.models.responses import (
    ChatHistoryResponse,
    ChatMessageResponse,
    ChatResponse,
)
from finsage.services.resolver import QueryResolver
from finsage.services.session import ChatMessage, SessionContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["Chat"])


@router.post(
    "",
    response_model=ChatResponse,
    summary="Ask the financial assistant a question",
)
async def chat(
    request: ChatRequest,
    session: SessionContext = Depends(get_session),
    resolver: QueryResolver = Depends(get_resolver),
) -> ChatResponse:
    history = list(session.messages)
    if request.message.strip():
        session.add_message(ChatMessage(content=request.message, role="user"))

    answer = await resolver.resolve(request.message, history, session)

    reply = session.add_message(ChatMessage(
        content=answer.text,
        role="assistant",
        confidence=answer.confidence,
    ))
    return ChatResponse(
        message=ChatMessageResponse.model_validate(reply),
        rule=answer.rule,
    )


@router.get(
    "/history",
    response_model=ChatHistoryResponse,
    summary="List this session's chat messages",
)
async def get_history(
    session: SessionContext = Depends(get_session),
) -> ChatHistoryResponse:
    return ChatHistoryResponse(
        messages=[ChatMessageResponse.model_validate(m) for m in session.messages],
    )


@router.delete(
    "/history",
    response_model=ChatHistoryResponse,
    summary="Clear this session's chat messages",
)
async def clear_history(
    session: SessionContext = Depends(get_session),
) -> ChatHistoryResponse:
    session.clear_messages()
    logger.info("Chat history cleared for session %s", session.session_id[:8])
    return ChatHistoryResponse(messages=[])
