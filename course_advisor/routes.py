"""
Course Advisor API Routes

Exposes the conversational recommendation pipeline via REST API.
The calling user is identified by the X-User-Id header; authentication
happens upstream.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from db import SessionLocal
from .logic.contracts import ChatReply, Conversation, ConversationSummary
from .logic.errors import ConversationNotFound, PersistenceFailure
from .logic.orchestrator import ConversationOrchestrator
from .logic.runner import build_orchestrator
from .settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai-recommendations", tags=["ai-recommendations"])

PERSISTENCE_APOLOGY = "抱歉，系统暂时无法保存对话，请稍后再试。"

_orchestrator: Optional[ConversationOrchestrator] = None


def get_orchestrator() -> ConversationOrchestrator:
    """Process-wide orchestrator; overridden in tests."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = build_orchestrator(SessionLocal, settings)
    return _orchestrator


def get_user_id(x_user_id: str = Header(default="anonymous")) -> str:
    return x_user_id


def _persistence_apology() -> PlainTextResponse:
    return PlainTextResponse(PERSISTENCE_APOLOGY, status_code=503)


def _not_found(e: ConversationNotFound) -> HTTPException:
    return HTTPException(status_code=404, detail=str(e))


# =============================================================================
# REQUEST/RESPONSE SCHEMAS
# =============================================================================

class ChatRequest(BaseModel):
    """Request body for one conversational turn."""
    message: str = Field(..., min_length=1, description="User utterance")
    conversation_id: Optional[str] = Field(
        default=None,
        alias="conversationId",
        description="Existing conversation; omit to start a new one",
    )

    class Config:
        populate_by_name = True


class StatusResponse(BaseModel):
    available: bool
    model: str
    extractor: str
    narrator: str


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("/chat", response_model=ChatReply, summary="Send a message and get course recommendations")
async def chat(
    request: ChatRequest,
    user_id: str = Depends(get_user_id),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    """
    Run one turn of the recommendation conversation.

    **Response:**
    - `type`: `recommendation` when courses are attached, else `text`
      (small talk, course details and comparisons are always `text`)
    - `courses`: Up to 5 courses with `matchScore` and `reason`
    - `updatedContext`: Criteria accumulated so far
    - `conversationId`: Conversation the turn was recorded in
    """
    try:
        return await orchestrator.submit_turn(request.conversation_id, user_id, request.message)
    except PersistenceFailure:
        return _persistence_apology()
    except ConversationNotFound as e:
        raise _not_found(e)


@router.get("/status", response_model=StatusResponse, summary="AI service status")
def status(orchestrator: ConversationOrchestrator = Depends(get_orchestrator)):
    extractor = orchestrator.extractor
    narrator = orchestrator.narrator
    llm_extraction = extractor is not None and extractor.available
    llm_narration = narrator is not None and narrator.available
    return StatusResponse(
        available=llm_extraction and llm_narration,
        model=settings.llm_model,
        extractor=extractor.name if llm_extraction else orchestrator.fallback_extractor.name,
        narrator=narrator.name if llm_narration else orchestrator.fallback_narrator.name,
    )


@router.get("/conversations", response_model=List[ConversationSummary], summary="List conversations")
def list_conversations(
    user_id: str = Depends(get_user_id),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    try:
        return orchestrator.list_conversations(user_id)
    except PersistenceFailure:
        return _persistence_apology()


@router.post("/conversations", response_model=Conversation, status_code=201, summary="Start a conversation")
def create_conversation(
    user_id: str = Depends(get_user_id),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    try:
        return orchestrator.create_conversation(user_id)
    except PersistenceFailure:
        return _persistence_apology()


@router.get("/conversations/{conversation_id}", response_model=Conversation, summary="Get a conversation")
def get_conversation(
    conversation_id: str,
    user_id: str = Depends(get_user_id),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    try:
        return orchestrator.get_conversation(conversation_id, user_id)
    except PersistenceFailure:
        return _persistence_apology()
    except ConversationNotFound as e:
        raise _not_found(e)


@router.delete("/conversations/{conversation_id}", summary="Delete a conversation")
def delete_conversation(
    conversation_id: str,
    user_id: str = Depends(get_user_id),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    try:
        orchestrator.delete_conversation(conversation_id, user_id)
    except PersistenceFailure:
        return _persistence_apology()
    except ConversationNotFound as e:
        raise _not_found(e)
    return {"success": True}


@router.delete("/conversations", summary="Delete all conversations of the user")
def delete_all_conversations(
    user_id: str = Depends(get_user_id),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    try:
        deleted = orchestrator.delete_all_conversations(user_id)
    except PersistenceFailure:
        return _persistence_apology()
    return {"success": True, "deleted": deleted}
