"""Journal API controller: conversation finalization and finalized conversations."""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.dependencies import get_completion_client, get_current_user, get_db, validate_token
from app.domains.journal.finalizer import create_finalizer
from app.domains.journal.repository import ConversationStore
from app.domains.message.service import MessageService
from app.exceptions.base import BaseAppException, NotFoundError
from app.schemas.journal import (
    ConversationDetailResponse,
    ConversationSummaryListResponse,
    ConversationSummaryResponse,
    GenerateSummaryRequest,
)
from app.schemas.message import MessageResponse
from models.user import User


logger = logging.getLogger(__name__)

summary_router = APIRouter(tags=["journal"], dependencies=[Depends(validate_token)])

router = APIRouter(
    prefix="/api/conversations",
    tags=["journal"],
    dependencies=[Depends(validate_token)],
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@summary_router.post("/generate-summary")
async def generate_summary(
    request: Request,
    body: GenerateSummaryRequest = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Summarize an ephemeral conversation and store it permanently.

    Returns ``{summary, conversationId}``. Failure details stay in the logs;
    the caller only sees a generic message and decides whether to retry.
    """
    if not body.ephemeral_conversation_id or not body.user_id:
        return _error(status.HTTP_400_BAD_REQUEST, "Missing required parameters")

    if body.user_id != current_user.id:
        return _error(status.HTTP_403_FORBIDDEN, "Cannot finalize another user's conversation")

    logger.info(
        f"Generating summary for conversation {body.ephemeral_conversation_id} and user {body.user_id}"
    )

    try:
        finalizer = create_finalizer(db, get_completion_client(request))
        result = await finalizer.finalize_within(
            body.ephemeral_conversation_id,
            body.user_id,
            timeout=settings.summary_request_timeout,
        )
    except BaseAppException as e:
        logger.error(f"Failed to generate or save summary: {e.message}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to generate or save summary")
    except Exception as e:
        logger.error(f"Error in generate-summary route: {str(e)}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    return result.model_dump(mode="json", by_alias=True)


@router.get("/", response_model=ConversationSummaryListResponse)
async def list_conversations(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the user's finalized conversations, most recent first."""
    store = ConversationStore(db)
    summaries = await store.list_summaries(current_user.id)
    return ConversationSummaryListResponse(
        conversations=[ConversationSummaryResponse.model_validate(s) for s in summaries],
        total=len(summaries),
    )


@router.get("/{conversation_id}", response_model=ConversationDetailResponse)
async def get_conversation(
    conversation_id: UUID = Path(..., description="Permanent conversation ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a finalized conversation with its messages."""
    summary = await ConversationStore(db).get_summary(current_user.id, conversation_id)
    if not summary:
        raise NotFoundError("Conversation not found")

    messages = await MessageService(db).get_finalized_messages(current_user.id, conversation_id)
    return ConversationDetailResponse(
        **ConversationSummaryResponse.model_validate(summary).model_dump(),
        messages=[MessageResponse.model_validate(m) for m in messages],
    )
