"""Memory API controller with FastAPI endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.dependencies import get_completion_client, get_current_user, get_db, validate_token
from app.domains.journal.finalizer import create_finalizer
from app.domains.journal.summarizer import CompletionClient
from app.domains.memory.service import MemoryService
from app.exceptions.base import BaseAppException
from app.exceptions.journal import FinalizationError
from app.schemas.base import ResponseSchema
from app.schemas.memory import (
    JournalRequest,
    MemoryCreate,
    MemoryListResponse,
    MemoryResponse,
    MemoryUpdate,
)
from app.shared.pagination import PaginationParams
from models.user import User


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/memories",
    tags=["memories"],
    dependencies=[Depends(validate_token)],
)


@router.post("/", response_model=ResponseSchema, status_code=status.HTTP_201_CREATED)
async def create_memory(
    memory_data: MemoryCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a memory written by hand."""
    service = MemoryService(db)
    memory = await service.create_memory(memory_data=memory_data, user_id=current_user.id)

    return ResponseSchema(
        status="success",
        message="Memory created successfully",
        data=MemoryResponse.model_validate(memory).model_dump(mode="json"),
    )


@router.post("/journal", response_model=ResponseSchema, status_code=status.HTTP_201_CREATED)
async def journal_conversation(
    journal_request: JournalRequest = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    completion_client: CompletionClient = Depends(get_completion_client),
):
    """End a conversation and keep its journal entry as a memory."""
    try:
        finalizer = create_finalizer(db, completion_client)
        result = await finalizer.finalize_within(
            journal_request.ephemeral_conversation_id,
            current_user.id,
            timeout=settings.summary_request_timeout,
        )
    except FinalizationError as e:
        logger.error(f"Failed to save journal entry: {e.error_code} at {e.stage}: {e.message}")
        raise BaseAppException("Failed to generate or save summary", error_code="JOURNAL_ENTRY_FAILED") from e

    service = MemoryService(db)
    memory = await service.create_from_conversation(current_user.id, result, title=journal_request.title)

    return ResponseSchema(
        status="success",
        message="Journal entry saved successfully",
        data=MemoryResponse.model_validate(memory).model_dump(mode="json"),
    )


@router.get("/", response_model=MemoryListResponse)
async def list_memories(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get the user's memories, newest first."""
    service = MemoryService(db)
    result = await service.list_memories(current_user.id, PaginationParams(page=page, size=size))

    return MemoryListResponse(
        memories=[MemoryResponse.model_validate(m) for m in result["items"]],
        total=result["total"],
        page=result["page"],
        size=result["size"],
        has_next=result["has_next"],
        has_prev=result["has_prev"],
    )


@router.get("/{memory_id}", response_model=ResponseSchema)
async def get_memory(
    memory_id: UUID = Path(..., description="Memory ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a specific memory by ID."""
    service = MemoryService(db)
    memory = await service.get_memory(memory_id, current_user.id)

    return ResponseSchema(
        status="success",
        message="Memory retrieved successfully",
        data=MemoryResponse.model_validate(memory).model_dump(mode="json"),
    )


@router.put("/{memory_id}", response_model=ResponseSchema)
async def update_memory(
    memory_data: MemoryUpdate,
    memory_id: UUID = Path(..., description="Memory ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update a memory."""
    service = MemoryService(db)
    memory = await service.update_memory(memory_id, memory_data, current_user.id)

    return ResponseSchema(
        status="success",
        message="Memory updated successfully",
        data=MemoryResponse.model_validate(memory).model_dump(mode="json"),
    )


@router.delete("/{memory_id}", response_model=ResponseSchema)
async def delete_memory(
    memory_id: UUID = Path(..., description="Memory ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a memory."""
    service = MemoryService(db)
    await service.delete_memory(memory_id, current_user.id)

    return ResponseSchema(status="success", message="Memory deleted successfully", data=None)
