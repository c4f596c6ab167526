"""Generation endpoints: one per document type, plus cancellation."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field, field_validator

from api.errors import http_error
from auth.firebase import get_current_user_id
from document.errors import DocumentError
from generation.orchestrator import GenerationOrchestrator
from models.document import DocumentFormat, DocumentType
from services import get_orchestrator

router = APIRouter(prefix="/api", tags=["generation"])

MAX_PROMPT_LENGTH = 500


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(..., max_length=MAX_PROMPT_LENGTH)
    user_id: str = Field(..., alias="userId", min_length=1)
    format: DocumentFormat = DocumentFormat.PDF

    @field_validator("prompt")
    @classmethod
    def _prompt_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("prompt must not be empty")
        return value


class GenerationAccepted(BaseModel):
    document_id: str
    type: str
    format: str
    generation_status: str


class CancelRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    document_id: uuid.UUID = Field(..., alias="documentId")


class CancelResponse(BaseModel):
    success: bool
    document_id: str
    generation_status: str


async def _accept(
    body: GenerateRequest,
    doc_type: DocumentType,
    user_id: str,
    orchestrator: GenerationOrchestrator,
) -> GenerationAccepted:
    if body.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="userId does not match the signed-in user")
    doc = await orchestrator.submit(user_id, body.prompt, doc_type, body.format)
    return GenerationAccepted(
        document_id=str(doc.id),
        type=doc.type.value,
        format=doc.format.value,
        generation_status=doc.generation_status.value,
    )


@router.post("/generateBookSmall", response_model=GenerationAccepted, status_code=status.HTTP_202_ACCEPTED)
async def generate_book_small(
    body: GenerateRequest,
    user_id: str = Depends(get_current_user_id),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """Five-chapter book."""
    return await _accept(body, DocumentType.BOOK_SMALL, user_id, orchestrator)


@router.post("/generateBookMed", response_model=GenerationAccepted, status_code=status.HTTP_202_ACCEPTED)
async def generate_book_medium(
    body: GenerateRequest,
    user_id: str = Depends(get_current_user_id),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """Ten-chapter book."""
    return await _accept(body, DocumentType.BOOK_MEDIUM, user_id, orchestrator)


@router.post("/generateBookLong", response_model=GenerationAccepted, status_code=status.HTTP_202_ACCEPTED)
async def generate_book_long(
    body: GenerateRequest,
    user_id: str = Depends(get_current_user_id),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """Fifteen-chapter book."""
    return await _accept(body, DocumentType.BOOK_LONG, user_id, orchestrator)


@router.post("/generateResearchPaperLong", response_model=GenerationAccepted, status_code=status.HTTP_202_ACCEPTED)
async def generate_research_paper_long(
    body: GenerateRequest,
    user_id: str = Depends(get_current_user_id),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """Research paper with the fixed section template."""
    return await _accept(body, DocumentType.RESEARCH_LONG, user_id, orchestrator)


@router.post("/cancelGeneration", response_model=CancelResponse)
async def cancel_generation(
    body: CancelRequest,
    user_id: str = Depends(get_current_user_id),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """Stop an in-flight generation before its next step."""
    try:
        doc = await orchestrator.cancel(body.document_id, user_id)
    except DocumentError as e:
        raise http_error(e)
    return CancelResponse(
        success=True,
        document_id=str(doc.id),
        generation_status=doc.generation_status.value,
    )
