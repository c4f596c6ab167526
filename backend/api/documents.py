"""Document library endpoints: list, status, delete and share."""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from api.errors import http_error
from api.schemas import DocumentOut
from auth.firebase import get_current_user_id
from document.errors import DocumentError
from document.repository import DocumentRepository
from document.sharing import SharingService
from generation.orchestrator import GenerationOrchestrator
from services import get_orchestrator, get_repository, get_sharing
from storage.supabase_storage import StorageError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/documents", tags=["documents"])


class DocumentListResponse(BaseModel):
    documents: list[DocumentOut]


class JobProgress(BaseModel):
    stage: str
    completed_units: int
    total_units: int | None
    cancelled: bool
    error: str | None
    updated_at: str


class DocumentStatusResponse(BaseModel):
    document_id: str
    generation_status: str
    file_url: str | None
    progress: JobProgress | None = None


class ShareResponse(BaseModel):
    share_token: str
    share_url: str


class SuccessResponse(BaseModel):
    success: bool


@router.get("/{user_id}", response_model=DocumentListResponse)
async def list_documents(
    user_id: str,
    current_user_id: str = Depends(get_current_user_id),
    repository: DocumentRepository = Depends(get_repository),
):
    """All of the signed-in user's documents, newest first."""
    if user_id != current_user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot list another user's documents")
    docs = await repository.list_for_user(user_id)
    return DocumentListResponse(documents=[DocumentOut.from_row(doc) for doc in docs])


@router.get("/{document_id}/status", response_model=DocumentStatusResponse)
async def get_document_status(
    document_id: uuid.UUID,
    user_id: str = Depends(get_current_user_id),
    repository: DocumentRepository = Depends(get_repository),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    try:
        doc = await repository.get_owned(document_id, user_id)
    except DocumentError as e:
        raise http_error(e)

    job = orchestrator.jobs.get(document_id)
    return DocumentStatusResponse(
        document_id=str(doc.id),
        generation_status=doc.generation_status.value,
        file_url=doc.file_url,
        progress=JobProgress(**job.to_dict()) if job is not None else None,
    )


@router.delete("/{document_id}", response_model=SuccessResponse)
async def delete_document(
    document_id: uuid.UUID,
    user_id: str = Depends(get_current_user_id),
    repository: DocumentRepository = Depends(get_repository),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """Delete a document and its stored file, stopping its generation if still running."""
    try:
        await repository.get_owned(document_id, user_id)
        orchestrator.discard(document_id)
        await repository.delete(document_id, user_id)
    except StorageError as e:
        logger.error("Failed to delete stored file for document %s: %s", document_id, e)
        raise http_error(e)
    except DocumentError as e:
        raise http_error(e)
    return SuccessResponse(success=True)


@router.post("/{document_id}/share", response_model=ShareResponse)
async def share_document(
    document_id: uuid.UUID,
    user_id: str = Depends(get_current_user_id),
    sharing: SharingService = Depends(get_sharing),
):
    try:
        link = await sharing.share(document_id, user_id)
    except DocumentError as e:
        raise http_error(e)
    return ShareResponse(share_token=link.share_token, share_url=link.share_url)


@router.delete("/{document_id}/share", response_model=SuccessResponse)
async def unshare_document(
    document_id: uuid.UUID,
    user_id: str = Depends(get_current_user_id),
    sharing: SharingService = Depends(get_sharing),
):
    try:
        await sharing.unshare(document_id, user_id)
    except DocumentError as e:
        raise http_error(e)
    return SuccessResponse(success=True)
