"""Public, unauthenticated access to shared documents."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.errors import http_error
from api.schemas import SharedDocumentOut
from document.errors import DocumentError
from document.sharing import SharingService
from services import get_sharing

router = APIRouter(prefix="/api/share", tags=["share"])


class SharedDocumentResponse(BaseModel):
    document: SharedDocumentOut


@router.get("/{share_token}", response_model=SharedDocumentResponse)
async def get_shared_document(
    share_token: str,
    sharing: SharingService = Depends(get_sharing),
):
    try:
        doc = await sharing.get_shared(share_token)
    except DocumentError as e:
        raise http_error(e)
    return SharedDocumentResponse(document=SharedDocumentOut.from_row(doc))
