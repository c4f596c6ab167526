"""Public share links for completed documents."""

import logging
import secrets
import uuid
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from document.errors import DocumentNotFoundError, InvalidStateError
from document.repository import DocumentRepository
from models.document import Document, GenerationStatus

logger = logging.getLogger(__name__)

TOKEN_BYTES = 16
MAX_TOKEN_ATTEMPTS = 5


def generate_share_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


@dataclass
class ShareLink:
    share_token: str
    share_url: str


class SharingService:
    def __init__(self, repository: DocumentRepository, public_base_url: str):
        self.repository = repository
        self.public_base_url = public_base_url.rstrip("/")

    def share_url(self, token: str) -> str:
        return f"{self.public_base_url}/share/{token}"

    async def share(self, document_id: uuid.UUID, user_id: str) -> ShareLink:
        """Make a completed document public and return its link.

        Sharing an already shared document returns the existing token.

        Raises:
            DocumentNotFoundError, DocumentForbiddenError: Ownership check failed.
            InvalidStateError: The document has no file yet.
        """
        doc = await self.repository.get_owned(document_id, user_id)
        if doc.generation_status != GenerationStatus.COMPLETED:
            raise InvalidStateError(
                f"Only completed documents can be shared (status: {doc.generation_status.value})"
            )
        if doc.is_public and doc.share_token:
            return ShareLink(doc.share_token, self.share_url(doc.share_token))

        for attempt in range(1, MAX_TOKEN_ATTEMPTS + 1):
            token = generate_share_token()
            try:
                doc = await self.repository.set_share_token(document_id, token)
            except IntegrityError:
                logger.warning("Share token collision for document %s (attempt %d)", document_id, attempt)
                continue
            if doc.share_token != token:
                logger.info("Document %s was already shared, keeping its token", document_id)
            else:
                logger.info("Document %s shared by user %s", document_id, user_id)
            return ShareLink(doc.share_token, self.share_url(doc.share_token))

        raise RuntimeError(f"Could not allocate a unique share token after {MAX_TOKEN_ATTEMPTS} attempts")

    async def unshare(self, document_id: uuid.UUID, user_id: str) -> None:
        """Revoke a document's share link."""
        await self.repository.get_owned(document_id, user_id)
        await self.repository.clear_share_token(document_id)
        logger.info("Document %s unshared by user %s", document_id, user_id)

    async def get_shared(self, token: str) -> Document:
        """Look up a public document by token; no ownership check.

        Raises:
            DocumentNotFoundError: Unknown token or the document is not public.
        """
        doc = await self.repository.get_by_share_token(token)
        if doc is None:
            raise DocumentNotFoundError("Document not found or not shared")
        return doc
