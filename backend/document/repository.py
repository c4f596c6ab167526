"""Persistence for generated documents: CRUD over the ``documents`` table.

Status transitions are compare-and-set updates on ``generation_status`` so
that a cancellation racing a completion has exactly one winner.
"""

import logging
import uuid

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from document.errors import DocumentForbiddenError, DocumentNotFoundError
from models.document import Document, DocumentFormat, DocumentType, GenerationStatus
from storage.supabase_storage import SupabaseStorage, object_key

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (GenerationStatus.PENDING, GenerationStatus.PROCESSING)


class DocumentRepository:
    """Document rows plus the stored files they point to."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], storage: SupabaseStorage):
        self.session_factory = session_factory
        self.storage = storage

    async def create(
        self,
        user_id: str,
        title: str,
        doc_type: DocumentType,
        fmt: DocumentFormat,
    ) -> Document:
        """Insert a new ``pending`` row for a generation request."""
        async with self.session_factory() as db:
            doc = Document(
                user_id=user_id,
                title=title,
                type=doc_type,
                format=fmt,
                generation_status=GenerationStatus.PENDING,
            )
            db.add(doc)
            await db.commit()
            await db.refresh(doc)
            return doc

    async def get(self, document_id: uuid.UUID) -> Document | None:
        async with self.session_factory() as db:
            return await db.get(Document, document_id)

    async def get_owned(self, document_id: uuid.UUID, user_id: str) -> Document:
        """Fetch a row the caller owns.

        Raises:
            DocumentNotFoundError: No row with this id.
            DocumentForbiddenError: The row belongs to another user.
        """
        doc = await self.get(document_id)
        if doc is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        if doc.user_id != user_id:
            raise DocumentForbiddenError(f"Document {document_id} belongs to another user")
        return doc

    async def list_for_user(self, user_id: str) -> list[Document]:
        """All of a user's documents, newest first."""
        async with self.session_factory() as db:
            result = await db.execute(
                select(Document)
                .where(Document.user_id == user_id)
                .order_by(Document.created_at.desc())
            )
            return list(result.scalars().all())

    async def mark_processing(self, document_id: uuid.UUID) -> bool:
        return await self._transition(
            document_id,
            from_statuses=(GenerationStatus.PENDING,),
            generation_status=GenerationStatus.PROCESSING,
        )

    async def mark_completed(self, document_id: uuid.UUID, file_url: str, file_size: int) -> bool:
        """Link the uploaded file. Returns False if the run was cancelled or the row deleted."""
        return await self._transition(
            document_id,
            from_statuses=(GenerationStatus.PROCESSING,),
            generation_status=GenerationStatus.COMPLETED,
            file_url=file_url,
            file_size=file_size,
        )

    async def mark_failed(self, document_id: uuid.UUID) -> bool:
        """Move a non-terminal row to ``failed``. Returns False if it was already terminal."""
        return await self._transition(
            document_id,
            from_statuses=ACTIVE_STATUSES,
            generation_status=GenerationStatus.FAILED,
            file_url=None,
            file_size=None,
        )

    async def _transition(self, document_id: uuid.UUID, from_statuses, **values) -> bool:
        async with self.session_factory() as db:
            result = await db.execute(
                update(Document)
                .where(
                    Document.id == document_id,
                    Document.generation_status.in_(from_statuses),
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            await db.commit()
        changed = result.rowcount == 1
        if not changed:
            logger.info(
                "Document %s: transition to %s skipped (status not in %s)",
                document_id,
                values.get("generation_status"),
                [s.value for s in from_statuses],
            )
        return changed

    async def set_share_token(self, document_id: uuid.UUID, token: str) -> Document:
        """Store a share token and make the row public, unless a token is already set.

        Returns the row as stored. When another request shared it first, that
        request's token is kept and returned instead of ``token``.

        Raises:
            DocumentNotFoundError: The row is gone.
            sqlalchemy.exc.IntegrityError: The token collides with another row's.
        """
        async with self.session_factory() as db:
            await db.execute(
                update(Document)
                .where(Document.id == document_id, Document.share_token.is_(None))
                .values(share_token=token, is_public=True)
                .execution_options(synchronize_session=False)
            )
            await db.commit()
            doc = await db.get(Document, document_id)
            if doc is None:
                raise DocumentNotFoundError(f"Document {document_id} not found")
            return doc

    async def clear_share_token(self, document_id: uuid.UUID) -> None:
        async with self.session_factory() as db:
            await db.execute(
                update(Document)
                .where(Document.id == document_id)
                .values(share_token=None, is_public=False)
                .execution_options(synchronize_session=False)
            )
            await db.commit()

    async def get_by_share_token(self, token: str) -> Document | None:
        """The public row behind a share token, or None."""
        async with self.session_factory() as db:
            result = await db.execute(
                select(Document).where(
                    Document.share_token == token,
                    Document.is_public.is_(True),
                )
            )
            return result.scalar_one_or_none()

    async def delete(self, document_id: uuid.UUID, user_id: str) -> None:
        """Delete a user's document: stored file first, then the row.

        An unfinished row is moved to ``failed`` first, so a run still uploading
        loses its final transition and removes its own file. If the stored file
        cannot be deleted the row is kept, so it never points at a file that
        silently disappeared.

        Raises:
            DocumentNotFoundError, DocumentForbiddenError: Ownership check failed.
            StorageError: The stored file could not be deleted.
        """
        doc = await self.get_owned(document_id, user_id)
        if doc.generation_status in ACTIVE_STATUSES and not await self.mark_failed(document_id):
            doc = await self.get_owned(document_id, user_id)
        if doc.file_url:
            await self.storage.delete(object_key(doc.user_id, doc.id, doc.format.value))

        async with self.session_factory() as db:
            await db.execute(delete(Document).where(Document.id == document_id))
            await db.commit()
        logger.info("Deleted document %s for user %s", document_id, user_id)
