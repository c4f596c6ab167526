"""Generation request lifecycle.

submit() inserts a ``pending`` row and starts a background task that walks
it through ``processing`` to ``completed`` or ``failed``:

    outline/units (LLM) → render (PDF/DOCX) → upload (Supabase Storage) → link file

Cancellation is cooperative: the run checks its job's token before every
LLM call and before rendering and uploading.
"""

import asyncio
import logging
import uuid

from document.errors import InvalidStateError
from document.renderer import CONTENT_TYPES, render_document
from document.repository import DocumentRepository
from generation.composer import write_book, write_research_paper
from generation.jobs import GenerationCancelled, GenerationJob, GenerationJobs
from generation.prompts import BOOK_CHAPTER_COUNTS
from generation.text import normalize_topic
from llm.client import LLMClient
from models.document import TERMINAL_STATUSES, Document, DocumentFormat, DocumentType
from storage.supabase_storage import StorageError, SupabaseStorage, object_key

logger = logging.getLogger(__name__)


class GenerationOrchestrator:
    def __init__(
        self,
        repository: DocumentRepository,
        storage: SupabaseStorage,
        llm: LLMClient,
        jobs: GenerationJobs | None = None,
        max_concurrent: int = 4,
    ):
        self.repository = repository
        self.storage = storage
        self.llm = llm
        self.jobs = jobs or GenerationJobs()
        self._slots = asyncio.Semaphore(max(1, max_concurrent))

    async def submit(
        self,
        user_id: str,
        prompt: str,
        doc_type: DocumentType,
        fmt: DocumentFormat,
    ) -> Document:
        """Accept a generation request and start it in the background.

        Returns the freshly inserted ``pending`` row.
        """
        doc = await self.repository.create(user_id, prompt.strip(), doc_type, fmt)
        job = self.jobs.create(doc.id)
        job.task = asyncio.create_task(self.run(doc, job), name=f"generate-{doc.id}")
        logger.info(
            "Accepted generation %s: type=%s format=%s user=%s",
            doc.id, doc_type.value, fmt.value, user_id,
        )
        return doc

    async def run(self, doc: Document, job: GenerationJob) -> bool:
        """Execute one generation run. Returns True if the row reached ``completed``."""
        async with self._slots:
            try:
                return await self._generate(doc, job)
            except GenerationCancelled:
                job.update(stage="failed", error="cancelled")
                await self.repository.mark_failed(doc.id)
                logger.info("Generation %s cancelled", doc.id)
            except Exception as e:
                job.update(stage="failed", error=f"{type(e).__name__}: {e}")
                await self.repository.mark_failed(doc.id)
                logger.exception("Generation %s failed", doc.id)
            return False

    async def _generate(self, doc: Document, job: GenerationJob) -> bool:
        job.raise_if_cancelled()
        if not await self.repository.mark_processing(doc.id):
            raise GenerationCancelled(f"Document {doc.id} is no longer pending")

        topic = normalize_topic(doc.title)
        if doc.type in BOOK_CHAPTER_COUNTS:
            manuscript = await write_book(self.llm, topic, BOOK_CHAPTER_COUNTS[doc.type], job)
        else:
            manuscript = await write_research_paper(self.llm, topic, job)

        job.raise_if_cancelled()
        job.update(stage="rendering")
        data = await asyncio.to_thread(render_document, manuscript, doc.format)
        logger.info("Generation %s: rendered %d bytes of %s", doc.id, len(data), doc.format.value)

        job.raise_if_cancelled()
        job.update(stage="uploading")
        key = object_key(doc.user_id, doc.id, doc.format.value)
        file_url = await self.storage.upload(key, data, CONTENT_TYPES[doc.format])

        if not await self.repository.mark_completed(doc.id, file_url, len(data)):
            await self._remove_orphan(key)
            raise GenerationCancelled(f"Document {doc.id} changed state during upload")

        job.update(stage="done")
        logger.info("Generation %s completed: %s", doc.id, file_url)
        return True

    async def _remove_orphan(self, key: str) -> None:
        try:
            await self.storage.delete(key)
        except StorageError:
            logger.exception("Could not remove orphaned upload %s", key)

    async def cancel(self, document_id: uuid.UUID, user_id: str) -> Document:
        """Stop an in-flight generation and mark its row ``failed``.

        Raises:
            DocumentNotFoundError, DocumentForbiddenError: Ownership check failed.
            InvalidStateError: The generation already finished.
        """
        doc = await self.repository.get_owned(document_id, user_id)
        if doc.generation_status in TERMINAL_STATUSES:
            raise InvalidStateError(f"Generation already {doc.generation_status.value}")

        self.discard(document_id)
        if not await self.repository.mark_failed(document_id):
            doc = await self.repository.get_owned(document_id, user_id)
            raise InvalidStateError(f"Generation already {doc.generation_status.value}")
        logger.info("Generation %s cancelled by user %s", document_id, user_id)
        return await self.repository.get_owned(document_id, user_id)

    def discard(self, document_id: uuid.UUID) -> None:
        """Trip the cancellation token of a running job without touching the row."""
        job = self.jobs.get(document_id)
        if job is not None:
            job.cancel()

    async def wait(self, document_id: uuid.UUID) -> None:
        """Wait for a submitted run to finish."""
        job = self.jobs.get(document_id)
        if job is not None and job.task is not None:
            await asyncio.gather(job.task, return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel every running job and wait for the runs to record it."""
        running = self.jobs.running()
        for job in running:
            job.cancel()
        if running:
            logger.info("Cancelling %d running generations", len(running))
            await asyncio.gather(*(job.task for job in running), return_exceptions=True)
