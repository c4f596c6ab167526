"""In-process tracking of running generations: progress and cancellation."""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)


class GenerationCancelled(Exception):
    """Raised inside a run when its cancellation token has been tripped."""


class GenerationJob:
    """Progress and cancellation state for one document's generation run."""

    def __init__(self, document_id: uuid.UUID):
        self.document_id = document_id
        self.stage = "queued"  # queued, outline, writing, rendering, uploading, done, failed
        self.completed_units = 0
        self.total_units: int | None = None
        self.error: str | None = None
        self.updated_at = datetime.now(timezone.utc)
        self.task: asyncio.Task | None = None
        self._cancelled = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def raise_if_cancelled(self) -> None:
        """Checkpoint called before every LLM call, render and upload."""
        if self._cancelled.is_set():
            raise GenerationCancelled(f"Generation of {self.document_id} was cancelled")

    def update(self, stage: str | None = None, completed_units: int | None = None,
               total_units: int | None = None, error: str | None = None) -> None:
        if stage is not None:
            self.stage = stage
        if completed_units is not None:
            self.completed_units = completed_units
        if total_units is not None:
            self.total_units = total_units
        if error is not None:
            self.error = error
        self.updated_at = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "completed_units": self.completed_units,
            "total_units": self.total_units,
            "cancelled": self.cancelled,
            "error": self.error,
            "updated_at": self.updated_at.isoformat(),
        }


class GenerationJobs:
    """Registry of jobs keyed by document id.

    Finished jobs are kept for FINISHED_TTL_SECONDS so the status endpoint can
    still report their error after the run ends.
    """

    FINISHED_TTL_SECONDS = 3600

    def __init__(self):
        self._jobs: dict[uuid.UUID, GenerationJob] = {}

    def create(self, document_id: uuid.UUID) -> GenerationJob:
        self._prune()
        job = GenerationJob(document_id)
        self._jobs[document_id] = job
        return job

    def get(self, document_id: uuid.UUID) -> GenerationJob | None:
        return self._jobs.get(document_id)

    def running(self) -> list[GenerationJob]:
        return [job for job in self._jobs.values() if job.task is not None and not job.task.done()]

    def _prune(self) -> None:
        now = datetime.now(timezone.utc)
        expired = [
            doc_id
            for doc_id, job in self._jobs.items()
            if job.task is not None
            and job.task.done()
            and (now - job.updated_at).total_seconds() > self.FINISHED_TTL_SECONDS
        ]
        for doc_id in expired:
            del self._jobs[doc_id]
