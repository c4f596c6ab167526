"""Tests for generation.jobs progress tracking and cancellation tokens."""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from generation.jobs import GenerationCancelled, GenerationJob, GenerationJobs


class TestGenerationJob:
    def test_cancel_trips_checkpoint(self):
        job = GenerationJob(uuid.uuid4())
        job.raise_if_cancelled()
        job.cancel()
        assert job.cancelled
        with pytest.raises(GenerationCancelled):
            job.raise_if_cancelled()

    def test_update_and_to_dict(self):
        job = GenerationJob(uuid.uuid4())
        job.update(stage="writing", completed_units=2, total_units=7)
        data = job.to_dict()
        assert data["stage"] == "writing"
        assert data["completed_units"] == 2
        assert data["total_units"] == 7
        assert data["cancelled"] is False
        assert data["error"] is None


class TestGenerationJobs:
    async def test_running_lists_unfinished_tasks(self):
        jobs = GenerationJobs()
        release = asyncio.Event()
        busy = jobs.create(uuid.uuid4())
        busy.task = asyncio.create_task(release.wait())
        done = jobs.create(uuid.uuid4())
        done.task = asyncio.create_task(asyncio.sleep(0))
        await done.task

        assert jobs.running() == [busy]
        release.set()
        await busy.task

    async def test_finished_jobs_expire(self):
        jobs = GenerationJobs()
        old = jobs.create(uuid.uuid4())
        old.task = asyncio.create_task(asyncio.sleep(0))
        await old.task
        old.updated_at = datetime.now(timezone.utc) - timedelta(seconds=GenerationJobs.FINISHED_TTL_SECONDS + 1)

        jobs.create(uuid.uuid4())
        assert jobs.get(old.document_id) is None
