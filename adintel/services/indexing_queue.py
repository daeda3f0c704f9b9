"""Durable background queue for the indexing pipeline.

Every unit of work is written to ``indexing_jobs`` before its id is put on the
in-process queue, so jobs interrupted by a restart are picked up again by
``recover()``. A failing attempt is retried after a delay until the attempt
limit is reached, then the job and its content item are marked failed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from adintel.db.models.content_item import ContentItem, IndexStatus
from adintel.db.models.indexing_job import RESUMABLE_JOB_STATUSES, IndexingJob, JobStatus
from adintel.services.indexing_pipeline import IndexableItem, IndexingPipeline

logger = logging.getLogger(__name__)

# Payload key marking caption-only jobs (media analysed without a content item to index)
INDEX_FLAG = "index"

ITEM_STATUS_BY_JOB_STATUS: dict[str, str] = {
    JobStatus.PENDING: IndexStatus.PENDING,
    JobStatus.CAPTIONING: IndexStatus.CAPTIONING,
    JobStatus.CAPTIONED: IndexStatus.CAPTIONED,
    JobStatus.SKIPPED: IndexStatus.CAPTIONED,
    JobStatus.INDEXED: IndexStatus.INDEXED,
    JobStatus.FAILED: IndexStatus.FAILED,
}


class IndexingQueue:
    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        pipeline: IndexingPipeline,
        *,
        max_attempts: int = 3,
        retry_delay: float = 5.0,
    ) -> None:
        self._session_maker = session_maker
        self._pipeline = pipeline
        self._max_attempts = max_attempts
        self._retry_delay = retry_delay
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None
        self._retries: set[asyncio.Task[None]] = set()

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def pending(self) -> int:
        return self._queue.qsize()

    async def enqueue(self, item: IndexableItem, *, index: bool = True) -> IndexingJob:
        """Persist an intent record for ``item`` and schedule it."""
        payload: dict[str, Any] = item.to_payload()
        payload[INDEX_FLAG] = index
        async with self._session_maker() as session:
            job = IndexingJob(content_item_id=item.id, payload=payload)
            session.add(job)
            await session.commit()
        await self._mirror_item_status(item.id, JobStatus.PENDING)
        self._queue.put_nowait(job.id)
        logger.info("Queued indexing job %s for content item %s", job.id, item.id)
        return job

    async def recover(self) -> int:
        """Re-enqueue jobs left unfinished by a previous process."""
        async with self._session_maker() as session:
            result = await session.execute(
                select(IndexingJob.id)
                .where(IndexingJob.status.in_(RESUMABLE_JOB_STATUSES))
                .order_by(IndexingJob.created_at)
            )
            job_ids = list(result.scalars().all())
        for job_id in job_ids:
            self._queue.put_nowait(job_id)
        if job_ids:
            logger.info("Recovered %d unfinished indexing job(s)", len(job_ids))
        return len(job_ids)

    def start(self) -> None:
        if self.running:
            return
        self._worker = asyncio.create_task(self._run(), name="indexing-worker")

    async def stop(self) -> None:
        tasks = [*self._retries]
        if self._worker is not None:
            tasks.append(self._worker)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._worker = None
        self._retries.clear()

    async def drain(self) -> None:
        """Process queued jobs and pending retries inline until nothing is left.

        Used when no worker task is running, e.g. from tests or scripts.
        """
        while not self._queue.empty() or self._retries:
            if self._queue.empty():
                await asyncio.wait(set(self._retries))
                continue
            job_id = self._queue.get_nowait()
            try:
                await self.process(job_id)
            finally:
                self._queue.task_done()

    async def _run(self) -> None:
        while True:
            job_id = await self._queue.get()
            try:
                await self.process(job_id)
            except Exception:
                logger.exception("Indexing job %s crashed", job_id)
            finally:
                self._queue.task_done()

    async def process(self, job_id: str) -> IndexingJob | None:
        """Run one attempt of a job; failures are recorded and retried, never raised."""
        async with self._session_maker() as session:
            job = await session.get(IndexingJob, job_id)
            if job is None:
                logger.warning("Indexing job %s no longer exists", job_id)
                return None
            if job.status not in RESUMABLE_JOB_STATUSES:
                return job
            job.attempts += 1
            await session.commit()
            item = IndexableItem.from_payload(job.payload)
            index = bool(job.payload.get(INDEX_FLAG, True))
            captioned_summary = job.summary

        async def on_stage(stage: JobStatus, summary: str | None) -> None:
            fields: dict[str, Any] = {"status": stage}
            if summary is not None:
                fields["summary"] = summary
            await self._update_job(job_id, item.id, **fields)

        try:
            outcome = await self._pipeline.ensure_indexed(
                item,
                captioned_summary=captioned_summary,
                index=index,
                require_item=True,
                on_stage=on_stage,
            )
        except Exception as e:
            logger.exception("Indexing attempt %d for %s failed", job.attempts, item.id)
            return await self._record_failure(job_id, item.id, job.attempts, e)

        if outcome.deleted:
            return await self._update_job(
                job_id, item.id, status=JobStatus.SKIPPED, last_error="Content item deleted"
            )
        final = JobStatus.INDEXED if index else JobStatus.SKIPPED
        if outcome.result is not None and outcome.result.skipped:
            logger.info("Content item %s was already indexed", item.id)
        return await self._update_job(
            job_id, item.id, status=final, summary=outcome.summary, last_error=None
        )

    async def _record_failure(
        self, job_id: str, item_id: str, attempts: int, error: Exception
    ) -> IndexingJob | None:
        message = str(error) or error.__class__.__name__
        if attempts >= self._max_attempts:
            logger.error(
                "Giving up on content item %s after %d attempt(s): %s", item_id, attempts, message
            )
            return await self._update_job(
                job_id, item_id, status=JobStatus.FAILED, last_error=message
            )
        job = await self._update_job(job_id, item_id, last_error=message)
        self._schedule_retry(job_id)
        return job

    def _schedule_retry(self, job_id: str) -> None:
        async def requeue() -> None:
            await asyncio.sleep(self._retry_delay)
            self._queue.put_nowait(job_id)

        task = asyncio.create_task(requeue())
        self._retries.add(task)
        task.add_done_callback(self._retries.discard)

    async def _update_job(self, job_id: str, item_id: str, **fields: Any) -> IndexingJob | None:
        async with self._session_maker() as session:
            job = await session.get(IndexingJob, job_id)
            if job is None:
                return None
            for key, value in fields.items():
                setattr(job, key, value)
            await session.commit()
        if "status" in fields:
            await self._mirror_item_status(item_id, fields["status"])
        return job

    async def _mirror_item_status(self, item_id: str, job_status: str) -> None:
        async with self._session_maker() as session:
            await session.execute(
                update(ContentItem)
                .where(ContentItem.id == item_id)
                .values(index_status=ITEM_STATUS_BY_JOB_STATUS[job_status])
            )
            await session.commit()
