"""In-memory job queue with a single asyncio worker.

Jobs run one at a time in arrival order. Records are frozen Job snapshots
swapped into the map under a lock, so a reader always gets a consistent
record. Terminal records are never updated again.
"""

import asyncio
import logging
import threading
import time
import uuid
from collections import deque
from dataclasses import replace
from typing import Awaitable, Callable

from models.job import (
    JOB_TYPE_SHORT_VIDEO,
    Job,
    JobRequest,
    JobResult,
    JobStage,
    JobStatus,
    QueueStats,
    utc_now,
)

logger = logging.getLogger(__name__)

RUNNING_PROGRESS = 5

JobProcessor = Callable[[Job], Awaitable[JobResult]]
JobListener = Callable[[Job], None]


def new_job_id() -> str:
    return f"job_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


class JobQueue:
    """FIFO queue of pipeline jobs processed by one worker task."""

    def __init__(self, processor: JobProcessor):
        """Initialize the queue.

        Args:
            processor: Coroutine run for each job; returns the JobResult or
                raises, in which case the job is marked failed
        """
        self._processor = processor
        self._jobs: dict[str, Job] = {}
        self._lock = threading.Lock()
        self._pending: deque[str] = deque()
        self._worker: asyncio.Task | None = None
        self._listeners: list[JobListener] = []
        # Keep references to background tasks to prevent garbage collection
        self._background_tasks: set = set()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create_job(self, request: JobRequest, job_type: str = JOB_TYPE_SHORT_VIDEO) -> Job:
        """Register a pending job and make sure the worker is running.

        Must be called from within a running event loop.
        """
        job = Job(id=new_job_id(), type=job_type, request=request)
        with self._lock:
            self._jobs[job.id] = job
        self._pending.append(job.id)
        logger.info(f"Queued job {job.id} ({len(self._pending)} waiting)")
        self._ensure_worker()
        return job

    def get_job(self, job_id: str) -> Job | None:
        with self._lock:
            return self._jobs.get(job_id)

    def list_jobs(self) -> list[Job]:
        with self._lock:
            jobs = list(self._jobs.values())
        return sorted(jobs, key=lambda job: job.created_at, reverse=True)

    def get_stats(self) -> QueueStats:
        with self._lock:
            statuses = [job.status for job in self._jobs.values()]
        return QueueStats(
            total=len(statuses),
            pending=statuses.count(JobStatus.PENDING),
            running=statuses.count(JobStatus.RUNNING),
            completed=statuses.count(JobStatus.COMPLETED),
            failed=statuses.count(JobStatus.FAILED),
        )

    def add_listener(self, listener: JobListener) -> None:
        """Call listener with the new snapshot after every update."""
        self._listeners.append(listener)

    async def join(self) -> None:
        """Wait until every queued job has reached a terminal state."""
        while self._worker is not None and not self._worker.done():
            await asyncio.shield(self._worker)

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def mark_running(self, job_id: str) -> Job | None:
        return self._update(
            job_id,
            status=JobStatus.RUNNING,
            progress=RUNNING_PROGRESS,
            stage=JobStage.INIT,
        )

    def report_progress(self, job_id: str, progress: int, stage: JobStage) -> Job | None:
        """Record stage progress. Lower values never replace higher ones."""
        return self._update(job_id, progress=progress, stage=stage)

    def complete(self, job_id: str, result: JobResult) -> Job | None:
        return self._update(
            job_id,
            status=JobStatus.COMPLETED,
            progress=100,
            stage=JobStage.COMPLETED,
            result=result,
            completed_at=utc_now(),
        )

    def fail(self, job_id: str, error: str) -> Job | None:
        return self._update(
            job_id,
            status=JobStatus.FAILED,
            stage=JobStage.FAILED,
            error=error,
            completed_at=utc_now(),
        )

    def _update(self, job_id: str, progress: int | None = None, **changes) -> Job | None:
        with self._lock:
            current = self._jobs.get(job_id)
            if current is None:
                logger.warning(f"Update for unknown job {job_id} ignored")
                return None
            if current.status.is_terminal:
                logger.warning(
                    f"Job {job_id} is already {current.status.value}; update refused"
                )
                return None
            if progress is not None:
                changes["progress"] = max(current.progress, min(progress, 100))
            updated = replace(current, updated_at=utc_now(), **changes)
            self._jobs[job_id] = updated

        for listener in self._listeners:
            try:
                listener(updated)
            except Exception as e:
                logger.warning(f"Job listener failed: {e}")
        return updated

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _ensure_worker(self) -> None:
        if self._worker is not None and not self._worker.done():
            return
        self._worker = asyncio.get_running_loop().create_task(self._run())
        self._background_tasks.add(self._worker)
        self._worker.add_done_callback(self._background_tasks.discard)

    async def _run(self) -> None:
        while self._pending:
            job_id = self._pending.popleft()
            job = self.mark_running(job_id)
            if job is None:
                continue

            started = time.monotonic()
            try:
                result = await self._processor(job)
            except Exception as e:
                logger.error(f"Job {job_id} failed: {e}")
                self.fail(job_id, str(e))
            else:
                self.complete(job_id, result)
                logger.info(f"Job {job_id} completed in {time.monotonic() - started:.1f}s")
