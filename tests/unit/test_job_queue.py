"""Unit tests for the in-memory FIFO job queue."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from models.job import JobRequest, JobResult, JobStage, JobStatus
from reel_engine.job_queue import JobQueue, new_job_id


def make_result(story) -> JobResult:
    now = datetime.now(timezone.utc)
    return JobResult(
        video_path="/out/video.mp4",
        video_url="http://localhost:8000/media/video.mp4",
        subtitle_path="/out/captions.srt",
        description="desc",
        hashtags=["#horror"],
        story=story,
        duration_seconds=60.0,
        requested_duration=60.0,
        width=1080,
        height=1920,
        fps=30.0,
        narration_audio="/out/narration.wav",
        scene_images=[],
        captions_file="/out/captions.srt",
        styled_captions_file=None,
        created_at=now,
        completed_at=now,
    )


@pytest.mark.unit
def test_new_job_id_format():
    job_id = new_job_id()
    prefix, millis, suffix = job_id.split("_")
    assert prefix == "job"
    assert millis.isdigit()
    assert len(suffix) == 6
    assert new_job_id() != job_id


@pytest.mark.unit
class TestJobQueue:
    @pytest.mark.asyncio
    async def test_jobs_run_in_arrival_order(self, horror_story):
        order = []
        release = asyncio.Event()

        async def processor(job):
            order.append(job.request.prompt)
            if job.request.prompt == "first":
                await release.wait()
            return make_result(horror_story)

        queue = JobQueue(processor)
        first = queue.create_job(JobRequest(prompt="first"))
        second = queue.create_job(JobRequest(prompt="second"))
        await asyncio.sleep(0)

        assert queue.get_job(first.id).status == JobStatus.RUNNING
        assert queue.get_job(second.id).status == JobStatus.PENDING
        assert queue.get_job(second.id).progress == 0

        release.set()
        await queue.join()

        assert order == ["first", "second"]
        assert queue.get_job(first.id).status == JobStatus.COMPLETED
        assert queue.get_job(second.id).status == JobStatus.COMPLETED
        assert queue.get_job(second.id).completed_at >= queue.get_job(first.id).completed_at

    @pytest.mark.asyncio
    async def test_completed_job_has_result(self, horror_story):
        async def processor(job):
            return make_result(horror_story)

        queue = JobQueue(processor)
        job = queue.create_job(JobRequest(prompt="lighthouse"))
        await queue.join()

        done = queue.get_job(job.id)
        assert done.progress == 100
        assert done.stage == JobStage.COMPLETED
        assert done.result.video_url.endswith("video.mp4")
        assert done.error is None
        assert done.completed_at is not None

    @pytest.mark.asyncio
    async def test_processor_exception_marks_failed(self):
        async def processor(job):
            raise RuntimeError("Story failed content safety checks: self_harm")

        queue = JobQueue(processor)
        job = queue.create_job(JobRequest(prompt="x"))
        await queue.join()

        failed = queue.get_job(job.id)
        assert failed.status == JobStatus.FAILED
        assert failed.error == "Story failed content safety checks: self_harm"
        assert failed.result is None

    @pytest.mark.asyncio
    async def test_failure_does_not_block_next_job(self, horror_story):
        async def processor(job):
            if job.request.prompt == "bad":
                raise ValueError("boom")
            return make_result(horror_story)

        queue = JobQueue(processor)
        bad = queue.create_job(JobRequest(prompt="bad"))
        good = queue.create_job(JobRequest(prompt="good"))
        await queue.join()

        assert queue.get_job(bad.id).status == JobStatus.FAILED
        assert queue.get_job(good.id).status == JobStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_progress_is_monotonic(self, horror_story):
        seen = []

        async def processor(job):
            seen.append(queue.report_progress(job.id, 40, JobStage.DURATIONS_READY).progress)
            seen.append(queue.report_progress(job.id, 20, JobStage.STORY_READY).progress)
            seen.append(queue.report_progress(job.id, 150, JobStage.RENDER_COMPLETE).progress)
            return make_result(horror_story)

        queue = JobQueue(processor)
        queue.create_job(JobRequest(prompt="x"))
        await queue.join()

        assert seen == [40, 40, 100]

    @pytest.mark.asyncio
    async def test_terminal_jobs_refuse_updates(self):
        async def processor(job):
            raise RuntimeError("render failed")

        queue = JobQueue(processor)
        job = queue.create_job(JobRequest(prompt="x"))
        await queue.join()

        assert queue.report_progress(job.id, 90, JobStage.RENDER_COMPLETE) is None
        assert queue.mark_running(job.id) is None
        final = queue.get_job(job.id)
        assert final.status == JobStatus.FAILED
        assert final.stage == JobStage.FAILED

    def test_unknown_job(self):
        queue = JobQueue(Mock())
        assert queue.get_job("job_missing") is None
        assert queue.report_progress("job_missing", 10, JobStage.INIT) is None

    @pytest.mark.asyncio
    async def test_stats_and_listing(self, horror_story):
        release = asyncio.Event()

        async def processor(job):
            await release.wait()
            if job.request.prompt == "bad":
                raise RuntimeError("nope")
            return make_result(horror_story)

        queue = JobQueue(processor)
        jobs = [queue.create_job(JobRequest(prompt=p)) for p in ("a", "bad", "c")]
        await asyncio.sleep(0)

        stats = queue.get_stats()
        assert (stats.total, stats.running, stats.pending) == (3, 1, 2)

        release.set()
        await queue.join()

        stats = queue.get_stats()
        assert (stats.completed, stats.failed, stats.pending, stats.running) == (2, 1, 0, 0)
        assert stats.to_dict()["total"] == 3

        listed = queue.list_jobs()
        assert len(listed) == 3
        assert {job.id for job in listed} == {job.id for job in jobs}
        assert listed[0].created_at >= listed[-1].created_at

    @pytest.mark.asyncio
    async def test_listeners_receive_snapshots(self, horror_story):
        async def processor(job):
            queue.report_progress(job.id, 20, JobStage.STORY_READY)
            return make_result(horror_story)

        queue = JobQueue(processor)
        snapshots = []
        queue.add_listener(snapshots.append)

        def broken_listener(job):
            raise RuntimeError("listener crashed")

        queue.add_listener(broken_listener)
        queue.create_job(JobRequest(prompt="x"))
        await queue.join()

        assert [s.stage for s in snapshots] == [
            JobStage.INIT,
            JobStage.STORY_READY,
            JobStage.COMPLETED,
        ]
        assert [s.progress for s in snapshots] == [5, 20, 100]

    @pytest.mark.asyncio
    async def test_worker_restarts_after_idle(self, horror_story):
        async def processor(job):
            return make_result(horror_story)

        queue = JobQueue(processor)
        first = queue.create_job(JobRequest(prompt="one"))
        await queue.join()
        second = queue.create_job(JobRequest(prompt="two"))
        await queue.join()

        assert queue.get_job(first.id).status == JobStatus.COMPLETED
        assert queue.get_job(second.id).status == JobStatus.COMPLETED
