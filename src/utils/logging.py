"""Structured logging configuration for reelsmith.

Modules log through ``logging.getLogger(__name__)``; structlog formats every
record and tags it with the job and pipeline stage the worker is on.
"""

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

import structlog

current_job_id: ContextVar[str | None] = ContextVar("current_job_id", default=None)
current_stage: ContextVar[str | None] = ContextVar("current_stage", default=None)

NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "google_genai",
    "google_genai.models",
    "botocore",
    "boto3",
    "s3transfer",
    "urllib3.connectionpool",
    "multipart",
)


def add_job_context(_logger, _method_name, event_dict):
    """Structlog processor adding job_id and stage to events logged inside a job."""
    job_id = current_job_id.get()
    if job_id:
        event_dict["job_id"] = job_id
        stage = current_stage.get()
        if stage:
            event_dict["stage"] = stage
    return event_dict


def setup_logging(log_level: str = "INFO", json_output: bool = False) -> None:
    """Route stdlib logging through structlog.

    Args:
        log_level: Logging level name; unknown names fall back to INFO
        json_output: JSON lines instead of the console renderer
    """
    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_job_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def job_context(job_id: str) -> Iterator[None]:
    """Tag every log line emitted inside the block with job_id.

    Example:
        with job_context(job.id):
            await run_stages(job)
    """
    job_token = current_job_id.set(job_id)
    stage_token = current_stage.set(None)
    try:
        yield
    finally:
        current_stage.reset(stage_token)
        current_job_id.reset(job_token)


def set_stage(stage: str) -> None:
    """Record the pipeline stage for the active job's log lines."""
    current_stage.set(stage)
