"""Command-line entry point for reelsmith: render one short video."""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from tqdm import tqdm

from models.job import Job, JobRequest, JobStatus, RenderOverrides
from models.story import StoryInput
from reel_engine.pipeline import JobValidationError, Orchestrator, create_orchestrator
from services.niche_registry import UnknownNicheError
from utils.config import ConfigError, load_validated_config
from utils.logging import setup_logging

logger = logging.getLogger(__name__)


class ProgressBarCallback:
    """Follows job snapshots with a tqdm bar."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        self.bar: Optional[tqdm] = None

    def __call__(self, job: Job) -> None:
        if job.id != self.job_id:
            return
        if self.bar is None:
            self.bar = tqdm(
                total=100,
                desc="Rendering",
                unit="%",
                leave=True,
                bar_format="{l_bar}{bar}| {n}/{total}% [{elapsed}]",
            )
        self.bar.n = job.progress
        self.bar.set_description(job.stage.value.replace("_", " ").title())
        self.bar.refresh()

    def close(self) -> None:
        if self.bar:
            self.bar.close()


def build_request(args: argparse.Namespace) -> JobRequest:
    """Turn parsed arguments into a JobRequest.

    Raises:
        JobValidationError: If the script file cannot be read
    """
    story = None
    if args.script:
        try:
            data = json.loads(Path(args.script).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise JobValidationError(f"Cannot read script {args.script}: {e}") from e
        story = StoryInput.from_dict(data)

    render = RenderOverrides(
        include_captions=False if args.no_captions else None,
        include_music=False if args.no_music else None,
        glitch_transitions=False if args.no_glitch else None,
        dark_grade=False if args.no_grade else None,
        vignette=False if args.no_grade else None,
    )
    return JobRequest(
        prompt=args.prompt,
        story=story,
        niche_id=args.niche,
        target_duration=args.duration,
        render=render,
    )


def display_result(console: Console, job: Job) -> None:
    if job.status != JobStatus.COMPLETED or job.result is None:
        console.print(Panel(job.error or "Unknown error", title="Job failed", style="red"))
        return

    result = job.result
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("Job", job.id)
    table.add_row("Title", result.story.title)
    table.add_row("Scenes", str(len(result.story.scenes)))
    table.add_row("Words", str(result.story.word_count))
    table.add_row("Duration", f"{result.duration_seconds:.2f}s (narration {result.requested_duration:.2f}s)")
    table.add_row("Resolution", f"{result.width}x{result.height} @ {result.fps:g} fps")
    table.add_row("Video", result.video_path)
    table.add_row("URL", result.video_url)
    table.add_row("Captions", result.subtitle_path)
    table.add_row("Description", result.description)
    table.add_row("Hashtags", " ".join(result.hashtags))
    console.print(Panel(table, title="Video ready", style="green"))


async def run_job(orchestrator: Orchestrator, request: JobRequest) -> Job:
    job = orchestrator.create_job(request)
    progress = ProgressBarCallback(job.id)
    orchestrator.queue.add_listener(progress)
    try:
        await orchestrator.join()
    finally:
        progress.close()
        await orchestrator.close()
    return orchestrator.get_job(job.id)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Reelsmith short video renderer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  reelsmith "abandoned lighthouse"                 # Generated horror story
  reelsmith "my roommate's secret" --niche reddit_stories
  reelsmith --script story.json --no-music          # Caller-supplied script
        """,
    )
    parser.add_argument("prompt", nargs="?", help="Story prompt")
    parser.add_argument("--script", help="JSON file with a caller script (title, scenes)")
    parser.add_argument("--niche", help="Niche profile id (default from config)")
    parser.add_argument("--duration", type=float, help="Target duration in seconds")
    parser.add_argument("--no-captions", action="store_true", help="Do not burn captions")
    parser.add_argument("--no-music", action="store_true", help="Skip the ambient bed")
    parser.add_argument("--no-glitch", action="store_true", help="Hard cuts between scenes")
    parser.add_argument("--no-grade", action="store_true", help="Skip dark grade and vignette")
    parser.add_argument("--log-level", help="Override LOG_LEVEL")

    args = parser.parse_args(argv)
    console = Console()

    if not args.prompt and not args.script:
        parser.error("a prompt or --script is required")

    try:
        settings = load_validated_config()
    except ConfigError as e:
        for error in e.errors:
            console.print(f"[red]Config error:[/red] {error}")
        return 1

    if args.log_level:
        settings = replace(settings, log_level=args.log_level.upper())
    setup_logging(settings.log_level, json_output=settings.log_json)

    try:
        request = build_request(args)
        orchestrator = create_orchestrator(settings)
        job = asyncio.run(run_job(orchestrator, request))
    except (JobValidationError, UnknownNicheError) as e:
        console.print(f"[red]Invalid request:[/red] {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1

    display_result(console, job)
    return 0 if job.status == JobStatus.COMPLETED else 1


if __name__ == "__main__":
    sys.exit(main())
