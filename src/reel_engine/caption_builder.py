"""Sentence-level caption timing and SRT serialization."""

import logging
import math
import re
from pathlib import Path

from models.caption import CaptionSegment
from models.story import Scene, count_words

logger = logging.getLogger(__name__)

MAX_LINE_WIDTH = 36

_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]*")
_WORD_CHAR_RE = re.compile(r"\w")


def split_sentences(text: str) -> list[str]:
    """Split narration on terminal punctuation (., !, ?).

    A trailing fragment without terminal punctuation is kept as its own
    sentence. Fragments with no word characters are dropped.
    """
    collapsed = " ".join(text.split())
    sentences = []
    for match in _SENTENCE_RE.finditer(collapsed):
        sentence = match.group(0).strip()
        if sentence and _WORD_CHAR_RE.search(sentence):
            sentences.append(sentence)
    return sentences


def wrap_caption_text(text: str, max_width: int = MAX_LINE_WIDTH) -> str:
    """Greedy word wrap; words are never broken, long words get their own line."""
    lines: list[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if len(candidate) <= max_width or not current:
            current = candidate
        else:
            lines.append(current)
            current = word
    if current:
        lines.append(current)
    return "\n".join(lines)


def build_caption_segments(
    scenes: list[Scene], max_width: int = MAX_LINE_WIDTH
) -> list[CaptionSegment]:
    """Build time-aligned caption segments for scenes with durations.

    Each sentence gets a slice of its scene proportional to its word count.
    Boundaries are rounded to 2 decimals and shared between neighbours, and
    a scene's last segment ends exactly where the scene ends.

    Raises:
        ValueError: If a scene has no allocated duration
    """
    segments: list[CaptionSegment] = []
    cursor = 0.0

    for scene in scenes:
        if scene.duration is None:
            raise ValueError(f"Scene {scene.index} has no allocated duration")

        scene_start = round(cursor, 2)
        scene_end = round(cursor + scene.duration, 2)
        sentences = split_sentences(scene.narration)
        if not sentences and scene.narration.strip():
            sentences = [" ".join(scene.narration.split())]

        if sentences:
            word_counts = [count_words(s) for s in sentences]
            total_words = sum(word_counts)
            if total_words > 0:
                portions = [w / total_words for w in word_counts]
            else:
                portions = [1 / len(sentences)] * len(sentences)

            elapsed = 0.0
            start = scene_start
            for position, (sentence, portion) in enumerate(zip(sentences, portions)):
                elapsed += portion
                remaining = len(sentences) - 1 - position
                if remaining == 0:
                    end = scene_end
                else:
                    # each later segment still needs at least 0.01s
                    end = round(scene_start + scene.duration * elapsed, 2)
                    ceiling = round(scene_end - 0.01 * remaining, 2)
                    end = max(min(max(end, round(start + 0.01, 2)), ceiling), start)
                segments.append(
                    CaptionSegment(
                        index=len(segments) + 1,
                        start=start,
                        end=end,
                        text=wrap_caption_text(sentence, max_width),
                        scene_index=scene.index,
                    )
                )
                start = end
        else:
            logger.warning(f"Scene {scene.index} has no caption text")

        cursor += scene.duration

    return segments


def format_srt_timestamp(seconds: float) -> str:
    """Format seconds as HH:MM:SS,mmm, flooring to the millisecond."""
    total_ms = max(0, math.floor(round(seconds * 1000, 6)))
    hours, remainder = divmod(total_ms, 3_600_000)
    minutes, remainder = divmod(remainder, 60_000)
    secs, millis = divmod(remainder, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


def segments_to_srt(segments: list[CaptionSegment]) -> str:
    """Serialize segments as SRT text."""
    blocks = [
        f"{segment.index}\n"
        f"{format_srt_timestamp(segment.start)} --> {format_srt_timestamp(segment.end)}\n"
        f"{segment.text}\n"
        for segment in segments
    ]
    return "\n".join(blocks)


def write_srt(segments: list[CaptionSegment], output_path: Path) -> Path:
    """Write segments to an SRT file and return its path."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(segments_to_srt(segments), encoding="utf-8")
    logger.info(f"Wrote {len(segments)} caption segments to {output_path}")
    return output_path
