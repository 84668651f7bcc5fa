"""Styled ASS captions built from caption segments.

The SRT file is the portable artifact; the ASS file produced here carries
the niche caption style (font, size, colour, placement) and is the one
burned into the video.
"""

import logging
from pathlib import Path

import pysubs2

from models.caption import CaptionSegment
from models.niche import CaptionPlacement, CaptionStyle

logger = logging.getLogger(__name__)

STYLE_NAME = "Caption"

NAMED_COLORS = {
    "white": (255, 255, 255),
    "black": (0, 0, 0),
    "yellow": (255, 230, 0),
    "red": (220, 20, 20),
    "orange": (255, 140, 0),
    "green": (40, 200, 90),
    "blue": (40, 120, 255),
    "cyan": (0, 220, 230),
    "gray": (170, 170, 170),
    "grey": (170, 170, 170),
}

PLACEMENT_ALIGNMENT = {
    CaptionPlacement.TOP: pysubs2.Alignment.TOP_CENTER,
    CaptionPlacement.CENTER: pysubs2.Alignment.MIDDLE_CENTER,
    CaptionPlacement.BOTTOM: pysubs2.Alignment.BOTTOM_CENTER,
}


def parse_color(value: str, alpha: int = 0) -> pysubs2.Color:
    """Parse a colour name or #RRGGBB hex string into a pysubs2 Color.

    Unknown values fall back to white.
    """
    value = value.strip().lower()
    if value.startswith("#") and len(value) == 7:
        try:
            r, g, b = (int(value[i : i + 2], 16) for i in (1, 3, 5))
            return pysubs2.Color(r, g, b, alpha)
        except ValueError:
            logger.warning(f"Invalid caption colour '{value}', using white")
            return pysubs2.Color(255, 255, 255, alpha)
    r, g, b = NAMED_COLORS.get(value, NAMED_COLORS["white"])
    return pysubs2.Color(r, g, b, alpha)


class SubtitleEngine:
    """Builds ASS subtitle files from timed caption segments."""

    def __init__(self, fade_ms: int = 120) -> None:
        self.fade_ms = fade_ms

    def build_style(self, style: CaptionStyle, video_height: int) -> pysubs2.SSAStyle:
        # Keep bottom/top captions clear of platform UI overlays
        margin_v = int(video_height * 0.12) if style.placement != CaptionPlacement.CENTER else 0
        return pysubs2.SSAStyle(
            fontname=style.font_family,
            fontsize=style.font_size,
            bold=style.bold,
            primarycolor=parse_color(style.font_color),
            outlinecolor=parse_color(style.outline_color),
            backcolor=pysubs2.Color(0, 0, 0, 100),
            outline=3.0,
            shadow=1.5,
            borderstyle=1,
            alignment=PLACEMENT_ALIGNMENT[style.placement],
            marginl=60,
            marginr=60,
            marginv=margin_v,
        )

    def generate_ass_subtitles(
        self,
        segments: list[CaptionSegment],
        style: CaptionStyle,
        video_width: int = 1080,
        video_height: int = 1920,
    ) -> str:
        """Generate ASS subtitle file content using pysubs2.

        Args:
            segments: Timed caption segments, already word-wrapped.
            style: Caption style of the niche profile.
            video_width: Video resolution width.
            video_height: Video resolution height.

        Returns:
            ASS file content as a string.
        """
        subs = pysubs2.SSAFile()
        subs.info["PlayResX"] = str(video_width)
        subs.info["PlayResY"] = str(video_height)
        subs.styles[STYLE_NAME] = self.build_style(style, video_height)

        fade = rf"{{\fad({self.fade_ms},{self.fade_ms})}}" if self.fade_ms else ""
        for segment in segments:
            subs.events.append(
                pysubs2.SSAEvent(
                    start=segment.start_ms,
                    end=segment.end_ms,
                    text=fade + segment.text.replace("\n", r"\N"),
                    style=STYLE_NAME,
                )
            )

        return subs.to_string("ass")

    def save_ass_file(self, ass_content: str, output_path: Path) -> Path:
        """Save ASS subtitle content to a file.

        Args:
            ass_content: The ASS file content string.
            output_path: Where to write the file.

        Returns:
            The path to the written file.
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(ass_content, encoding="utf-8")
        logger.info(f"Saved ASS subtitle file: {output_path}")
        return output_path
