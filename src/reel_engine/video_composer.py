"""FFmpeg-based render composer for short vertical videos.

Takes a RenderRequest (ordered scene stills with durations, narration audio,
optional subtitle file) and renders the final video with a fixed sequence of
FFmpeg subprocess calls:

1. One still-image segment per scene (cover-scale, crop, optional grade/vignette)
2. A 0.4s glitch segment between adjacent scenes (optional)
3. Lossless concat of all segments, strictly in scene order
4. Brown-noise ambient bed (optional)
5-7. Final mux: narration + bed, burned captions, x264/AAC encode
8. ffprobe of the output for the delivered duration/size/frame rate

Intermediate files live in a job-scoped render directory that is removed
once composition finishes.
"""

import asyncio
import logging
import shutil
from pathlib import Path

from models.render import (
    GLITCH_TRANSITION_SECONDS,
    RenderOptions,
    RenderRequest,
    RenderResult,
    RenderScene,
)
from utils.ffmpeg import (
    DEFAULT_TIMEOUT,
    FFmpegError,
    parse_frame_rate,
    probe_media,
    run_ffmpeg,
)

logger = logging.getLogger(__name__)

# Intermediate segment encoding (scenes and transitions must match for -c copy)
SEGMENT_PRESET = "veryfast"
SEGMENT_CRF = 18

# Final render settings
FINAL_PRESET = "medium"
FINAL_CRF = 20
AUDIO_BITRATE = "192k"

DARK_GRADE_FILTER = "eq=brightness=-0.08:saturation=0.92"
VIGNETTE_FILTER = "vignette=PI/6"
GLITCH_FILTER = "format=yuv420p,hue=s=2,tblend=all_mode=xor,format=yuv420p"
AMBIENT_AMPLITUDE = 0.04
NARRATION_VOLUME = 1.0


class VideoComposerError(Exception):
    """Raised when an FFmpeg operation fails during composition."""

    def __init__(self, message: str, stderr: str = ""):
        super().__init__(message)
        self.stderr = stderr


def escape_filter_path(path: Path) -> str:
    """Escape a file path for use inside an FFmpeg filter argument."""
    return str(path).replace("\\", "/").replace(":", "\\:").replace("'", "\\'")


class VideoComposer:
    """Assembles the final video from a RenderRequest using FFmpeg.

    FFmpeg-first approach: every step is a subprocess call on files, the
    composer never touches frames or samples itself.
    """

    def __init__(
        self,
        work_root: Path | None = None,
        keep_intermediates: bool = False,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        self.work_root = work_root or Path("assets") / "jobs"
        self.keep_intermediates = keep_intermediates
        self.timeout = timeout

    async def compose(self, request: RenderRequest) -> RenderResult:
        """Compose the full video for one job.

        Args:
            request: Ordered scenes, narration and render options

        Returns:
            RenderResult with values probed from the encoded file

        Raises:
            VideoComposerError: If any FFmpeg step fails
        """
        if not request.scenes:
            raise VideoComposerError("Render request has no scenes to compose")
        for scene in request.scenes:
            if scene.duration <= 0:
                raise VideoComposerError(f"Scene {scene.image_path.name} has no duration")

        options = request.options
        work_dir = self.work_root / request.job_id / "render"
        work_dir.mkdir(parents=True, exist_ok=True)
        request.output_path.parent.mkdir(parents=True, exist_ok=True)

        logger.info(
            f"Composing video: {len(request.scenes)} scenes, "
            f"{options.width}x{options.height}@{options.fps}, "
            f"narration={request.narration_duration:.2f}s"
        )

        try:
            # Steps 1-3: merged silent visual track
            visual_track = await self.build_visual_track(request.scenes, options, work_dir)

            # Step 4: ambient bed
            ambient_path = None
            if options.include_music:
                ambient_path = work_dir / "ambient.wav"
                await asyncio.to_thread(
                    self._build_ambient_bed,
                    ambient_path,
                    request.narration_duration,
                )

            # Steps 5-7: mux audio, burn captions, final encode
            subtitle_path = None
            if options.include_captions and request.subtitle_path:
                if request.subtitle_path.exists():
                    subtitle_path = request.subtitle_path
                else:
                    logger.warning(f"Subtitle file missing, rendering without captions: {request.subtitle_path}")

            await asyncio.to_thread(
                self._mux_final,
                visual_track,
                request.narration_path,
                ambient_path,
                subtitle_path,
                options,
                request.output_path,
            )

            # Step 8: trust the file, not the request
            result = await asyncio.to_thread(self._probe_result, request)
            logger.info(
                f"Composition complete: {result.video_path} "
                f"({result.duration:.2f}s, {result.width}x{result.height}@{result.fps})"
            )
            return result

        finally:
            if not self.keep_intermediates:
                shutil.rmtree(work_dir, ignore_errors=True)
                logger.debug(f"Cleaned up render dir: {work_dir}")

    async def build_visual_track(
        self,
        scenes: list[RenderScene],
        options: RenderOptions,
        work_dir: Path,
    ) -> Path:
        """Render scene and transition segments and concatenate them in order.

        Returns:
            Path to the silent visual track
        """
        work_dir.mkdir(parents=True, exist_ok=True)
        segments: list[Path] = []
        glitch_path: Path | None = None

        for i, scene in enumerate(scenes):
            if i > 0 and options.glitch_transitions:
                if glitch_path is None:
                    glitch_path = work_dir / "glitch.mp4"
                    await asyncio.to_thread(self._build_glitch_segment, glitch_path, options)
                segments.append(glitch_path)

            logger.info(f"Rendering scene {i + 1}/{len(scenes)} ({scene.duration:.2f}s)")
            segment_path = work_dir / f"scene_{i + 1:03d}.mp4"
            await asyncio.to_thread(
                self._build_scene_segment, scene, segment_path, options
            )
            segments.append(segment_path)

        visual_track = work_dir / "visuals.mp4"
        await asyncio.to_thread(self._concatenate_segments, segments, visual_track)
        return visual_track

    # ------------------------------------------------------------------
    # Segments
    # ------------------------------------------------------------------

    def _scene_filter(self, options: RenderOptions) -> str:
        w, h = options.width, options.height
        filters = [
            f"scale={w}:{h}:force_original_aspect_ratio=increase",
            f"crop={w}:{h}",
            "setsar=1",
            "format=yuv420p",
        ]
        if options.dark_grade:
            filters.append(DARK_GRADE_FILTER)
        if options.vignette:
            filters.append(VIGNETTE_FILTER)
        return ",".join(filters)

    def _build_scene_segment(
        self, scene: RenderScene, output_path: Path, options: RenderOptions
    ) -> None:
        """Turn one still image into a fixed-duration, silent video segment."""
        cmd = [
            "ffmpeg", "-y",
            "-loop", "1",
            "-i", str(scene.image_path),
            "-t", f"{scene.duration:.2f}",
            "-r", str(options.fps),
            "-vf", self._scene_filter(options),
            "-c:v", "libx264",
            "-preset", SEGMENT_PRESET,
            "-crf", str(SEGMENT_CRF),
            "-pix_fmt", "yuv420p",
            "-an",
            str(output_path),
        ]
        self._run_ffmpeg(cmd, f"scene segment {output_path.name}")

    def _build_glitch_segment(self, output_path: Path, options: RenderOptions) -> None:
        """Generate the short noise/glitch transition clip."""
        source = f"rgbtestsrc=size={options.width}x{options.height}:rate={options.fps}"
        cmd = [
            "ffmpeg", "-y",
            "-f", "lavfi",
            "-i", source,
            "-t", f"{GLITCH_TRANSITION_SECONDS:.2f}",
            "-r", str(options.fps),
            "-vf", f"{GLITCH_FILTER},setsar=1",
            "-c:v", "libx264",
            "-preset", SEGMENT_PRESET,
            "-crf", str(SEGMENT_CRF),
            "-pix_fmt", "yuv420p",
            "-an",
            str(output_path),
        ]
        self._run_ffmpeg(cmd, "glitch transition")

    def _concatenate_segments(self, segments: list[Path], output_path: Path) -> None:
        """Concatenate segments with the FFmpeg concat demuxer (no re-encode).

        All inputs share codec, resolution and frame rate, which the segment
        builders guarantee.
        """
        if not segments:
            raise VideoComposerError("No segments to concatenate")

        concat_file = output_path.parent / "concat.txt"
        lines = [f"file '{escape_concat_path(segment)}'" for segment in segments]
        concat_file.write_text("\n".join(lines) + "\n", encoding="utf-8")

        cmd = [
            "ffmpeg", "-y",
            "-f", "concat",
            "-safe", "0",
            "-i", str(concat_file),
            "-c", "copy",
            str(output_path),
        ]
        self._run_ffmpeg(cmd, f"concatenate {len(segments)} segments")

    # ------------------------------------------------------------------
    # Audio and final encode
    # ------------------------------------------------------------------

    def _build_ambient_bed(self, output_path: Path, duration: float) -> None:
        """Synthesize a brown-noise bed as long as the narration.

        Left at source level; music_volume is applied once in the final mix.
        """
        cmd = [
            "ffmpeg", "-y",
            "-f", "lavfi",
            "-i", f"anoisesrc=color=brown:amplitude={AMBIENT_AMPLITUDE}:duration={duration:.2f}",
            "-ac", "2",
            str(output_path),
        ]
        self._run_ffmpeg(cmd, "ambient bed")

    def _mux_final(
        self,
        visual_track: Path,
        narration_path: Path,
        ambient_path: Path | None,
        subtitle_path: Path | None,
        options: RenderOptions,
        output_path: Path,
    ) -> None:
        """Mix audio, burn captions and encode the deliverable in one pass."""
        cmd = [
            "ffmpeg", "-y",
            "-i", str(visual_track),
            "-i", str(narration_path),
        ]

        if ambient_path is not None:
            cmd += ["-i", str(ambient_path)]
            filter_complex = (
                f"[1:a]volume={NARRATION_VOLUME}[a1];"
                f"[2:a]volume={options.music_volume}[a2];"
                f"[a1][a2]amix=inputs=2:duration=longest:normalize=0[aout]"
            )
            cmd += ["-filter_complex", filter_complex, "-map", "0:v:0", "-map", "[aout]"]
        else:
            cmd += ["-map", "0:v:0", "-map", "1:a:0"]

        if subtitle_path is not None:
            escaped = escape_filter_path(subtitle_path)
            if subtitle_path.suffix.lower() == ".ass":
                cmd += ["-vf", f"ass='{escaped}'"]
            else:
                cmd += ["-vf", f"subtitles='{escaped}'"]

        cmd += [
            "-c:v", "libx264",
            "-preset", FINAL_PRESET,
            "-crf", str(FINAL_CRF),
            "-pix_fmt", "yuv420p",
            "-r", str(options.fps),
            "-c:a", "aac",
            "-b:a", AUDIO_BITRATE,
            "-shortest",
            "-movflags", "+faststart",
            str(output_path),
        ]
        self._run_ffmpeg(cmd, "final mux and encode")

    # ------------------------------------------------------------------
    # Probing
    # ------------------------------------------------------------------

    def _probe_result(self, request: RenderRequest) -> RenderResult:
        options = request.options
        try:
            data = probe_media(request.output_path)
        except FFmpegError as e:
            raise VideoComposerError(f"Could not probe rendered video: {e}", e.stderr) from e

        streams = data.get("streams") or [{}]
        stream = streams[0]
        try:
            duration = float(data.get("format", {}).get("duration", 0.0))
        except (TypeError, ValueError):
            duration = 0.0

        return RenderResult(
            video_path=request.output_path,
            duration=round(duration, 3),
            width=int(stream.get("width") or 0),
            height=int(stream.get("height") or 0),
            fps=parse_frame_rate(stream.get("r_frame_rate"), fallback=float(options.fps)),
            requested_duration=round(request.narration_duration, 3),
            requested_width=options.width,
            requested_height=options.height,
            requested_fps=options.fps,
        )

    # ------------------------------------------------------------------
    # Utilities
    # ------------------------------------------------------------------

    def _run_ffmpeg(self, cmd: list[str], description: str = "") -> None:
        """Run FFmpeg, turning any failure into VideoComposerError."""
        try:
            run_ffmpeg(cmd, description, timeout=self.timeout)
        except FFmpegError as e:
            raise VideoComposerError(str(e), e.stderr) from e


def escape_concat_path(path: Path) -> str:
    """Escape single quotes for a concat demuxer list entry."""
    return str(path.resolve()).replace("'", "'\\''")
