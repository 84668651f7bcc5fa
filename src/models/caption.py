"""Caption segment model."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CaptionSegment:
    """One time-bounded subtitle entry (seconds)."""

    index: int
    start: float
    end: float
    text: str
    scene_index: int = 0

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def start_ms(self) -> int:
        return int(round(self.start * 1000))

    @property
    def end_ms(self) -> int:
        return int(round(self.end * 1000))
