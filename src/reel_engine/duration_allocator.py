"""Distribute a total duration across scenes by narration word count."""

from models.story import Scene

MIN_SCENE_SECONDS = 0.01


def allocate_durations(scenes: list[Scene], total: float) -> list[float]:
    """Compute per-scene durations proportional to max(words, 1).

    Values are rounded to 2 decimals. The rounding residual goes to the
    heaviest scene so the sum stays within 0.01s of ``total``.

    Args:
        scenes: Scenes in index order
        total: Total duration in seconds (measured narration length)

    Returns:
        Durations in the same order as ``scenes``

    Raises:
        ValueError: If there are no scenes or total cannot give each scene 0.01s
    """
    if not scenes:
        raise ValueError("Cannot allocate durations without scenes")
    if total < MIN_SCENE_SECONDS * len(scenes):
        raise ValueError(
            f"Total duration {total:.3f}s is too short for {len(scenes)} scenes"
        )

    weights = [max(scene.word_count, 1) for scene in scenes]
    weight_sum = sum(weights)
    durations = [max(round(total * w / weight_sum, 2), MIN_SCENE_SECONDS) for w in weights]

    residual = round(round(total, 2) - sum(durations), 2)
    if residual:
        heaviest = max(range(len(weights)), key=lambda i: weights[i])
        durations[heaviest] = round(durations[heaviest] + residual, 2)

    return durations


def apply_durations(scenes: list[Scene], total: float) -> list[Scene]:
    """Write freshly allocated durations onto the scenes in place."""
    for scene, duration in zip(scenes, allocate_durations(scenes, total)):
        scene.duration = duration
    return scenes
