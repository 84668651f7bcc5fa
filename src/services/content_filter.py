"""Content safety filter for story narration.

Two rule sets are applied to every scene:

- Hard bans: topics that are never narrated. Any match marks the story
  unsafe and records the rule's label.
- Soft replacements: graphic-violence vocabulary swapped for milder words.
  These are always applied, even to stories that end up rejected.

Replacement words never match any rule, which keeps sanitize_text
idempotent.
"""

import re
from dataclasses import dataclass, field, replace

from models.story import Story, count_words

HARD_BAN_RULES: dict[str, tuple[str, ...]] = {
    "self_harm": (
        r"\bsuicid(?:e|es|al)\b",
        r"\bself[-\s]?harm(?:ing|ed)?\b",
        r"\bkill(?:s|ed|ing)?\s+(?:my|him|her|your|them|our)sel(?:f|ves)\b",
        r"\bslit(?:s|ting)?\s+(?:my|his|her|their|your)\s+wrists?\b",
        r"\bend(?:ed|ing)?\s+(?:my|his|her|their)\s+(?:own\s+)?life\b",
    ),
    "sexual_assault": (
        r"\brap(?:e|ed|es|ing|ist|ists)\b",
        r"\bsexual(?:ly)?\s+assault(?:ed|s)?\b",
        r"\bmolest(?:ed|ing|s|er|ation)?\b",
    ),
    "minors": (
        r"\bchild\s+(?:abuse|exploitation|pornography)\b",
        r"\bunderage\b",
        r"\bpedophil\w*\b",
        r"\b(?:abus(?:e|ed|ing)|groom(?:ed|ing))\s+(?:a\s+)?(?:child|children|kids?|minors?)\b",
    ),
    "real_world_violence": (
        r"\b(?:school|mass)\s+shootings?\b",
        r"\bterror(?:ist|ism)\s+attacks?\b",
        r"\bcolumbine\b",
        r"\bgenocide\b",
        r"\bsandy\s+hook\b",
        r"\b9/11\b",
    ),
}

# Order matters: compound forms before their stems
SOFT_REPLACEMENTS: tuple[tuple[str, str], ...] = (
    (r"\bblood[-\s]soaked\b", "stained"),
    (r"\bbloody\b", "stained"),
    (r"\bblood\b", "crimson"),
    (r"\bgor(?:e|y)\b", "grim"),
    (r"\bdecapitat(?:ed|ion|e)\b", "taken"),
    (r"\bdismember(?:ed|ment)?\b", "broken"),
    (r"\bmutilat(?:ed|ion|e)\b", "twisted"),
    (r"\bslaughter(?:ed|ing)?\b", "taken"),
    (r"\bbutcher(?:ed|ing)\b", "taken"),
    (r"\bdisembowel(?:l?ed)?\b", "torn"),
    (r"\bentrails\b", "remains"),
    (r"\bguts\b", "remains"),
    (r"\bcorpses?\b", "still figure"),
    (r"\bstabb(?:ed|ing)\b", "struck"),
    (r"\bmurder(?:ed|ing)?\b", "taken"),
)

_HARD_BAN_PATTERNS = {
    label: [re.compile(pattern, re.IGNORECASE) for pattern in patterns]
    for label, patterns in HARD_BAN_RULES.items()
}
_SOFT_PATTERNS = [
    (re.compile(pattern, re.IGNORECASE), replacement)
    for pattern, replacement in SOFT_REPLACEMENTS
]


@dataclass
class SafetyReport:
    """Outcome of a safety check: sanitized story plus triggered labels."""

    story: Story
    flags: list[str] = field(default_factory=list)
    replacements: int = 0

    @property
    def is_safe(self) -> bool:
        return not self.flags


def _match_case(source: str, replacement: str) -> str:
    if source.isupper() and len(source) > 1:
        return replacement.upper()
    if source[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def find_flags(text: str) -> set[str]:
    """Return the hard-ban labels matched anywhere in text."""
    return {
        label
        for label, patterns in _HARD_BAN_PATTERNS.items()
        if any(pattern.search(text) for pattern in patterns)
    }


def sanitize_text(text: str) -> tuple[str, int]:
    """Apply soft replacements.

    Returns:
        Tuple of (sanitized text, number of substitutions made)
    """
    total = 0
    for pattern, replacement in _SOFT_PATTERNS:
        text, count = pattern.subn(lambda m, r=replacement: _match_case(m.group(0), r), text)
        total += count
    return text, total


def check_story(story: Story) -> SafetyReport:
    """Scan title and every scene narration; return a sanitized copy.

    The input story is left untouched.
    """
    flags: set[str] = set()
    replacements = 0

    title, count = sanitize_text(story.title)
    replacements += count
    flags |= find_flags(story.title)

    hook, _ = sanitize_text(story.hook)

    scenes = []
    for scene in story.scenes:
        flags |= find_flags(scene.narration)
        narration, count = sanitize_text(scene.narration)
        replacements += count
        scenes.append(replace(scene, narration=narration))

    sanitized = replace(
        story,
        title=title,
        hook=hook,
        scenes=scenes,
        word_count=sum(count_words(scene.narration) for scene in scenes),
    )
    return SafetyReport(story=sanitized, flags=sorted(flags), replacements=replacements)
