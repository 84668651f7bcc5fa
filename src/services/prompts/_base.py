"""Base utilities for prompts module."""

import re

_FENCE_OPEN_RE = re.compile(r"^```[a-zA-Z]*\s*")
_FENCE_CLOSE_RE = re.compile(r"\s*```$")


def strip_markdown_code_blocks(text: str) -> str:
    """Strip a surrounding markdown code fence from AI response text.

    Args:
        text: Raw text that may be wrapped in ```json ... ``` fences

    Returns:
        Cleaned text with the fence removed
    """
    text = _FENCE_OPEN_RE.sub("", text.strip())
    return _FENCE_CLOSE_RE.sub("", text).strip()
