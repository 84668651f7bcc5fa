"""Prompts module - centralized prompt templates for AI services.

Re-exports all prompt constants and utilities for easy importing:
    from services.prompts import PROMPT_VERSIONS, strip_markdown_code_blocks
    from services.prompts import STORY_GENERATOR_V1
"""

from services.prompts._base import strip_markdown_code_blocks
from services.prompts.story_generation import STORY_GENERATOR_V1

# Increment when a prompt changes so logged responses can be told apart
PROMPT_VERSIONS = {
    "generate_story": "v1",
}

__all__ = [
    "strip_markdown_code_blocks",
    "PROMPT_VERSIONS",
    "STORY_GENERATOR_V1",
]
