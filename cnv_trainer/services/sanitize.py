"""
Post-processing for provider text that is shown to the user verbatim.

The prompts ask the model not to use quotes or markdown, but it does
anyway often enough that every displayed string goes through here.
"""

from __future__ import annotations

import re

# Quotes and asterisks, stripped from per-answer feedback.
_DISALLOWED_CHARS = re.compile(r"[*\"']")

# Summary text additionally loses backticks and headings.
_MARKUP_CHARS = re.compile(r"[*\"'`#]")
_BLANK_LINES = re.compile(r"\n\s*\n")


def strip_disallowed(text: str) -> str:
    """Remove quotes and asterisks from a feedback string."""
    return _DISALLOWED_CHARS.sub("", text)


def clean_summary(text: str) -> str:
    """Remove markup characters, collapse blank lines and trim."""
    cleaned = _MARKUP_CHARS.sub("", text)
    cleaned = _BLANK_LINES.sub("\n", cleaned)
    return cleaned.strip()
