"""Output cleanup — strips markdown and trailing prose from raw model text.

Small local models wrap their JSON in code fences and like to append an
explanation after it. Each step below is a pure ``str -> str`` transform;
``CLEANUP_STEPS`` fixes their order because later steps assume the earlier
ones already ran (e.g. bold/blank-line stripping relies on the text ending
at the last ``}``).

This is best-effort de-noising, not a parser. The JSON itself is validated
later by the document orchestrator.
"""

from __future__ import annotations

import re
from collections.abc import Callable

_FENCE_RE = re.compile(r"```[A-Za-z0-9_+-]*[ \t]*\r?\n?")
_BOLD_TRAILER_RE = re.compile(r"\*\*[^*]+\*\*.*$", re.DOTALL)
_BLANK_LINE_TRAILER_RE = re.compile(r"\r?\n[ \t]*\r?\n.*$", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Remove ``` fence markers, including language-tagged ones like ```json."""
    return _FENCE_RE.sub("", text)


def trim(text: str) -> str:
    return text.strip()


def truncate_after_last_brace(text: str) -> str:
    """Cut everything after the last ``}``. No ``}`` means no change."""
    end = text.rfind("}")
    if end == -1:
        return text
    return text[: end + 1]


def strip_bold_trailer(text: str) -> str:
    """Drop a ``**Note:** ...`` style run through to the end of the text."""
    return _BOLD_TRAILER_RE.sub("", text, count=1)


def strip_blank_line_trailer(text: str) -> str:
    """Drop everything from the first blank line onwards."""
    return _BLANK_LINE_TRAILER_RE.sub("", text, count=1)


CLEANUP_STEPS: tuple[Callable[[str], str], ...] = (
    strip_code_fences,
    trim,
    truncate_after_last_brace,
    strip_bold_trailer,
    strip_blank_line_trailer,
    trim,
)


def run_steps(text: str) -> str:
    """One pass of the pipeline, in order."""
    for step in CLEANUP_STEPS:
        text = step(text)
    return text


def clean_output(text: str) -> str:
    """Run the pipeline until the text stops changing.

    A single pass can leave text the pipeline would still shorten (stripping a
    trailer may expose a new tail after the last ``}``), so passes repeat to a
    fixed point. Every step only removes characters, so this terminates, and
    ``clean_output(clean_output(x)) == clean_output(x)``.
    """
    while True:
        cleaned = run_steps(text)
        if cleaned == text:
            return cleaned
        text = cleaned
