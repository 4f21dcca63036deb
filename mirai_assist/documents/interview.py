"""Interview material — merges counselor uploads into one interview text."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class InterviewMaterial(BaseModel):
    """One uploaded file or pasted note.

    ``label`` is the human name of the material kind (e.g. "面談記録").
    ``content`` is the extracted text; audio/image uploads that have not been
    transcribed only carry ``name``.
    """

    label: str
    name: str = ""
    content: str | None = None
    status: Literal["uploading", "ready", "error"] = "ready"


def combine_materials(materials: list[InterviewMaterial]) -> str:
    """Render ready materials as ``【label】`` sections separated by newlines."""
    return "\n".join(
        f"【{m.label}】\n{m.content or m.name}\n"
        for m in materials
        if m.status == "ready"
    )
