"""Generation proxy — validates a prompt pair, calls the runtime, cleans the output.

Stateless apart from the completion client it is given. The HTTP layer in
``mirai_assist.main`` is a thin wrapper around ``GenerationProxy.generate``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from mirai_assist.errors import InternalError, MiraiAssistError, ValidationError
from mirai_assist.generation.cleanup import clean_output
from mirai_assist.generation.upstream import CompletionClient

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 200


@dataclass(frozen=True)
class GenerationResult:
    raw_text: str
    cleaned_text: str
    model: str
    timestamp: datetime


def combine_prompts(system_prompt: str, user_prompt: str) -> str:
    """The runtime takes a single prompt: system first, a blank line, then user."""
    return f"{system_prompt}\n\n{user_prompt}"


class GenerationProxy:
    def __init__(self, completion: CompletionClient) -> None:
        self.completion = completion

    @property
    def model(self) -> str:
        return self.completion.model

    async def generate(self, system_prompt: str | None, user_prompt: str | None) -> GenerationResult:
        """Forward one prompt pair and return the cleaned completion.

        Raises ValidationError before any upstream call when either prompt is
        missing or empty. Errors already in the taxonomy propagate unchanged;
        anything else becomes InternalError.
        """
        if not system_prompt or not user_prompt:
            raise ValidationError()

        logger.info(
            f"Generation request: system_prompt={len(system_prompt)} chars, "
            f"user_prompt={len(user_prompt)} chars"
        )

        try:
            raw_text = await self.completion.complete(combine_prompts(system_prompt, user_prompt))
            cleaned = clean_output(raw_text)
        except MiraiAssistError:
            raise
        except Exception as e:
            logger.error(f"Generation failed: {e}", exc_info=True)
            raise InternalError(details=str(e)) from e

        logger.debug(f"Raw output ({len(raw_text)} chars): {raw_text}")
        logger.info(
            f"Generation success: {len(cleaned)} chars, "
            f"preview={cleaned[:PREVIEW_CHARS]!r}"
        )
        return GenerationResult(
            raw_text=raw_text,
            cleaned_text=cleaned,
            model=self.model,
            timestamp=datetime.now(timezone.utc),
        )

    async def aclose(self) -> None:
        await self.completion.aclose()
