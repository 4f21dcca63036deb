"""Completion backends — the thing the proxy forwards combined prompts to.

``OllamaCompletionClient`` talks to a local Ollama-compatible runtime over
``/api/generate`` (non-streaming). Failures are mapped onto the proxy's error
taxonomy here so the proxy and HTTP layer never see raw httpx exceptions.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from mirai_assist.config import UpstreamConfig
from mirai_assist.errors import UnavailableError, UpstreamError

logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    """Anything that turns one prompt into raw model text."""

    model: str

    async def complete(self, prompt: str) -> str: ...

    async def aclose(self) -> None: ...


class OllamaCompletionClient:
    """Non-streaming text completion against ``{upstream_url}/api/generate``.

    The configured ``timeout_seconds`` is the deadline for a whole call; an
    overrun surfaces as ``UnavailableError``. Cancelling the awaiting task
    aborts the in-flight request.
    """

    def __init__(
        self,
        config: UpstreamConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.model = config.model
        self._client = httpx.AsyncClient(
            base_url=config.upstream_url,
            timeout=config.timeout_seconds,
            transport=transport,
        )

    def build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.config.model,
            "prompt": prompt,
            "stream": False,
            "options": self.config.sampling_params.model_dump(),
        }

    async def complete(self, prompt: str) -> str:
        try:
            resp = await self._client.post("/api/generate", json=self.build_payload(prompt))
        except httpx.TimeoutException as e:
            logger.error(f"LLM runtime timed out after {self.config.timeout_seconds}s: {e}")
            raise UnavailableError(
                f"The LLM runtime did not respond within {self.config.timeout_seconds:g} seconds."
            ) from e
        except httpx.TransportError as e:
            logger.error(f"Network error - is ollama running at {self.config.upstream_url}? ({e})")
            raise UnavailableError() from e

        body = _json_or_text(resp)

        if resp.is_error:
            logger.error(f"Ollama API error {resp.status_code}: {body}")
            raise UpstreamError(details=body)

        if not isinstance(body, dict):
            raise UpstreamError(details=body, message="Ollama returned a non-JSON response")
        if body.get("error"):
            logger.error(f"Ollama API error: {body['error']}")
            raise UpstreamError(details=body)
        if not isinstance(body.get("response"), str):
            raise UpstreamError(details=body, message="Ollama response is missing 'response' text")

        return body["response"]

    async def aclose(self) -> None:
        await self._client.aclose()


def _json_or_text(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text
