"""Text generators the orchestrator can call.

``ProxyClient`` reaches a running proxy over HTTP and turns its status codes
back into the typed errors. ``InProcessGenerator`` calls a ``GenerationProxy``
directly, for scripts and tests that do not need the HTTP hop.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from mirai_assist.errors import (
    InternalError,
    MiraiAssistError,
    UnavailableError,
    UpstreamError,
    ValidationError,
)
from mirai_assist.generation.proxy import GenerationProxy

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    async def generate(self, system_prompt: str, user_prompt: str) -> str: ...


class ProxyClient:
    """HTTP client for ``POST /api/generate`` on the generation proxy.

    ``timeout`` bounds one call; an overrun or connection failure is an
    UnavailableError, same as the proxy's own upstream failures.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3006",
        timeout: float = 180.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        try:
            resp = await self._client.post(
                "/api/generate",
                json={"systemPrompt": system_prompt, "userPrompt": user_prompt},
            )
        except httpx.TimeoutException as e:
            raise UnavailableError("Generation proxy did not respond in time") from e
        except httpx.TransportError as e:
            raise UnavailableError(f"Cannot connect to generation proxy at {self.base_url}") from e

        body = _json_or_empty(resp)
        if resp.status_code == 200 and isinstance(body.get("response"), str):
            return body["response"]

        raise _error_from_response(resp.status_code, body)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ProxyClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


class InProcessGenerator:
    """Adapts a ``GenerationProxy`` to the ``TextGenerator`` interface."""

    def __init__(self, proxy: GenerationProxy) -> None:
        self.proxy = proxy

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        result = await self.proxy.generate(system_prompt, user_prompt)
        return result.cleaned_text


def _json_or_empty(resp: httpx.Response) -> dict[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        return {"error": resp.text}
    return body if isinstance(body, dict) else {"error": body}


def _error_from_response(status_code: int, body: dict[str, Any]) -> MiraiAssistError:
    message = body.get("error")
    details = body.get("details")
    logger.warning(f"Generation proxy returned {status_code}: {message}")

    match status_code:
        case 400:
            return ValidationError(message)
        case 503:
            return UnavailableError(message)
        case 500 if message and message != InternalError.error:
            return UpstreamError(details=details, message=message)
        case _:
            return InternalError(
                details=details if details is not None else body,
                message=message or f"Unexpected proxy response ({status_code})",
            )
