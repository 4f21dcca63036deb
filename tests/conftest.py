"""Shared fixtures: configs, fake upstream transports and a stub generator."""

import json
from collections.abc import Callable

import httpx
import pytest

from mirai_assist.config import AppConfig, UpstreamConfig


@pytest.fixture
def upstream_config() -> UpstreamConfig:
    return UpstreamConfig(upstream_url="http://ollama.test:11434/", model="gemma2:2b")


@pytest.fixture
def app_config(upstream_config) -> AppConfig:
    return AppConfig(upstream=upstream_config)


class RecordingHandler:
    """httpx.MockTransport handler that records requests and replies via ``respond``."""

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]):
        self.respond = respond
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    @property
    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def ollama_replying() -> Callable[..., RecordingHandler]:
    """Build a handler that answers every /api/generate with ``text``."""

    def make(text: str = "", status_code: int = 200, body=None) -> RecordingHandler:
        payload = body if body is not None else {"model": "gemma2:2b", "response": text, "done": True}
        return RecordingHandler(lambda request: httpx.Response(status_code, json=payload))

    return make


class StubGenerator:
    """Stands in for the proxy: returns ``reply`` and records the prompts it got."""

    def __init__(self, reply: str = "{}"):
        self.reply = reply
        self.calls: list[tuple[str, str]] = []

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        return self.reply


@pytest.fixture
def stub_generator() -> Callable[[str], StubGenerator]:
    return StubGenerator
