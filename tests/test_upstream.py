import asyncio

import httpx
import pytest

from mirai_assist.errors import UnavailableError, UpstreamError
from mirai_assist.generation.upstream import OllamaCompletionClient

pytestmark = pytest.mark.asyncio


async def test_posts_non_streaming_request_with_sampling_options(upstream_config, ollama_replying):
    handler = ollama_replying('{"a": 1}')
    client = OllamaCompletionClient(upstream_config, transport=httpx.MockTransport(handler))

    text = await client.complete("SYSTEM\n\nUSER")
    await client.aclose()

    assert text == '{"a": 1}'
    assert str(handler.requests[0].url) == "http://ollama.test:11434/api/generate"
    assert handler.bodies[0] == {
        "model": "gemma2:2b",
        "prompt": "SYSTEM\n\nUSER",
        "stream": False,
        "options": {"temperature": 0.4, "top_p": 0.9, "repeat_penalty": 1.1, "num_ctx": 4096},
    }


async def test_connection_refused_is_unavailable(upstream_config):
    def refuse(request):
        raise httpx.ConnectError("Connection refused", request=request)

    client = OllamaCompletionClient(upstream_config, transport=httpx.MockTransport(refuse))
    with pytest.raises(UnavailableError):
        await client.complete("prompt")


async def test_deadline_overrun_is_unavailable(upstream_config):
    def too_slow(request):
        raise httpx.ReadTimeout("timed out", request=request)

    client = OllamaCompletionClient(upstream_config, transport=httpx.MockTransport(too_slow))
    with pytest.raises(UnavailableError, match="did not respond within 120 seconds"):
        await client.complete("prompt")


async def test_error_status_carries_upstream_detail(upstream_config, ollama_replying):
    handler = ollama_replying(status_code=404, body={"error": "model 'gemma2:2b' not found"})
    client = OllamaCompletionClient(upstream_config, transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamError) as exc_info:
        await client.complete("prompt")

    assert exc_info.value.details == {"error": "model 'gemma2:2b' not found"}
    assert exc_info.value.to_payload() == {
        "error": "Ollama API Error",
        "details": {"error": "model 'gemma2:2b' not found"},
    }


async def test_error_field_in_ok_response_is_upstream_error(upstream_config, ollama_replying):
    handler = ollama_replying(body={"error": "out of memory"})
    client = OllamaCompletionClient(upstream_config, transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamError):
        await client.complete("prompt")


async def test_response_without_text_is_upstream_error(upstream_config, ollama_replying):
    handler = ollama_replying(body={"done": True})
    client = OllamaCompletionClient(upstream_config, transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamError, match="missing 'response'"):
        await client.complete("prompt")


async def test_cancelling_the_caller_aborts_the_call(upstream_config):
    started = asyncio.Event()

    async def hang(request):
        started.set()
        await asyncio.sleep(60)
        return httpx.Response(200, json={"response": "{}"})

    client = OllamaCompletionClient(upstream_config, transport=httpx.MockTransport(hang))
    task = asyncio.create_task(client.complete("prompt"))
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
