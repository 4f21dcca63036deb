import httpx
import pytest

from mirai_assist.client import ProxyClient
from mirai_assist.errors import InternalError, UnavailableError, UpstreamError, ValidationError
from mirai_assist.generation.upstream import OllamaCompletionClient
from mirai_assist.main import create_app

pytestmark = pytest.mark.asyncio


def replying(status_code: int, body):
    return httpx.MockTransport(lambda request: httpx.Response(status_code, json=body))


async def test_returns_cleaned_response_text():
    transport = replying(200, {"response": '{"a":1}', "model": "m", "timestamp": "2026-01-01T00:00:00Z"})
    async with ProxyClient(transport=transport) as client:
        assert await client.generate("s", "u") == '{"a":1}'


@pytest.mark.parametrize(
    "status_code, body, expected",
    [
        (400, {"error": "systemPrompt and userPrompt are required"}, ValidationError),
        (503, {"error": "Cannot connect to ollama. Please ensure ollama is running."}, UnavailableError),
        (500, {"error": "Ollama API Error", "details": {"error": "x"}}, UpstreamError),
        (500, {"error": "Internal Server Error", "details": "boom"}, InternalError),
        (502, {"unexpected": True}, InternalError),
    ],
)
async def test_status_codes_map_back_to_typed_errors(status_code, body, expected):
    async with ProxyClient(transport=replying(status_code, body)) as client:
        with pytest.raises(expected):
            await client.generate("s", "u")


async def test_upstream_details_survive_the_round_trip():
    async with ProxyClient(transport=replying(500, {"error": "Ollama API Error", "details": {"error": "x"}})) as client:
        with pytest.raises(UpstreamError) as exc_info:
            await client.generate("s", "u")
    assert exc_info.value.details == {"error": "x"}


async def test_unreachable_proxy_is_unavailable():
    def refuse(request):
        raise httpx.ConnectError("Connection refused", request=request)

    async with ProxyClient(transport=httpx.MockTransport(refuse)) as client:
        with pytest.raises(UnavailableError):
            await client.generate("s", "u")


async def test_against_the_real_app(app_config, upstream_config, ollama_replying):
    handler = ollama_replying('{"ok": true}\n\nDone.')
    completion = OllamaCompletionClient(upstream_config, transport=httpx.MockTransport(handler))
    app = create_app(app_config, completion=completion)

    async with ProxyClient(base_url="http://proxy.test", transport=httpx.ASGITransport(app=app)) as client:
        assert await client.generate("SYS", "USER") == '{"ok": true}'
        with pytest.raises(ValidationError):
            await client.generate("", "USER")
