"""Mirai Assist generation proxy — FastAPI app.

Bridges the browser to the local LLM runtime, which it cannot reach directly.
Exposes /health and /api/generate. Build with ``create_app(config)``; the app
owns its completion client and closes it on shutdown.

Run:  mirai-assist            (reads ./config.yaml or $MIRAI_ASSIST_CONFIG)
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mirai_assist.config import AppConfig, load_config
from mirai_assist.errors import MiraiAssistError, ValidationError
from mirai_assist.generation.proxy import GenerationProxy
from mirai_assist.generation.simulation import SimulatedCompletionClient
from mirai_assist.generation.upstream import CompletionClient, OllamaCompletionClient
from mirai_assist.schemas import ErrorResponse, GenerateRequest, GenerateResponse, HealthResponse

logger = logging.getLogger(__name__)


def build_completion_client(config: AppConfig) -> CompletionClient:
    """Ollama client, or the canned simulator when ``simulation`` is on."""
    if config.simulation:
        logger.warning("Simulation mode enabled: responses are canned, no model is called")
        return SimulatedCompletionClient()
    return OllamaCompletionClient(config.upstream)


def create_app(config: AppConfig, completion: CompletionClient | None = None) -> FastAPI:
    """Compose the proxy app. ``completion`` overrides the configured backend."""
    proxy = GenerationProxy(completion or build_completion_client(config))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"Mirai Assist proxy started (model={proxy.model}, "
            f"upstream={config.upstream.upstream_url}, origins={config.server.allowed_origins})"
        )
        yield
        await proxy.aclose()
        logger.info("Mirai Assist proxy shutting down")

    app = FastAPI(title="Mirai Assist Generation Proxy", version="0.1.0", lifespan=lifespan)
    app.state.config = config
    app.state.proxy = proxy

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------------
    # Error mapping
    # -----------------------------------------------------------------------

    @app.exception_handler(MiraiAssistError)
    async def handle_mirai_error(request: Request, exc: MiraiAssistError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def handle_bad_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning(f"Rejected malformed request body: {exc.errors()}")
        err = ValidationError()
        return JSONResponse(status_code=err.status_code, content=err.to_payload())

    # -----------------------------------------------------------------------
    # Endpoints
    # -----------------------------------------------------------------------

    @app.get("/health", response_model=HealthResponse)
    async def health():
        """Liveness check. Does not probe the LLM runtime."""
        return HealthResponse(status="OK", message="Mirai Assist Server is running")

    @app.post(
        "/api/generate",
        response_model=GenerateResponse,
        responses={
            400: {"model": ErrorResponse, "description": "systemPrompt or userPrompt missing"},
            500: {"model": ErrorResponse, "description": "LLM runtime error or internal failure"},
            503: {"model": ErrorResponse, "description": "LLM runtime unreachable"},
        },
    )
    async def generate(body: GenerateRequest, request: Request):
        """Forward a (systemPrompt, userPrompt) pair and return cleaned text."""
        result = await request.app.state.proxy.generate(body.systemPrompt, body.userPrompt)
        return GenerateResponse(
            response=result.cleaned_text,
            model=result.model,
            timestamp=result.timestamp.isoformat().replace("+00:00", "Z"),
        )

    return app


def run(config_path: str | None = None) -> None:
    """Console entry point: load config (fatal if invalid) and serve."""
    logging.basicConfig(level=logging.INFO)
    config = load_config(config_path)
    app = create_app(config)
    logger.info(f"Health check: http://{config.server.host}:{config.server.port}/health")
    uvicorn.run(app, host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    run()
