"""Request/response models — the contract between the proxy and the browser."""

from typing import Any

from pydantic import BaseModel


class GenerateRequest(BaseModel):
    """Body of POST /api/generate.

    Both fields are optional here so that a missing prompt is reported with
    the proxy's own 400 payload instead of a framework 422.
    """

    systemPrompt: str | None = None
    userPrompt: str | None = None


class GenerateResponse(BaseModel):
    response: str  # cleaned text
    model: str
    timestamp: str  # ISO-8601


class HealthResponse(BaseModel):
    status: str
    message: str


class ErrorResponse(BaseModel):
    error: str
    details: Any = None
