"""Error taxonomy shared by the generation proxy and the document orchestrator.

Every error maps to one HTTP status and a JSON payload so that callers can tell
"fix your input", "start the model server" and "the model produced garbage"
apart.
"""

from __future__ import annotations

from typing import Any


class MiraiAssistError(Exception):
    """Base class. Subclasses set ``status_code`` and ``error``."""

    status_code: int = 500
    error: str = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.error)
        self.message = message or self.error

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message}


class ConfigError(MiraiAssistError):
    """Configuration is missing or invalid. Fatal at startup."""

    error = "Invalid configuration"


class ValidationError(MiraiAssistError):
    """Malformed input: missing prompt fields, or a case record that is not an object."""

    status_code = 400
    error = "systemPrompt and userPrompt are required"


class UnavailableError(MiraiAssistError):
    """The local LLM runtime could not be reached or missed its deadline."""

    status_code = 503
    error = "Cannot connect to ollama. Please ensure ollama is running."


class UpstreamError(MiraiAssistError):
    """The LLM runtime answered, but with an error payload."""

    status_code = 500
    error = "Ollama API Error"

    def __init__(self, details: Any = None, message: str | None = None) -> None:
        super().__init__(message)
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message, "details": self.details}


class InternalError(MiraiAssistError):
    """Catch-all for unexpected failures inside the proxy."""

    status_code = 500
    error = "Internal Server Error"

    def __init__(self, details: Any = None, message: str | None = None) -> None:
        super().__init__(message)
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message, "details": self.details}


class UnsupportedDocumentTypeError(MiraiAssistError):
    """The orchestrator was asked for a document type it has no template for."""

    status_code = 400

    def __init__(self, document_type: str, available: list[str] | None = None) -> None:
        msg = f"Unsupported document type '{document_type}'"
        if available:
            msg += f". Available: {available}"
        super().__init__(msg)
        self.document_type = document_type


class GenerationParseError(MiraiAssistError):
    """Cleaned model output was not valid JSON or did not match the payload shape.

    ``raw_text`` keeps the offending text for diagnosing prompt/template drift.
    """

    status_code = 502

    def __init__(
        self,
        raw_text: str,
        message: str = "Generated text is not a valid document payload",
        problems: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.raw_text = raw_text
        self.problems = problems or []

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message, "details": {"raw_text": self.raw_text, "problems": self.problems}}
