"""Typed errors raised by the orchestration core."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from backend.app.ai.validation import FieldError


class AIError(Exception):
    """Base exception for orchestration errors."""


class ProviderConfigurationError(AIError):
    """Raised when a backend is constructed without the credential it needs."""


class ProviderNotRegisteredError(AIError):
    """Raised when the requested or default backend has no implementation."""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"Provider {provider} not registered")


class ProviderError(AIError):
    """Backend transport, auth or quota failure."""

    def __init__(self, provider: str, operation: str, message: str) -> None:
        self.provider = provider
        self.operation = operation
        super().__init__(f"{provider} {operation}: {message}")


class MalformedOutputError(AIError):
    """Raised when a backend returns non-JSON text where JSON was demanded."""

    def __init__(self, provider: str, raw_content: str, reason: str) -> None:
        self.provider = provider
        self.raw_content = raw_content
        super().__init__(f"{provider} returned malformed JSON: {reason}")


class SchemaValidationError(AIError):
    """Structural mismatch between data and a declared schema."""

    def __init__(self, errors: list[FieldError], message: str | None = None) -> None:
        self.errors = errors
        summary = "; ".join(f"{e.path or '<root>'}: {e.message}" for e in errors)
        super().__init__(message or f"Schema validation failed: {summary}")


class InvalidItineraryResponseError(SchemaValidationError):
    """Generated itinerary failed schema validation."""

    def __init__(self, errors: list[FieldError]) -> None:
        summary = "; ".join(f"{e.path or '<root>'}: {e.message}" for e in errors)
        super().__init__(errors, f"Invalid itinerary response: {summary}")


class InvalidDateRangeError(AIError):
    """Caller supplied an end date that is not after the start date."""

    def __init__(self, message: str = "End date must be after start date") -> None:
        super().__init__(message)
