"""Metrics façade for model-backend call tracking."""

import logging

logger = logging.getLogger(__name__)


def record_llm_call(
    provider: str,
    operation: str,
    model: str,
    latency_ms: int,
    ok: bool,
    tokens_in: int | None = None,
    tokens_out: int | None = None,
    cost_usd: float | None = None,
    error_kind: str | None = None,
) -> None:
    """Record metrics for a model-backend call.

    Emitted as a structured log record; the fields ride on ``extra`` so a
    JSON formatter or log shipper can index them.

    Args:
        provider: Backend that served the call.
        operation: Contract operation (complete, chat, generate_json, ...).
        model: Model identifier requested.
        latency_ms: Latency in milliseconds.
        ok: Whether the call succeeded.
        tokens_in: Prompt tokens reported by the backend.
        tokens_out: Completion tokens reported by the backend.
        cost_usd: Estimated cost in USD.
        error_kind: Exception class name if the call failed.
    """
    logger.info(
        "llm_call_metric",
        extra={
            "provider": provider,
            "operation": operation,
            "model": model,
            "latency_ms": latency_ms,
            "ok": ok,
            "tokens_in": tokens_in,
            "tokens_out": tokens_out,
            "cost_usd": cost_usd,
            "error_kind": error_kind,
        },
    )
