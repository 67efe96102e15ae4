"""Unit tests for the model-call metrics façade."""

import logging

import pytest

from backend.app.metrics import record_llm_call


def test_success_record_carries_fields(caplog: pytest.LogCaptureFixture) -> None:
    """Test that a successful call is logged with its token and cost fields."""
    with caplog.at_level(logging.INFO, logger="backend.app.metrics.core"):
        record_llm_call(
            provider="openai",
            operation="chat",
            model="gpt-4o-mini",
            latency_ms=120,
            ok=True,
            tokens_in=100,
            tokens_out=50,
            cost_usd=0.00045,
        )

    assert len(caplog.records) == 1
    record = caplog.records[0]
    assert record.getMessage() == "llm_call_metric"
    assert record.provider == "openai"
    assert record.operation == "chat"
    assert record.latency_ms == 120
    assert record.ok is True
    assert record.tokens_in == 100
    assert record.cost_usd == 0.00045
    assert record.error_kind is None


def test_failure_record_carries_error_kind(caplog: pytest.LogCaptureFixture) -> None:
    """Test that failures record the exception class and no token counts."""
    with caplog.at_level(logging.INFO, logger="backend.app.metrics.core"):
        record_llm_call(
            provider="anthropic",
            operation="generate_json",
            model="claude-3-5-sonnet-20241022",
            latency_ms=30000,
            ok=False,
            error_kind="APITimeoutError",
        )

    record = caplog.records[0]
    assert record.ok is False
    assert record.error_kind == "APITimeoutError"
    assert record.tokens_in is None
    assert record.tokens_out is None
