"""Metrics façade for model-backend calls."""

from backend.app.metrics.core import record_llm_call

__all__ = ["record_llm_call"]
