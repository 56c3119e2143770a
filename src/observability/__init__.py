"""Observability module for logging and metrics."""

from src.observability.logging import (
    bind_run_context,
    clear_run_context,
    configure_logging,
    get_logger,
)
from src.observability.metrics import PipelineMetrics
from src.observability.redact import redact_query_secrets


__all__ = [
    "PipelineMetrics",
    "bind_run_context",
    "clear_run_context",
    "configure_logging",
    "get_logger",
    "redact_query_secrets",
]
