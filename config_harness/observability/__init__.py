"""
Config Harness - Observability

Provides logging and metrics for harness runs.
"""

from .metrics import (
    metrics_registry,
    record_model_validation,
    record_candidates_compared,
    record_repository_run,
    write_metrics,
)

__all__ = [
    "metrics_registry",
    "record_model_validation",
    "record_candidates_compared",
    "record_repository_run",
    "write_metrics",
]
