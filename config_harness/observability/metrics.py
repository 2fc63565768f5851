"""
Config Harness - Prometheus Metrics

Counts validated models and golden comparisons so CI can chart harness
results over time through a node-exporter textfile.

Metrics Exposed:
- model_validations_total: Counter of validated models by outcome and stage
- model_validation_duration_seconds: Histogram of per-model validation time
- golden_candidates_compared_total: Counter of golden files compared
- repository_runs_total: Counter of walker passes by autofill posture and result

Usage:
    from config_harness.observability.metrics import record_model_validation

    record_model_validation(outcome="passed", stage="initializing", duration_seconds=0.02)

    # Export for the textfile collector
    write_metrics("/var/lib/node_exporter/config_harness.prom")
"""

from pathlib import Path
from typing import Union

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    write_to_textfile,
)

# Use custom registry to avoid conflicts
metrics_registry = CollectorRegistry()

# =============================================================================
# MODEL METRICS
# =============================================================================

model_validations_total = Counter(
    name="model_validations_total",
    documentation="Total number of validated model directories",
    labelnames=["outcome", "stage"],
    registry=metrics_registry,
)

model_validation_duration_seconds = Histogram(
    name="model_validation_duration_seconds",
    documentation="Time to normalize, validate, initialize and compare one model",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
    registry=metrics_registry,
)

golden_candidates_compared_total = Counter(
    name="golden_candidates_compared_total",
    documentation="Total number of golden files compared against actual output",
    registry=metrics_registry,
)

# =============================================================================
# RUN METRICS
# =============================================================================

repository_runs_total = Counter(
    name="repository_runs_total",
    documentation="Total number of repository walker passes",
    labelnames=["autofill", "result"],
    registry=metrics_registry,
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def record_model_validation(outcome: str, stage: str, duration_seconds: float) -> None:
    """
    Record one validated model.

    Args:
        outcome: passed or failed
        stage: Last pipeline stage the model reached
        duration_seconds: Wall time for the model
    """
    model_validations_total.labels(outcome=outcome, stage=stage).inc()
    model_validation_duration_seconds.observe(duration_seconds)


def record_candidates_compared(count: int) -> None:
    if count:
        golden_candidates_compared_total.inc(count)


def record_repository_run(autofill: bool, ok: bool) -> None:
    repository_runs_total.labels(
        autofill=str(autofill).lower(),
        result="passed" if ok else "failed",
    ).inc()


def write_metrics(path: Union[str, Path]) -> None:
    """Write all harness metrics to a Prometheus textfile."""
    write_to_textfile(str(path), metrics_registry)
