"""
Prometheus metrics for the proposal register.

Counts what the register does (commands, events, ballots, closings) so an
operator can see activity without reading the event log.
"""

import time
from collections.abc import Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from prometheus_client import Counter, Gauge, Histogram, start_http_server

from proposal_register.kernel.errors import InvariantViolation

# ============================================================================
# Event Store Metrics
# ============================================================================

events_appended_total = Counter(
    "proposal_register_events_appended_total",
    "Total number of events appended to the event store",
    ["stream_type", "event_type"],
)

events_loaded_total = Counter(
    "proposal_register_events_loaded_total",
    "Total number of events replayed from the event store",
)

stream_version_conflicts_total = Counter(
    "proposal_register_stream_version_conflicts_total",
    "Total number of optimistic locking version conflicts",
    ["stream_type"],
)

# ============================================================================
# Command Processing Metrics
# ============================================================================

command_duration_seconds = Histogram(
    "proposal_register_command_duration_seconds",
    "Duration of command processing in seconds",
    ["command_type"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

commands_processed_total = Counter(
    "proposal_register_commands_processed_total",
    "Total number of commands processed",
    ["command_type", "status"],  # status: success, rejected, failure
)

# ============================================================================
# Register Metrics
# ============================================================================

votes_cast_total = Counter(
    "proposal_register_votes_cast_total",
    "Total number of ballots accepted",
)

proposals_closed_total = Counter(
    "proposal_register_proposals_closed_total",
    "Total number of proposals finalized",
    ["outcome"],  # approved, rejected
)

proposals_total = Gauge(
    "proposal_register_proposals_total",
    "Number of proposals in the register",
)

P = ParamSpec("P")
R = TypeVar("R")


def track_command_duration(command_type: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator tracking duration and outcome of a register command.

    Invariant violations count as "rejected", anything else that escapes
    counts as "failure".
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start = time.perf_counter()
            status = "success"
            try:
                return func(*args, **kwargs)
            except InvariantViolation:
                status = "rejected"
                raise
            except Exception:
                status = "failure"
                raise
            finally:
                duration = time.perf_counter() - start
                command_duration_seconds.labels(command_type=command_type).observe(duration)
                commands_processed_total.labels(
                    command_type=command_type, status=status
                ).inc()

        return wrapper

    return decorator


def start_metrics_server(port: int = 9090) -> None:
    """Start Prometheus metrics HTTP server on the given port."""
    start_http_server(port)
