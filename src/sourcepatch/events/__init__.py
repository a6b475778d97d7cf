"""Event system: bus and event types for batch progress."""

from sourcepatch.events.bus import EventBus
from sourcepatch.events.types import (
    BatchCompleted,
    MarkerInserted,
    OperationApplied,
    OperationSkipped,
    RuleRedirected,
)

__all__ = [
    "EventBus",
    "BatchCompleted",
    "MarkerInserted",
    "OperationApplied",
    "OperationSkipped",
    "RuleRedirected",
]
