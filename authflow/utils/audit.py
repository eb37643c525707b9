"""
Structured Usage-Event Logging Utility.

Provides a Pydantic-validated model and a single function for consistent
usage-tracking entries (``willCreateFirstAdmin``, ``didLaunchGuidedtour``,
...).  Events are emitted as structured JSON lines through the injected
logger.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel, Field

from authflow.logger import StructuredLogger

__all__ = ["UsageEvent", "log_usage_event"]

# Flat scalars only; nested structures do not belong in a usage event.
DetailValue = Union[str, int, float, bool, None]


class UsageEvent(BaseModel):
    """Schema-validated representation of a single usage-tracking entry."""

    timestamp: str
    event: str
    details: dict[str, DetailValue] = Field(default_factory=dict)


def log_usage_event(
    logger: StructuredLogger,
    event: str,
    details: Optional[dict[str, DetailValue]] = None,
) -> UsageEvent:
    """Validate and log a usage event, returning the validated model.

    Args:
        logger: The logger instance to write to.
        event: Event name (e.g. ``"willCreateFirstAdmin"``).
        details: Optional additional context.
    """
    usage = UsageEvent(
        timestamp=datetime.now(timezone.utc).isoformat(),
        event=event,
        details=details or {},
    )
    logger.info("USAGE: %s", json.dumps(usage.model_dump(), default=str))
    return usage
