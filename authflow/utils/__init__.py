"""Shared utility functions and models for the AuthFlow controller.

Convenience re-exports so that consumers can import directly from
``authflow.utils`` while full absolute imports remain supported.
"""

from authflow.utils.audit import UsageEvent, log_usage_event
from authflow.utils.string_helpers import (
    get_path,
    normalize_message,
    omit_paths,
    set_path,
    to_camel_case,
)

__all__ = [
    "UsageEvent",
    "get_path",
    "log_usage_event",
    "normalize_message",
    "omit_paths",
    "set_path",
    "to_camel_case",
]
