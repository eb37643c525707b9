"""
String & Payload Helpers.

Single source of truth for word-boundary normalisation of server
messages and for dotted-path access into nested form payloads
(``"userInfo.news"``).
"""

from __future__ import annotations

import copy
import re
from typing import Iterable, Mapping, Union

__all__ = [
    "JsonValue",
    "get_path",
    "normalize_message",
    "omit_paths",
    "set_path",
    "to_camel_case",
    "words",
]

JsonValue = Union[
    str,
    int,
    float,
    bool,
    None,
    dict[str, "JsonValue"],
    list["JsonValue"],
]

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

# Uppercase run followed by an uppercase+lowercase pair: "HTTPError" -> "HTTP Error"
_RE_UPPER_RUN = re.compile(r"([A-Z]+)([A-Z][a-z])")

# Lowercase letter or digit followed by an uppercase letter: "userNot" -> "user Not"
_RE_CAMEL_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")

# Anything that is not a letter or digit separates words.
_RE_NON_WORD = re.compile(r"[^A-Za-z0-9]+")


# ---------------------------------------------------------------------------
# Case conversion
# ---------------------------------------------------------------------------


def words(text: str) -> list[str]:
    """Split *text* into words on case, digit and punctuation boundaries."""
    s1 = _RE_UPPER_RUN.sub(r"\1 \2", text)
    s2 = _RE_CAMEL_BOUNDARY.sub(r"\1 \2", s1)
    return [w for w in _RE_NON_WORD.split(s2) if w]


def to_camel_case(text: str) -> str:
    """Convert any mixed-case / spaced / punctuated string to camelCase.

    ::

        User Not Active  -> userNotActive
        user_not_active  -> userNotActive
        UserNotActive    -> userNotActive
    """
    parts = words(text)
    if not parts:
        return ""
    head, *tail = parts
    return head.lower() + "".join(w[:1].upper() + w[1:].lower() for w in tail)


def normalize_message(text: str) -> str:
    """Collapse word boundaries and case so messages compare loosely.

    ``"User Not Active"``, ``"UserNotActive"`` and ``"user-not-active"``
    all normalise to ``"usernotactive"``.
    """
    return to_camel_case(text).lower()


# ---------------------------------------------------------------------------
# Dotted-path helpers
# ---------------------------------------------------------------------------


def get_path(data: Mapping[str, object], path: str, default: object = None) -> object:
    """Return the value at dotted *path* in nested mappings, or *default*."""
    current: object = data
    for key in path.split("."):
        if not isinstance(current, Mapping) or key not in current:
            return default
        current = current[key]
    return current


def set_path(data: dict[str, object], path: str, value: object) -> None:
    """Set *value* at dotted *path*, creating intermediate dicts in place."""
    *parents, leaf = path.split(".")
    current = data
    for key in parents:
        child = current.get(key)
        if not isinstance(child, dict):
            child = {}
            current[key] = child
        current = child
    current[leaf] = value


def omit_paths(data: Mapping[str, object], paths: Iterable[str]) -> dict[str, object]:
    """Return a deep copy of *data* without the given dotted *paths*.

    Missing paths are ignored.  The input mapping is never mutated.
    """
    result: dict[str, object] = copy.deepcopy(dict(data))
    for path in paths:
        *parents, leaf = path.split(".")
        current: object = result
        for key in parents:
            if not isinstance(current, dict):
                break
            current = current.get(key)
        if isinstance(current, dict):
            current.pop(leaf, None)
    return result
