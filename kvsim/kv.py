"""Request and response data types for the key-value store model.

Keys and values are plain strings: the simulator is about routing, timing and
consistency, not about payload encodings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

__all__ = ["Put", "Get", "Delete", "Request", "Response"]


@dataclass(frozen=True)
class Put:
    """Insert or update a key. Responds with the previous value, if any."""

    key: str
    value: str

    def __str__(self) -> str:
        return f'Put({self.key}, "{self.value}")'


@dataclass(frozen=True)
class Get:
    """Read a key. Responds with the current value."""

    key: str

    def __str__(self) -> str:
        return f"Get({self.key})"


@dataclass(frozen=True)
class Delete:
    """Remove a key. Responds with the previous value."""

    key: str

    def __str__(self) -> str:
        return f"Delete({self.key})"


Request = Union[Put, Get, Delete]


@dataclass(frozen=True)
class Response:
    """A response to a client request: a value or ``None``."""

    value: Optional[str] = None

    def __str__(self) -> str:
        if self.value is None:
            return "None"
        return f'Some("{self.value}")'