"""Write-once, versioned holder for per-connection state.

The upgrade hook decides what a connection carries; the bridge stores it
here exactly once. Message handlers read it freely without locks because
the value never changes after that.
"""

import threading
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any


class StateAlreadySet(RuntimeError):  # noqa: N818
    """Raised when a StateCell is written a second time."""


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping) and not isinstance(value, MappingProxyType):
        return MappingProxyType(dict(value))
    return value


class StateCell:
    """Versioned cell holding one connection's attached state.

    ``version`` is 0 until ``set()`` is called and 1 afterwards. Dict
    values are stored as a read-only ``MappingProxyType`` copy.

    Usage::

        cell = StateCell()
        cell.set({"user": "ada"})
        cell.value["user"]  # "ada"
        cell.set({})        # raises StateAlreadySet
    """

    __slots__ = ("_lock", "_value", "_version")

    def __init__(self) -> None:
        self._value: Any = None
        self._version = 0
        self._lock = threading.Lock()

    @property
    def value(self) -> Any:
        return self._value

    @property
    def version(self) -> int:
        return self._version

    @property
    def is_set(self) -> bool:
        return self._version > 0

    def set(self, value: Any) -> None:
        """Attach *value*. Only the first call succeeds."""
        with self._lock:
            if self._version > 0:
                msg = "Connection state is already attached and cannot change."
                raise StateAlreadySet(msg)
            self._value = _freeze(value)
            self._version = 1

    def __repr__(self) -> str:
        return f"StateCell(version={self._version}, value={self._value!r})"
