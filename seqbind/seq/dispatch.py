"""Process-wide dispatch table: (descriptor, code) -> handler.

Handlers register at startup; dispatch happens afterwards. Registration is
serialized; lookups read the table without locking.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from ..errors import DispatchMiss, DuplicateRegistration
from .buffer import Buffer

logger = logging.getLogger(__name__)

Handler = Callable[[Buffer, Buffer], None]
"""handle(out, in_): decode in_, invoke, encode into out."""


class DispatchTable:
    """Handlers keyed by (descriptor, code)."""

    def __init__(self) -> None:
        self._handlers: dict[tuple[str, int], Handler] = {}
        self._lock = threading.Lock()

    def register(self, descriptor: str, code: int, handler: Handler) -> None:
        key = (descriptor, code)
        with self._lock:
            if key in self._handlers:
                raise DuplicateRegistration(descriptor, code)
            self._handlers[key] = handler
        logger.debug("registered %s code %#x", descriptor, code)

    def lookup(self, descriptor: str, code: int) -> Handler:
        handler = self._handlers.get((descriptor, code))
        if handler is None:
            raise DispatchMiss(descriptor, code)
        return handler

    def dispatch(self, descriptor: str, code: int, out: Buffer, in_: Buffer) -> None:
        self.lookup(descriptor, code)(out, in_)

    def __contains__(self, key: tuple[str, int]) -> bool:
        return key in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def keys(self) -> list[tuple[str, int]]:
        return list(self._handlers.keys())


_default = DispatchTable()


def default_table() -> DispatchTable:
    """The process-wide table."""
    return _default


def register(descriptor: str, code: int, handler: Handler) -> None:
    _default.register(descriptor, code, handler)


def dispatch(descriptor: str, code: int, out: Buffer, in_: Buffer) -> None:
    _default.dispatch(descriptor, code, out, in_)
