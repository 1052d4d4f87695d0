"""Delivery of a request buffer to the callee side.

A transport carries one synchronous call: the caller blocks in send() until
the callee has filled the response. The physical mechanism (FFI, shared
memory) belongs to the host; Loopback delivers in-process.
"""

from __future__ import annotations

from typing import Protocol

from .buffer import Buffer
from .dispatch import DispatchTable, default_table


class Transport(Protocol):
    def send(self, descriptor: str, code: int, in_: Buffer, out: Buffer) -> None:
        """Deliver in_ to the handler at (descriptor, code); it fills out."""
        ...


class Loopback:
    """Transport that dispatches straight into a DispatchTable."""

    def __init__(self, table: DispatchTable | None = None) -> None:
        self.table = table if table is not None else default_table()
        self.calls: int = 0

    def send(self, descriptor: str, code: int, in_: Buffer, out: Buffer) -> None:
        self.calls += 1
        # The callee reads its own copy so the caller's cursor is untouched.
        request = Buffer(in_.getvalue())
        try:
            self.table.dispatch(descriptor, code, out, request)
        finally:
            request.free()
