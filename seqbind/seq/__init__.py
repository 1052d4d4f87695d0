"""Runtime shared by both halves of a binding: codec, dispatch, references."""

from .buffer import Buffer
from .dispatch import DispatchTable, default_table, dispatch, register
from .refs import NIL, ProxyCache, RefTable
from .transport import Loopback, Transport

__all__ = [
    "NIL",
    "Buffer",
    "DispatchTable",
    "Loopback",
    "ProxyCache",
    "RefTable",
    "Transport",
    "default_table",
    "dispatch",
    "register",
]
