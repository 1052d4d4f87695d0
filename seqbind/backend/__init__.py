"""Backends - a Binding in, stubs out."""

from .go import GoBackend, emit_go
from .objc import ObjcBackend, emit_objc_header, emit_objc_impl
from .python import Proxy, bind_callee, bind_caller

__all__ = [
    "GoBackend",
    "ObjcBackend",
    "Proxy",
    "bind_callee",
    "bind_caller",
    "emit_go",
    "emit_objc_header",
    "emit_objc_impl",
]
