"""Cross-runtime object references.

RefTable lives on the side that owns objects and hands out handles.
ProxyCache lives on the side that observes them and keeps one wrapper per
handle. Neither takes ownership: the owner removes entries when it disposes
an object.
"""

from __future__ import annotations

import threading
import weakref
from typing import Callable, TypeVar

from ..errors import RefTypeMismatch, UnknownRef

NIL = 0

T = TypeVar("T")


class RefTable:
    """Handle <-> object relation for objects that crossed the boundary.

    Invariants:
    - the same object always maps to the same handle until released
    - handles are never reused; 0 is nil
    """

    def __init__(self) -> None:
        self._by_handle: dict[int, object] = {}
        self._by_identity: dict[int, int] = {}
        self._next: int = 1
        self._lock = threading.Lock()

    def ref(self, obj: object | None) -> int:
        """Handle for obj, inserted on its first crossing."""
        if obj is None:
            return NIL
        with self._lock:
            existing = self._by_identity.get(id(obj))
            if existing is not None:
                return existing
            handle = self._next
            self._next += 1
            self._by_handle[handle] = obj
            self._by_identity[id(obj)] = handle
            return handle

    def get(self, handle: int, expected: type[T] | tuple[type, ...] | None = None) -> T | None:
        """Object behind handle, checked against expected.

        A stale handle or a type mismatch means the two halves disagree on
        the model; both raise ContractViolation subclasses.
        """
        if handle == NIL:
            return None
        obj = self._by_handle.get(handle)
        if obj is None:
            raise UnknownRef(handle)
        if expected is not None and not isinstance(obj, expected):
            raise RefTypeMismatch(handle, _type_label(expected), type(obj).__name__)
        return obj

    def release(self, handle: int) -> None:
        """Owner disposal. Releasing an unknown handle is a no-op."""
        with self._lock:
            obj = self._by_handle.pop(handle, None)
            if obj is not None:
                self._by_identity.pop(id(obj), None)

    def __contains__(self, handle: int) -> bool:
        return handle in self._by_handle

    def __len__(self) -> int:
        return len(self._by_handle)


def _type_label(expected: type | tuple[type, ...]) -> str:
    if isinstance(expected, tuple):
        return " | ".join(t.__name__ for t in expected)
    return expected.__name__


class ProxyCache:
    """Handle -> live wrapper, get-or-create.

    Wrappers are held weakly: a wrapper nobody references may be collected,
    and the next crossing of its handle creates a fresh one.
    """

    def __init__(self) -> None:
        self._proxies: weakref.WeakValueDictionary[int, object] = weakref.WeakValueDictionary()
        self._lock = threading.Lock()

    def lookup(self, handle: int) -> object | None:
        return self._proxies.get(handle)

    def get_or_create(self, handle: int, factory: Callable[[int], T]) -> T | None:
        if handle == NIL:
            return None
        proxy = self._proxies.get(handle)
        if proxy is not None:
            return proxy
        with self._lock:
            proxy = self._proxies.get(handle)
            if proxy is None:
                proxy = factory(handle)
                self._proxies[handle] = proxy
            return proxy

    def drop(self, handle: int) -> None:
        with self._lock:
            self._proxies.pop(handle, None)

    def __contains__(self, handle: int) -> bool:
        return handle in self._proxies

    def __len__(self) -> int:
        return len(self._proxies)
