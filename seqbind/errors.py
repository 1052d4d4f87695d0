"""Error classes for generation time, call time, and broken contracts."""

from __future__ import annotations


# ---------------------------------------------------------------------------
# Generation time
# ---------------------------------------------------------------------------


class BindError(Exception):
    """A declaration the binder cannot bind. Collected, never fatal alone."""

    kind = "bind"

    def __init__(self, decl: str, message: str) -> None:
        super().__init__(message)
        self.decl: str = decl
        self.message: str = message

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return "error: [" + self.kind + "] " + self.message


class UnsupportedType(BindError):
    """A type reachable from an exported signature has no WireType."""

    kind = "types"


class TooManyResults(BindError):
    """A signature has more results than the calling convention allows."""

    kind = "signatures"


class ResultNotError(BindError):
    """The second of two results is not the failure type."""

    kind = "signatures"


class GenerationFailed(Exception):
    """Raised at the end of generation when diagnostics were collected."""

    def __init__(self, errors: list[BindError]) -> None:
        super().__init__("\n".join(str(e) for e in errors))
        self.errors: list[BindError] = list(errors)


# ---------------------------------------------------------------------------
# Call time
# ---------------------------------------------------------------------------


class CallError(Exception):
    """A failure reported by the callee through the failure channel."""

    def __init__(self, message: str, descriptor: str = "", code: int = 0) -> None:
        super().__init__(message)
        self.message: str = message
        self.descriptor: str = descriptor
        self.code: int = code


# ---------------------------------------------------------------------------
# Broken contracts
#
# The two stub halves were generated from different or corrupted models.
# These derive from BaseException so that `except Exception` in user code
# never recovers from them.
# ---------------------------------------------------------------------------


class ContractViolation(BaseException):
    """Fatal: caller and callee disagree on the wire contract."""


class DispatchMiss(ContractViolation):
    """No handler is registered for (descriptor, code)."""

    def __init__(self, descriptor: str, code: int) -> None:
        super().__init__("seq: no handler for " + repr(descriptor) + " code " + hex(code))
        self.descriptor: str = descriptor
        self.code: int = code


class DuplicateRegistration(ContractViolation):
    """A second handler was registered under an existing (descriptor, code)."""

    def __init__(self, descriptor: str, code: int) -> None:
        super().__init__(
            "seq: duplicate registration for " + repr(descriptor) + " code " + hex(code)
        )
        self.descriptor: str = descriptor
        self.code: int = code


class UnknownRef(ContractViolation):
    """A handle that was never issued or was already released."""

    def __init__(self, handle: int) -> None:
        super().__init__("seq: unknown or released ref " + str(handle))
        self.handle: int = handle


class RefTypeMismatch(ContractViolation):
    """A handle resolved to an object of an unexpected type."""

    def __init__(self, handle: int, expected: str, actual: str) -> None:
        super().__init__(
            "seq: ref " + str(handle) + " is " + actual + ", expected " + expected
        )
        self.handle: int = handle


class DuplicateSite(ContractViolation):
    """Code assignment gave two members the same (descriptor, code)."""

    def __init__(self, sites: list) -> None:
        super().__init__("duplicate call sites: " + ", ".join(str(s) for s in sites))
        self.sites: list = list(sites)


class BufferUnderflow(ContractViolation):
    """A read ran past the end of the buffer."""


class BufferFreed(ContractViolation):
    """A buffer was used after free()."""
