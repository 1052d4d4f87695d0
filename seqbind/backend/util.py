"""Shared utilities for stub emitters."""

from __future__ import annotations

from ..errors import GenerationFailed
from ..ir import Binding

# Wire type -> method suffix of the seq runtime in each target.
# go_seq_write<Suffix> / in.Read<Suffix>
GO_SEQ_SUFFIX: dict[str, str] = {
    "Bool": "Bool",
    "Int32": "Int32",
    "Int64": "Int64",
    "Float64": "Float64",
    "String": "String",
    "Bytes": "ByteArray",
    "ObjectRef": "Ref",
}

OBJC_SEQ_SUFFIX: dict[str, str] = {
    "Bool": "Bool",
    "Int32": "Int32",
    "Int64": "Int64",
    "Float64": "Float64",
    "String": "UTF8",
    "Bytes": "ByteArray",
    "ObjectRef": "Ref",
}

GENERATED_NOTICE = "File is generated by seqbind. Do not edit."


def escape_string(value: str) -> str:
    """Escape a string for use in a C-family string literal (without quotes)."""
    return (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
        .replace("\r", "\\r")
    )


def require_ok(binding: Binding) -> None:
    """Fail generation when the frontend collected diagnostics."""
    if not binding.ok():
        raise GenerationFailed(binding.errors())


class Emitter:
    """Base class for code emitters with indentation tracking."""

    def __init__(self, indent_str: str = "    ") -> None:
        self.indent: int = 0
        self.lines: list[str] = []
        self._indent_str = indent_str

    def line(self, text: str = "") -> None:
        """Emit a line with current indentation."""
        if text:
            self.lines.append(self._indent_str * self.indent + text)
        else:
            self.lines.append("")

    def block(self, opener: str, closer: str = "}") -> "_Block":
        """Emit opener, indent until the with-block ends, then emit closer."""
        return _Block(self, opener, closer)

    def output(self) -> str:
        """Return the accumulated output as a string."""
        return "\n".join(self.lines) + "\n"


class _Block:
    def __init__(self, emitter: Emitter, opener: str, closer: str) -> None:
        self.emitter = emitter
        self.opener = opener
        self.closer = closer

    def __enter__(self) -> Emitter:
        self.emitter.line(self.opener)
        self.emitter.indent += 1
        return self.emitter

    def __exit__(self, *exc: object) -> None:
        self.emitter.indent -= 1
        self.emitter.line(self.closer)
