"""GoBackend: Binding -> Go callee dispatcher.

Emits one package `go_<pkg>` with a handler per bound member. Each handler
decodes the request in declared order, calls the real declaration, encodes
the response, and is registered under its (descriptor, code) from init().

Pure syntax emission - no analysis. All decisions come from the Binding.
"""

from __future__ import annotations

import logging

from ..ir import Binding, BoundType, CallShape, Member, TypeMapping
from ..model import Basic
from .util import GENERATED_NOTICE, GO_SEQ_SUFFIX, Emitter, escape_string, require_ok

logger = logging.getLogger(__name__)

# Exact source kinds of each wire type; anything else needs a conversion.
_NATIVE_KIND: dict[str, str] = {
    "Int32": "int32",
    "Int64": "int64",
    "Float64": "float64",
}

DEFAULT_SEQ_IMPORT = "golang.org/x/mobile/bind/seq"


class GoBackend:
    """Emit Go dispatcher code from a Binding."""

    def __init__(self, seq_import: str = DEFAULT_SEQ_IMPORT) -> None:
        self.seq_import = seq_import
        self.out = Emitter(indent_str="\t")
        self.pkg = ""

    def emit(self, binding: Binding) -> str:
        require_ok(binding)
        self.out = Emitter(indent_str="\t")
        self.pkg = binding.pkg.name
        self._emit_header(binding)
        for member in binding.funcs:
            if member.bound:
                self._emit_func(member)
        for bound in binding.types:
            if bound.kind == "struct":
                self._emit_struct(bound)
            else:
                logger.debug("no stubs for interface %s", bound.name)
                self.out.line("// TODO: interface " + bound.name + " is not bound.")
                self.out.line("")
        self._emit_func_registration(binding)
        return self.out.output()

    # ---------------------------------------------------------------
    # Layout
    # ---------------------------------------------------------------

    def _emit_header(self, binding: Binding) -> None:
        path = binding.pkg.path
        self.out.line("// Package go_" + self.pkg + " is an autogenerated binder stub for package " + self.pkg + ".")
        self.out.line("//   seqbind --lang go " + path)
        self.out.line("//")
        self.out.line("// " + GENERATED_NOTICE)
        self.out.line("package go_" + self.pkg)
        self.out.line("")
        with self.out.block("import (", ")"):
            if path.rsplit("/", 1)[-1] == self.pkg:
                self.out.line('"' + escape_string(path) + '"')
            else:
                self.out.line(self.pkg + ' "' + escape_string(path) + '"')
            self.out.line('"' + escape_string(self.seq_import) + '"')
        self.out.line("")

    def _emit_func(self, member: Member) -> None:
        shape = member.shape
        assert shape is not None
        with self.out.block("func proxy_" + member.name + "(out, in *seq.Buffer) {"):
            args = self._emit_params(shape)
            self._emit_call(shape, self.pkg + "." + member.name + "(" + ", ".join(args) + ")")
        self.out.line("")

    def _emit_struct(self, bound: BoundType) -> None:
        proxy = "proxy" + bound.name
        recv = "*" + self.pkg + "." + bound.name
        consts: list[tuple[str, str]] = [(proxy + "_Descriptor", '"' + escape_string(bound.descriptor) + '"')]
        handlers: list[tuple[str, str]] = []
        for member in bound.members:
            if not member.bound:
                continue
            name = proxy + "_" + _suffix(member)
            consts.append((name + "_Code", "0x%03x" % member.site.code))
            handlers.append((name + "_Code", name))
        width = max(len(c[0]) for c in consts)
        with self.out.block("const (", ")"):
            for cname, value in consts:
                self.out.line(cname.ljust(width) + " = " + value)
        self.out.line("")
        self.out.line("type " + proxy + " seq.Ref")
        self.out.line("")
        for member in bound.members:
            if not member.bound:
                continue
            shape = member.shape
            assert shape is not None
            with self.out.block("func " + proxy + "_" + _suffix(member) + "(out, in *seq.Buffer) {"):
                self.out.line("ref := in.ReadRef()")
                if member.kind == "field_set":
                    self._emit_read("v", shape.params[0].mapping)
                    self.out.line("ref.Get().(" + recv + ")." + member.name + " = v")
                elif member.kind == "field_get":
                    assert shape.result is not None
                    self.out.line("v := ref.Get().(" + recv + ")." + member.name)
                    self._emit_write("v", shape.result.mapping)
                else:
                    self.out.line("v := ref.Get().(" + recv + ")")
                    args = self._emit_params(shape)
                    self._emit_call(shape, "v." + member.name + "(" + ", ".join(args) + ")")
            self.out.line("")
        if not handlers:
            return
        with self.out.block("func init() {"):
            for code_const, handler in handlers:
                self.out.line("seq.Register(" + proxy + "_Descriptor, " + code_const + ", " + handler + ")")
        self.out.line("")

    def _emit_func_registration(self, binding: Binding) -> None:
        bound = [m for m in binding.funcs if m.bound]
        if not bound:
            return
        with self.out.block("func init() {"):
            for m in bound:
                desc = '"' + escape_string(m.site.descriptor) + '"'
                self.out.line("seq.Register(" + desc + ", " + str(m.site.code) + ", proxy_" + m.name + ")")

    # ---------------------------------------------------------------
    # Decode / invoke / encode
    # ---------------------------------------------------------------

    def _emit_params(self, shape: CallShape) -> list[str]:
        args: list[str] = []
        for p in shape.params:
            var = "param_" + p.name
            self._emit_read(var, p.mapping)
            args.append(var)
        return args

    def _emit_call(self, shape: CallShape, call: str) -> None:
        if shape.convention == "void":
            self.out.line(call)
            return
        if shape.convention == "value":
            assert shape.result is not None
            self.out.line("res := " + call)
            self._emit_write("res", shape.result.mapping)
            return
        if shape.convention == "error":
            self.out.line("err := " + call)
        else:
            assert shape.result is not None
            self.out.line("res, err := " + call)
            self._emit_write("res", shape.result.mapping)
        with self.out.block("if err == nil {", "} else {"):
            self.out.line('out.WriteString("")')
        self.out.indent += 1
        self.out.line("out.WriteString(err.Error())")
        self.out.indent -= 1
        self.out.line("}")

    def _emit_read(self, var: str, m: TypeMapping) -> None:
        suffix = GO_SEQ_SUFFIX[m.wire]
        if m.wire == "ObjectRef":
            self.out.line("// Must be a Go object")
            self.out.line(var + "_ref := in.ReadRef()")
            self.out.line(var + " := " + self._ref_get(var + "_ref", m))
            return
        read = "in.Read" + suffix + "()"
        kind = _source_kind(m)
        if kind is not None and kind != _NATIVE_KIND.get(m.wire, kind):
            read = kind + "(" + read + ")"
        self.out.line(var + " := " + read)

    def _emit_write(self, value: str, m: TypeMapping) -> None:
        if m.wire == "ObjectRef":
            if m.decl_kind == "struct" and not m.pointer:
                value = "&" + value
            self.out.line("out.WriteGoRef(" + value + ")")
            return
        kind = _source_kind(m)
        native = _NATIVE_KIND.get(m.wire)
        if kind is not None and native is not None and kind != native:
            value = native + "(" + value + ")"
        self.out.line("out.Write" + GO_SEQ_SUFFIX[m.wire] + "(" + value + ")")

    def _ref_get(self, ref: str, m: TypeMapping) -> str:
        if m.decl_kind == "interface":
            return ref + ".Get().(" + self.pkg + "." + str(m.decl) + ")"
        get = ref + ".Get().(*" + self.pkg + "." + str(m.decl) + ")"
        return get if m.pointer else "*" + get


def _source_kind(m: TypeMapping) -> str | None:
    if isinstance(m.source, Basic):
        return m.source.kind
    return None


def _suffix(member: Member) -> str:
    if member.kind == "field_get":
        return member.name + "_Get"
    if member.kind == "field_set":
        return member.name + "_Set"
    return member.name


def emit_go(binding: Binding, seq_import: str = DEFAULT_SEQ_IMPORT) -> str:
    """Go callee dispatcher source for binding."""
    return GoBackend(seq_import).emit(binding)
