"""ObjcBackend: Binding -> Objective-C caller stubs (header and implementation).

The header declares one wrapper class per bound struct and one exported C
function per package function. The implementation encodes arguments into a
GoSeq buffer, sends under the member's (descriptor, code), decodes the
response in the order the dispatcher wrote it, and frees both buffers.

Failure results surface through an NSError** out-parameter and a BOOL
return, following Cocoa convention.
"""

from __future__ import annotations

import logging

from ..ir import Binding, BoundType, CallShape, Member, ParamShape, TypeMapping
from ..model import Basic, Package
from .util import GENERATED_NOTICE, OBJC_SEQ_SUFFIX, Emitter, escape_string, require_ok

logger = logging.getLogger(__name__)

_OBJC_BASIC: dict[str, str] = {
    "bool": "BOOL",
    "int": "long",
    "int8": "int8_t",
    "int16": "int16_t",
    "int32": "int32_t",
    "int64": "int64_t",
    "uint": "unsigned long",
    # byte is an alias of uint8, and the alias is lost.
    "uint8": "byte",
    "uint16": "uint16_t",
    "uint32": "uint32_t",
    "uint64": "uint64_t",
    "float32": "float",
    "float64": "double",
    "string": "NSString*",
}

_PREAMBLE = """// Objective-C API for talking to {path} Go package.
//   seqbind --lang {lang} {path}
//
// {notice}
"""


def objc_type(m: TypeMapping) -> str:
    """Surface type of a mapped value."""
    if m.wire == "ObjectRef":
        return str(m.wrapper) + "*"
    if m.wire == "Bytes":
        return "NSData*"
    assert isinstance(m.source, Basic)
    return _OBJC_BASIC[m.source.kind]


class _Summary:
    """A CallShape seen from the Objective-C side.

    ret_params are the values decoded after the send: the result, then the
    failure message. When the shape does not return a plain value, each of
    them becomes a trailing out-parameter.
    """

    def __init__(self, name: str, shape: CallShape) -> None:
        self.name = name
        self.shape = shape
        self.params: list[ParamShape] = shape.params
        self.ret_params: list[ParamShape] = []
        if shape.result is not None:
            self.ret_params.append(shape.result)

    @property
    def returns_val(self) -> bool:
        return self.shape.returns_value

    def ret_type(self) -> str:
        if self.shape.has_error:
            return "BOOL"
        if self.shape.result is not None:
            return objc_type(self.shape.result.mapping)
        return "void"

    def out_params(self) -> list[tuple[str, str]]:
        """(type, name) of trailing out-parameters."""
        if self.returns_val:
            return []
        result = [(objc_type(p.mapping) + "*", p.name) for p in self.ret_params]
        if self.shape.has_error:
            result.append(("NSError**", self.shape.error_name))
        return result

    def as_func(self, prefix: str) -> str:
        params = [objc_type(p.mapping) + " " + p.name for p in self.params]
        params += [t + " " + n for t, n in self.out_params()]
        return self.ret_type() + " " + prefix + self.name + "(" + ", ".join(params) + ")"

    def as_method(self) -> str:
        params: list[str] = []
        for i, p in enumerate(self.params):
            key = p.name if i != 0 else ""
            params.append(key + ":(" + objc_type(p.mapping) + ")" + p.name)
        for t, n in self.out_params():
            key = n if params else ""
            params.append(key + ":(" + t + ")" + n)
        return "(" + self.ret_type() + ")" + self.name + " ".join(params)


class ObjcBackend:
    """Emit Objective-C header and implementation from a Binding."""

    def __init__(self) -> None:
        self.out = Emitter()
        self.prefix = ""

    # ---------------------------------------------------------------
    # Header
    # ---------------------------------------------------------------

    def emit_header(self, binding: Binding) -> str:
        require_ok(binding)
        self.out = Emitter()
        self.prefix = binding.prefix
        pkg = binding.pkg
        self._preamble(pkg, "objc-h")
        guard = "__" + self.prefix + "_H__"
        self.out.line("#ifndef " + guard)
        self.out.line("#define " + guard)
        self.out.line("")
        self.out.line("#include <Foundation/Foundation.h>")
        self.out.line("")
        for name in binding.ref_types:
            self.out.line("@class " + self.prefix + name + ";")
        if binding.ref_types:
            self.out.line("")
        for bound in binding.types:
            if bound.kind == "struct":
                self._struct_h(bound)
            else:
                logger.debug("no stubs for interface %s", bound.name)
                self.out.line("// TODO: " + bound.wrapper + " is not supported.")
            self.out.line("")
        for member in binding.funcs:
            if member.shape is None:
                continue
            summary = _Summary(member.name, member.shape)
            self.out.line("FOUNDATION_EXPORT " + summary.as_func(self.prefix) + ";")
            self.out.line("")
        self.out.line("#endif")
        return self.out.output()

    def _struct_h(self, bound: BoundType) -> None:
        self.out.line("@interface " + bound.wrapper + " : NSObject {")
        self.out.line("}")
        self.out.line("@property(strong, readonly) id ref;")
        self.out.line("")
        self.out.line("- (id)initWithRef:(id)ref;")
        for member in bound.members:
            if member.shape is None:
                continue
            summary = _Summary(member.shape.name, member.shape)
            self.out.line("- " + summary.as_method() + ";")
        self.out.line("@end")

    # ---------------------------------------------------------------
    # Implementation
    # ---------------------------------------------------------------

    def emit_impl(self, binding: Binding) -> str:
        require_ok(binding)
        self.out = Emitter()
        self.prefix = binding.prefix
        pkg = binding.pkg
        self._preamble(pkg, "objc-m")
        self.out.line('#include "' + self.prefix + '.h"')
        self.out.line("#include <Foundation/Foundation.h>")
        self.out.line('#include "seq.h"')
        self.out.line("")
        self.out.line('static NSString *errDomain = @"go.' + escape_string(pkg.path) + '";')
        self.out.line("")
        self.out.line('#define _DESCRIPTOR_ "' + escape_string(binding.descriptor) + '"')
        self.out.line("")
        for member in binding.funcs:
            self.out.line("#define _CALL_" + member.name + "_ " + str(member.site.code))
        self.out.line("")
        for bound in binding.types:
            if bound.kind == "struct":
                self._struct_m(binding, bound)
            else:
                logger.debug("no stubs for interface %s", bound.name)
                self.out.line("// TODO: " + bound.wrapper + " is not supported.")
            self.out.line("")
        for member in binding.funcs:
            if member.shape is None:
                continue
            summary = _Summary(member.name, member.shape)
            with self.out.block(summary.as_func(self.prefix) + " {"):
                self._gen_func("_DESCRIPTOR_", "_CALL_" + member.name + "_", summary, False)
            self.out.line("")
        return self.out.output()

    def _struct_m(self, binding: Binding, bound: BoundType) -> None:
        desc = "_GO_" + binding.pkg.name + "_" + bound.name
        self.out.line("#define " + desc + '_DESCRIPTOR_ "' + escape_string(bound.descriptor) + '"')
        for member in bound.members:
            self.out.line("#define " + _define(desc, member) + " (0x%03x)" % member.site.code)
        self.out.line("")
        self.out.line("@implementation " + bound.wrapper + " {")
        self.out.line("}")
        self.out.line("")
        with self.out.block("- (id)initWithRef:(id)ref {"):
            self.out.line("self = [super init];")
            self.out.line("if (self) { _ref = ref; }")
            self.out.line("return self;")
        self.out.line("")
        for member in bound.members:
            if member.shape is None:
                continue
            summary = _Summary(member.shape.name, member.shape)
            with self.out.block("- " + summary.as_method() + " {"):
                self._gen_func(desc + "_DESCRIPTOR_", _define(desc, member), summary, True)
            self.out.line("")
        self.out.line("@end")

    def _gen_func(self, pkg_desc: str, call_desc: str, s: _Summary, is_method: bool) -> None:
        line = self.out.line
        line("GoSeq in_ = {};")
        line("GoSeq out_ = {};")
        if is_method:
            line("go_seq_writeRef(&in_, self.ref);")
        for p in s.params:
            suffix = OBJC_SEQ_SUFFIX[p.wire]
            if p.wire == "ObjectRef":
                line("go_seq_write" + suffix + "(&in_, " + p.name + ".ref);")
            else:
                line("go_seq_write" + suffix + "(&in_, " + p.name + ");")
        line("go_seq_send(" + pkg_desc + ", " + call_desc + ", &in_, &out_);")
        if s.returns_val:
            p = s.ret_params[0]
            if p.wire != "ObjectRef":
                line(objc_type(p.mapping) + " " + p.name + " = go_seq_read" + OBJC_SEQ_SUFFIX[p.wire] + "(&out_);")
            else:
                ptype = objc_type(p.mapping)
                line("GoSeqRef* " + p.name + "_ref = go_seq_readRef(&out_);")
                line(ptype + " " + p.name + " = " + p.name + "_ref.obj;")
                with self.out.block("if (" + p.name + " == NULL) {"):
                    line(p.name + " = [[" + ptype[:-1] + " alloc] initWithRef:" + p.name + "_ref];")
        else:
            for p in s.ret_params:
                if p.wire != "ObjectRef":
                    line(objc_type(p.mapping) + " " + p.name + "_val = go_seq_read" + OBJC_SEQ_SUFFIX[p.wire] + "(&out_);")
                    with self.out.block("if (" + p.name + " != NULL) {"):
                        line("*" + p.name + " = " + p.name + "_val;")
                else:
                    ptype = objc_type(p.mapping)
                    line("GoSeqRef* " + p.name + "_ref = go_seq_readRef(&out_);")
                    with self.out.block("if (" + p.name + " != NULL) {"):
                        line("*" + p.name + " = " + p.name + "_ref.obj;")
                        with self.out.block("if (*" + p.name + " == NULL) {"):
                            line("*" + p.name + " = [[" + ptype[:-1] + " alloc] initWithRef:" + p.name + "_ref];")
            if s.shape.has_error:
                err = s.shape.error_name
                line("NSString* _" + err + " = go_seq_readUTF8(&out_);")
                with self.out.block("if ([_" + err + " length] != 0 && " + err + " != nil) {"):
                    line("NSMutableDictionary *details = [NSMutableDictionary dictionary];")
                    line("[details setValue:_" + err + " forKey:NSLocalizedDescriptionKey];")
                    line("*" + err + " = [NSError errorWithDomain:errDomain code:1 userInfo:details];")
        line("go_seq_free(&in_);")
        line("go_seq_free(&out_);")
        if s.shape.has_error:
            line("return ([_" + s.shape.error_name + " length] == 0);")
        elif s.returns_val:
            line("return " + s.ret_params[0].name + ";")

    def _preamble(self, pkg: Package, lang: str) -> None:
        for text in _PREAMBLE.format(path=pkg.path, lang=lang, notice=GENERATED_NOTICE).split("\n"):
            self.out.line(text)


def _define(desc: str, member: Member) -> str:
    if member.kind == "field_get":
        return desc + "_FIELD_" + member.name + "_GET_"
    if member.kind == "field_set":
        return desc + "_FIELD_" + member.name + "_SET_"
    return desc + "_" + member.name + "_"


def emit_objc_header(binding: Binding) -> str:
    return ObjcBackend().emit_header(binding)


def emit_objc_impl(binding: Binding) -> str:
    return ObjcBackend().emit_impl(binding)
