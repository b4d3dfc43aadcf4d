"""Function signatures and linking of host functions to a module's imports."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable

from .code import CodePage
from .errors import FunctionLookupFailed, M3Error, MalformedSignature, MissingReturnType
from .hostapi import Frame, Runtime

MAX_SANE_FUNCTION_ARG_COUNT = 1000

OP_CALL_RAW_FUNCTION = "op_CallRawFunction"
OP_CALL_RAW_FUNCTION_EX = "op_CallRawFunctionEx"

RawFunction = Callable[..., Any]


class ValueType(IntEnum):
    """Value types usable in function signatures."""

    NONE = 0
    I32 = 1
    I64 = 2
    F32 = 3
    F64 = 4
    VOID = 5
    PTR = 6


_TYPE_CHARS = {
    "v": ValueType.VOID,
    "i": ValueType.I32,
    "I": ValueType.I64,
    "f": ValueType.F32,
    "F": ValueType.F64,
    "*": ValueType.PTR,
}


def type_from_char(code: str) -> ValueType:
    """Map a signature character to its value type; unknown characters give NONE."""
    return _TYPE_CHARS.get(code, ValueType.NONE)


@dataclass(frozen=True)
class FuncType:
    """A function's return type (NONE for void) and argument types."""

    return_type: ValueType = ValueType.NONE
    arg_types: tuple[ValueType, ...] = ()


def parse_signature(signature: str | None) -> FuncType:
    """Parse a signature such as "i(iI*)" into a FuncType; pointers become i32."""
    if signature is None:
        raise MalformedSignature("null function signature")
    if len(signature) < 3:
        raise MalformedSignature()
    max_args = len(signature) - 3
    if max_args > MAX_SANE_FUNCTION_ARG_COUNT:
        raise MalformedSignature("insane argument count")

    return_type = ValueType.NONE
    args: list[ValueType] = []
    has_return = False
    parsing_args = False

    for char in signature:
        if char == "(":
            if not has_return:
                break
            parsing_args = True
            continue
        if char == " ":
            continue
        if char == ")":
            break

        value_type = type_from_char(char)
        if value_type is ValueType.NONE:
            raise MalformedSignature(f"unknown argument type char {char!r}")

        if not parsing_args:
            if has_return:
                raise MalformedSignature("malformed function signature; too many return types")
            has_return = True
            if value_type is ValueType.VOID:
                value_type = ValueType.NONE
            elif value_type is ValueType.PTR:
                value_type = ValueType.I32
            return_type = value_type
        else:
            if len(args) >= max_args:
                raise MalformedSignature()
            if value_type is ValueType.PTR:
                value_type = ValueType.I32
            args.append(value_type)

    if not has_return:
        raise MissingReturnType()
    return FuncType(return_type, tuple(args))


@dataclass
class ImportedFunction:
    """A function a module imports; once linked, compiled points at its code."""

    module_name: str
    field_name: str
    func_type: FuncType | None = None
    compiled: tuple[CodePage, int] | None = None
    module: HostModule | None = None


def _acquire_page(runtime: Runtime, num_lines: int) -> CodePage:
    head = next(iter(runtime.code_pages), None)
    if head is not None and head.num_free_lines >= num_lines:
        return head
    page = CodePage(num_lines)
    runtime.code_pages.push(page)
    return page


@dataclass
class HostModule:
    """A module's imported functions, linkable to host callables."""

    runtime: Runtime | None = None
    functions: list[ImportedFunction] = field(default_factory=list)

    def add_import(
        self, module_name: str, field_name: str, func_type: FuncType | None = None
    ) -> ImportedFunction:
        """Declare an imported function and return it."""
        function = ImportedFunction(module_name, field_name, func_type)
        self.functions.append(function)
        return function

    def _matching(self, module_name: str, field_name: str):
        wildcard = module_name == "*"
        for function in self.functions:
            if not function.module_name or not function.field_name:
                continue
            if function.field_name == field_name and (
                wildcard or function.module_name == module_name
            ):
                yield function

    def find_function(self, module_name: str, field_name: str) -> ImportedFunction | None:
        """First import with this field name in module_name ("*" matches any module)."""
        return next(self._matching(module_name, field_name), None)

    def _link(self, function: ImportedFunction, signature: str, words: list[Any]) -> None:
        if self.runtime is None:
            raise M3Error("module is not loaded into a runtime")
        parse_signature(signature)
        page = _acquire_page(self.runtime, len(words))
        function.compiled = (page, page.pc)
        function.module = self
        for word in words:
            page.emit(word)

    def link_raw_function(
        self, module_name: str, field_name: str, signature: str, function: RawFunction
    ) -> None:
        """Link function(runtime, frame) to every matching import."""
        found = False
        for imported in self._matching(module_name, field_name):
            self._link(imported, signature, [OP_CALL_RAW_FUNCTION, function])
            found = True
        if not found:
            raise FunctionLookupFailed()

    def link_raw_function_ex(
        self,
        module_name: str,
        field_name: str,
        signature: str,
        function: RawFunction,
        cookie: Any,
    ) -> None:
        """Link function(runtime, frame, cookie) to the first matching import."""
        imported = self.find_function(module_name, field_name)
        if imported is None:
            raise FunctionLookupFailed()
        self._link(imported, signature, [OP_CALL_RAW_FUNCTION_EX, function, cookie])


__all__ = [
    "Frame",
    "FuncType",
    "HostModule",
    "ImportedFunction",
    "ValueType",
    "parse_signature",
    "type_from_char",
]