# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Resolved type → C ABI type token.

`map_type` is pure and total over the TypeNode variants. A representable type
maps to an exact AbiType; anything else maps to a Reject naming the construct.
There is no approximate mapping: a type the C side cannot lay out identically
is always rejected, and the caller treats a Reject as fatal for the unit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Union

from hdrgen.core.types_core import (
	Closure,
	DynamicSequence,
	FixedSequence,
	FunctionPointer,
	Indirection,
	Inferred,
	NamedOther,
	Never,
	Nil,
	PrimKind,
	Primitive,
	TextString,
	Tuple,
	TypeNode,
)

VOID = "void"

PRIMITIVE_TOKENS: Dict[PrimKind, str] = {
	PrimKind.ISIZE: "intptr_t",
	PrimKind.I8: "int8_t",
	PrimKind.I16: "int16_t",
	PrimKind.I32: "int32_t",
	PrimKind.I64: "int64_t",
	PrimKind.USIZE: "uintptr_t",
	PrimKind.U8: "uint8_t",
	PrimKind.U16: "uint16_t",
	PrimKind.U32: "uint32_t",
	PrimKind.U64: "uint64_t",
	PrimKind.F32: "float",
	PrimKind.F64: "double",
	# bool is one byte holding 0 or 1.
	PrimKind.BOOL: "uint8_t",
	# char is a full Unicode scalar value, not a C char.
	PrimKind.CHAR: "uint32_t",
}


@dataclass(frozen=True)
class AbiType:
	"""A C type token: a base spelling plus a number of pointer levels."""

	base: str
	pointer_depth: int = 0

	def pointer_to(self) -> "AbiType":
		return AbiType(self.base, self.pointer_depth + 1)

	def render(self) -> str:
		return self.base + "*" * self.pointer_depth

	def __str__(self) -> str:
		return self.render()


@dataclass(frozen=True)
class Reject:
	"""A type with no C representation."""

	reason: str
	construct: str  # spelling of the offending type, for diagnostics

	def __str__(self) -> str:
		return f"{self.reason}: `{self.construct}`"


MapResult = Union[AbiType, Reject]


def map_type(node: TypeNode) -> MapResult:
	"""
	Map a resolved type to its C ABI token.

	Indirection of any depth maps to the inner token plus one `*` per level;
	a Reject anywhere inside propagates unchanged.
	"""
	if isinstance(node, Primitive):
		return AbiType(PRIMITIVE_TOKENS[node.kind])
	if isinstance(node, Indirection):
		inner = map_type(node.inner)
		if isinstance(inner, Reject):
			return inner
		return inner.pointer_to()
	if isinstance(node, (Nil, Never)):
		return AbiType(VOID)
	if isinstance(node, NamedOther):
		return Reject("only primitive types are supported, not named types", node.describe())
	if isinstance(node, DynamicSequence):
		return Reject("sequence types are not supported", node.describe())
	if isinstance(node, FixedSequence):
		return Reject("fixed-length sequence types are not supported", node.describe())
	if isinstance(node, Closure):
		return Reject("closure types are not supported", node.describe())
	if isinstance(node, FunctionPointer):
		return Reject("function pointer types are not supported", node.describe())
	if isinstance(node, Tuple):
		return Reject("tuple types are not supported", node.describe())
	if isinstance(node, Inferred):
		return Reject("inferred or unresolved types cannot be exported", node.describe())
	if isinstance(node, TextString):
		return Reject("string type has no fixed-width ABI representation", node.describe())
	raise AssertionError(f"unclassified type node {type(node).__name__} reached the ABI mapper")


__all__ = ["AbiType", "Reject", "MapResult", "map_type", "PRIMITIVE_TOKENS", "VOID"]
