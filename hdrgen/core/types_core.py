# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Resolved type nodes.

The front end resolves every written type into one of the TypeNode variants
below before the ABI passes see it. The variant set is closed: the ABI type
mapper classifies each variant as representable or rejected, and
`TYPE_NODE_VARIANTS` lists all of them so tests can check that nothing is left
unclassified.

Only `Indirection` nests; every other variant is a leaf for mapping purposes
(the element/parameter types carried by sequences, tuples and function
pointers are kept for diagnostics only).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class PrimKind(Enum):
	"""Primitive scalar kinds, named after their surface spelling."""

	ISIZE = "isize"
	I8 = "i8"
	I16 = "i16"
	I32 = "i32"
	I64 = "i64"
	USIZE = "usize"
	U8 = "u8"
	U16 = "u16"
	U32 = "u32"
	U64 = "u64"
	F32 = "f32"
	F64 = "f64"
	BOOL = "bool"
	CHAR = "char"

	@classmethod
	def from_name(cls, name: str) -> Optional["PrimKind"]:
		"""Return the kind spelled `name`, or None if it is not a primitive."""
		try:
			return cls(name)
		except ValueError:
			return None


class IndirectionKind(Enum):
	"""Surface forms that are a single machine pointer at the binary level."""

	BOX = "box"  # owned allocation: Box<T>
	PTR = "ptr"  # raw pointer: *const T / *mut T
	REF = "ref"  # reference: &T / &mut T


class TypeNode:
	"""Base class for all resolved type nodes."""

	def describe(self) -> str:
		"""Short human-readable spelling used in diagnostics."""
		raise NotImplementedError


@dataclass(frozen=True)
class Primitive(TypeNode):
	kind: PrimKind

	def describe(self) -> str:
		return self.kind.value


@dataclass(frozen=True)
class Indirection(TypeNode):
	inner: TypeNode
	kind: IndirectionKind = IndirectionKind.PTR
	mutable: bool = False

	def describe(self) -> str:
		inner = self.inner.describe()
		if self.kind is IndirectionKind.BOX:
			return f"Box<{inner}>"
		if self.kind is IndirectionKind.REF:
			return f"&mut {inner}" if self.mutable else f"&{inner}"
		return f"*mut {inner}" if self.mutable else f"*const {inner}"


@dataclass(frozen=True)
class Nil(TypeNode):
	"""The unit type `()`, also used for an omitted return type."""

	def describe(self) -> str:
		return "()"


@dataclass(frozen=True)
class Never(TypeNode):
	"""The bottom type `!`."""

	def describe(self) -> str:
		return "!"


@dataclass(frozen=True)
class NamedOther(TypeNode):
	"""Any path that does not resolve to a primitive (structs, enums, aliases, std types)."""

	name: str
	item_id: Optional[int] = None  # defining item when declared in the unit

	def describe(self) -> str:
		return self.name


@dataclass(frozen=True)
class DynamicSequence(TypeNode):
	"""Unsized slice `[T]`."""

	elem: TypeNode

	def describe(self) -> str:
		return f"[{self.elem.describe()}]"


@dataclass(frozen=True)
class FixedSequence(TypeNode):
	"""Fixed-length array `[T; N]`."""

	elem: TypeNode
	length: str

	def describe(self) -> str:
		return f"[{self.elem.describe()}; {self.length}]"


@dataclass(frozen=True)
class Closure(TypeNode):
	"""Closure trait type (`impl Fn(..)`, `dyn FnMut(..)`)."""

	trait_name: str
	params: tuple[TypeNode, ...] = field(default_factory=tuple)
	ret: Optional[TypeNode] = None

	def describe(self) -> str:
		params = ", ".join(p.describe() for p in self.params)
		return f"{self.trait_name}({params})"


@dataclass(frozen=True)
class FunctionPointer(TypeNode):
	"""Bare function pointer `fn(..) -> R`."""

	params: tuple[TypeNode, ...] = field(default_factory=tuple)
	ret: Optional[TypeNode] = None
	abi: Optional[str] = None

	def describe(self) -> str:
		params = ", ".join(p.describe() for p in self.params)
		return f"fn({params})"


@dataclass(frozen=True)
class Tuple(TypeNode):
	"""Tuple type with at least one element (`(T,)`, `(A, B)`)."""

	elems: tuple[TypeNode, ...]

	def describe(self) -> str:
		if len(self.elems) == 1:
			return f"({self.elems[0].describe()},)"
		return "(" + ", ".join(e.describe() for e in self.elems) + ")"


@dataclass(frozen=True)
class Inferred(TypeNode):
	"""Placeholder `_` or any type the front end could not resolve."""

	def describe(self) -> str:
		return "_"


@dataclass(frozen=True)
class TextString(TypeNode):
	"""`str` / `String`: no fixed-width representation."""

	name: str = "str"

	def describe(self) -> str:
		return self.name


TYPE_NODE_VARIANTS: tuple[type[TypeNode], ...] = (
	Primitive,
	Indirection,
	Nil,
	Never,
	NamedOther,
	DynamicSequence,
	FixedSequence,
	Closure,
	FunctionPointer,
	Tuple,
	Inferred,
	TextString,
)


__all__ = [
	"PrimKind",
	"IndirectionKind",
	"TypeNode",
	"Primitive",
	"Indirection",
	"Nil",
	"Never",
	"NamedOther",
	"DynamicSequence",
	"FixedSequence",
	"Closure",
	"FunctionPointer",
	"Tuple",
	"Inferred",
	"TextString",
	"TYPE_NODE_VARIANTS",
]
