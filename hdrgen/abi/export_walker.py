# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Export walker: module tree + export set → header declarations.

The walk is a single depth-first pre-order pass, so declarations come out in
source order. Outcomes per item:

  - Module:   always descended into; only leaf items are export-gated.
  - Function: emitted when it has a C-compatible ABI, is exported and has no
              type/const generics. No speakable symbol name → warning, skipped.
  - Struct:   emitted when exported and non-generic. Tuple/unit structs →
              warning, skipped.
  - Enum:     exported → warning, never emitted.
  - Anything else (and every ineligible function/struct) is ignored silently.

A type without a C representation in an emitted signature is fatal: the walk
stops, the declarations collected so far are discarded, and the returned
WalkResult carries the fatal diagnostic. Warnings never stop the walk.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from hdrgen.core.diagnostics import (
	E_UNSUPPORTED_TYPE,
	W_UNNAMEABLE_SYMBOL,
	W_UNSUPPORTED_ITEM_SHAPE,
	Diagnostic,
	DiagnosticSink,
)
from hdrgen.core.items import (
	EnumItem,
	ExportSet,
	FunctionItem,
	Item,
	ModuleItem,
	StructItem,
)
from hdrgen.core.types_core import TypeNode

from .decls import Declaration, FunctionDecl, StructDecl
from .naming import UNNAMEABLE, resolve_symbol_name
from .type_mapper import AbiType, Reject, map_type

# Calling conventions whose functions can be called from C as declared.
C_COMPATIBLE_ABIS = frozenset({"C", "C-unwind", "cdecl"})


def is_c_abi(abi: Optional[str]) -> bool:
	return abi in C_COMPATIBLE_ABIS


@dataclass
class WalkResult:
	"""Outcome of walking one unit."""

	declarations: List[Declaration] = field(default_factory=list)
	diagnostics: List[Diagnostic] = field(default_factory=list)
	fatal: Diagnostic | None = None

	@property
	def ok(self) -> bool:
		return self.fatal is None


class ExportWalker:
	"""
	Drive declaration production for one unit.

	The walker reports into the injected sink and never raises for user
	errors; internal invariant violations still raise AssertionError.
	"""

	def __init__(self, exported: ExportSet, sink: DiagnosticSink) -> None:
		self.exported = exported
		self.sink = sink
		self._decls: List[Declaration] = []

	def walk(self, root: ModuleItem) -> WalkResult:
		"""Walk `root`; the result carries only the diagnostics this walk reported."""
		self._decls = []
		start = len(self.sink)
		fatal = self._walk_item(root)
		if fatal is not None:
			self._decls = []
		return WalkResult(
			declarations=list(self._decls),
			diagnostics=self.sink.diagnostics[start:],
			fatal=fatal,
		)

	def _walk_item(self, item: Item) -> Diagnostic | None:
		"""Visit one item; returns the fatal diagnostic that aborts the walk, if any."""
		if isinstance(item, ModuleItem):
			for child in item.children:
				fatal = self._walk_item(child)
				if fatal is not None:
					return fatal
			return None
		is_exported = item.item_id in self.exported
		if isinstance(item, FunctionItem):
			if is_exported and is_c_abi(item.abi) and item.generic_count == 0:
				return self._visit_function(item)
			return None
		if isinstance(item, StructItem):
			if is_exported and item.generic_count == 0:
				return self._visit_struct(item)
			return None
		if isinstance(item, EnumItem):
			if is_exported:
				self.sink.warn(
					f"exported enum `{item.name}` is not emitted (unsupported item kind)",
					code=W_UNSUPPORTED_ITEM_SHAPE,
					span=item.span,
					item=item.name,
				)
			return None
		return None

	def _visit_function(self, item: FunctionItem) -> Diagnostic | None:
		name = resolve_symbol_name(item.name, item.attrs)
		if name is UNNAMEABLE:
			self.sink.warn(
				f"exported C ABI function `{item.name}` has a mangled name; not emitting "
				"(add #[no_mangle] or #[export_name])",
				code=W_UNNAMEABLE_SYMBOL,
				span=item.span,
				item=item.name,
			)
			return None
		ret = self._map(item.return_type, item, "return type")
		if isinstance(ret, Diagnostic):
			return ret
		params: List[AbiType] = []
		for idx, param_ty in enumerate(item.params):
			label = f"parameter `{item.param_names[idx]}`" if idx < len(item.param_names) else f"parameter {idx}"
			mapped = self._map(param_ty, item, label)
			if isinstance(mapped, Diagnostic):
				return mapped
			params.append(mapped)
		self._decls.append(FunctionDecl(name=str(name), params=tuple(params), ret=ret))
		return None

	def _visit_struct(self, item: StructItem) -> Diagnostic | None:
		if item.is_tuple:
			self.sink.warn(
				f"exported tuple struct `{item.name}` is not emitted (unsupported shape)",
				code=W_UNSUPPORTED_ITEM_SHAPE,
				span=item.span,
				item=item.name,
			)
			return None
		if any(f.name is None for f in item.fields):
			self.sink.warn(
				f"exported struct `{item.name}` has an unnamed field; not emitting (unsupported shape)",
				code=W_UNSUPPORTED_ITEM_SHAPE,
				span=item.span,
				item=item.name,
			)
			return None
		fields: List[tuple[str, AbiType]] = []
		for f in item.fields:
			mapped = self._map(f.type, item, f"field `{f.name}`")
			if isinstance(mapped, Diagnostic):
				return mapped
			fields.append((str(f.name), mapped))
		self._decls.append(StructDecl(name=item.name, fields=tuple(fields)))
		return None

	def _map(self, ty: TypeNode, item: Item, where: str) -> AbiType | Diagnostic:
		mapped = map_type(ty)
		if isinstance(mapped, Reject):
			return self.sink.fatal(
				f"{where} of `{item.name}` has an unsupported type: {mapped}",
				code=E_UNSUPPORTED_TYPE,
				span=item.span,
				item=item.name,
				notes=[mapped.reason],
			)
		return mapped


def walk_exports(root: ModuleItem, exported: ExportSet, sink: DiagnosticSink | None = None) -> WalkResult:
	"""Walk `root` and collect the header declarations for its exported C surface."""
	walker = ExportWalker(exported, sink if sink is not None else DiagnosticSink(phase="export"))
	return walker.walk(root)


__all__ = ["C_COMPATIBLE_ABIS", "is_c_abi", "WalkResult", "ExportWalker", "walk_exports"]
