# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
AST → resolved module tree.

Resolution happens in three steps over a fully loaded SourceFile (out-of-line
modules already spliced in by the loader):

  1. number every item in pre-order and collect the unit's declared type names
  2. build the immutable Item tree, resolving every written type to a TypeNode
  3. compute the export set: items reachable from outside the crate through
     `pub` visibility and `pub use` re-exports

Only unrestricted `pub` counts as visible from outside; `pub(crate)` and the
other restricted forms never export an item.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Set

from hdrgen.core.items import (
	Attribute,
	EnumItem,
	FunctionItem,
	Item,
	ItemId,
	ModuleItem,
	OtherItem,
	ResolvedUnit,
	StructField,
	StructItem,
	find_attr,
)
from hdrgen.core.span import Span
from hdrgen.core.types_core import (
	Closure,
	DynamicSequence,
	FixedSequence,
	FunctionPointer,
	Indirection,
	IndirectionKind,
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

from . import ast as parser_ast

# Spelled-out std paths the resolver knows about.
_TEXT_PATHS = {
	("std", "string", "String"),
	("alloc", "string", "String"),
	("core", "str"),
	("std", "str"),
}
_BOX_PATHS = {
	("Box",),
	("std", "boxed", "Box"),
	("alloc", "boxed", "Box"),
}
_PRIMITIVE_MODULES = {("std", "primitive"), ("core", "primitive")}


def crate_name_from_attrs(attrs: List[Attribute]) -> Optional[str]:
	"""
	Return the crate's identifying name from its inner attributes.

	`#![crate_name = "x"]` wins; the legacy `#![crate_id = "path/x#1.0"]` form
	yields the last path segment before the version suffix.
	"""
	attr_tuple = tuple(attrs)
	named = find_attr(attr_tuple, "crate_name")
	if named is not None and named.value:
		return named.value
	legacy = find_attr(attr_tuple, "crate_id")
	if legacy is not None and legacy.value:
		name = legacy.value.split("#", 1)[0].rstrip("/").rsplit("/", 1)[-1]
		return name or None
	return None


@dataclass
class _ModuleScope:
	"""Export-set bookkeeping for one module."""

	item: ModuleItem
	parent: Optional["_ModuleScope"]
	# AST definitions of the module's `use` items.
	uses: List[parser_ast.UseDef] = field(default_factory=list)
	# AST visibility of each direct child item, keyed by item id.
	vis: Dict[ItemId, Optional[str]] = field(default_factory=dict)


class Resolver:
	"""Builds a ResolvedUnit from a loaded SourceFile."""

	def __init__(self, source: parser_ast.SourceFile, path: Optional[Path] = None) -> None:
		self.source = source
		self.path = path
		self._ids: Dict[int, ItemId] = {}
		self.type_defs: Dict[str, ItemId] = {}
		self._scopes: Dict[ItemId, _ModuleScope] = {}

	def resolve(self) -> ResolvedUnit:
		self._number(self.source.items, start=1)
		crate_name = crate_name_from_attrs(self.source.inner_attrs)
		root_file = str(self.path) if self.path is not None else None
		root_name = crate_name or (self.path.stem if self.path is not None else "crate")
		root_scope = _ModuleScope(item=ModuleItem(item_id=0, name=root_name), parent=None)
		children = self._build_children(self.source.items, root_scope, root_file)
		root = ModuleItem(
			item_id=0,
			name=root_name,
			attrs=tuple(self.source.inner_attrs),
			span=Span(file=root_file, line=1, column=1),
			children=children,
		)
		root_scope.item = root
		self._scopes[0] = root_scope
		return ResolvedUnit(
			path=self.path,
			crate_name=crate_name,
			root=root,
			exported=frozenset(self._compute_exports(root_scope)),
			type_defs=dict(self.type_defs),
		)

	# ---- numbering ----

	def _number(self, items: List[parser_ast.ItemDef], start: int) -> int:
		next_id = start
		for defn in items:
			self._ids[id(defn)] = next_id
			next_id += 1
			if isinstance(defn, (parser_ast.StructDef, parser_ast.EnumDef, parser_ast.TypeAliasDef)):
				# First declaration of a name wins the lookup.
				self.type_defs.setdefault(defn.name, self._ids[id(defn)])
			if isinstance(defn, parser_ast.ModDef):
				next_id = self._number(defn.items, next_id)
		return next_id

	# ---- tree building ----

	def _build_children(
		self,
		items: List[parser_ast.ItemDef],
		scope: _ModuleScope,
		file: Optional[str],
	) -> tuple[Item, ...]:
		built: List[Item] = []
		for defn in items:
			item = self._build_item(defn, scope, file)
			scope.vis[item.item_id] = defn.vis
			if isinstance(defn, parser_ast.UseDef):
				scope.uses.append(defn)
			built.append(item)
		return tuple(built)

	def _build_item(self, defn: parser_ast.ItemDef, scope: _ModuleScope, file: Optional[str]) -> Item:
		item_id = self._ids[id(defn)]
		attrs = tuple(defn.attrs)
		span = Span.from_loc(defn.loc, file=file)
		if isinstance(defn, parser_ast.FunctionDef):
			abi = defn.abi if defn.abi is not None else ("C" if defn.is_extern else None)
			return FunctionItem(
				item_id=item_id,
				name=defn.name,
				attrs=attrs,
				span=span,
				abi=abi,
				generic_count=defn.generics.count,
				params=tuple(self.resolve_type(p.type_expr) for p in defn.params),
				param_names=tuple(p.name for p in defn.params),
				return_type=self.resolve_type(defn.return_type),
			)
		if isinstance(defn, parser_ast.StructDef):
			return StructItem(
				item_id=item_id,
				name=defn.name,
				attrs=attrs,
				span=span,
				generic_count=defn.generics.count,
				is_tuple=defn.shape != "named",
				fields=tuple(StructField(name=f.name, type=self.resolve_type(f.type_expr)) for f in defn.fields),
			)
		if isinstance(defn, parser_ast.EnumDef):
			return EnumItem(item_id=item_id, name=defn.name, attrs=attrs, span=span)
		if isinstance(defn, parser_ast.ModDef):
			mod_file = defn.file or file
			child_scope = _ModuleScope(item=ModuleItem(item_id=item_id, name=defn.name), parent=scope)
			children = self._build_children(defn.items, child_scope, mod_file)
			module = ModuleItem(
				item_id=item_id,
				name=defn.name,
				attrs=attrs + tuple(defn.inner_attrs),
				span=span,
				children=children,
			)
			child_scope.item = module
			self._scopes[item_id] = child_scope
			return module
		if isinstance(defn, parser_ast.UseDef):
			return OtherItem(item_id=item_id, name=defn.name, attrs=attrs, span=span, kind="use")
		if isinstance(defn, parser_ast.TypeAliasDef):
			return OtherItem(item_id=item_id, name=defn.name, attrs=attrs, span=span, kind="type")
		if isinstance(defn, parser_ast.ConstDef):
			return OtherItem(item_id=item_id, name=defn.name, attrs=attrs, span=span, kind=defn.kind)
		if isinstance(defn, parser_ast.OpaqueDef):
			return OtherItem(item_id=item_id, name=defn.name, attrs=attrs, span=span, kind=defn.kind)
		raise AssertionError(f"unknown item definition {type(defn).__name__}")

	# ---- types ----

	def resolve_type(self, expr: Optional[parser_ast.TypeExpr]) -> TypeNode:
		"""Resolve a written type; an omitted type (no `-> T`) is `()`."""
		if expr is None:
			return Nil()
		kind = expr.kind
		if kind == "path":
			return self._resolve_path_type(expr)
		if kind == "unit":
			return Nil()
		if kind == "never":
			return Never()
		if kind == "tuple":
			return Tuple(tuple(self.resolve_type(a) for a in expr.args))
		if kind == "ref":
			return Indirection(self.resolve_type(expr.args[0]), IndirectionKind.REF, expr.mutable)
		if kind == "ptr":
			return Indirection(self.resolve_type(expr.args[0]), IndirectionKind.PTR, expr.mutable)
		if kind == "slice":
			return DynamicSequence(self.resolve_type(expr.args[0]))
		if kind == "array":
			return FixedSequence(self.resolve_type(expr.args[0]), expr.length or "?")
		if kind == "fn":
			return FunctionPointer(
				params=tuple(self.resolve_type(a) for a in expr.args),
				ret=self.resolve_type(expr.ret),
				abi=expr.abi,
			)
		if kind == "closure":
			return Closure(
				trait_name=expr.name,
				params=tuple(self.resolve_type(a) for a in expr.args),
				ret=self.resolve_type(expr.ret),
			)
		if kind == "infer":
			return Inferred()
		if kind == "trait_object":
			return NamedOther(self._spell(expr))
		raise AssertionError(f"unknown type expression kind {kind!r}")

	def _resolve_path_type(self, expr: parser_ast.TypeExpr) -> TypeNode:
		segments = tuple(expr.path)
		if segments and segments[0] in {"crate", "self", "super"}:
			# Paths into the unit itself resolve by their final segment.
			name = segments[-1]
			return NamedOther(self._spell(expr), self.type_defs.get(name))
		if len(segments) == 1:
			name = segments[0]
			if name in self.type_defs:
				return NamedOther(self._spell(expr), self.type_defs[name])
			prim = PrimKind.from_name(name)
			if prim is not None and not expr.args:
				return Primitive(prim)
			if name in {"str", "String"}:
				return TextString(name)
		if segments[:-1] in _PRIMITIVE_MODULES:
			prim = PrimKind.from_name(segments[-1])
			if prim is not None:
				return Primitive(prim)
		if segments in _TEXT_PATHS:
			return TextString(segments[-1])
		if segments in _BOX_PATHS and len(expr.args) == 1:
			return Indirection(self.resolve_type(expr.args[0]), IndirectionKind.BOX)
		return NamedOther(self._spell(expr))

	def _spell(self, expr: parser_ast.TypeExpr) -> str:
		"""Surface spelling of a path type, generic arguments included."""
		name = expr.name
		if expr.args:
			name += "<" + ", ".join(self.resolve_type(a).describe() for a in expr.args) + ">"
		if expr.kind == "trait_object":
			return f"dyn {name}"
		return name

	# ---- export set ----

	def _compute_exports(self, root_scope: _ModuleScope) -> Set[ItemId]:
		exported: Set[ItemId] = set()
		reachable: Set[ItemId] = {root_scope.item.item_id}
		changed = True
		while changed:
			changed = False
			for mod_id in sorted(reachable):
				for member in self._public_members(self._scopes[mod_id], frozenset()):
					changed |= self._export(member, exported, reachable)
		return exported

	def _export(self, item: Item, exported: Set[ItemId], reachable: Set[ItemId]) -> bool:
		changed = False
		if item.item_id not in exported:
			exported.add(item.item_id)
			changed = True
		if isinstance(item, ModuleItem) and item.item_id not in reachable:
			reachable.add(item.item_id)
			changed = True
		return changed

	def _public_members(self, scope: _ModuleScope, seen: FrozenSet[ItemId]) -> List[Item]:
		"""`pub` children of a module plus the targets of its `pub use` items."""
		if scope.item.item_id in seen:
			return []
		seen = seen | {scope.item.item_id}
		members: List[Item] = []
		for child in scope.item.children:
			if scope.vis.get(child.item_id) != "pub" or _is_use(child):
				continue
			members.append(child)
		for use in scope.uses:
			if use.vis != "pub":
				continue
			for entry in use.entries:
				members.extend(self._resolve_use(entry, scope, seen))
		return members

	def _resolve_use(self, entry: parser_ast.UseEntry, scope: _ModuleScope, seen: FrozenSet[ItemId]) -> List[Item]:
		"""Return the items a use entry names (empty when unresolved)."""
		segments = list(entry.path)
		if segments and segments[0] == "crate":
			return self._lookup(self._scopes[0], segments[1:], entry.glob, seen)
		if segments and segments[0] in {"self", "super"}:
			module: Optional[_ModuleScope] = scope
			while segments and segments[0] in {"self", "super"}:
				if segments[0] == "super":
					module = module.parent if module is not None else None
				segments = segments[1:]
			if module is None:
				return []
			return self._lookup(module, segments, entry.glob, seen)
		found = self._lookup(scope, segments, entry.glob, seen)
		if not found and scope.parent is not None:
			# 2015-style absolute path from the crate root.
			found = self._lookup(self._scopes[0], segments, entry.glob, seen)
		return found

	def _lookup(self, module: _ModuleScope, segments: List[str], glob: bool, seen: FrozenSet[ItemId]) -> List[Item]:
		if glob:
			target = self._walk_modules(module, segments)
			if target is None:
				return []
			return self._public_members(target, seen)
		if not segments:
			# `use self::{self}` / `use super::{self}` name the module itself.
			return [module.item] if module.parent is not None else []
		parent = self._walk_modules(module, segments[:-1])
		if parent is None:
			return []
		last = segments[-1]
		if last == "self":
			return [parent.item]
		found: List[Item] = [c for c in parent.item.children if c.name == last and not _is_use(c)]
		if parent.item.item_id in seen:
			return found
		inner_seen = seen | {parent.item.item_id}
		for use in parent.uses:
			if use.vis != "pub":
				continue
			for entry in use.entries:
				if not entry.glob and _use_entry_name(entry) == last:
					found.extend(self._resolve_use(entry, parent, inner_seen))
		return found

	def _walk_modules(self, start: _ModuleScope, segments: List[str]) -> Optional[_ModuleScope]:
		current: Optional[_ModuleScope] = start
		for seg in segments:
			if current is None:
				return None
			current = self._find_module(current, seg)
		return current

	def _find_module(self, scope: _ModuleScope, name: str) -> Optional[_ModuleScope]:
		for child in scope.item.children:
			if isinstance(child, ModuleItem) and child.name == name:
				return self._scopes.get(child.item_id)
		return None


def _is_use(item: Item) -> bool:
	return isinstance(item, OtherItem) and item.kind == "use"


def _use_entry_name(entry: parser_ast.UseEntry) -> str:
	"""Name a non-glob use entry binds in the importing module."""
	if entry.alias is not None:
		return entry.alias
	if entry.path and entry.path[-1] == "self" and len(entry.path) > 1:
		return entry.path[-2]
	return entry.path[-1] if entry.path else ""


def resolve_source(source: parser_ast.SourceFile, path: Optional[Path] = None) -> ResolvedUnit:
	"""Resolve a loaded source tree into a ResolvedUnit."""
	return Resolver(source, path).resolve()


__all__ = ["Resolver", "resolve_source", "crate_name_from_attrs"]
