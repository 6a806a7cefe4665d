# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Resolved module tree.

The front end produces one ResolvedUnit per input file: a tree of Items rooted
at the crate module, the set of item ids reachable from outside the crate
(the export set) and a table mapping declared type names to their items.

Items are immutable once built; the ABI passes only read them. Every item has
a stable `item_id` (pre-order numbering within the unit) used as the lookup
key into the export set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Iterator, Optional

from .span import Span
from .types_core import Nil, TypeNode

ItemId = int
ExportSet = FrozenSet[ItemId]


@dataclass(frozen=True)
class Attribute:
	"""
	A single attribute (`#[name]`, `#[name = "value"]`, `#[name(args...)]`).

	`value` holds the literal of the name/value form with quotes removed;
	`args` holds the nested attributes of the list form.
	"""

	name: str
	value: Optional[str] = None
	args: tuple["Attribute", ...] = ()


def find_attr(attrs: tuple[Attribute, ...], name: str) -> Optional[Attribute]:
	"""Return the first attribute called `name`, or None."""
	return next((a for a in attrs if a.name == name), None)


@dataclass(frozen=True)
class Item:
	"""Base class for module tree items."""

	item_id: ItemId
	name: str
	attrs: tuple[Attribute, ...] = ()
	span: Span = field(default_factory=Span)


@dataclass(frozen=True)
class ModuleItem(Item):
	children: tuple[Item, ...] = ()


@dataclass(frozen=True)
class FunctionItem(Item):
	# ABI tag of an `extern "..."` qualifier; None for the default Rust ABI.
	abi: Optional[str] = None
	# Type and const generic parameters (lifetimes do not count).
	generic_count: int = 0
	params: tuple[TypeNode, ...] = ()
	param_names: tuple[str, ...] = ()
	return_type: TypeNode = field(default_factory=Nil)


@dataclass(frozen=True)
class StructField:
	name: Optional[str]  # None for tuple-struct fields
	type: TypeNode


@dataclass(frozen=True)
class StructItem(Item):
	generic_count: int = 0
	# Tuple structs (`struct S(i32);`) and unit structs (`struct S;`).
	is_tuple: bool = False
	fields: tuple[StructField, ...] = ()


@dataclass(frozen=True)
class EnumItem(Item):
	pass


@dataclass(frozen=True)
class OtherItem(Item):
	# Surface kind: "use", "type", "const", "static", "impl", "trait",
	# "extern_block", "extern_crate", "macro".
	kind: str = "other"


def iter_items(root: ModuleItem) -> Iterator[Item]:
	"""Yield every item under `root` (root included) in pre-order."""
	stack: list[Item] = [root]
	while stack:
		item = stack.pop()
		yield item
		if isinstance(item, ModuleItem):
			stack.extend(reversed(item.children))


@dataclass(frozen=True)
class ResolvedUnit:
	"""
	Front-end output for one input unit.

	`crate_name` is the identifying attribute value the header file is named
	after; None when the crate does not declare one.
	"""

	path: Optional[Path]
	crate_name: Optional[str]
	root: ModuleItem
	exported: ExportSet
	type_defs: Dict[str, ItemId] = field(default_factory=dict)


__all__ = [
	"ItemId",
	"ExportSet",
	"Attribute",
	"find_attr",
	"Item",
	"ModuleItem",
	"FunctionItem",
	"StructField",
	"StructItem",
	"EnumItem",
	"OtherItem",
	"iter_items",
	"ResolvedUnit",
]
