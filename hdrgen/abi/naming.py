# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Foreign symbol naming.

A function is callable from C only under a name the C side can spell:
  1. `#[export_name = "sym"]` → `sym`, verbatim
  2. `#[no_mangle]`           → the item's own identifier
  3. otherwise                → UNNAMEABLE (the symbol is mangled)

Both rules also accept the Rust 2024 `#[unsafe(...)]` wrapper.
"""

from __future__ import annotations

from typing import Iterator, Union

from hdrgen.core.items import Attribute


class _Unnameable:
	"""Marker for a symbol whose linked name cannot be written in C."""

	def __repr__(self) -> str:
		return "UNNAMEABLE"


UNNAMEABLE = _Unnameable()

SymbolName = Union[str, _Unnameable]


def _effective_attrs(attrs: tuple[Attribute, ...]) -> Iterator[Attribute]:
	for attr in attrs:
		if attr.name == "unsafe":
			yield from attr.args
		else:
			yield attr


def resolve_symbol_name(ident: str, attrs: tuple[Attribute, ...]) -> SymbolName:
	"""Return the C-visible symbol name for an item, or UNNAMEABLE."""
	effective = list(_effective_attrs(attrs))
	for attr in effective:
		if attr.name == "export_name" and attr.value is not None:
			return attr.value
	if any(attr.name == "no_mangle" for attr in effective):
		return ident
	return UNNAMEABLE


__all__ = ["UNNAMEABLE", "SymbolName", "resolve_symbol_name"]
