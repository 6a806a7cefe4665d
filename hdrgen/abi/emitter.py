# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Header text emission.

Layout:

  #ifndef <GUARD>
  #define <GUARD>
  #include <stdint.h>

  /* automatically generated by hdrgen; do not edit */

  <one line per function, one block per struct, in walk order>

  #endif /* <GUARD> */
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List

from .decls import Declaration, FunctionDecl, StructDecl
from .type_mapper import VOID

BANNER = "/* automatically generated by hdrgen; do not edit */"

_NON_IDENT_RE = re.compile(r"[^A-Z0-9_]")
_NON_MACRO_RE = re.compile(r"[^A-Za-z0-9_]")


@dataclass(frozen=True)
class HeaderOptions:
	guard_prefix: str = "RUSTCRATE_"
	indent: str = "    "


def guard_name(identifier: str, options: HeaderOptions = HeaderOptions()) -> str:
	"""
	Upper-case and sanitize `identifier` into an include guard macro name.

	The prefix keeps its case; characters not allowed in a macro name become `_`.
	"""
	prefix = _NON_MACRO_RE.sub("_", options.guard_prefix)
	sanitized = _NON_IDENT_RE.sub("_", identifier.upper())
	guard = f"{prefix}{sanitized}_H"
	if guard[0].isdigit():
		guard = "_" + guard
	return guard


def render_declaration(decl: Declaration, options: HeaderOptions = HeaderOptions()) -> List[str]:
	if isinstance(decl, FunctionDecl):
		params = ", ".join(p.render() for p in decl.params) if decl.params else VOID
		return [f"{decl.ret.render()} {decl.name}({params});"]
	if isinstance(decl, StructDecl):
		lines = [f"struct {decl.name} {{"]
		for field_name, field_ty in decl.fields:
			lines.append(f"{options.indent}{field_ty.render()} {field_name};")
		lines.append("};")
		return lines
	raise AssertionError(f"unknown declaration kind {type(decl).__name__}")


def emit_header(
	identifier: str,
	declarations: Iterable[Declaration],
	options: HeaderOptions = HeaderOptions(),
) -> str:
	"""Render a complete guarded header for `identifier`."""
	guard = guard_name(identifier, options)
	lines: List[str] = [
		f"#ifndef {guard}",
		f"#define {guard}",
		"#include <stdint.h>",
		"",
		BANNER,
		"",
	]
	body: List[str] = []
	for decl in declarations:
		body.extend(render_declaration(decl, options))
	if body:
		lines.extend(body)
		lines.append("")
	lines.append(f"#endif /* {guard} */")
	return "\n".join(lines) + "\n"


__all__ = ["BANNER", "HeaderOptions", "guard_name", "render_declaration", "emit_header"]
