# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
hdrgen.abi: the C header core.

  type_mapper   TypeNode → AbiType | Reject
  naming        attributes → C symbol name | UNNAMEABLE
  export_walker module tree + export set → declarations (+ diagnostics)
  emitter       declarations → guarded header text
"""

from .decls import Declaration, FunctionDecl, StructDecl
from .emitter import HeaderOptions, emit_header, guard_name
from .export_walker import ExportWalker, WalkResult, walk_exports
from .naming import UNNAMEABLE, resolve_symbol_name
from .type_mapper import AbiType, Reject, map_type

__all__ = [
	"AbiType",
	"Reject",
	"map_type",
	"UNNAMEABLE",
	"resolve_symbol_name",
	"Declaration",
	"FunctionDecl",
	"StructDecl",
	"ExportWalker",
	"WalkResult",
	"walk_exports",
	"HeaderOptions",
	"emit_header",
	"guard_name",
]
