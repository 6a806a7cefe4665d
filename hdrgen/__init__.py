# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
hdrgen package: C header generation for the exported C-ABI surface of a crate.

Subpackages:
  core:   shared data model (items, type nodes, diagnostics, spans)
  abi:    type mapping, symbol naming, export walking and header emission
  parser: reference front end (lark grammar + resolver) producing a ResolvedUnit

The CLI entrypoint is `hdrgen.hdrgen:main`.
"""

__all__ = ["core", "abi", "parser"]
