# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Header declarations produced by the export walker and consumed by the emitter.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .type_mapper import AbiType


@dataclass(frozen=True)
class FunctionDecl:
	"""A C function prototype; parameters are unnamed, as in the emitted header."""

	name: str
	params: tuple[AbiType, ...]
	ret: AbiType


@dataclass(frozen=True)
class StructDecl:
	"""A C struct definition with fields in declaration order."""

	name: str
	fields: tuple[tuple[str, AbiType], ...]


Declaration = Union[FunctionDecl, StructDecl]


__all__ = ["FunctionDecl", "StructDecl", "Declaration"]
