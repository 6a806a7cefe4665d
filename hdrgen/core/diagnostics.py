# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Common diagnostic structure for the front end, the export walker and the driver.

Two severities matter to header generation:
  - warning: an item is omitted from the header and processing continues
  - fatal:   processing of the current input unit stops and no header is written

Diagnostics are collected in a DiagnosticSink owned by one input unit. The sink
is passed explicitly to the passes that report into it; there is no global
warning channel.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .span import Span

WARNING = "warning"
FATAL = "fatal"

# Stable diagnostic codes.
E_MISSING_CRATE_NAME = "E-MISSING-CRATE-NAME"
E_UNSUPPORTED_TYPE = "E-UNSUPPORTED-TYPE"
E_PARSE = "E-PARSE"
E_MODULE_NOT_FOUND = "E-MODULE-NOT-FOUND"
W_UNNAMEABLE_SYMBOL = "W-UNNAMEABLE-SYMBOL"
W_UNSUPPORTED_ITEM_SHAPE = "W-UNSUPPORTED-ITEM-SHAPE"


@dataclass
class Diagnostic:
	"""Represents a generator diagnostic (warning or fatal)."""

	message: str
	code: str | None = None
	# Pipeline phase that produced the diagnostic ("parser", "resolve", "export").
	phase: str | None = None
	severity: str = FATAL
	span: Span = field(default_factory=Span)  # Span() denotes unknown.
	item: str | None = None  # name of the item the diagnostic is about
	notes: list[str] = field(default_factory=list)

	def __post_init__(self) -> None:
		if self.span is None:  # type: ignore[unreachable]
			self.span = Span()

	@property
	def is_fatal(self) -> bool:
		return self.severity == FATAL


class DiagnosticSink:
	"""
	Per-unit diagnostic collector.

	Warnings accumulate in order. The first fatal diagnostic is remembered as
	`fatal_diagnostic`; callers stop processing the unit once `has_fatal` is set.
	"""

	def __init__(self, *, phase: str | None = None) -> None:
		self.phase = phase
		self._diagnostics: List[Diagnostic] = []

	def report(self, diag: Diagnostic) -> Diagnostic:
		if diag.phase is None:
			diag.phase = self.phase
		self._diagnostics.append(diag)
		return diag

	def warn(
		self,
		message: str,
		*,
		code: str,
		span: Span | None = None,
		item: str | None = None,
	) -> Diagnostic:
		return self.report(Diagnostic(message=message, code=code, severity=WARNING, span=span or Span(), item=item))

	def fatal(
		self,
		message: str,
		*,
		code: str,
		span: Span | None = None,
		item: str | None = None,
		notes: Optional[list[str]] = None,
	) -> Diagnostic:
		return self.report(
			Diagnostic(
				message=message,
				code=code,
				severity=FATAL,
				span=span or Span(),
				item=item,
				notes=list(notes or []),
			)
		)

	@property
	def diagnostics(self) -> List[Diagnostic]:
		return list(self._diagnostics)

	@property
	def warnings(self) -> List[Diagnostic]:
		return [d for d in self._diagnostics if d.severity == WARNING]

	@property
	def fatal_diagnostic(self) -> Diagnostic | None:
		return next((d for d in self._diagnostics if d.is_fatal), None)

	@property
	def has_fatal(self) -> bool:
		return self.fatal_diagnostic is not None

	def __len__(self) -> int:
		return len(self._diagnostics)


__all__ = [
	"Diagnostic",
	"DiagnosticSink",
	"WARNING",
	"FATAL",
	"E_MISSING_CRATE_NAME",
	"E_UNSUPPORTED_TYPE",
	"E_PARSE",
	"E_MODULE_NOT_FOUND",
	"W_UNNAMEABLE_SYMBOL",
	"W_UNSUPPORTED_ITEM_SHAPE",
]
