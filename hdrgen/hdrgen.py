# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
hdrgen driver: crate source → C header.

Per input unit:

  source file -> front end (hdrgen.parser.load_crate) -> ResolvedUnit
     -> identifying-attribute check (the header is named after the crate)
     -> export walk (symbol naming + type mapping per candidate item)
     -> header emission -> <crate_name>.h

Every unit gets its own DiagnosticSink; a fatal diagnostic stops that unit
only and no header is written for it. Later units are still processed.

With --json, prints one structured payload (exit_code + diagnostics) on
stdout; otherwise prints human-readable `file:line:col: severity: message`
lines to stderr.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from hdrgen.abi.emitter import HeaderOptions, emit_header
from hdrgen.abi.export_walker import ExportWalker
from hdrgen.core.diagnostics import E_MISSING_CRATE_NAME, FATAL, Diagnostic, DiagnosticSink
from hdrgen.core.items import ResolvedUnit
from hdrgen.core.span import Span
from hdrgen.parser import load_crate


@dataclass
class UnitResult:
	"""Outcome of processing one input unit."""

	source: Path
	crate_name: Optional[str] = None
	# Complete header text; None when the unit failed.
	header: Optional[str] = None
	diagnostics: List[Diagnostic] = field(default_factory=list)

	@property
	def ok(self) -> bool:
		return self.header is not None and not any(d.is_fatal for d in self.diagnostics)

	@property
	def header_filename(self) -> Optional[str]:
		if self.crate_name is None:
			return None
		return f"{self.crate_name}.h"


def generate_from_unit(
	unit: ResolvedUnit,
	options: HeaderOptions = HeaderOptions(),
	source: Optional[Path] = None,
) -> UnitResult:
	"""Run the identifying-attribute check, the export walk and the emitter on a resolved unit."""
	source_path = source or unit.path or Path("<unit>")
	if unit.crate_name is None:
		sink = DiagnosticSink(phase="resolve")
		sink.fatal(
			"crate has no identifying attribute; add #![crate_name = \"...\"] to the crate root",
			code=E_MISSING_CRATE_NAME,
			span=Span(file=str(source_path)),
		)
		return UnitResult(source=source_path, diagnostics=sink.diagnostics)

	sink = DiagnosticSink(phase="export")
	result = ExportWalker(unit.exported, sink).walk(unit.root)
	if not result.ok:
		return UnitResult(source=source_path, crate_name=unit.crate_name, diagnostics=result.diagnostics)
	header = emit_header(unit.crate_name, result.declarations, options)
	return UnitResult(
		source=source_path,
		crate_name=unit.crate_name,
		header=header,
		diagnostics=result.diagnostics,
	)


def generate_unit_header(path: Path, options: HeaderOptions = HeaderOptions()) -> UnitResult:
	"""Parse, resolve and generate the header for the crate rooted at `path`."""
	unit, front_diags = load_crate(path)
	if unit is None:
		return UnitResult(source=path, diagnostics=front_diags)
	result = generate_from_unit(unit, options, source=path)
	result.diagnostics = front_diags + result.diagnostics
	return result


def _diag_to_json(diag: Diagnostic, phase: str, source: Path) -> dict:
	"""Render a Diagnostic to a structured JSON-friendly dict."""
	return {
		"phase": diag.phase or phase,
		"message": diag.message,
		"severity": diag.severity,
		"code": diag.code,
		"file": diag.span.file or str(source),
		"line": diag.span.line,
		"column": diag.span.column,
		"notes": list(diag.notes),
	}


def _print_human(diag: Diagnostic, source: Path) -> None:
	file = diag.span.file or str(source)
	loc = diag.span.format()
	print(f"{file}:{loc}: {diag.severity}: {diag.message}", file=sys.stderr)
	for note in diag.notes:
		print(f"{file}:{loc}: note: {note}", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
	"""
	CLI: generate one C header per crate source.

	Exit code is 0 when every unit produced its header, 1 otherwise.
	"""
	parser = argparse.ArgumentParser(prog="hdrgen", description="Generate C headers for a crate's exported C ABI surface")
	parser.add_argument("sources", type=Path, nargs="+", help="Path(s) to crate root source file(s)")
	parser.add_argument(
		"-o",
		"--out-dir",
		type=Path,
		default=Path("."),
		help="Directory the <crate_name>.h files are written to (default: current directory)",
	)
	parser.add_argument(
		"--guard-prefix",
		default=HeaderOptions.guard_prefix,
		help=f"Prefix of the include guard macro (default: {HeaderOptions.guard_prefix})",
	)
	output = parser.add_mutually_exclusive_group()
	output.add_argument(
		"--json",
		action="store_true",
		help="Emit diagnostics as JSON (phase/message/severity/code/file/line/column)",
	)
	output.add_argument(
		"--stdout",
		action="store_true",
		help="Print generated headers to stdout instead of writing files",
	)
	args = parser.parse_args(argv)

	options = HeaderOptions(guard_prefix=args.guard_prefix)
	json_diags: list[dict] = []
	failed = False

	for source_path in args.sources:
		result = generate_unit_header(source_path, options)
		diags = list(result.diagnostics)
		if result.ok and result.header is not None:
			if args.stdout:
				sys.stdout.write(result.header)
			else:
				out_path = args.out_dir / str(result.header_filename)
				try:
					args.out_dir.mkdir(parents=True, exist_ok=True)
					out_path.write_text(result.header)
				except OSError as err:
					diags.append(
						Diagnostic(
							message=f"cannot write header: {err.strerror or err}",
							phase="emit",
							severity=FATAL,
							span=Span(file=str(out_path)),
						)
					)
		if any(d.is_fatal for d in diags) or not result.ok:
			failed = True
		if args.json:
			json_diags.extend(_diag_to_json(d, "export", source_path) for d in diags)
		else:
			for d in diags:
				_print_human(d, source_path)

	exit_code = 1 if failed else 0
	if args.json:
		print(json.dumps({"exit_code": exit_code, "diagnostics": json_diags}))
	return exit_code


if __name__ == "__main__":
	sys.exit(main())
