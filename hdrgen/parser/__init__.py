"""
hdrgen front end: parses a crate root file (plus its out-of-line modules) and
resolves it into a hdrgen.core ResolvedUnit.

Front-end failures never escape as exceptions: syntax errors and missing
module files are returned as fatal diagnostics in the "parser" phase.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Set, Tuple

from lark.exceptions import UnexpectedInput

from . import ast as parser_ast
from . import parser as _parser
from .resolver import Resolver, crate_name_from_attrs, resolve_source
from hdrgen.core.diagnostics import E_MODULE_NOT_FOUND, E_PARSE, Diagnostic, DiagnosticSink
from hdrgen.core.items import ResolvedUnit, find_attr
from hdrgen.core.span import Span

parse_source = _parser.parse_source


class ModuleNotFound(Exception):
	"""`mod name;` whose file does not exist."""

	def __init__(self, name: str, candidates: List[Path], loc: object | None, file: Path) -> None:
		tried = ", ".join(str(c) for c in candidates)
		super().__init__(f"file not found for module `{name}` (tried {tried})")
		self.name = name
		self.candidates = candidates
		self.loc = loc
		self.file = file


class _SourceError(Exception):
	"""A syntax error in a module file, tagged with the file it came from."""

	def __init__(self, path: Path, err: UnexpectedInput) -> None:
		super().__init__(str(err))
		self.path = path
		self.err = err


def _span_in_file(path: Path, loc: object | None) -> Span:
	return Span.from_loc(loc, file=str(path))


class _Loader:
	"""Reads a crate root and splices out-of-line module files into its AST."""

	def __init__(self) -> None:
		self._active: Set[Path] = set()

	def load_file(self, path: Path, *, owns_dir: bool) -> parser_ast.SourceFile:
		"""
		Parse `path` and load its `mod name;` declarations.

		`owns_dir` is true for the crate root and `mod.rs`-style files, whose
		child modules live next to them; other files keep their children in a
		directory named after the file stem.
		"""
		try:
			source = _parser.parse_source(path.read_text())
		except UnexpectedInput as err:
			raise _SourceError(path, err) from err
		mod_dir = path.parent if owns_dir else path.parent / path.stem
		resolved = path.resolve()
		self._active.add(resolved)
		try:
			self._load_items(source.items, file=path, mod_dir=mod_dir, nested=False)
		finally:
			self._active.discard(resolved)
		return source

	def _load_items(self, items: List[parser_ast.ItemDef], *, file: Path, mod_dir: Path, nested: bool) -> None:
		for item in items:
			if not isinstance(item, parser_ast.ModDef):
				continue
			if item.inline:
				self._load_items(item.items, file=file, mod_dir=mod_dir / item.name, nested=True)
				continue
			mod_path, owns_dir = self._locate(item, file=file, mod_dir=mod_dir, nested=nested)
			if mod_path.resolve() in self._active:
				# A module that includes itself; keep it empty.
				continue
			loaded = self.load_file(mod_path, owns_dir=owns_dir)
			item.items = loaded.items
			item.inner_attrs = loaded.inner_attrs
			item.file = str(mod_path)

	def _locate(self, item: parser_ast.ModDef, *, file: Path, mod_dir: Path, nested: bool) -> Tuple[Path, bool]:
		path_attr = find_attr(tuple(item.attrs), "path")
		if path_attr is not None and path_attr.value:
			base = mod_dir if nested else file.parent
			candidate = base / path_attr.value
			if not candidate.is_file():
				raise ModuleNotFound(item.name, [candidate], item.loc, file)
			return candidate, True
		candidates = [mod_dir / f"{item.name}.rs", mod_dir / item.name / "mod.rs"]
		if candidates[0].is_file():
			return candidates[0], False
		if candidates[1].is_file():
			return candidates[1], True
		raise ModuleNotFound(item.name, candidates, item.loc, file)


def load_crate(path: Path) -> Tuple[Optional[ResolvedUnit], List[Diagnostic]]:
	"""
	Parse and resolve the crate rooted at `path`.

	Returns `(unit, diagnostics)`; `unit` is None when a fatal front-end
	diagnostic was produced.
	"""
	sink = DiagnosticSink(phase="parser")
	try:
		source = _Loader().load_file(path, owns_dir=True)
	except _SourceError as err:
		span = Span(
			file=str(err.path),
			line=getattr(err.err, "line", None),
			column=getattr(err.err, "column", None),
		)
		sink.fatal(f"syntax error: {err.err}", code=E_PARSE, span=span)
		return None, sink.diagnostics
	except ModuleNotFound as err:
		sink.fatal(str(err), code=E_MODULE_NOT_FOUND, span=_span_in_file(err.file, err.loc), item=err.name)
		return None, sink.diagnostics
	except OSError as err:
		sink.fatal(f"cannot read {path}: {err.strerror or err}", code=E_PARSE, span=Span(file=str(path)))
		return None, sink.diagnostics
	return resolve_source(source, path), sink.diagnostics


__all__ = [
	"ModuleNotFound",
	"Resolver",
	"crate_name_from_attrs",
	"load_crate",
	"parse_source",
	"resolve_source",
]
