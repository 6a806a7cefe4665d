# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from pathlib import Path

from hdrgen.core.diagnostics import E_MODULE_NOT_FOUND, E_PARSE
from hdrgen.core.items import iter_items
from hdrgen.parser import load_crate


def _write_file(path: Path, text: str) -> None:
	path.parent.mkdir(parents=True, exist_ok=True)
	path.write_text(text, encoding="utf-8")


def _names(unit) -> list[str]:
	return [i.name for i in iter_items(unit.root)][1:]


def test_out_of_line_modules_are_loaded(tmp_path: Path):
	_write_file(tmp_path / "lib.rs", '#![crate_name = "demo"]\npub mod a;\npub mod b;\n')
	_write_file(tmp_path / "a.rs", "pub fn in_a() {}\npub mod nested;\n")
	_write_file(tmp_path / "a" / "nested.rs", "pub fn in_nested() {}\n")
	_write_file(tmp_path / "b" / "mod.rs", "pub mod c;\n")
	_write_file(tmp_path / "b" / "c.rs", "pub fn in_c() {}\n")

	unit, diags = load_crate(tmp_path / "lib.rs")
	assert diags == []
	assert unit is not None
	assert unit.crate_name == "demo"
	assert _names(unit) == ["a", "in_a", "nested", "in_nested", "b", "c", "in_c"]
	by_name = {i.name: i for i in iter_items(unit.root)}
	assert by_name["in_nested"].span.file == str(tmp_path / "a" / "nested.rs")
	assert by_name["in_nested"].span.line == 1
	assert by_name["in_c"].item_id in unit.exported


def test_path_attribute_overrides_location(tmp_path: Path):
	_write_file(tmp_path / "lib.rs", '#[path = "impl/platform_unix.rs"]\nmod platform;\n')
	_write_file(tmp_path / "impl" / "platform_unix.rs", "#![allow(unused)]\npub fn native() {}\n")
	unit, diags = load_crate(tmp_path / "lib.rs")
	assert diags == []
	assert _names(unit) == ["platform", "native"]


def test_inline_module_declares_out_of_line_child(tmp_path: Path):
	_write_file(tmp_path / "main.rs", "mod outer { pub mod inner; }\n")
	_write_file(tmp_path / "outer" / "inner.rs", "pub fn f() {}\n")
	unit, diags = load_crate(tmp_path / "main.rs")
	assert diags == []
	assert _names(unit) == ["outer", "inner", "f"]


def test_missing_module_is_fatal(tmp_path: Path):
	_write_file(tmp_path / "lib.rs", "\nmod gone;\n")
	unit, diags = load_crate(tmp_path / "lib.rs")
	assert unit is None
	assert [d.code for d in diags] == [E_MODULE_NOT_FOUND]
	assert diags[0].is_fatal
	assert diags[0].phase == "parser"
	assert diags[0].span.file == str(tmp_path / "lib.rs")
	assert diags[0].span.line == 2
	assert "gone" in diags[0].message


def test_syntax_error_in_submodule_points_at_that_file(tmp_path: Path):
	_write_file(tmp_path / "lib.rs", "mod broken;\n")
	_write_file(tmp_path / "broken.rs", "pub fn ok() {}\npub fn bad( {}\n")
	unit, diags = load_crate(tmp_path / "lib.rs")
	assert unit is None
	assert [d.code for d in diags] == [E_PARSE]
	assert diags[0].span.file == str(tmp_path / "broken.rs")
	assert diags[0].span.line == 2


def test_unreadable_root_is_fatal(tmp_path: Path):
	unit, diags = load_crate(tmp_path / "missing.rs")
	assert unit is None
	assert [d.code for d in diags] == [E_PARSE]
