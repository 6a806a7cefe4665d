# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from pathlib import Path

import pytest

from hdrgen.hdrgen import main as hdrgen_main


def _write_file(path: Path, text: str) -> Path:
	path.parent.mkdir(parents=True, exist_ok=True)
	path.write_text(text, encoding="utf-8")
	return path


def _run_hdrgen_json(argv: list[str], capsys: pytest.CaptureFixture[str]) -> tuple[int, dict]:
	rc = hdrgen_main([*argv, "--json"])
	out = capsys.readouterr().out
	payload = json.loads(out) if out.strip() else {}
	return rc, payload


GOOD = """
#![crate_name = "good"]
#[no_mangle]
pub extern "C" fn add(a: i32, b: i32) -> i32 { a + b }
pub extern "C" fn mangled() {}
"""

BAD = """
#![crate_name = "bad"]
#[no_mangle]
pub extern "C" fn take(v: Vec<u8>) {}
"""


def test_writes_header_into_out_dir(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
	src = _write_file(tmp_path / "src" / "lib.rs", GOOD)
	out_dir = tmp_path / "include"
	rc = hdrgen_main([str(src), "-o", str(out_dir)])
	assert rc == 0
	header = (out_dir / "good.h").read_text()
	assert "int32_t add(int32_t, int32_t);" in header
	err = capsys.readouterr().err
	assert f"{src}:5:5: warning: exported C ABI function `mangled`" in err


def test_failing_unit_does_not_stop_later_units(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
	bad = _write_file(tmp_path / "bad.rs", BAD)
	good = _write_file(tmp_path / "good.rs", GOOD)
	rc, payload = _run_hdrgen_json([str(bad), str(good), "--out-dir", str(tmp_path)], capsys)
	assert rc == 1
	assert payload["exit_code"] == 1
	assert not (tmp_path / "bad.h").exists()
	assert (tmp_path / "good.h").exists()
	codes = [d["code"] for d in payload["diagnostics"]]
	assert codes == ["E-UNSUPPORTED-TYPE", "W-UNNAMEABLE-SYMBOL"]
	fatal = payload["diagnostics"][0]
	assert fatal["severity"] == "fatal"
	assert fatal["phase"] == "export"
	assert fatal["file"] == str(bad)
	assert fatal["line"] == 4
	assert fatal["notes"] == ["only primitive types are supported, not named types"]


def test_stdout_mode_prints_header(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
	src = _write_file(tmp_path / "lib.rs", GOOD)
	rc = hdrgen_main([str(src), "--stdout", "--guard-prefix", "LIB_"])
	assert rc == 0
	out = capsys.readouterr().out
	assert out.startswith("#ifndef LIB_GOOD_H\n#define LIB_GOOD_H\n")
	assert not (tmp_path / "good.h").exists()


def test_parse_error_reports_location(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
	src = _write_file(tmp_path / "lib.rs", '#![crate_name = "x"]\npub fn (\n')
	rc, payload = _run_hdrgen_json([str(src), "-o", str(tmp_path)], capsys)
	assert rc == 1
	(diag,) = payload["diagnostics"]
	assert diag["code"] == "E-PARSE"
	assert diag["phase"] == "parser"
	assert diag["line"] == 2


def test_missing_crate_name_human_output(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
	src = _write_file(tmp_path / "lib.rs", "pub fn f() {}\n")
	rc = hdrgen_main([str(src), "-o", str(tmp_path)])
	assert rc == 1
	err = capsys.readouterr().err
	assert f"{src}:?:?: fatal: crate has no identifying attribute" in err
	assert list(tmp_path.glob("*.h")) == []


def test_json_and_stdout_are_exclusive(tmp_path: Path):
	with pytest.raises(SystemExit):
		hdrgen_main([str(tmp_path / "lib.rs"), "--json", "--stdout"])


def test_json_diagnostic_without_position_uses_source_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
	src = _write_file(tmp_path / "lib.rs", "pub fn f() {}\n")
	rc, payload = _run_hdrgen_json([str(src), "-o", str(tmp_path)], capsys)
	assert rc == 1
	(diag,) = payload["diagnostics"]
	assert diag["code"] == "E-MISSING-CRATE-NAME"
	assert diag["phase"] == "resolve"
	assert diag["file"] == str(src)
	assert diag["line"] is None and diag["column"] is None
	assert diag["notes"] == []


def test_guard_prefix_flag_is_sanitized(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
	src = _write_file(tmp_path / "lib.rs", GOOD)
	rc = hdrgen_main([str(src), "--stdout", "--guard-prefix", "my-"])
	assert rc == 0
	assert capsys.readouterr().out.startswith("#ifndef my_GOOD_H\n")
