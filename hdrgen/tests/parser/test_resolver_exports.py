# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from hdrgen.core.items import EnumItem, FunctionItem, ModuleItem, StructItem, iter_items
from hdrgen.core.types_core import (
	Closure,
	DynamicSequence,
	FixedSequence,
	FunctionPointer,
	Indirection,
	IndirectionKind,
	Inferred,
	NamedOther,
	Never,
	Nil,
	PrimKind,
	Primitive,
	TextString,
	Tuple,
)
from hdrgen.parser.parser import parse_source
from hdrgen.parser.resolver import crate_name_from_attrs, resolve_source


def _resolve(source: str):
	return resolve_source(parse_source(source))


def _by_name(unit, name: str):
	return next(i for i in iter_items(unit.root) if i.name == name)


def _exported_names(unit) -> set[str]:
	return {i.name for i in iter_items(unit.root) if i.item_id in unit.exported}


def test_crate_name_attributes():
	assert _resolve('#![crate_name = "demo"]\n').crate_name == "demo"
	assert _resolve('#![crate_id = "github.com/example/rust#0.1"]\n').crate_name == "rust"
	assert _resolve('#![crate_id = "plain"]\n').crate_name == "plain"
	assert _resolve('#![crate_name = "a"]\n#![crate_id = "b#1"]\n').crate_name == "a"
	assert _resolve("pub fn f() {}\n").crate_name is None
	assert crate_name_from_attrs([]) is None


def test_items_are_numbered_in_pre_order():
	unit = _resolve(
		"""
fn a() {}
mod m {
	fn b() {}
	mod n { fn c() {} }
}
fn d() {}
"""
	)
	assert [(i.item_id, i.name) for i in iter_items(unit.root)][1:] == [
		(1, "a"),
		(2, "m"),
		(3, "b"),
		(4, "n"),
		(5, "c"),
		(6, "d"),
	]
	assert unit.root.item_id == 0


def test_type_resolution():
	unit = _resolve(
		"""
pub struct Point { x: i32 }
pub fn f(
	a: i32, b: char, c: &mut u8, d: *const bool, e: Box<f64>, g: std::boxed::Box<u8>,
	h: str, i: String, j: std::string::String, k: [u8], l: [u8; 4], m: (u8, u8),
	n: fn(u8) -> u8, o: impl Fn(u8), p: _, q: Point, r: Vec<u8>, s: (), t: core::primitive::u16,
) -> ! { loop {} }
pub fn g() {}
"""
	)
	f = _by_name(unit, "f")
	assert isinstance(f, FunctionItem)
	types = dict(zip(f.param_names, f.params))
	assert types["a"] == Primitive(PrimKind.I32)
	assert types["b"] == Primitive(PrimKind.CHAR)
	assert types["c"] == Indirection(Primitive(PrimKind.U8), IndirectionKind.REF, True)
	assert types["d"] == Indirection(Primitive(PrimKind.BOOL), IndirectionKind.PTR, False)
	assert types["e"] == Indirection(Primitive(PrimKind.F64), IndirectionKind.BOX)
	assert types["g"] == Indirection(Primitive(PrimKind.U8), IndirectionKind.BOX)
	assert types["h"] == TextString("str")
	assert types["i"] == TextString("String")
	assert types["j"] == TextString("String")
	assert types["k"] == DynamicSequence(Primitive(PrimKind.U8))
	assert types["l"] == FixedSequence(Primitive(PrimKind.U8), "4")
	assert types["m"] == Tuple((Primitive(PrimKind.U8), Primitive(PrimKind.U8)))
	assert isinstance(types["n"], FunctionPointer)
	assert isinstance(types["o"], Closure) and types["o"].trait_name == "Fn"
	assert types["p"] == Inferred()
	point = _by_name(unit, "Point")
	assert types["q"] == NamedOther("Point", point.item_id)
	assert unit.type_defs["Point"] == point.item_id
	assert types["r"] == NamedOther("Vec<u8>")
	assert types["s"] == Nil()
	assert types["t"] == Primitive(PrimKind.U16)
	assert f.return_type == Never()
	assert _by_name(unit, "g").return_type == Nil()


def test_declared_type_shadows_primitive():
	unit = _resolve(
		"""
#[allow(non_camel_case_types)]
pub struct u8 { v: i32 }
pub fn f(x: u8) {}
"""
	)
	f = _by_name(unit, "f")
	assert isinstance(f.params[0], NamedOther)
	assert f.params[0].item_id == _by_name(unit, "u8").item_id


def test_function_abi_and_generics():
	unit = _resolve(
		"""
pub extern fn a() {}
pub extern "C" fn b() {}
pub extern "system" fn c() {}
pub fn d<'a>(x: &'a u8) {}
pub fn e<T, const N: usize>() {}
"""
	)
	assert [_by_name(unit, n).abi for n in "abcde"] == ["C", "C", "system", None, None]
	assert _by_name(unit, "d").generic_count == 0
	assert _by_name(unit, "e").generic_count == 2


def test_struct_and_enum_items():
	unit = _resolve(
		"""
pub struct Named { a: u8, b: u16 }
pub struct Tup(u8);
pub struct Unit;
pub enum E { A, B }
"""
	)
	named = _by_name(unit, "Named")
	assert isinstance(named, StructItem) and not named.is_tuple
	assert [f.name for f in named.fields] == ["a", "b"]
	assert _by_name(unit, "Tup").is_tuple
	assert _by_name(unit, "Unit").is_tuple
	assert isinstance(_by_name(unit, "E"), EnumItem)


def test_pub_items_of_reachable_modules_are_exported():
	unit = _resolve(
		"""
pub fn top() {}
fn private() {}
pub(crate) fn crate_only() {}
pub mod api {
	pub fn visible() {}
	fn hidden() {}
	pub mod nested { pub fn deep() {} }
	mod sealed { pub fn trapped() {} }
}
mod internal {
	pub fn unreachable() {}
}
"""
	)
	assert _exported_names(unit) == {"top", "api", "visible", "nested", "deep"}


def test_pub_use_reexports_reach_private_items():
	unit = _resolve(
		"""
mod internal {
	pub fn single() {}
	pub fn renamed() {}
	pub struct Grouped { a: u8 }
	pub fn private_in_group() {}
	pub mod globbed { pub fn g1() {} fn g2() {} }
	pub fn not_reexported() {}
}
pub use internal::single;
pub use self::internal::renamed as other_name;
pub use crate::internal::{Grouped, globbed::*};
use internal::private_in_group;
"""
	)
	assert _exported_names(unit) == {"single", "renamed", "Grouped", "g1"}


def test_reexports_chain_to_a_fixed_point():
	unit = _resolve(
		"""
mod a {
	pub use super::b::*;
}
mod b {
	pub mod c { pub fn leaf() {} }
	pub fn direct() {}
}
pub use a::*;
"""
	)
	assert _exported_names(unit) == {"c", "leaf", "direct"}


def test_reexport_of_module_self_and_super():
	unit = _resolve(
		"""
mod outer {
	pub mod inner {
		pub fn f() {}
		pub use super::sibling;
	}
	pub fn sibling() {}
}
pub use outer::inner::{self};
"""
	)
	assert _exported_names(unit) == {"inner", "f", "sibling"}


def test_root_module_tree_shape():
	unit = _resolve('#![crate_name = "x"]\nmod m { pub fn f() {} }\n')
	assert isinstance(unit.root, ModuleItem)
	assert unit.root.name == "x"
	(m,) = unit.root.children
	assert isinstance(m, ModuleItem)
	assert [c.name for c in m.children] == ["f"]
	assert unit.exported == frozenset()
