from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional

from lark import Lark, Token, Tree

from hdrgen.core.items import Attribute

from .ast import (
	ConstDef,
	EnumDef,
	FunctionDef,
	Generics,
	ItemDef,
	Located,
	ModDef,
	OpaqueDef,
	Param,
	SourceFile,
	StructDef,
	StructFieldDef,
	TypeAliasDef,
	TypeExpr,
	UseDef,
	UseEntry,
)

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="contextual",
	start="start",
	propagate_positions=True,
	maybe_placeholders=False,
)

_IDENT_RE = re.compile(r"\s*([A-Za-z_][A-Za-z0-9_]*)")
_SEGMENT_TOKENS = {"NAME", "SELF", "SUPER", "CRATE"}

_TYPE_NODES = {
	"unit_type",
	"paren_type",
	"tuple_type",
	"never_type",
	"ref_type",
	"ptr_type",
	"slice_type",
	"array_type",
	"fn_ptr_type",
	"infer_type",
	"closure_type",
	"trait_object_type",
	"path_type",
}


def parse_source(source: str) -> SourceFile:
	"""Parse one source file; raises lark.UnexpectedInput on syntax errors."""
	tree = _PARSER.parse(source)
	return _build_source_file(tree)


def _decode_string_token(tok: Token) -> str:
	"""Strip quotes from a STRING token and unescape quotes and backslashes."""
	content = tok.value[1:-1]
	return content.replace("\\\"", "\"").replace("\\\\", "\\")


def _build_source_file(tree: Tree) -> SourceFile:
	inner_attrs: List[Attribute] = []
	items: List[ItemDef] = []
	for child in tree.children:
		kind = _name(child)
		if kind == "inner_attr":
			inner_attrs.append(_build_meta(_first_tree(child)))
		elif kind == "item":
			items.append(_build_item(child))
	return SourceFile(inner_attrs=inner_attrs, items=items)


# ---- attributes ----


def _build_meta(tree: Tree) -> Attribute:
	kind = _name(tree)
	if kind == "meta_word":
		return Attribute(name=_meta_name(tree.children[0]))
	if kind == "meta_name_value":
		path, lit = tree.children[0], tree.children[1]
		value = _decode_string_token(lit) if lit.type == "STRING" else lit.value
		return Attribute(name=_meta_name(path), value=value)
	if kind == "meta_list":
		args: List[Attribute] = []
		for child in tree.children[1:]:
			if isinstance(child, Tree):
				args.append(_build_meta(child))
			elif isinstance(child, Token) and child.type == "STRING":
				# Bare literal arguments (`#[deprecated("...")]`) have no name.
				args.append(Attribute(name="", value=_decode_string_token(child)))
			elif isinstance(child, Token) and child.type == "INT":
				args.append(Attribute(name="", value=child.value))
		return Attribute(name=_meta_name(tree.children[0]), args=tuple(args))
	if kind == "meta_unsafe":
		return Attribute(name="unsafe", args=(_build_meta(_first_tree(tree)),))
	raise ValueError(f"unexpected attribute node {kind}")


def _meta_name(path: Tree) -> str:
	"""`rustfmt::skip` style attribute names are kept joined."""
	return "::".join(tok.value for tok in path.children if isinstance(tok, Token))


def _collect_outer_attrs(children: List[object]) -> List[Attribute]:
	return [
		_build_meta(_first_tree(child))
		for child in children
		if isinstance(child, Tree) and _name(child) == "outer_attr"
	]


# ---- items ----


def _build_item(tree: Tree) -> ItemDef:
	children = list(tree.children)
	attrs = _collect_outer_attrs(children)
	vis: Optional[str] = None
	kind_node: Optional[Tree] = None
	for child in children:
		if not isinstance(child, Tree):
			continue
		name = _name(child)
		if name == "outer_attr":
			continue
		if name in {"vis_pub", "vis_restricted"}:
			vis = _build_vis(child)
			continue
		kind_node = child
	if kind_node is None:
		raise ValueError("item without a body node")
	item = _build_item_kind(kind_node)
	item.attrs = attrs
	item.vis = vis
	return item


def _build_vis(tree: Tree) -> str:
	if _name(tree) == "vis_pub":
		return "pub"
	scope = [tok.value for tok in tree.children[1:] if isinstance(tok, Token)]
	if len(scope) == 1 and scope[0] in {"crate", "self", "super"}:
		return f"pub({scope[0]})"
	return "pub(in " + "::".join(scope) + ")"


def _build_item_kind(tree: Tree) -> ItemDef:
	kind = _name(tree)
	if kind == "fn_item":
		return _build_function(tree)
	if kind in {"named_struct", "tuple_struct", "unit_struct"}:
		return _build_struct(tree)
	if kind == "enum_item":
		return EnumDef(name=_first_token(tree, "NAME").value, loc=_loc(tree), generics=_build_generics(_child(tree, "generics")))
	if kind == "mod_decl":
		return ModDef(name=_first_token(tree, "NAME").value, loc=_loc(tree), inline=False)
	if kind == "mod_inline":
		return _build_mod_inline(tree)
	if kind == "use_item":
		return UseDef(name="", loc=_loc(tree), entries=_build_use_tree(_first_tree(tree), []))
	if kind == "type_alias":
		return TypeAliasDef(
			name=_first_token(tree, "NAME").value,
			loc=_loc(tree),
			target=_build_type_expr(next(c for c in tree.children if isinstance(c, Tree) and _name(c) in _TYPE_NODES)),
			generics=_build_generics(_child(tree, "generics")),
		)
	if kind == "const_item":
		return _build_const(tree)
	if kind == "impl_item":
		return OpaqueDef(name="", loc=_loc(tree), kind="impl")
	if kind == "trait_item":
		head = _IDENT_RE.match(_first_token(tree, "OPAQUE_HEAD").value)
		return OpaqueDef(name=head.group(1) if head else "", loc=_loc(tree), kind="trait")
	if kind == "extern_block":
		return OpaqueDef(name="", loc=_loc(tree), kind="extern_block")
	if kind == "extern_crate":
		return OpaqueDef(name=_first_token(tree, "NAME").value, loc=_loc(tree), kind="extern_crate")
	if kind == "macro_item":
		names = [tok.value for tok in tree.children if isinstance(tok, Token) and tok.type == "NAME"]
		return OpaqueDef(name=names[-1], loc=_loc(tree), kind="macro")
	raise ValueError(f"unexpected item node {kind}")


def _build_function(tree: Tree) -> FunctionDef:
	extern_node = _child(tree, "extern_abi")
	sig = _child(tree, "fn_sig")
	if sig is None:
		raise ValueError("function item missing signature")
	name_token = _first_token(sig, "NAME")
	params = [_build_param(p) for p in sig.children if isinstance(p, Tree) and _name(p) == "fn_param"]
	ret_node = _child(sig, "ret")
	return FunctionDef(
		name=name_token.value,
		loc=_loc(tree),
		params=params,
		return_type=_build_type_expr(_first_tree(ret_node)) if ret_node is not None else None,
		generics=_build_generics(_child(sig, "generics")),
		is_extern=extern_node is not None,
		abi=_build_extern_abi(extern_node) if extern_node is not None else None,
		has_body=_child(tree, "brace_block") is not None,
	)


def _build_extern_abi(tree: Tree) -> Optional[str]:
	lit = next((c for c in tree.children if isinstance(c, Token) and c.type == "STRING"), None)
	return _decode_string_token(lit) if lit is not None else None


def _build_param(tree: Tree) -> Param:
	name_tok = next(c for c in tree.children if isinstance(c, Token) and c.type in {"NAME", "UNDERSCORE"})
	type_node = next(c for c in tree.children if isinstance(c, Tree) and _name(c) in _TYPE_NODES)
	return Param(name=name_tok.value, type_expr=_build_type_expr(type_node))


def _build_generics(tree: Optional[Tree]) -> Generics:
	generics = Generics()
	if tree is None:
		return generics
	for param in tree.children:
		if not isinstance(param, Tree):
			continue
		kind = _name(param)
		if kind == "lifetime_param":
			generics.lifetimes.append(param.children[0].value)
		elif kind == "type_param":
			generics.type_params.append(param.children[0].value)
		elif kind == "const_param":
			generics.const_params.append(_first_token(param, "NAME").value)
	return generics


def _build_struct(tree: Tree) -> StructDef:
	kind = _name(tree)
	name_token = _first_token(tree, "NAME")
	generics = _build_generics(_child(tree, "generics"))
	fields: List[StructFieldDef] = []
	if kind == "named_struct":
		for node in tree.children:
			if isinstance(node, Tree) and _name(node) == "named_field":
				fields.append(_build_named_field(node))
		shape = "named"
	elif kind == "tuple_struct":
		for node in tree.children:
			if isinstance(node, Tree) and _name(node) == "tuple_field":
				fields.append(_build_tuple_field(node))
		shape = "tuple"
	else:
		shape = "unit"
	return StructDef(name=name_token.value, loc=_loc(tree), shape=shape, fields=fields, generics=generics)


def _build_named_field(tree: Tree) -> StructFieldDef:
	vis_node = next((c for c in tree.children if isinstance(c, Tree) and _name(c) in {"vis_pub", "vis_restricted"}), None)
	name_tok = _first_token(tree, "NAME")
	type_node = next(c for c in tree.children if isinstance(c, Tree) and _name(c) in _TYPE_NODES)
	return StructFieldDef(
		name=name_tok.value,
		type_expr=_build_type_expr(type_node),
		vis=_build_vis(vis_node) if vis_node is not None else None,
	)


def _build_tuple_field(tree: Tree) -> StructFieldDef:
	is_pub = any(isinstance(c, Token) and c.type == "PUB" for c in tree.children)
	type_node = next(c for c in tree.children if isinstance(c, Tree) and _name(c) in _TYPE_NODES)
	return StructFieldDef(name=None, type_expr=_build_type_expr(type_node), vis="pub" if is_pub else None)


def _build_mod_inline(tree: Tree) -> ModDef:
	body = _child(tree, "mod_body")
	inner_attrs: List[Attribute] = []
	items: List[ItemDef] = []
	if body is not None:
		for child in body.children:
			kind = _name(child)
			if kind == "inner_attr":
				inner_attrs.append(_build_meta(_first_tree(child)))
			elif kind == "item":
				items.append(_build_item(child))
	return ModDef(
		name=_first_token(tree, "NAME").value,
		loc=_loc(tree),
		inline=True,
		inner_attrs=inner_attrs,
		items=items,
	)


def _build_use_tree(tree: Tree, prefix: List[str]) -> List[UseEntry]:
	"""Flatten a use tree into leaf entries with fully spelled paths."""
	kind = _name(tree)
	segments = prefix + [tok.value for tok in tree.children if isinstance(tok, Token) and tok.type in _SEGMENT_TOKENS]
	if kind == "use_path":
		alias_node = _child(tree, "alias")
		alias = alias_node.children[0].value if alias_node is not None else None
		return [UseEntry(path=segments, alias=alias)]
	if kind == "use_glob":
		return [UseEntry(path=segments, glob=True)]
	if kind == "use_group":
		entries: List[UseEntry] = []
		for child in tree.children:
			if isinstance(child, Tree):
				entries.extend(_build_use_tree(child, segments))
		return entries
	raise ValueError(f"unexpected use tree node {kind}")


def _build_const(tree: Tree) -> ConstDef:
	kind_tok = next(c for c in tree.children if isinstance(c, Token) and c.type in {"CONST", "STATIC"})
	name_tok = next(c for c in tree.children if isinstance(c, Token) and c.type in {"NAME", "UNDERSCORE"})
	type_node = next(c for c in tree.children if isinstance(c, Tree) and _name(c) in _TYPE_NODES)
	return ConstDef(
		name=name_tok.value,
		loc=_loc(tree),
		kind=kind_tok.value,
		type_expr=_build_type_expr(type_node),
	)


# ---- types ----


def _build_type_expr(tree: Tree) -> TypeExpr:
	kind = _name(tree)
	loc = _loc(tree)
	sub_types = [_build_type_expr(c) for c in tree.children if isinstance(c, Tree) and _name(c) in _TYPE_NODES]
	if kind == "path_type":
		return _build_type_path(_first_tree(tree), loc)
	if kind == "paren_type":
		return sub_types[0]
	if kind == "unit_type":
		return TypeExpr(kind="unit", loc=loc)
	if kind == "never_type":
		return TypeExpr(kind="never", loc=loc)
	if kind == "tuple_type":
		return TypeExpr(kind="tuple", args=sub_types, loc=loc)
	if kind == "ref_type":
		mutable = any(isinstance(c, Token) and c.type == "MUT" for c in tree.children)
		return TypeExpr(kind="ref", args=sub_types, mutable=mutable, loc=loc)
	if kind == "ptr_type":
		mutable = any(isinstance(c, Token) and c.type == "MUT" for c in tree.children)
		return TypeExpr(kind="ptr", args=sub_types, mutable=mutable, loc=loc)
	if kind == "slice_type":
		return TypeExpr(kind="slice", args=sub_types, loc=loc)
	if kind == "array_type":
		length = next(c for c in tree.children if isinstance(c, Token) and c.type in {"INT", "NAME"})
		return TypeExpr(kind="array", args=sub_types, length=length.value, loc=loc)
	if kind == "fn_ptr_type":
		extern_node = _child(tree, "extern_abi")
		abi = None
		if extern_node is not None:
			abi = _build_extern_abi(extern_node) or "C"
		return TypeExpr(kind="fn", args=sub_types, ret=_build_ret(tree), abi=abi, loc=loc)
	if kind == "infer_type":
		return TypeExpr(kind="infer", loc=loc)
	if kind == "closure_type":
		name_tok = _first_token(tree, "NAME")
		return TypeExpr(kind="closure", path=[name_tok.value], args=sub_types, ret=_build_ret(tree), loc=loc)
	if kind == "trait_object_type":
		bound = _build_type_path(_first_tree(tree), loc)
		return TypeExpr(kind="trait_object", path=bound.path, args=bound.args, loc=loc)
	raise ValueError(f"unexpected type node {kind}")


def _build_ret(tree: Tree) -> Optional[TypeExpr]:
	ret_node = _child(tree, "ret")
	if ret_node is None:
		return None
	return _build_type_expr(_first_tree(ret_node))


def _build_type_path(tree: Tree, loc: Optional[Located]) -> TypeExpr:
	segments = [tok.value for tok in tree.children if isinstance(tok, Token) and tok.type in _SEGMENT_TOKENS]
	args: List[TypeExpr] = []
	args_node = _child(tree, "generic_args")
	if args_node is not None:
		for arg in args_node.children:
			if isinstance(arg, Tree) and _name(arg) in _TYPE_NODES:
				args.append(_build_type_expr(arg))
	return TypeExpr(kind="path", path=segments, args=args, loc=loc)


# ---- tree helpers ----


def _child(tree: Tree, name: str) -> Optional[Tree]:
	return next((c for c in tree.children if isinstance(c, Tree) and _name(c) == name), None)


def _first_tree(tree: Tree) -> Tree:
	node = next((c for c in tree.children if isinstance(c, Tree)), None)
	if node is None:
		raise ValueError(f"{_name(tree)} node has no subtree")
	return node


def _first_token(tree: Tree, token_type: str) -> Token:
	tok = next((c for c in tree.children if isinstance(c, Token) and c.type == token_type), None)
	if tok is None:
		raise ValueError(f"{_name(tree)} node has no {token_type} token")
	return tok


def _loc(tree: Tree) -> Located:
	meta = tree.meta
	return Located(line=getattr(meta, "line", 0), column=getattr(meta, "column", 0))


def _name(node: Tree | Token) -> str:
	if isinstance(node, Tree):
		data = node.data
		if isinstance(data, Token):
			return data.value
		return data
	if isinstance(node, Token):
		return node.type
	return str(node)


__all__ = ["parse_source"]
