from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from hdrgen.core.items import Attribute


@dataclass(frozen=True)
class Located:
    line: int
    column: int


@dataclass
class TypeExpr:
    """
    A written type.

    `kind` is one of: path, unit, never, ref, ptr, slice, array, tuple, fn,
    infer, closure, trait_object. `args` holds the nested types (generic
    arguments of a path, the pointee of ref/ptr, tuple elements, fn/closure
    parameters).
    """

    kind: str
    path: List[str] = field(default_factory=list)
    args: List["TypeExpr"] = field(default_factory=list)
    mutable: bool = False
    length: Optional[str] = None
    ret: Optional["TypeExpr"] = None
    abi: Optional[str] = None
    loc: Optional[Located] = None

    @property
    def name(self) -> str:
        return "::".join(self.path)


@dataclass
class Generics:
    lifetimes: List[str] = field(default_factory=list)
    type_params: List[str] = field(default_factory=list)
    const_params: List[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        """Number of parameters that change the ABI layout (lifetimes excluded)."""
        return len(self.type_params) + len(self.const_params)


@dataclass
class Param:
    name: str
    type_expr: TypeExpr


@dataclass
class ItemDef:
    name: str
    loc: Located
    attrs: List[Attribute] = field(default_factory=list)
    # "pub", "pub(crate)", "pub(super)", "pub(self)", "pub(in a::b)" or None.
    vis: Optional[str] = None

    @property
    def is_pub(self) -> bool:
        return self.vis == "pub"


@dataclass
class FunctionDef(ItemDef):
    params: List[Param] = field(default_factory=list)
    return_type: Optional[TypeExpr] = None
    generics: Generics = field(default_factory=Generics)
    is_extern: bool = False
    abi: Optional[str] = None  # literal of `extern "..."`, None when omitted
    has_body: bool = True


@dataclass
class StructFieldDef:
    name: Optional[str]
    type_expr: TypeExpr
    vis: Optional[str] = None


@dataclass
class StructDef(ItemDef):
    shape: str = "named"  # named | tuple | unit
    fields: List[StructFieldDef] = field(default_factory=list)
    generics: Generics = field(default_factory=Generics)


@dataclass
class EnumDef(ItemDef):
    generics: Generics = field(default_factory=Generics)


@dataclass
class ModDef(ItemDef):
    inline: bool = True
    inner_attrs: List[Attribute] = field(default_factory=list)
    items: List[ItemDef] = field(default_factory=list)
    # Source file the module body came from (out-of-line modules).
    file: Optional[str] = None


@dataclass
class UseEntry:
    """One leaf of a use tree: `path` (as alias), or `path::*` when glob."""

    path: List[str]
    alias: Optional[str] = None
    glob: bool = False


@dataclass
class UseDef(ItemDef):
    entries: List[UseEntry] = field(default_factory=list)


@dataclass
class TypeAliasDef(ItemDef):
    target: Optional[TypeExpr] = None
    generics: Generics = field(default_factory=Generics)


@dataclass
class ConstDef(ItemDef):
    kind: str = "const"  # const | static
    type_expr: Optional[TypeExpr] = None


@dataclass
class OpaqueDef(ItemDef):
    """impl/trait blocks, extern blocks, extern crate and macro items."""

    kind: str = "impl"


@dataclass
class SourceFile:
    inner_attrs: List[Attribute]
    items: List[ItemDef]
