"""Structural type descriptors.

Every type the engine reasons about (parameter types, return types, entity
members) is described by a TypeDescriptor instead of being reflected at run
time. Metadata models and the Python adapter in ``parser.python_types`` both
produce these.
"""

from dataclasses import dataclass, field
from typing import Literal

TypeKind = Literal["primitive", "enum", "collection", "nullable", "complex", "entity"]

STRING = "Edm.String"

# Swagger (type, format) for each primitive the metadata model knows about.
PRIMITIVE_FORMATS: dict[str, tuple[str, str | None]] = {
    "Edm.Boolean": ("boolean", None),
    "Edm.Byte": ("integer", "int32"),
    "Edm.SByte": ("integer", "int32"),
    "Edm.Int16": ("integer", "int32"),
    "Edm.Int32": ("integer", "int32"),
    "Edm.Int64": ("integer", "int64"),
    "Edm.Single": ("number", "float"),
    "Edm.Double": ("number", "double"),
    "Edm.Decimal": ("number", "double"),
    "Edm.String": ("string", None),
    "Edm.Guid": ("string", "uuid"),
    "Edm.Date": ("string", "date"),
    "Edm.DateTime": ("string", "date-time"),
    "Edm.DateTimeOffset": ("string", "date-time"),
    "Edm.TimeOfDay": ("string", "time"),
    "Edm.Duration": ("string", "duration"),
    "Edm.Binary": ("string", "byte"),
    "Edm.Uri": ("string", "uri"),
}

# Machine primitives: numbers and booleans.
NUMERIC_PRIMITIVES = frozenset({
    "Edm.Boolean", "Edm.Byte", "Edm.SByte", "Edm.Int16", "Edm.Int32", "Edm.Int64", "Edm.Single", "Edm.Double",
})

# Well-known value types that may still travel in a query string.
QUERY_VALUE_TYPES = frozenset({
    "Edm.String", "Edm.Decimal", "Edm.Guid", "Edm.Date", "Edm.DateTime", "Edm.DateTimeOffset",
    "Edm.TimeOfDay", "Edm.Duration", "Edm.Uri",
})


@dataclass(eq=False, repr=False)
class MemberDescriptor:
    """A named member of a composite type."""

    name: str
    type: "TypeDescriptor"
    alias: str | None = None  # explicit serialization alias
    model_name: str | None = None  # name under the metadata model's naming convention
    optional: bool = False
    navigation: bool = False
    description: str = ""

    def __repr__(self) -> str:
        return f"MemberDescriptor({self.name}: {self.type.full_name})"


@dataclass(eq=False, repr=False)
class TypeDescriptor:
    """Opaque handle to a structural type.

    Descriptors compare by identity. Composite types may reference themselves
    through their members, but wrapper kinds (collection, nullable) never form
    a cycle, so unwrapping always terminates.
    """

    kind: TypeKind
    full_name: str
    element: "TypeDescriptor | None" = None
    members: list[MemberDescriptor] = field(default_factory=list)
    enum_members: list[str] = field(default_factory=list)
    key: list[str] = field(default_factory=list)
    interfaces: list["TypeDescriptor"] = field(default_factory=list)
    inline: bool = False
    description: str = ""

    @property
    def name(self) -> str:
        """Short name: the full name without its namespace."""
        if self.kind in ("collection", "nullable"):
            return self.full_name
        return self.full_name.rsplit(".", 1)[-1]

    @property
    def is_composite(self) -> bool:
        return self.kind in ("complex", "entity")

    def member(self, name: str) -> MemberDescriptor | None:
        for m in self.members:
            if m.name == name:
                return m
        return None

    def key_members(self) -> list[MemberDescriptor]:
        return [m for m in (self.member(k) for k in self.key) if m is not None]

    def __repr__(self) -> str:
        return f"TypeDescriptor({self.kind}:{self.full_name})"


_PRIMITIVES: dict[str, TypeDescriptor] = {}


def primitive(full_name: str) -> TypeDescriptor:
    """Return the interned descriptor for an ``Edm.*`` primitive."""
    if full_name not in PRIMITIVE_FORMATS:
        raise ValueError(f"Unknown primitive type: {full_name}")
    if full_name not in _PRIMITIVES:
        _PRIMITIVES[full_name] = TypeDescriptor(kind="primitive", full_name=full_name)
    return _PRIMITIVES[full_name]


def collection_of(element: TypeDescriptor) -> TypeDescriptor:
    return TypeDescriptor(kind="collection", full_name=f"Collection({element.full_name})", element=element)


def nullable_of(element: TypeDescriptor) -> TypeDescriptor:
    if element.kind == "nullable":
        return element
    return TypeDescriptor(kind="nullable", full_name=f"Nullable({element.full_name})", element=element)


def enum_type(full_name: str, members: list[str]) -> TypeDescriptor:
    return TypeDescriptor(kind="enum", full_name=full_name, enum_members=list(members))


def complex_type(full_name: str, members: list[MemberDescriptor] | None = None, *, inline: bool = False) -> TypeDescriptor:
    return TypeDescriptor(kind="complex", full_name=full_name, members=list(members or []), inline=inline)


def entity_type(full_name: str, members: list[MemberDescriptor], key: list[str]) -> TypeDescriptor:
    return TypeDescriptor(kind="entity", full_name=full_name, members=list(members), key=list(key))
