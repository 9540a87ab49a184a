"""Build TypeDescriptors from static Python types.

Supports builtin scalars, Decimal, UUID, date/time types, Optional, the
common collection generics, Enum, dataclasses and pydantic models.
Dataclass fields describe themselves through ``field(metadata=...)`` with
the keys ``alias``, ``description``, ``key`` and ``navigation``; pydantic
fields use their alias, description and ``json_schema_extra``.
"""

import collections.abc as collections_abc
import dataclasses
import importlib
import inspect
import typing
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from types import NoneType, UnionType
from uuid import UUID

from pydantic import BaseModel

from odata_swagger.errors import TypeLoadError
from odata_swagger.model.types import (
    MemberDescriptor,
    TypeDescriptor,
    collection_of,
    complex_type,
    entity_type,
    enum_type,
    nullable_of,
    primitive,
)

_SCALARS: dict[type, str] = {
    str: "Edm.String",
    bool: "Edm.Boolean",
    int: "Edm.Int64",
    float: "Edm.Double",
    Decimal: "Edm.Decimal",
    bytes: "Edm.Binary",
    UUID: "Edm.Guid",
    datetime: "Edm.DateTimeOffset",
    date: "Edm.Date",
    time: "Edm.TimeOfDay",
    timedelta: "Edm.Duration",
}

_COLLECTION_ORIGINS = {
    list, set, frozenset, tuple,
    collections_abc.Sequence, collections_abc.MutableSequence, collections_abc.Iterable,
    collections_abc.Collection, collections_abc.Set, collections_abc.MutableSet,
}


def full_name(py_type: type) -> str:
    return f"{py_type.__module__}.{py_type.__qualname__}"


def describe(py_type: typing.Any, memo: dict[type, TypeDescriptor] | None = None) -> TypeDescriptor:
    """Return the TypeDescriptor for *py_type*.

    *memo* caches class descriptors so self-referencing types resolve to the
    same descriptor; pass one dict to share descriptors across calls.
    """
    if memo is None:
        memo = {}

    if py_type in _SCALARS:
        return primitive(_SCALARS[py_type])

    origin = typing.get_origin(py_type)
    args = typing.get_args(py_type)

    if origin is typing.Annotated:
        return describe(args[0], memo)

    if origin is typing.Union or origin is UnionType:
        non_null = [a for a in args if a is not NoneType]
        if len(non_null) != 1:
            raise TypeError(f"Only Optional[X] unions can be described, got {py_type!r}")
        return nullable_of(describe(non_null[0], memo))

    if py_type in (list, set, frozenset, tuple):
        return collection_of(primitive("Edm.String"))

    if origin in _COLLECTION_ORIGINS:
        return collection_of(describe(args[0] if args else str, memo))

    if inspect.isclass(py_type):
        if py_type in memo:
            return memo[py_type]
        if issubclass(py_type, Enum):
            memo[py_type] = enum_type(full_name(py_type), [m.name for m in py_type])
            return memo[py_type]
        if is_describable(py_type):
            return _describe_class(py_type, memo)

    raise TypeError(f"Cannot describe type {py_type!r}")


def is_describable(py_type: type) -> bool:
    if issubclass(py_type, Enum):
        return True
    if dataclasses.is_dataclass(py_type) or issubclass(py_type, BaseModel):
        return True
    return _collection_interface(py_type) is not None


def _collection_interface(py_type: type) -> typing.Any:
    for base in getattr(py_type, "__orig_bases__", ()):
        if typing.get_origin(base) in _COLLECTION_ORIGINS:
            return base
    return None


def _describe_class(py_type: type, memo: dict[type, TypeDescriptor]) -> TypeDescriptor:
    descriptor = complex_type(full_name(py_type))
    descriptor.description = inspect.cleandoc(py_type.__doc__ or "") if _has_own_doc(py_type) else ""
    memo[py_type] = descriptor

    for base in getattr(py_type, "__orig_bases__", ()):
        if typing.get_origin(base) in _COLLECTION_ORIGINS:
            descriptor.interfaces.append(describe(base, memo))

    if dataclasses.is_dataclass(py_type):
        members, key = _dataclass_members(py_type, memo)
    elif issubclass(py_type, BaseModel):
        members, key = _pydantic_members(py_type, memo)
    else:
        members, key = [], []

    descriptor.members.extend(members)
    if key:
        promoted = entity_type(descriptor.full_name, [], key)
        descriptor.kind = promoted.kind
        descriptor.key = promoted.key
    return descriptor


def _has_own_doc(py_type: type) -> bool:
    doc = py_type.__doc__
    if not doc:
        return False
    # dataclasses synthesize "Name(field: type, ...)" docstrings
    return not doc.startswith(f"{py_type.__name__}(")


def _dataclass_members(py_type: type, memo: dict[type, TypeDescriptor]) -> tuple[list[MemberDescriptor], list[str]]:
    hints = typing.get_type_hints(py_type)
    members: list[MemberDescriptor] = []
    key: list[str] = []
    for f in dataclasses.fields(py_type):
        has_default = f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING
        members.append(
            MemberDescriptor(
                name=f.name,
                type=describe(hints[f.name], memo),
                alias=f.metadata.get("alias"),
                optional=has_default,
                navigation=bool(f.metadata.get("navigation", False)),
                description=f.metadata.get("description", ""),
            )
        )
        if f.metadata.get("key"):
            key.append(f.name)
    return members, key


def _pydantic_members(py_type: type[BaseModel], memo: dict[type, TypeDescriptor]) -> tuple[list[MemberDescriptor], list[str]]:
    members: list[MemberDescriptor] = []
    key: list[str] = []
    for name, info in py_type.model_fields.items():
        extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
        members.append(
            MemberDescriptor(
                name=name,
                type=describe(info.annotation, memo),
                alias=info.alias,
                optional=not info.is_required(),
                navigation=bool(extra.get("navigation", False)),
                description=info.description or "",
            )
        )
        if extra.get("key"):
            key.append(name)
    return members, key


class ModuleAssembly:
    """A type source backed by an importable Python module.

    Public dataclasses, pydantic models and enums defined in the module are
    loaded. Import failures propagate (the whole source is unusable); classes
    that cannot be described make the load partial.
    """

    def __init__(self, module_name: str):
        self.name = module_name

    def get_types(self) -> list[TypeDescriptor]:
        module = importlib.import_module(self.name)
        memo: dict[type, TypeDescriptor] = {}
        types: list[TypeDescriptor] = []
        errors: list[Exception] = []
        for attr, obj in vars(module).items():
            if attr.startswith("_") or not inspect.isclass(obj) or obj.__module__ != module.__name__:
                continue
            if not is_describable(obj):
                continue
            try:
                types.append(describe(obj, memo))
            except (TypeError, NameError) as exc:
                errors.append(exc)
        if errors:
            raise TypeLoadError(self.name, types, errors[0])
        return types
