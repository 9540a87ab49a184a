"""Structural questions about type descriptors, and the policies behind them.

The naming, type-source and type-lookup policies are owned by a TypeReflector
instance. Independent runs that need different policies use different
reflectors, or call ``reset()`` in between.
"""

import logging
from typing import Callable, Iterable, Protocol, runtime_checkable

from odata_swagger.errors import TypeLoadError, TypeNotFoundError
from odata_swagger.model.edm import MetadataModel
from odata_swagger.model.types import (
    NUMERIC_PRIMITIVES,
    QUERY_VALUE_TYPES,
    STRING,
    MemberDescriptor,
    TypeDescriptor,
    nullable_of,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class PropertyResolver(Protocol):
    def resolve_name(self, member: MemberDescriptor, default_name: str) -> str: ...


class DefaultPropertyResolver:
    """Use the member's explicit serialization alias when it has one."""

    def resolve_name(self, member: MemberDescriptor, default_name: str) -> str:
        if member.alias and member.alias.strip():
            return member.alias
        return default_name


class DeclaredNamePropertyResolver:
    """Always use the member's declared identifier."""

    def resolve_name(self, member: MemberDescriptor, default_name: str) -> str:
        return member.name


class TypeSource(Protocol):
    """A loaded "assembly": anything that can list the types it defines."""

    name: str

    def get_types(self) -> list[TypeDescriptor]: ...


class AssembliesResolver(Protocol):
    def get_assemblies(self) -> list[TypeSource]: ...


class TypeResolver(Protocol):
    def find_type(self, full_name: str) -> TypeDescriptor: ...


class ModelAssembly:
    """Exposes the types declared by a metadata model."""

    def __init__(self, model: MetadataModel, name: str = "model"):
        self.name = name
        self._model = model

    def get_types(self) -> list[TypeDescriptor]:
        types = list(self._model.types)
        for entity_set in self._model.entity_sets:
            if entity_set.entity_type not in types:
                types.append(entity_set.entity_type)
        return types


class DefaultAssembliesResolver:
    def __init__(self, sources: Iterable[TypeSource] | None = None):
        self._sources: list[TypeSource] = list(sources or [])
        self.revision = 0

    def add(self, source: TypeSource) -> None:
        self._sources.append(source)
        self.revision += 1

    def get_assemblies(self) -> list[TypeSource]:
        return list(self._sources)


class DefaultTypeResolver:
    """Scan every loaded type for an exact full-name match."""

    def __init__(self, loaded_types: Callable[[], list[TypeDescriptor]]):
        self._loaded_types = loaded_types

    def find_type(self, full_name: str) -> TypeDescriptor:
        for t in self._loaded_types():
            if t.full_name == full_name:
                return t
        raise TypeNotFoundError(full_name)


class TypeReflector:
    """Answers structural questions about TypeDescriptors."""

    def __init__(
        self,
        property_resolver: PropertyResolver | None = None,
        assemblies_resolver: AssembliesResolver | None = None,
        type_resolver: TypeResolver | None = None,
    ):
        self._property_resolver = property_resolver or DefaultPropertyResolver()
        self._assemblies_resolver = assemblies_resolver or DefaultAssembliesResolver()
        self._type_resolver = type_resolver or DefaultTypeResolver(self.loaded_types)
        self._revision = 0

    @property
    def revision(self) -> tuple[int, int]:
        """Changes whenever a policy is replaced or the active assemblies resolver gains a source."""
        return self._revision, getattr(self._assemblies_resolver, "revision", 0)

    @property
    def assemblies_resolver(self) -> AssembliesResolver:
        return self._assemblies_resolver

    def set_property_resolver(self, resolver: PropertyResolver) -> None:
        self._property_resolver = resolver
        self._revision += 1

    def set_assemblies_resolver(self, resolver: AssembliesResolver) -> None:
        self._assemblies_resolver = resolver
        self._revision += 1

    def set_type_resolver(self, resolver: TypeResolver) -> None:
        self._type_resolver = resolver
        self._revision += 1

    def reset(self) -> None:
        """Restore the default policies."""
        self._property_resolver = DefaultPropertyResolver()
        self._assemblies_resolver = DefaultAssembliesResolver()
        self._type_resolver = DefaultTypeResolver(self.loaded_types)
        self._revision += 1

    # -- structure ---------------------------------------------------------

    def is_collection(self, t: TypeDescriptor) -> tuple[bool, TypeDescriptor]:
        """Return ``(True, element)`` when *t* enumerates a single element type.

        Strings enumerate characters but are never treated as collections.
        Declared interfaces are checked before the type itself and the first
        enumerable one wins.
        """
        if t.full_name == STRING:
            return False, t
        for candidate in [*t.interfaces, t]:
            if candidate.kind == "collection" and candidate.element is not None:
                return True, candidate.element
        return False, t

    def inner_element_type(self, t: TypeDescriptor) -> TypeDescriptor:
        is_collection, element = self.is_collection(t)
        if not is_collection:
            raise TypeError(f"{t.full_name} is not a collection")
        return element

    def inner_most_element_type(self, t: TypeDescriptor) -> TypeDescriptor:
        while t.kind in ("nullable", "collection") and t.element is not None:
            t = t.element
        return t

    def underlying_type_or_self(self, t: TypeDescriptor) -> TypeDescriptor:
        if t.kind == "nullable" and t.element is not None:
            return t.element
        return t

    def is_nullable(self, t: TypeDescriptor) -> bool:
        return t.kind == "nullable"

    def to_nullable(self, t: TypeDescriptor) -> TypeDescriptor:
        return nullable_of(t)

    def is_enum(self, t: TypeDescriptor) -> bool:
        return self.underlying_type_or_self(t).kind == "enum"

    def is_query_primitive(self, t: TypeDescriptor) -> bool:
        """True for primitives, enums and well-known value types, looking through wrappers."""
        t = self.inner_most_element_type(t)
        if t.kind == "enum":
            return True
        return t.kind == "primitive" and (t.full_name in NUMERIC_PRIMITIVES or t.full_name in QUERY_VALUE_TYPES)

    # -- naming --------------------------------------------------------------

    def property_name(self, member: MemberDescriptor, default_name: str | None = None) -> str:
        if default_name is None:
            default_name = member.model_name or member.name
        return self._property_resolver.resolve_name(member, default_name)

    # -- type lookup ---------------------------------------------------------

    def loaded_types(self) -> list[TypeDescriptor]:
        """Every type visible across the active type sources.

        A source that loads partially contributes what it could load; a source
        that fails outright is skipped.
        """
        result: list[TypeDescriptor] = []
        for source in self._assemblies_resolver.get_assemblies():
            if source is None:
                continue
            try:
                types = source.get_types()
            except TypeLoadError as exc:
                logger.warning("Type source %s loaded partially: %s", exc.source, exc.cause)
                types = exc.types
            except Exception as exc:
                logger.warning("Skipping type source %s: %s", getattr(source, "name", source), exc)
                continue
            result.extend(t for t in types if t is not None)
        return result

    def find_type(self, full_name: str) -> TypeDescriptor:
        return self._type_resolver.find_type(full_name)
