"""Metadata model: entity sets, keys and declared operations."""

from dataclasses import dataclass, field
from typing import Literal

from odata_swagger.model.types import TypeDescriptor

Capability = Literal["read", "read_by_key", "insert", "update", "patch", "delete"]

DEFAULT_CAPABILITIES: tuple[Capability, ...] = ("read", "read_by_key", "insert", "update", "delete")
ALL_CAPABILITIES: tuple[Capability, ...] = ("read", "read_by_key", "insert", "update", "patch", "delete")


@dataclass
class EntitySet:
    name: str
    entity_type: TypeDescriptor
    capabilities: tuple[Capability, ...] = DEFAULT_CAPABILITIES

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities


@dataclass
class OperationParameter:
    name: str
    type: TypeDescriptor
    optional: bool = False
    description: str = ""


@dataclass
class OperationDeclaration:
    """An action or function declared in the model.

    Bound operations name the entity type they attach to in ``bound_to``;
    ``bound_to_collection`` binds them to the entity collection instead of a
    single entity.
    """

    name: str
    kind: Literal["action", "function"] = "action"
    parameters: list[OperationParameter] = field(default_factory=list)
    return_type: TypeDescriptor | None = None
    namespace: str | None = None
    bound_to: TypeDescriptor | None = None
    bound_to_collection: bool = False
    description: str = ""

    @property
    def is_bound(self) -> bool:
        return self.bound_to is not None

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}" if self.namespace else self.name


@dataclass
class MetadataModel:
    namespace: str = "Default"
    types: list[TypeDescriptor] = field(default_factory=list)
    entity_sets: list[EntitySet] = field(default_factory=list)
    operations: list[OperationDeclaration] = field(default_factory=list)

    def entity_sets_of(self, entity_type: TypeDescriptor) -> list[EntitySet]:
        return [s for s in self.entity_sets if s.entity_type is entity_type]

    def bound_operations(self) -> list[OperationDeclaration]:
        return [op for op in self.operations if op.is_bound]

    def unbound_operations(self) -> list[OperationDeclaration]:
        return [op for op in self.operations if not op.is_bound]

    def declared_type(self, full_name: str) -> TypeDescriptor | None:
        for t in self.types:
            if t.full_name == full_name:
                return t
        for entity_set in self.entity_sets:
            if entity_set.entity_type.full_name == full_name:
                return entity_set.entity_type
        return None
