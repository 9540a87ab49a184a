"""Configuration facade: the one object callers customize generation through."""

from typing import Any

from odata_swagger.assembly.assembler import ConflictResolver, DocumentAssembler
from odata_swagger.assembly.filters import (
    DocumentFilter,
    EnableQueryFilter,
    OperationFilter,
    RemoveNavigationPropertiesFilter,
)
from odata_swagger.binding.binder import ParameterBinder, ParameterMapper, default_mappers
from odata_swagger.discovery.attribute import AttributeRouteStrategy
from odata_swagger.discovery.base import DiscoveryStrategy
from odata_swagger.discovery.custom import CustomRoute, CustomRouteStrategy
from odata_swagger.discovery.edm import EntityDataModelStrategy
from odata_swagger.model.document import Info, Schema
from odata_swagger.model.types import TypeDescriptor
from odata_swagger.parser.python_types import describe
from odata_swagger.reflection.reflector import AssembliesResolver, PropertyResolver, TypeReflector, TypeResolver
from odata_swagger.schema.builder import SchemaFactory


def _decimal_schema() -> Schema:
    return Schema(type="number", format="decimal")


DEFAULT_SCHEMA_MAPPINGS: dict[str, SchemaFactory | Schema] = {"Edm.Decimal": _decimal_schema}


class DocsConfig:
    """Holds every customization and builds the pipeline from it.

    Each mutator bumps ``revision``; cached documents are keyed on it, so a
    configuration change is never served a stale document.
    """

    def __init__(self, reflector: TypeReflector | None = None):
        self.reflector = reflector or TypeReflector()
        self.revision = 0
        self.info = Info()
        self.host: str | None = None
        self.base_path: str | None = None
        self.schemes: list[str] = []
        self.caching = False
        self.navigation_properties = False
        self._schema_mappings: dict[str, SchemaFactory | Schema] = {}
        self._operation_filters: list[OperationFilter] = []
        self._document_filters: list[DocumentFilter] = []
        self._conflict_resolver: ConflictResolver | None = None
        self._strategies: list[DiscoveryStrategy] = []
        self._custom_routes = CustomRouteStrategy()
        self._mappers: list[ParameterMapper] = default_mappers()

    def _changed(self) -> None:
        self.revision += 1

    # -- toggles -------------------------------------------------------------

    def include_navigation_properties(self, include: bool = True) -> None:
        self.navigation_properties = include
        self._changed()

    def enable_caching(self, enabled: bool = True) -> None:
        self.caching = enabled
        self._changed()

    def set_info(self, title: str | None = None, description: str | None = None) -> None:
        update: dict[str, Any] = {}
        if title is not None:
            update["title"] = title
        if description is not None:
            update["description"] = description
        self.info = self.info.model_copy(update=update)
        self._changed()

    def set_host(self, host: str | None) -> None:
        self.host = host
        self._changed()

    def set_base_path(self, base_path: str | None) -> None:
        self.base_path = base_path
        self._changed()

    def set_schemes(self, *schemes: str) -> None:
        self.schemes = [s.lower() for s in schemes]
        self._changed()

    # -- schemas and policies ------------------------------------------------

    def custom_schema_mapping(self, type_or_name: TypeDescriptor | str | type, factory: SchemaFactory | Schema) -> None:
        """Force the schema of one type, given as a descriptor, a full name or a Python type."""
        if isinstance(type_or_name, TypeDescriptor):
            name = type_or_name.full_name
        elif isinstance(type_or_name, str):
            name = type_or_name
        else:
            name = describe(type_or_name).full_name
        self._schema_mappings[name] = factory
        self._changed()

    def set_property_resolver(self, resolver: PropertyResolver) -> None:
        self.reflector.set_property_resolver(resolver)
        self._changed()

    def set_assemblies_resolver(self, resolver: AssembliesResolver) -> None:
        self.reflector.set_assemblies_resolver(resolver)
        self._changed()

    def set_type_resolver(self, resolver: TypeResolver) -> None:
        self.reflector.set_type_resolver(resolver)
        self._changed()

    # -- pipeline extensions -------------------------------------------------

    def operation_filter(self, operation_filter: OperationFilter) -> None:
        self._operation_filters.append(operation_filter)
        self._changed()

    def document_filter(self, document_filter: DocumentFilter) -> None:
        self._document_filters.append(document_filter)
        self._changed()

    def resolve_conflicting_actions(self, resolver: ConflictResolver) -> None:
        self._conflict_resolver = resolver
        self._changed()

    def add_discovery_strategy(self, strategy: DiscoveryStrategy) -> None:
        self._strategies.append(strategy)
        self._changed()

    def custom_route(self, route: CustomRoute) -> None:
        self._custom_routes.add(route)
        self._changed()

    def insert_parameter_mapper(self, mapper: ParameterMapper, index: int | None = None) -> None:
        """Insert a mapper into the binding chain; by default just before the final default mapper."""
        if index is None:
            index = len(self._mappers) - 1
        self._mappers.insert(index, mapper)
        self._changed()

    # -- builders ------------------------------------------------------------

    def discovery_strategies(self) -> list[DiscoveryStrategy]:
        strategies: list[DiscoveryStrategy] = [EntityDataModelStrategy(), AttributeRouteStrategy(self.reflector)]
        if self._custom_routes.routes:
            strategies.append(self._custom_routes)
        return strategies + self._strategies

    def parameter_mappers(self) -> list[ParameterMapper]:
        return list(self._mappers)

    def operation_filters(self) -> list[OperationFilter]:
        return [*self._operation_filters, EnableQueryFilter()]

    def document_filters(self) -> list[DocumentFilter]:
        filters = list(self._document_filters)
        if not self.navigation_properties:
            filters.append(RemoveNavigationPropertiesFilter())
        return filters

    def schema_mappings(self) -> dict[str, SchemaFactory | Schema]:
        return {**DEFAULT_SCHEMA_MAPPINGS, **self._schema_mappings}

    def build_assembler(self) -> DocumentAssembler:
        return DocumentAssembler(
            self.reflector,
            ParameterBinder(self.reflector, self.parameter_mappers()),
            schema_mappings=self.schema_mappings(),
            operation_filters=self.operation_filters(),
            document_filters=self.document_filters(),
            conflict_resolver=self._conflict_resolver,
            info=self.info,
            host=self.host,
            base_path=self.base_path,
            schemes=self.schemes,
        )
