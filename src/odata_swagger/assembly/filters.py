"""Operation and document filters.

An operation filter is any callable ``(operation, context) -> operation | None``;
returning ``None`` drops the operation from the document. A document filter is
any callable ``(document, context) -> None`` that mutates the document in place.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from odata_swagger.model.candidate import CandidateOperation
from odata_swagger.model.document import BoundOperation, BoundParameter, Document, Schema
from odata_swagger.model.routing import ActionDescriptor, RouteTable
from odata_swagger.schema.builder import SchemaBuilder

logger = logging.getLogger(__name__)


@dataclass
class FilterContext:
    """What an operation filter can see besides the operation itself."""

    candidate: CandidateOperation
    action: ActionDescriptor | None
    schemas: SchemaBuilder
    route_table: RouteTable


@dataclass
class DocumentContext:
    route_table: RouteTable
    schemas: SchemaBuilder
    api_version: str = "v1"


OperationFilter = Callable[[BoundOperation, FilterContext], BoundOperation | None]
DocumentFilter = Callable[[Document, DocumentContext], None]


QUERY_OPTIONS: list[tuple[str, Schema, str]] = [
    ("$filter", Schema(type="string"), "Filters the results, based on a Boolean condition."),
    ("$select", Schema(type="string"), "Selects which properties to include in the response."),
    ("$expand", Schema(type="string"), "Expands related entities inline."),
    ("$orderby", Schema(type="string"), "Sorts the results."),
    ("$top", Schema(type="integer", format="int32"), "Returns only the first n results."),
    ("$skip", Schema(type="integer", format="int32"), "Skips the first n results."),
    ("$count", Schema(type="boolean"), "Includes a count of the matching results in the response."),
]


class EnableQueryFilter:
    """Adds OData query options to GET operations whose action enables querying."""

    def __call__(self, operation: BoundOperation, context: FilterContext) -> BoundOperation:
        if operation.method != "get" or context.action is None or not context.action.enable_query:
            return operation
        for name, schema, description in QUERY_OPTIONS:
            if operation.parameter(name) is not None:
                continue
            operation.parameters.append(
                BoundParameter(
                    name=name,
                    location="query",
                    required=False,
                    description=description,
                    schema_=schema.model_copy(deep=True),
                )
            )
        return operation


class RemoveNavigationPropertiesFilter:
    """Strips navigation members from every definition that declared some."""

    def __call__(self, document: Document, context: DocumentContext) -> None:
        for name, members in context.schemas.registry.navigation_properties.items():
            schema = document.definitions.get(name)
            if schema is None or schema.properties is None:
                continue
            for member in members:
                schema.properties.pop(member, None)
            if schema.required:
                schema.required = [r for r in schema.required if r not in members] or None
            logger.debug("Removed navigation properties %s from %s", members, name)


class EnsureUniqueOperationIds:
    """Suffixes repeated operation ids with ``_2``, ``_3``, ... in document order."""

    def __call__(self, document: Document, context: DocumentContext | None = None) -> None:
        taken: set[str] = set()
        for operation in document.operations():
            base = operation.operation_id
            candidate = base
            counter = 1
            while candidate in taken:
                counter += 1
                candidate = f"{base}_{counter}"
            if candidate != base:
                logger.debug("Renamed duplicate operation id %s to %s", base, candidate)
                operation.operation_id = candidate
            taken.add(candidate)
