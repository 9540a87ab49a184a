"""Turn candidate operations into a Swagger document."""

import logging
from typing import Callable

from odata_swagger.assembly.filters import (
    DocumentContext,
    DocumentFilter,
    EnsureUniqueOperationIds,
    FilterContext,
    OperationFilter,
)
from odata_swagger.binding.binder import ParameterBinder
from odata_swagger.discovery.edm import EntityDataModelStrategy
from odata_swagger.errors import ConflictingOperationsError
from odata_swagger.log import scoped_timer
from odata_swagger.model.candidate import CandidateOperation, CandidateParameter
from odata_swagger.model.document import BoundOperation, BoundParameter, Document, Info, Response, Schema
from odata_swagger.model.routing import ActionDescriptor, RouteTable
from odata_swagger.model.types import STRING, MemberDescriptor, complex_type, primitive
from odata_swagger.reflection.reflector import TypeReflector
from odata_swagger.schema.builder import SchemaBuilder, SchemaFactory

logger = logging.getLogger(__name__)

ConflictResolver = Callable[[list[BoundOperation]], BoundOperation]

BODY_PARAMETERS = "parameters"
JSON = "application/json"

_STATUS_DESCRIPTIONS = {"200": "OK", "201": "Created", "204": "No Content"}


def default_conflict_resolver(operations: list[BoundOperation]) -> BoundOperation:
    first = operations[0]
    raise ConflictingOperationsError(first.path, first.method, [op.operation_id for op in operations])


class DocumentAssembler:
    """Binds, filters and merges candidates into one document.

    Each call to ``assemble`` uses a fresh schema registry, so definitions
    never leak between passes.
    """

    def __init__(
        self,
        reflector: TypeReflector,
        binder: ParameterBinder | None = None,
        *,
        schema_mappings: dict[str, SchemaFactory | Schema] | None = None,
        operation_filters: list[OperationFilter] | None = None,
        document_filters: list[DocumentFilter] | None = None,
        conflict_resolver: ConflictResolver | None = None,
        info: Info | None = None,
        host: str | None = None,
        base_path: str | None = None,
        schemes: list[str] | None = None,
    ):
        self.reflector = reflector
        self.binder = binder or ParameterBinder(reflector)
        self.schema_mappings = dict(schema_mappings or {})
        self.operation_filters = list(operation_filters or [])
        self.document_filters = list(document_filters or [])
        self.conflict_resolver = conflict_resolver or default_conflict_resolver
        self.info = info or Info()
        self.host = host
        self.base_path = base_path
        self.schemes = list(schemes or [])

    def assemble(self, candidates: list[CandidateOperation], route_table: RouteTable, api_version: str = "v1") -> Document:
        schemas = SchemaBuilder(self.reflector, self.schema_mappings)
        with scoped_timer(logger, "Document assembly", extra={"candidates": len(candidates)}):
            grouped: dict[tuple[str, str], list[BoundOperation]] = {}
            for candidate in candidates:
                operation = self._process(candidate, route_table, schemas)
                if operation is not None:
                    grouped.setdefault((operation.path, operation.method), []).append(operation)

            document = Document(
                info=self.info.model_copy(update={"version": api_version}),
                host=self.host,
                base_path=self.base_path,
                schemes=list(self.schemes),
            )
            for operations in grouped.values():
                document.add_operation(operations[0] if len(operations) == 1 else self.conflict_resolver(operations))
            # shared with the registry so document filters can still register schemas
            document.definitions = schemas.registry.definitions

            context = DocumentContext(route_table=route_table, schemas=schemas, api_version=api_version)
            for document_filter in self.document_filters:
                document_filter(document, context)
            EnsureUniqueOperationIds()(document, context)
        return document

    def _process(
        self, candidate: CandidateOperation, route_table: RouteTable, schemas: SchemaBuilder
    ) -> BoundOperation | None:
        action = self._action_for(candidate, route_table)
        if action is None and self._unserved(candidate, route_table):
            logger.debug("%s: controller for %s has no matching action, skipping", candidate.operation_id, candidate.container)
            return None
        operation = self.bind(candidate, action, schemas)
        context = FilterContext(candidate=candidate, action=action, schemas=schemas, route_table=route_table)
        for operation_filter in self.operation_filters:
            operation = operation_filter(operation, context)
            if operation is None:
                logger.debug("Operation %s suppressed by %r", candidate.operation_id, operation_filter)
                return None
        return operation

    def _unserved(self, candidate: CandidateOperation, route_table: RouteTable) -> bool:
        # a model operation whose set has a controller is published only if that controller serves it
        if candidate.strategy != EntityDataModelStrategy.name or not candidate.container:
            return False
        return route_table.entity_set_controller(candidate.route_name, candidate.container) is not None

    def _action_for(self, candidate: CandidateOperation, route_table: RouteTable) -> ActionDescriptor | None:
        if candidate.action is not None or not candidate.action_names:
            return candidate.action
        return route_table.find_action(
            candidate.route_name,
            candidate.container,
            candidate.action_names,
            candidate.method,
            keyed=candidate.keyed,
        )

    def bind(self, candidate: CandidateOperation, action: ActionDescriptor | None, schemas: SchemaBuilder) -> BoundOperation:
        """Bind one candidate and materialize its parameter and response schemas."""
        parameters: list[BoundParameter] = []
        body: list[CandidateParameter] = []
        for parameter, location in self.binder.bind(candidate, action):
            if location == "body":
                body.append(parameter)
                continue
            parameters.append(
                BoundParameter(
                    name=parameter.name,
                    location=location,
                    required=location == "path" or not parameter.optional,
                    description=parameter.description,
                    schema_=schemas.build(parameter.type),
                )
            )

        bound_paths = {p.name for p in parameters if p.location == "path"}
        for name in candidate.placeholders:
            if name not in bound_paths:
                logger.warning("%s: no parameter for placeholder {%s}, describing it as a string", candidate.operation_id, name)
                parameters.append(
                    BoundParameter(name=name, location="path", required=True, schema_=schemas.build(primitive(STRING)))
                )
                bound_paths.add(name)

        if body:
            parameters.append(self._body_parameter(candidate, body, schemas))

        return BoundOperation(
            path=candidate.path,
            method=candidate.method,
            operation_id=candidate.operation_id,
            summary=candidate.summary,
            description=action.description if action else "",
            tags=[candidate.container] if candidate.container else [],
            parameters=parameters,
            responses=self._responses(candidate, schemas),
            consumes=[JSON] if body else [],
            produces=[JSON] if candidate.return_type is not None else [],
            deprecated=action.deprecated if action else False,
            strategy=candidate.strategy,
            container=candidate.container,
            route_name=candidate.route_name,
        )

    def _body_parameter(
        self, candidate: CandidateOperation, body: list[CandidateParameter], schemas: SchemaBuilder
    ) -> BoundParameter:
        if len(body) == 1:
            only = body[0]
            return BoundParameter(
                name=only.name,
                location="body",
                required=not only.optional,
                description=only.description,
                schema_=schemas.build(only.type),
            )
        # several body-bound parameters travel as one object keyed by name
        bag = complex_type(
            f"{candidate.operation_id}.Parameters",
            [MemberDescriptor(name=p.name, type=p.type, optional=p.optional, description=p.description) for p in body],
            inline=True,
        )
        return BoundParameter(
            name=BODY_PARAMETERS,
            location="body",
            required=not all(p.optional for p in body),
            schema_=schemas.build(bag),
        )

    def _responses(self, candidate: CandidateOperation, schemas: SchemaBuilder) -> dict[str, Response]:
        if candidate.return_type is None:
            return {"204": Response(description=_STATUS_DESCRIPTIONS["204"])}
        status = "200" if candidate.success_status == "204" else candidate.success_status
        return {
            status: Response(
                description=_STATUS_DESCRIPTIONS.get(status, "OK"),
                schema_=schemas.build(candidate.return_type),
            )
        }
