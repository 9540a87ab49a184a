"""Discover operations declared by each route's metadata model."""

import logging

from odata_swagger.discovery.base import join_path, prefix_token
from odata_swagger.model.candidate import CandidateOperation, CandidateParameter
from odata_swagger.model.edm import EntitySet, OperationDeclaration
from odata_swagger.model.routing import ODataRoute, RouteTable
from odata_swagger.model.types import MemberDescriptor, collection_of, complex_type

logger = logging.getLogger(__name__)

ACTION_PARAMETERS = "parameters"


class EntityDataModelStrategy:
    """Walks entity sets, bound operations and unbound operations of every route.

    Routes are discovered independently. When the table has several routes,
    operation ids are prefixed with the route's path prefix so the same shape
    in two versions never collides.
    """

    name = "model"

    def discover(self, route_table: RouteTable) -> list[CandidateOperation]:
        disambiguate = len(route_table.routes) > 1
        candidates: list[CandidateOperation] = []
        for route in route_table.routes:
            found = _RouteDiscovery(route, disambiguate).discover()
            logger.debug("Route %s (%s): %d operations", route.name, route.prefix or "/", len(found))
            candidates.extend(found)
        return candidates


class _RouteDiscovery:
    def __init__(self, route: ODataRoute, disambiguate: bool):
        self.route = route
        self.model = route.model
        token = prefix_token(route.prefix) if disambiguate else ""
        self.id_prefix = f"{token}_" if token else ""

    def discover(self) -> list[CandidateOperation]:
        candidates: list[CandidateOperation] = []
        for entity_set in self.model.entity_sets:
            candidates.extend(self._entity_set_operations(entity_set))
        for operation in self.model.bound_operations():
            for entity_set in self.model.entity_sets_of(operation.bound_to):
                candidates.append(self._bound_operation(entity_set, operation))
        for operation in self.model.unbound_operations():
            candidates.append(self._unbound_operation(operation))
        return candidates

    # -- entity sets ---------------------------------------------------------

    def _entity_set_operations(self, entity_set: EntitySet) -> list[CandidateOperation]:
        entity = entity_set.entity_type
        set_path = join_path(self.route.prefix, entity_set.name)
        key_path = set_path + _key_segment(entity.key_members())
        keys = _key_parameters(entity.key_members())
        body = CandidateParameter(name=_lower_first(entity.name), type=entity, description=f"The {entity.name} entity")
        set_name = entity_set.name
        type_name = entity.name

        ops: list[CandidateOperation] = []
        if entity_set.supports("read"):
            ops.append(self._candidate(
                set_path, "get", f"{set_name}_Get", entity_set,
                summary=f"Get EntitySet {set_name}",
                return_type=collection_of(entity),
                action_names=("Get", f"Get{set_name}"),
            ))
        if keys and entity_set.supports("read_by_key"):
            ops.append(self._candidate(
                key_path, "get", f"{set_name}_GetById", entity_set,
                summary=f"Get entity from {set_name} by key.",
                parameters=keys,
                return_type=entity,
                action_names=(f"Get{type_name}", "Get"),
            ))
        if entity_set.supports("insert"):
            ops.append(self._candidate(
                set_path, "post", f"{set_name}_Post", entity_set,
                summary=f"Post a new entity to EntitySet {set_name}",
                parameters=(body,),
                return_type=entity,
                action_names=("Post", f"Post{type_name}"),
                success_status="201",
            ))
        if keys and entity_set.supports("update"):
            ops.append(self._candidate(
                key_path, "put", f"{set_name}_Put", entity_set,
                summary=f"Replace entity in EntitySet {set_name}",
                parameters=keys + (body,),
                action_names=("Put", f"Put{type_name}"),
                success_status="204",
            ))
        if keys and entity_set.supports("patch"):
            ops.append(self._candidate(
                key_path, "patch", f"{set_name}_Patch", entity_set,
                summary=f"Update entity in EntitySet {set_name}",
                parameters=keys + (body,),
                action_names=("Patch", f"Patch{type_name}"),
                success_status="204",
            ))
        if keys and entity_set.supports("delete"):
            ops.append(self._candidate(
                key_path, "delete", f"{set_name}_Delete", entity_set,
                summary=f"Delete entity in EntitySet {set_name}",
                parameters=keys,
                action_names=("Delete", f"Delete{type_name}"),
                success_status="204",
            ))
        return ops

    # -- operations ----------------------------------------------------------

    def _bound_operation(self, entity_set: EntitySet, operation: OperationDeclaration) -> CandidateOperation:
        entity = entity_set.entity_type
        set_path = join_path(self.route.prefix, entity_set.name)
        if operation.bound_to_collection:
            path = f"{set_path}/{operation.qualified_name}"
            keys: tuple[CandidateParameter, ...] = ()
        else:
            path = f"{set_path}{_key_segment(entity.key_members())}/{operation.qualified_name}"
            keys = _key_parameters(entity.key_members())
        return self._candidate(
            path,
            "post" if operation.kind == "action" else "get",
            f"{entity_set.name}_{operation.name}",
            entity_set,
            summary=operation.description or f"Call operation {operation.qualified_name}",
            parameters=keys + _operation_parameters(operation),
            return_type=operation.return_type,
            action_names=(operation.name, f"{operation.name}On{entity.name}"),
            success_status="200" if operation.return_type is not None else "204",
        )

    def _unbound_operation(self, operation: OperationDeclaration) -> CandidateOperation:
        return self._candidate(
            join_path(self.route.prefix, operation.name),
            "post" if operation.kind == "action" else "get",
            operation.name,
            None,
            summary=operation.description or f"Call operation import {operation.name}",
            parameters=_operation_parameters(operation),
            return_type=operation.return_type,
            action_names=(operation.name,),
            success_status="200" if operation.return_type is not None else "204",
        )

    def _candidate(
        self,
        path: str,
        method: str,
        operation_id: str,
        entity_set: EntitySet | None,
        *,
        summary: str,
        parameters: tuple[CandidateParameter, ...] = (),
        return_type=None,
        action_names: tuple[str, ...] = (),
        success_status: str = "200",
    ) -> CandidateOperation:
        return CandidateOperation(
            path=path,
            method=method,
            operation_id=f"{self.id_prefix}{operation_id}",
            strategy=EntityDataModelStrategy.name,
            parameters=parameters,
            return_type=return_type,
            container=entity_set.name if entity_set else "",
            route_name=self.route.name,
            summary=summary,
            action_names=action_names,
            success_status=success_status,
        )


def _operation_parameters(operation: OperationDeclaration) -> tuple[CandidateParameter, ...]:
    """Functions expose each parameter; actions collapse theirs into one body object."""
    if not operation.parameters:
        return ()
    if operation.kind == "function":
        return tuple(
            CandidateParameter(name=p.name, type=p.type, optional=p.optional, description=p.description)
            for p in operation.parameters
        )
    bag = complex_type(
        f"{operation.qualified_name}.Parameters",
        [MemberDescriptor(name=p.name, type=p.type, optional=p.optional, description=p.description) for p in operation.parameters],
        inline=True,
    )
    return (
        CandidateParameter(
            name=ACTION_PARAMETERS,
            type=bag,
            optional=all(p.optional for p in operation.parameters),
            description=f"Parameters of action {operation.qualified_name}",
        ),
    )


def _key_name(member: MemberDescriptor) -> str:
    return member.model_name or member.name


def _key_segment(keys: list[MemberDescriptor]) -> str:
    if not keys:
        return ""
    if len(keys) == 1:
        return "({%s})" % _key_name(keys[0])
    return "(" + ",".join("%s={%s}" % (_key_name(k), _key_name(k)) for k in keys) + ")"


def _key_parameters(keys: list[MemberDescriptor]) -> tuple[CandidateParameter, ...]:
    return tuple(
        CandidateParameter(name=_key_name(k), type=k.type, provenance="route", description="key: " + _key_name(k))
        for k in keys
    )


def _lower_first(name: str) -> str:
    return name[:1].lower() + name[1:]
