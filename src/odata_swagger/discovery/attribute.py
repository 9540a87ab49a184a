"""Discover explicitly attribute-routed controller actions."""

import logging

from odata_swagger.discovery.base import join_path
from odata_swagger.errors import TypeNotFoundError
from odata_swagger.model.candidate import CandidateOperation, CandidateParameter, placeholders
from odata_swagger.model.routing import ActionDescriptor, AttributeRoute, RouteTable
from odata_swagger.model.types import STRING, TypeDescriptor, primitive
from odata_swagger.reflection.reflector import TypeReflector

logger = logging.getLogger(__name__)


class AttributeRouteStrategy:
    """One candidate per attribute route, with its declared verb and parameters."""

    name = "attribute"

    def __init__(self, reflector: TypeReflector):
        self.reflector = reflector

    def discover(self, route_table: RouteTable) -> list[CandidateOperation]:
        return [self._candidate(route) for route in route_table.attribute_routes]

    def _candidate(self, route: AttributeRoute) -> CandidateOperation:
        action = route.action
        path = join_path(route.template)
        in_template = set(placeholders(path))
        parameters = tuple(
            CandidateParameter(
                name=p.name,
                type=p.type or primitive(STRING),
                optional=p.optional,
                provenance="route" if p.name in in_template else "operation",
                description=p.description,
            )
            for p in action.parameters
            if p.type is not None or not p.structured
        )
        return_type = self._return_type(action)
        return CandidateOperation(
            path=path,
            method=route.method.lower(),
            operation_id=f"{action.controller}_{action.name}",
            strategy=self.name,
            parameters=parameters,
            return_type=return_type,
            container=action.controller,
            summary=action.description,
            action_names=(action.name,),
            action=action,
            success_status="200" if return_type is not None else "204",
        )

    def _return_type(self, action: ActionDescriptor) -> TypeDescriptor | None:
        if not isinstance(action.return_type, str):
            return action.return_type
        try:
            return self.reflector.find_type(action.return_type)
        except TypeNotFoundError as exc:
            logger.warning("%s.%s: %s; describing it without a response schema", action.controller, action.name, exc)
            return None
