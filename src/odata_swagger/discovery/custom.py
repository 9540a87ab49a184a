"""Caller-registered routes that the metadata model cannot express."""

from dataclasses import dataclass, field

from odata_swagger.discovery.base import join_path
from odata_swagger.model.candidate import CandidateOperation, CandidateParameter, placeholders
from odata_swagger.model.edm import OperationParameter
from odata_swagger.model.routing import RouteTable
from odata_swagger.model.types import TypeDescriptor


@dataclass
class CustomRoute:
    template: str
    method: str = "get"
    parameters: list[OperationParameter] = field(default_factory=list)
    return_type: TypeDescriptor | None = None
    operation_id: str = ""
    summary: str = ""
    container: str = ""
    route_name: str = ""
    action_name: str = ""


class CustomRouteStrategy:
    name = "custom"

    def __init__(self, routes: list[CustomRoute] | None = None):
        self.routes = list(routes or [])

    def add(self, route: CustomRoute) -> None:
        self.routes.append(route)

    def discover(self, route_table: RouteTable) -> list[CandidateOperation]:
        candidates = []
        for route in self.routes:
            path = join_path(route.template)
            in_template = set(placeholders(path))
            method = route.method.lower()
            candidates.append(
                CandidateOperation(
                    path=path,
                    method=method,
                    operation_id=route.operation_id or _default_operation_id(method, path),
                    strategy=self.name,
                    parameters=tuple(
                        CandidateParameter(
                            name=p.name,
                            type=p.type,
                            optional=p.optional,
                            provenance="route" if p.name in in_template else "operation",
                            description=p.description,
                        )
                        for p in route.parameters
                    ),
                    return_type=route.return_type,
                    container=route.container,
                    route_name=route.route_name,
                    summary=route.summary,
                    action_names=(route.action_name,) if route.action_name else (),
                    success_status="200" if route.return_type is not None else "204",
                )
            )
        return candidates


def _default_operation_id(method: str, path: str) -> str:
    words = [w for w in path.replace("{", "").replace("}", "").replace("(", "_").replace(")", "").split("/") if w]
    return "_".join([method, *words])
