"""Assign a location to every candidate parameter.

Mappers are tried in order until one returns ``Bound``. The final default
mapper always binds, so binding an operation never fails: at worst a
parameter gets a best-guess location.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

from odata_swagger.model.candidate import CandidateOperation, CandidateParameter
from odata_swagger.model.routing import ActionDescriptor, FormalParameter, ParameterLocation
from odata_swagger.reflection.reflector import TypeReflector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Bound:
    location: ParameterLocation


class _Undetermined:
    def __repr__(self) -> str:
        return "UNDETERMINED"


UNDETERMINED = _Undetermined()

BindingResult = Bound | _Undetermined


@dataclass
class BindingContext:
    operation: CandidateOperation
    action: ActionDescriptor | None
    reflector: TypeReflector

    def __post_init__(self):
        self.placeholders = set(self.operation.placeholders)

    @property
    def formals(self) -> list[FormalParameter]:
        return self.action.parameters if self.action else []

    def infer_location(self, parameter: CandidateParameter, formal: FormalParameter | None = None) -> ParameterLocation:
        if parameter.name in self.placeholders:
            return "path"
        if formal is not None:
            if formal.source in ("query", "body"):
                return formal.source
            if formal.structured:
                return "body"
        return "query" if self.reflector.is_query_primitive(parameter.type) else "body"


class ParameterMapper(Protocol):
    def try_bind(self, parameter: CandidateParameter, index: int, context: BindingContext) -> BindingResult: ...


class MapByExactName:
    """The runtime action declares a parameter with exactly this name."""

    def try_bind(self, parameter: CandidateParameter, index: int, context: BindingContext) -> BindingResult:
        for formal in context.formals:
            if formal.name == parameter.name:
                return Bound(context.infer_location(parameter, formal))
        return UNDETERMINED


class MapStructuredParameters:
    """The action takes one bag holding every operation parameter, sent as the body."""

    def try_bind(self, parameter: CandidateParameter, index: int, context: BindingContext) -> BindingResult:
        if context.action is None or not context.action.has_structured_parameters:
            return UNDETERMINED
        if parameter.name in context.placeholders or parameter.provenance == "route":
            return UNDETERMINED
        return Bound("body")


def _normalize(name: str) -> str:
    return name.lstrip("$@").lower()


class MapByNormalizedName:
    """Names that differ only by case or ``$``/``@`` prefix, plus the OData ``key``/``keyX`` convention."""

    def try_bind(self, parameter: CandidateParameter, index: int, context: BindingContext) -> BindingResult:
        wanted = _normalize(parameter.name)
        route_parameters = [p for p in context.operation.parameters if p.provenance == "route"]
        for formal in context.formals:
            actual = _normalize(formal.name)
            if actual == wanted:
                return Bound(context.infer_location(parameter, formal))
            if parameter.provenance != "route":
                continue
            if actual == f"key{wanted}" or (actual == "key" and len(route_parameters) == 1):
                return Bound(context.infer_location(parameter, formal))
        return UNDETERMINED


class MapByDescription:
    """The formal parameter documents the model's parameter name."""

    def try_bind(self, parameter: CandidateParameter, index: int, context: BindingContext) -> BindingResult:
        wanted = {parameter.name.lower()}
        if parameter.description:
            wanted.add(parameter.description.strip().lower())
        for formal in context.formals:
            if formal.description and formal.description.strip().lower() in wanted:
                return Bound(context.infer_location(parameter, formal))
        return UNDETERMINED


class MapByIndex:
    """Same position in both parameter lists, unless that formal is claimed by name."""

    def try_bind(self, parameter: CandidateParameter, index: int, context: BindingContext) -> BindingResult:
        formals = [f for f in context.formals if not f.structured]
        if index >= len(formals):
            return UNDETERMINED
        formal = formals[index]
        claimed = {p.name for p in context.operation.parameters if p is not parameter}
        if formal.name in claimed:
            return UNDETERMINED
        return Bound(context.infer_location(parameter, formal))


class MapToDefault:
    """Path for placeholders, query for primitives and enums, body for everything else."""

    def try_bind(self, parameter: CandidateParameter, index: int, context: BindingContext) -> BindingResult:
        return Bound(context.infer_location(parameter))


def default_mappers() -> list[ParameterMapper]:
    return [
        MapByExactName(),
        MapStructuredParameters(),
        MapByNormalizedName(),
        MapByDescription(),
        MapByIndex(),
        MapToDefault(),
    ]


class ParameterBinder:
    def __init__(self, reflector: TypeReflector, mappers: list[ParameterMapper] | None = None):
        self.reflector = reflector
        self.mappers = list(mappers) if mappers is not None else default_mappers()

    def bind(
        self, operation: CandidateOperation, action: ActionDescriptor | None
    ) -> list[tuple[CandidateParameter, ParameterLocation]]:
        context = BindingContext(operation, action, self.reflector)
        return [(p, self.bind_parameter(p, index, context)) for index, p in enumerate(operation.parameters)]

    def bind_parameter(self, parameter: CandidateParameter, index: int, context: BindingContext) -> ParameterLocation:
        for mapper in self.mappers:
            result = mapper.try_bind(parameter, index, context)
            if isinstance(result, Bound):
                return self._enforce_path(parameter, result.location, context)
        logger.debug("%s: no mapper bound %s, using default", context.operation.operation_id, parameter.name)
        return context.infer_location(parameter)

    def _enforce_path(self, parameter: CandidateParameter, location: ParameterLocation, context: BindingContext) -> ParameterLocation:
        # path parameters and template placeholders must correspond one-to-one
        in_template = parameter.name in context.placeholders
        if in_template or location == "path":
            return context.infer_location(parameter) if not in_template else "path"
        return location
