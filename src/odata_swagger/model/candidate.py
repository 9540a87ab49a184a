"""Candidate operations: discovered routes that have not been bound yet."""

import re
from dataclasses import dataclass
from typing import Literal

from odata_swagger.model.routing import ActionDescriptor
from odata_swagger.model.types import TypeDescriptor

Provenance = Literal["route", "operation"]

PLACEHOLDER = re.compile(r"\{([^}]+)\}")


def placeholders(template: str) -> list[str]:
    """Names of the ``{name}`` placeholders in a path template, in order."""
    return PLACEHOLDER.findall(template)


@dataclass(frozen=True)
class CandidateParameter:
    """A parameter awaiting a location.

    ``route`` parameters are embedded in the path template; ``operation``
    parameters are assigned a location by the binder.
    """

    name: str
    type: TypeDescriptor
    optional: bool = False
    provenance: Provenance = "operation"
    description: str = ""


@dataclass(frozen=True)
class CandidateOperation:
    path: str
    method: str
    operation_id: str
    strategy: str
    parameters: tuple[CandidateParameter, ...] = ()
    return_type: TypeDescriptor | None = None
    container: str = ""
    route_name: str = ""
    summary: str = ""
    # Names the runtime action may carry, most specific first.
    action_names: tuple[str, ...] = ()
    # Known up front for attribute routes; looked up in the route table otherwise.
    action: ActionDescriptor | None = None
    success_status: str = "200"

    @property
    def placeholders(self) -> list[str]:
        return placeholders(self.path)

    @property
    def keyed(self) -> bool:
        return any(p.provenance == "route" for p in self.parameters)
