"""Common contract for route discovery strategies."""

import re
from typing import Protocol

from odata_swagger.model.candidate import CandidateOperation
from odata_swagger.model.routing import RouteTable


class DiscoveryStrategy(Protocol):
    """Produces candidate operations from the routing configuration alone."""

    name: str

    def discover(self, route_table: RouteTable) -> list[CandidateOperation]: ...


def join_path(*segments: str) -> str:
    """Join path segments into ``/a/b/c``, ignoring empty ones."""
    parts = [s.strip("/") for s in segments if s and s.strip("/")]
    return "/" + "/".join(parts)


def prefix_token(prefix: str) -> str:
    """``odata/v1`` -> ``odata_v1``."""
    return re.sub(r"[^0-9A-Za-z]+", "_", prefix).strip("_")
