"""Entry point: discover, assemble and (optionally) cache a document."""

import logging

from odata_swagger.assembly.cache import DocumentCache
from odata_swagger.config import DocsConfig
from odata_swagger.model.candidate import CandidateOperation
from odata_swagger.model.document import Document
from odata_swagger.model.routing import RouteTable

logger = logging.getLogger(__name__)


class SwaggerProvider:
    """Produces the Swagger document for one route table."""

    def __init__(self, route_table: RouteTable, config: DocsConfig | None = None):
        self.route_table = route_table
        self.config = config or DocsConfig()
        self.cache = DocumentCache()

    def discover(self) -> list[CandidateOperation]:
        """Run every configured discovery strategy, in order."""
        candidates: list[CandidateOperation] = []
        for strategy in self.config.discovery_strategies():
            found = strategy.discover(self.route_table)
            logger.debug("Strategy %s discovered %d operations", strategy.name, len(found))
            candidates.extend(found)
        return candidates

    def get_document(self, api_version: str = "v1") -> Document:
        if not self.config.caching:
            return self._generate(api_version)
        revision = (self.config.revision, self.config.reflector.revision)
        # entries keyed on an older revision are unreachable
        self.cache.discard_where(lambda key: key[1] != revision)
        return self.cache.get_or_compute((api_version, revision), lambda: self._generate(api_version))

    def _generate(self, api_version: str) -> Document:
        assembler = self.config.build_assembler()
        return assembler.assemble(self.discover(), self.route_table, api_version)
