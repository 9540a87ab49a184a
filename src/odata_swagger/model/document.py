"""Output data models.

Everything the assembler publishes is expressed with these models; the
writer turns them into a Swagger 2.0 JSON/YAML document.
"""

from typing import Iterator

from pydantic import BaseModel, ConfigDict, Field

DEFINITIONS_PREFIX = "#/definitions/"

HTTP_METHODS = ("get", "put", "post", "delete", "patch")


class Schema(BaseModel):
    """A primitive type/format pair, a reference, an array or an object."""

    model_config = ConfigDict(populate_by_name=True)

    ref: str | None = Field(default=None, alias="$ref")
    type: str | None = None
    format: str | None = None
    description: str | None = None
    items: "Schema | None" = None
    properties: "dict[str, Schema] | None" = None
    required: list[str] | None = None
    enum: list[str] | None = None

    @classmethod
    def reference(cls, name: str) -> "Schema":
        return cls(ref=f"{DEFINITIONS_PREFIX}{name}")

    @property
    def ref_name(self) -> str | None:
        if self.ref and self.ref.startswith(DEFINITIONS_PREFIX):
            return self.ref[len(DEFINITIONS_PREFIX):]
        return None

    def iter_refs(self) -> Iterator[str]:
        """Yield every definition name referenced by this schema, recursively."""
        if self.ref_name:
            yield self.ref_name
        if self.items is not None:
            yield from self.items.iter_refs()
        for prop in (self.properties or {}).values():
            yield from prop.iter_refs()


class BoundParameter(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    location: str = Field(alias="in")  # path / query / body
    required: bool
    description: str = ""
    schema_: Schema = Field(alias="schema")


class Response(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    description: str
    schema_: Schema | None = Field(default=None, alias="schema")


class BoundOperation(BaseModel):
    """A candidate operation after binding and schema materialization."""

    model_config = ConfigDict(populate_by_name=True)

    path: str
    method: str  # lower-case verb
    operation_id: str = Field(alias="operationId")
    summary: str = ""
    description: str = ""
    tags: list[str] = []
    parameters: list[BoundParameter] = []
    responses: dict[str, Response] = {}
    consumes: list[str] = []
    produces: list[str] = []
    deprecated: bool = False
    strategy: str = ""
    container: str = ""
    route_name: str = ""

    def parameter(self, name: str) -> BoundParameter | None:
        for p in self.parameters:
            if p.name == name:
                return p
        return None

    @property
    def body(self) -> BoundParameter | None:
        for p in self.parameters:
            if p.location == "body":
                return p
        return None


class Info(BaseModel):
    title: str = "API"
    version: str = "v1"
    description: str = ""


class Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    swagger: str = "2.0"
    info: Info = Field(default_factory=Info)
    host: str | None = None
    base_path: str | None = Field(default=None, alias="basePath")
    schemes: list[str] = []
    paths: dict[str, dict[str, BoundOperation]] = {}
    definitions: dict[str, Schema] = {}

    def operations(self) -> Iterator[BoundOperation]:
        for verbs in self.paths.values():
            yield from verbs.values()

    def operation(self, path: str, method: str) -> BoundOperation | None:
        return self.paths.get(path, {}).get(method.lower())

    def add_operation(self, operation: BoundOperation) -> None:
        self.paths.setdefault(operation.path, {})[operation.method] = operation

    def remove_operation(self, path: str, method: str) -> None:
        verbs = self.paths.get(path)
        if verbs is None:
            return
        verbs.pop(method.lower(), None)
        if not verbs:
            del self.paths[path]

    def dangling_refs(self) -> set[str]:
        """Definition names referenced somewhere but missing from ``definitions``."""
        refs: set[str] = set()
        for op in self.operations():
            for p in op.parameters:
                refs.update(p.schema_.iter_refs())
            for r in op.responses.values():
                if r.schema_ is not None:
                    refs.update(r.schema_.iter_refs())
        for schema in self.definitions.values():
            refs.update(schema.iter_refs())
        return refs - set(self.definitions)
