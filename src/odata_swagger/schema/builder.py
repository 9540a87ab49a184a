"""Convert type descriptors into Swagger schemas."""

from typing import Callable

from odata_swagger.model.document import Schema
from odata_swagger.model.types import PRIMITIVE_FORMATS, TypeDescriptor
from odata_swagger.reflection.reflector import TypeReflector

SchemaFactory = Callable[[], Schema]


class SchemaRegistry:
    """Named schemas collected during one assembly pass."""

    def __init__(self):
        self.definitions: dict[str, Schema] = {}
        self.navigation_properties: dict[str, list[str]] = {}
        self._names: dict[str, str] = {}

    def name_for(self, t: TypeDescriptor) -> str | None:
        return self._names.get(t.full_name)

    def reserve(self, t: TypeDescriptor) -> str:
        """Pick a definition name for *t*, suffixing a counter on short-name clashes."""
        name = t.name
        taken = set(self._names.values())
        counter = 0
        while name in taken:
            counter += 1
            name = f"{t.name}{counter}"
        self._names[t.full_name] = name
        return name


class SchemaBuilder:
    """Builds schemas for one assembly pass.

    Custom mappings are keyed by type full name and always win. Composite
    types become ``$ref``s into the registry; each is registered once.
    """

    def __init__(
        self,
        reflector: TypeReflector,
        custom_mappings: dict[str, SchemaFactory | Schema] | None = None,
        registry: SchemaRegistry | None = None,
    ):
        self.reflector = reflector
        self.custom_mappings = dict(custom_mappings or {})
        self.registry = registry or SchemaRegistry()

    def build(self, t: TypeDescriptor) -> Schema:
        custom = self._custom_schema(t)
        if custom is not None:
            return custom

        if t.kind == "nullable":
            return self.build(self.reflector.underlying_type_or_self(t))

        if t.kind == "primitive":
            type_, format_ = PRIMITIVE_FORMATS[t.full_name]
            return Schema(type=type_, format=format_)

        if t.kind == "enum":
            return Schema(type="string", enum=list(t.enum_members))

        is_collection, element = self.reflector.is_collection(t)
        if is_collection:
            return Schema(type="array", items=self.build(element))

        if t.is_composite:
            if t.inline:
                return self.object_schema(t)
            return self._reference(t)

        raise TypeError(f"No schema can be built for {t!r}")

    def object_schema(self, t: TypeDescriptor, definition_name: str | None = None) -> Schema:
        properties: dict[str, Schema] = {}
        required: list[str] = []
        for member in t.members:
            name = self.reflector.property_name(member)
            schema = self.build(member.type)
            if member.description and schema.ref is None:
                schema.description = member.description
            properties[name] = schema
            if not member.optional and not self.reflector.is_nullable(member.type):
                required.append(name)
            if member.navigation and definition_name:
                self.registry.navigation_properties.setdefault(definition_name, []).append(name)
        return Schema(
            type="object",
            properties=properties,
            required=required or None,
            description=t.description or None,
        )

    def _reference(self, t: TypeDescriptor) -> Schema:
        name = self.registry.name_for(t)
        if name is None:
            name = self.registry.reserve(t)
            # placeholder first so self-referencing members resolve to the ref
            self.registry.definitions[name] = Schema(type="object")
            self.registry.definitions[name] = self.object_schema(t, name)
        return Schema.reference(name)

    def _custom_schema(self, t: TypeDescriptor) -> Schema | None:
        mapping = self.custom_mappings.get(t.full_name)
        if mapping is None:
            return None
        if isinstance(mapping, Schema):
            return mapping.model_copy(deep=True)
        return mapping()
