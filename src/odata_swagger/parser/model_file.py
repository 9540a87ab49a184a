"""Load a route table from a YAML or JSON model file.

Layout::

    info: {title, description}
    assemblies: [python.module, ...]      # types resolvable by full name
    models:
      <model name>:
        namespace: Default
        types: [{name, kind: entity|complex|enum, key, members, description}]
        entity_sets: [{name, type, capabilities}]
        operations: [{name, kind: action|function, bound_to, collection,
                      namespace, parameters, returns, description}]
    routes: [{name, prefix, model, controller_suffix}]
    controllers: [{name, actions: [{name, methods, enable_query, deprecated, returns,
                                    parameters: [{name, type, source,
                                                  structured, optional,
                                                  description}]}]}]
    attribute_routes: [{template, method, controller, action}]

Type references are ``Edm.*`` primitives, ``Collection(T)``,
``Nullable(T)``, types declared by the model (short or full name), or any
type the reflector can find by full name.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from odata_swagger.errors import ModelFileError, TypeNotFoundError
from odata_swagger.model.document import Info
from odata_swagger.model.edm import (
    ALL_CAPABILITIES,
    DEFAULT_CAPABILITIES,
    EntitySet,
    MetadataModel,
    OperationDeclaration,
    OperationParameter,
)
from odata_swagger.model.routing import (
    ActionDescriptor,
    AttributeRoute,
    ControllerDescriptor,
    FormalParameter,
    ODataRoute,
    RouteTable,
)
from odata_swagger.model.types import (
    PRIMITIVE_FORMATS,
    MemberDescriptor,
    TypeDescriptor,
    collection_of,
    complex_type,
    entity_type,
    enum_type,
    nullable_of,
    primitive,
)
from odata_swagger.parser.python_types import ModuleAssembly
from odata_swagger.reflection.reflector import ModelAssembly, TypeReflector

logger = logging.getLogger(__name__)

_LOCATIONS = ("path", "query", "body")


@dataclass
class ModelFile:
    route_table: RouteTable
    info: Info = field(default_factory=Info)


def load_model_file(path: Path, reflector: TypeReflector) -> ModelFile:
    """Parse *path* and register its models and assemblies as type sources of *reflector*."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ModelFileError(f"{path}: not valid YAML/JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ModelFileError(f"{path}: expected a mapping at the top level")
    return _ModelFileLoader(reflector).load(data)


class _ModelFileLoader:
    def __init__(self, reflector: TypeReflector):
        self.reflector = reflector
        self.models: dict[str, MetadataModel] = {}

    def load(self, data: dict[str, Any]) -> ModelFile:
        for module_name in data.get("assemblies") or []:
            self._register(ModuleAssembly(module_name))

        for name, spec in (data.get("models") or {}).items():
            model = self._model(name, spec or {})
            self.models[name] = model
            self._register(ModelAssembly(model, name))

        routes = [self._route(spec) for spec in data.get("routes") or []]
        controllers = [self._controller(spec) for spec in data.get("controllers") or []]
        attribute_routes = [self._attribute_route(spec, controllers) for spec in data.get("attribute_routes") or []]
        info = Info(**(data.get("info") or {}))
        logger.info("Loaded %d routes, %d controllers, %d attribute routes", len(routes), len(controllers), len(attribute_routes))
        return ModelFile(RouteTable(routes, controllers, attribute_routes), info)

    def _register(self, source) -> None:
        resolver = self.reflector.assemblies_resolver
        if not hasattr(resolver, "add"):
            raise ModelFileError(f"Cannot register type source {source.name}: the active assemblies resolver is read-only")
        resolver.add(source)

    # -- models --------------------------------------------------------------

    def _model(self, name: str, spec: dict[str, Any]) -> MetadataModel:
        namespace = spec.get("namespace", "Default")
        model = MetadataModel(namespace=namespace)
        type_specs = spec.get("types") or []

        # declare every type first so members can reference any of them
        for type_spec in type_specs:
            model.types.append(self._declare(namespace, type_spec))
        for t, type_spec in zip(model.types, type_specs):
            if t.kind != "enum":
                t.members.extend(self._member(model, m) for m in type_spec.get("members") or [])
                missing = [k for k in t.key if t.member(k) is None]
                if missing:
                    raise ModelFileError(f"Model {name}: key {missing} is not a member of {t.full_name}")

        for set_spec in spec.get("entity_sets") or []:
            model.entity_sets.append(self._entity_set(model, set_spec))
        for op_spec in spec.get("operations") or []:
            model.operations.append(self._operation(model, op_spec))
        return model

    def _declare(self, namespace: str, spec: dict[str, Any]) -> TypeDescriptor:
        name = _required(spec, "name", "type")
        full_name = name if "." in name else f"{namespace}.{name}"
        kind = spec.get("kind", "complex")
        if kind == "enum":
            t = enum_type(full_name, [str(m) for m in spec.get("members") or []])
        elif kind == "entity":
            t = entity_type(full_name, [], spec.get("key") or [])
        elif kind == "complex":
            t = complex_type(full_name)
        else:
            raise ModelFileError(f"Type {full_name}: unknown kind {kind!r}")
        t.description = spec.get("description", "")
        return t

    def _member(self, model: MetadataModel, spec: dict[str, Any]) -> MemberDescriptor:
        t = self._type(model, _required(spec, "type", "member"))
        if spec.get("nullable"):
            t = nullable_of(t)
        return MemberDescriptor(
            name=_required(spec, "name", "member"),
            type=t,
            alias=spec.get("alias"),
            model_name=spec.get("model_name"),
            optional=bool(spec.get("optional", False)),
            navigation=bool(spec.get("navigation", False)),
            description=spec.get("description", ""),
        )

    def _entity_set(self, model: MetadataModel, spec: dict[str, Any]) -> EntitySet:
        name = _required(spec, "name", "entity set")
        t = self._type(model, _required(spec, "type", f"entity set {name}"))
        if t.kind != "entity":
            raise ModelFileError(f"Entity set {name}: {t.full_name} is not an entity type")
        capabilities = tuple(spec.get("capabilities") or DEFAULT_CAPABILITIES)
        unknown = [c for c in capabilities if c not in ALL_CAPABILITIES]
        if unknown:
            raise ModelFileError(f"Entity set {name}: unknown capabilities {unknown}")
        return EntitySet(name=name, entity_type=t, capabilities=capabilities)

    def _operation(self, model: MetadataModel, spec: dict[str, Any]) -> OperationDeclaration:
        name = _required(spec, "name", "operation")
        kind = spec.get("kind", "action")
        if kind not in ("action", "function"):
            raise ModelFileError(f"Operation {name}: unknown kind {kind!r}")
        bound_to = self._type(model, spec["bound_to"]) if spec.get("bound_to") else None
        returns = self._type(model, spec["returns"]) if spec.get("returns") else None
        return OperationDeclaration(
            name=name,
            kind=kind,
            parameters=[
                OperationParameter(
                    name=_required(p, "name", f"parameter of {name}"),
                    type=self._type(model, _required(p, "type", f"parameter of {name}")),
                    optional=bool(p.get("optional", False)),
                    description=p.get("description", ""),
                )
                for p in spec.get("parameters") or []
            ],
            return_type=returns,
            namespace=spec.get("namespace"),
            bound_to=bound_to,
            bound_to_collection=bool(spec.get("collection", False)),
            description=spec.get("description", ""),
        )

    # -- type references -----------------------------------------------------

    def _type(self, model: MetadataModel | None, ref: str) -> TypeDescriptor:
        ref = ref.strip()
        for wrapper, build in (("Collection(", collection_of), ("Nullable(", nullable_of)):
            if ref.startswith(wrapper) and ref.endswith(")"):
                return build(self._type(model, ref[len(wrapper):-1]))
        if ref in PRIMITIVE_FORMATS:
            return primitive(ref)
        models = [model] if model is not None else list(self.models.values())
        for m in models:
            t = m.declared_type(ref) or m.declared_type(f"{m.namespace}.{ref}")
            if t is not None:
                return t
        try:
            return self.reflector.find_type(ref)
        except TypeNotFoundError as exc:
            raise ModelFileError(f"Unknown type reference {ref!r}") from exc

    # -- routing -------------------------------------------------------------

    def _route(self, spec: dict[str, Any]) -> ODataRoute:
        name = _required(spec, "name", "route")
        model_name = spec.get("model", name)
        if model_name not in self.models:
            raise ModelFileError(f"Route {name}: unknown model {model_name!r}")
        return ODataRoute(
            name=name,
            prefix=spec.get("prefix", ""),
            model=self.models[model_name],
            controller_suffix=spec.get("controller_suffix", ""),
        )

    def _controller(self, spec: dict[str, Any]) -> ControllerDescriptor:
        name = _required(spec, "name", "controller")
        return ControllerDescriptor(name=name, actions=[self._action(name, a) for a in spec.get("actions") or []])

    def _action(self, controller: str, spec: dict[str, Any]) -> ActionDescriptor:
        name = _required(spec, "name", f"action of {controller}")
        returns = spec.get("returns")
        if returns:
            try:
                returns = self._type(None, returns)
            except ModelFileError:
                # resolved again at discovery time, where a miss only drops the response schema
                logger.debug("%s.%s: return type %s left unresolved", controller, name, returns)
        return ActionDescriptor(
            name=name,
            controller=controller,
            parameters=[self._formal(f"{controller}.{name}", p) for p in spec.get("parameters") or []],
            http_methods=tuple(m.upper() for m in spec.get("methods") or ()),
            enable_query=bool(spec.get("enable_query", False)),
            deprecated=bool(spec.get("deprecated", False)),
            return_type=returns or None,
            description=spec.get("description", ""),
        )

    def _formal(self, owner: str, spec: dict[str, Any]) -> FormalParameter:
        source = spec.get("source")
        if source is not None and source not in _LOCATIONS:
            raise ModelFileError(f"{owner}: unknown parameter source {source!r}")
        return FormalParameter(
            name=_required(spec, "name", f"parameter of {owner}"),
            type=self._type(None, spec["type"]) if spec.get("type") else None,
            source=source,
            description=spec.get("description", ""),
            structured=bool(spec.get("structured", False)),
            optional=bool(spec.get("optional", False)),
        )

    def _attribute_route(self, spec: dict[str, Any], controllers: list[ControllerDescriptor]) -> AttributeRoute:
        template = _required(spec, "template", "attribute route")
        controller_name = _required(spec, "controller", f"attribute route {template}")
        action_name = _required(spec, "action", f"attribute route {template}")
        method = spec.get("method", "get")
        for controller in controllers:
            if controller.name != controller_name:
                continue
            action = controller.find_action((action_name,), method)
            if action is not None:
                return AttributeRoute(template=template, method=method, action=action)
        raise ModelFileError(f"Attribute route {template}: no action {controller_name}.{action_name} for {method.upper()}")


def _required(spec: dict[str, Any], key: str, what: str) -> Any:
    if not isinstance(spec, dict) or key not in spec:
        raise ModelFileError(f"Missing '{key}' in {what}")
    return spec[key]
