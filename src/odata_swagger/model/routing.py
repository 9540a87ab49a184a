"""Route table and runtime action descriptors."""

from dataclasses import dataclass, field
from typing import Literal

from odata_swagger.model.edm import MetadataModel
from odata_swagger.model.types import TypeDescriptor

ParameterLocation = Literal["path", "query", "body"]


@dataclass
class FormalParameter:
    """A parameter of the method that actually handles a route."""

    name: str
    type: TypeDescriptor | None = None
    source: ParameterLocation | None = None  # explicit binding attribute, if any
    description: str = ""
    structured: bool = False  # receives every operation parameter as one bag
    optional: bool = False


@dataclass
class ActionDescriptor:
    name: str
    controller: str
    parameters: list[FormalParameter] = field(default_factory=list)
    http_methods: tuple[str, ...] = ()
    enable_query: bool = False
    return_type: TypeDescriptor | str | None = None
    description: str = ""
    deprecated: bool = False

    def accepts(self, method: str) -> bool:
        return not self.http_methods or method.upper() in self.http_methods

    @property
    def has_structured_parameters(self) -> bool:
        return any(p.structured for p in self.parameters)


@dataclass
class ControllerDescriptor:
    name: str
    actions: list[ActionDescriptor] = field(default_factory=list)

    def find_action(self, names: tuple[str, ...], method: str, *, keyed: bool = False) -> ActionDescriptor | None:
        """Return the first action matching one of *names* (in order) and *method*.

        When several actions share a name, ``keyed`` prefers the overload that
        takes parameters (``Get(key)`` over ``Get()``).
        """
        for name in names:
            matches = [a for a in self.actions if a.name == name and a.accepts(method)]
            if not matches:
                continue
            for action in matches:
                if bool(action.parameters) == keyed:
                    return action
            return matches[0]
        return None


@dataclass
class AttributeRoute:
    """A controller action with an explicitly declared template and verb."""

    template: str
    method: str
    action: ActionDescriptor


@dataclass
class ODataRoute:
    """A named route mapping a path prefix to its own metadata model."""

    name: str
    prefix: str
    model: MetadataModel
    controller_suffix: str = ""


@dataclass
class RouteTable:
    routes: list[ODataRoute] = field(default_factory=list)
    controllers: list[ControllerDescriptor] = field(default_factory=list)
    attribute_routes: list[AttributeRoute] = field(default_factory=list)

    def route(self, name: str) -> ODataRoute | None:
        for route in self.routes:
            if route.name == name:
                return route
        return None

    def controller(self, name: str) -> ControllerDescriptor | None:
        for controller in self.controllers:
            if controller.name == name:
                return controller
        return None

    def entity_set_controller(self, route_name: str, container: str) -> ControllerDescriptor | None:
        """The controller serving entity set *container* on *route_name*, if one is registered."""
        route = self.route(route_name)
        suffix = route.controller_suffix if route else ""
        return self.controller(f"{container}{suffix}")

    def find_action(
        self,
        route_name: str,
        container: str,
        names: tuple[str, ...],
        method: str,
        *,
        keyed: bool = False,
    ) -> ActionDescriptor | None:
        """Locate the runtime action serving an operation discovered on *route_name*.

        Entity-set operations are served by the controller named after the
        set (plus the route's version suffix); unbound operations by any
        controller declaring a matching action.
        """
        if container:
            controller = self.entity_set_controller(route_name, container)
            if controller is None:
                return None
            return controller.find_action(names, method, keyed=keyed)
        for controller in self.controllers:
            action = controller.find_action(names, method, keyed=keyed)
            if action is not None:
                return action
        return None
