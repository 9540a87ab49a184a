import logging

import pytest

from odata_swagger.assembly.assembler import DocumentAssembler, default_conflict_resolver
from odata_swagger.errors import ConflictingOperationsError
from odata_swagger.model.candidate import CandidateOperation, CandidateParameter
from odata_swagger.model.document import Info
from odata_swagger.model.edm import MetadataModel
from odata_swagger.model.routing import ActionDescriptor, ControllerDescriptor, ODataRoute, RouteTable
from odata_swagger.model.types import MemberDescriptor, collection_of, complex_type, entity_type, primitive
from odata_swagger.reflection.reflector import TypeReflector
from odata_swagger.schema.builder import SchemaBuilder


def _supplier():
    return entity_type("Default.Supplier", [MemberDescriptor(name="Id", type=primitive("Edm.Int64"))], ["Id"])


def _candidate(path="/Suppliers", method="get", operation_id="Suppliers_Get", strategy="model", **kwargs):
    return CandidateOperation(path=path, method=method, operation_id=operation_id, strategy=strategy, **kwargs)


def _dump(schema):
    return schema.model_dump(by_alias=True, exclude_none=True)


class TestBinding:
    def test_get_collection(self):
        supplier = _supplier()
        doc = DocumentAssembler(TypeReflector()).assemble(
            [_candidate(return_type=collection_of(supplier), container="Suppliers", summary="List")], RouteTable()
        )
        op = doc.operation("/Suppliers", "get")
        assert op.operation_id == "Suppliers_Get"
        assert op.tags == ["Suppliers"]
        assert op.summary == "List"
        assert _dump(op.responses["200"].schema_) == {"type": "array", "items": {"$ref": "#/definitions/Supplier"}}
        assert op.produces == ["application/json"]
        assert list(doc.definitions) == ["Supplier"]

    def test_path_parameter_is_required(self):
        key = CandidateParameter("Id", primitive("Edm.Int64"), provenance="route", optional=True)
        doc = DocumentAssembler(TypeReflector()).assemble([_candidate(path="/Suppliers({Id})", parameters=(key,))], RouteTable())
        param = doc.operation("/Suppliers({Id})", "get").parameter("Id")
        assert param.location == "path"
        assert param.required is True
        assert _dump(param.schema_) == {"type": "integer", "format": "int64"}

    def test_optional_query_parameter(self):
        top = CandidateParameter("top", primitive("Edm.Int32"), optional=True)
        doc = DocumentAssembler(TypeReflector()).assemble([_candidate(parameters=(top,))], RouteTable())
        param = doc.operation("/Suppliers", "get").parameter("top")
        assert (param.location, param.required) == ("query", False)

    def test_several_body_parameters_collapse_into_one(self):
        supplier = CandidateParameter("supplier", _supplier())
        note = CandidateParameter("note", complex_type("Default.Note"), optional=True)
        doc = DocumentAssembler(TypeReflector()).assemble(
            [_candidate(method="post", operation_id="Suppliers_Import", parameters=(supplier, note))], RouteTable()
        )
        op = doc.operation("/Suppliers", "post")
        bodies = [p for p in op.parameters if p.location == "body"]
        assert len(bodies) == 1
        body = bodies[0]
        assert body.name == "parameters"
        assert body.required is True
        assert _dump(body.schema_) == {
            "type": "object",
            "properties": {"supplier": {"$ref": "#/definitions/Supplier"}, "note": {"$ref": "#/definitions/Note"}},
            "required": ["supplier"],
        }
        assert op.consumes == ["application/json"]

    def test_missing_path_parameter_is_synthesized(self, caplog):
        with caplog.at_level(logging.WARNING):
            doc = DocumentAssembler(TypeReflector()).assemble([_candidate(path="/Files({Name})")], RouteTable())
        param = doc.operation("/Files({Name})", "get").parameter("Name")
        assert (param.location, param.required) == ("path", True)
        assert _dump(param.schema_) == {"type": "string"}
        assert "{Name}" in caplog.text

    def test_responses(self):
        supplier = _supplier()
        doc = DocumentAssembler(TypeReflector()).assemble(
            [
                _candidate(method="post", operation_id="Suppliers_Post", return_type=supplier, success_status="201"),
                _candidate(path="/Suppliers({Id})", method="delete", operation_id="Suppliers_Delete", success_status="204"),
                _candidate(path="/Best", operation_id="Best", return_type=supplier, success_status="204"),
            ],
            RouteTable(),
        )
        assert list(doc.operation("/Suppliers", "post").responses) == ["201"]
        assert doc.operation("/Suppliers({Id})", "delete").responses["204"].schema_ is None
        assert list(doc.operation("/Best", "get").responses) == ["200"]

    def test_every_reference_resolves(self):
        supplier = _supplier()
        supplier.members.append(MemberDescriptor(name="Parent", type=supplier, optional=True))
        doc = DocumentAssembler(TypeReflector()).assemble([_candidate(return_type=collection_of(supplier))], RouteTable())
        assert doc.dangling_refs() == set()

    def test_info_version_and_host(self):
        assembler = DocumentAssembler(TypeReflector(), info=Info(title="Suppliers"), host="example.com", base_path="/api")
        doc = assembler.assemble([], RouteTable(), api_version="v2")
        assert (doc.info.title, doc.info.version) == ("Suppliers", "v2")
        assert (doc.host, doc.base_path) == ("example.com", "/api")

    def test_action_is_looked_up_in_route_table(self):
        action = ActionDescriptor(name="Get", controller="SuppliersV2", description="All suppliers")
        route_table = RouteTable(
            routes=[ODataRoute("v2", "odata/v2", MetadataModel(), controller_suffix="V2")],
            controllers=[ControllerDescriptor("SuppliersV2", [action])],
        )
        seen = []

        def capture(operation, context):
            seen.append(context.action)
            return operation

        doc = DocumentAssembler(TypeReflector(), operation_filters=[capture]).assemble(
            [_candidate(container="Suppliers", route_name="v2", action_names=("Get", "GetSuppliers"))], route_table
        )
        assert seen == [action]
        assert doc.operation("/Suppliers", "get").description == "All suppliers"


class TestFilters:
    def test_operation_filters_run_in_order(self):
        calls = []

        def first(operation, context):
            calls.append("first")
            operation.summary = "first"
            return operation

        def second(operation, context):
            calls.append("second")
            operation.summary += " then second"
            return operation

        doc = DocumentAssembler(TypeReflector(), operation_filters=[first, second]).assemble([_candidate()], RouteTable())
        assert calls == ["first", "second"]
        assert doc.operation("/Suppliers", "get").summary == "first then second"

    def test_operation_filter_can_suppress(self):
        def drop_deletes(operation, context):
            return None if operation.method == "delete" else operation

        doc = DocumentAssembler(TypeReflector(), operation_filters=[drop_deletes]).assemble(
            [_candidate(), _candidate(path="/Suppliers({Id})", method="delete", operation_id="Suppliers_Delete")],
            RouteTable(),
        )
        assert list(doc.paths) == ["/Suppliers"]

    def test_document_filter_rewrites_host(self):
        def rewrite_host(document, context):
            document.host = "api.example.com"

        doc = DocumentAssembler(TypeReflector(), document_filters=[rewrite_host]).assemble([_candidate()], RouteTable())
        assert doc.host == "api.example.com"

    def test_document_filter_can_register_schemas(self):
        def add_error_response(document, context):
            schema = context.schemas.build(complex_type("Default.Error", [MemberDescriptor(name="message", type=primitive("Edm.String"))]))
            for operation in document.operations():
                operation.responses["default"] = operation.responses["204"].model_copy(update={"schema_": schema})

        doc = DocumentAssembler(TypeReflector(), document_filters=[add_error_response]).assemble([_candidate()], RouteTable())
        assert "Error" in doc.definitions
        assert doc.dangling_refs() == set()

    def test_filter_errors_propagate(self):
        def broken(operation, context):
            raise RuntimeError("filter failed")

        with pytest.raises(RuntimeError, match="filter failed"):
            DocumentAssembler(TypeReflector(), operation_filters=[broken]).assemble([_candidate()], RouteTable())


class TestConflicts:
    def _duplicates(self):
        return [
            _candidate(path="/X", operation_id="X_Get", strategy="model"),
            _candidate(path="/X", operation_id="Things_List", strategy="attribute"),
        ]

    def test_default_resolver_raises(self):
        with pytest.raises(ConflictingOperationsError) as exc_info:
            DocumentAssembler(TypeReflector()).assemble(self._duplicates(), RouteTable())
        assert exc_info.value.operation_ids == ["X_Get", "Things_List"]
        assert exc_info.value.path == "/X"
        assert exc_info.value.code.value == "CONFLICTING_OPERATIONS"

    def test_default_resolver_directly(self):
        assembler = DocumentAssembler(TypeReflector())
        operations = [assembler.bind(c, None, SchemaBuilder(TypeReflector())) for c in self._duplicates()]
        with pytest.raises(ConflictingOperationsError):
            default_conflict_resolver(operations)

    def test_custom_resolver_picks_one(self):
        def prefer_attribute(operations):
            return next(op for op in operations if op.strategy == "attribute")

        doc = DocumentAssembler(TypeReflector(), conflict_resolver=prefer_attribute).assemble(self._duplicates(), RouteTable())
        assert [op.operation_id for op in doc.operations()] == ["Things_List"]

    def test_same_path_different_verbs_do_not_conflict(self):
        doc = DocumentAssembler(TypeReflector()).assemble(
            [_candidate(path="/X"), _candidate(path="/X", method="post", operation_id="X_Post")], RouteTable()
        )
        assert list(doc.paths["/X"]) == ["get", "post"]


class TestUniqueOperationIds:
    def test_duplicates_get_numeric_suffix_in_first_seen_order(self):
        doc = DocumentAssembler(TypeReflector()).assemble(
            [
                _candidate(path="/a", operation_id="Get"),
                _candidate(path="/b", operation_id="Get"),
                _candidate(path="/c", operation_id="Get"),
            ],
            RouteTable(),
        )
        assert [op.operation_id for op in doc.operations()] == ["Get", "Get_2", "Get_3"]



class TestUnservedOperations:
    def _route_table(self, *actions):
        return RouteTable(
            routes=[ODataRoute("v1", "odata/v1", MetadataModel(), controller_suffix="V1")],
            controllers=[ControllerDescriptor("SuppliersV1", list(actions))],
        )

    def test_model_operation_missing_from_controller_is_dropped(self):
        get = ActionDescriptor(name="Get", controller="SuppliersV1", http_methods=("GET",))
        candidates = [
            _candidate(container="Suppliers", route_name="v1", action_names=("Get", "GetSuppliers")),
            _candidate(method="post", operation_id="Suppliers_Post", container="Suppliers", route_name="v1", action_names=("Post",)),
        ]
        doc = DocumentAssembler(TypeReflector()).assemble(candidates, self._route_table(get))
        assert [op.operation_id for op in doc.operations()] == ["Suppliers_Get"]

    def test_other_strategies_are_kept(self):
        candidate = _candidate(
            method="post", operation_id="Custom_Post", strategy="custom", container="Suppliers", route_name="v1", action_names=("Post",)
        )
        doc = DocumentAssembler(TypeReflector()).assemble([candidate], self._route_table())
        assert doc.operation("/Suppliers", "post") is not None

    def test_deprecated_action_marks_operation(self):
        get = ActionDescriptor(name="Get", controller="SuppliersV1", http_methods=("GET",), deprecated=True)
        candidate = _candidate(container="Suppliers", route_name="v1", action_names=("Get",))
        doc = DocumentAssembler(TypeReflector()).assemble([candidate], self._route_table(get))
        assert doc.operation("/Suppliers", "get").deprecated is True
