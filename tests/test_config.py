from decimal import Decimal

from odata_swagger.assembly.filters import EnableQueryFilter, RemoveNavigationPropertiesFilter
from odata_swagger.binding.binder import Bound, MapToDefault
from odata_swagger.config import DocsConfig
from odata_swagger.discovery.custom import CustomRoute, CustomRouteStrategy
from odata_swagger.model.document import Schema
from odata_swagger.model.routing import RouteTable
from odata_swagger.model.types import primitive
from odata_swagger.reflection.reflector import DeclaredNamePropertyResolver, DefaultAssembliesResolver, TypeReflector


class _Strategy:
    name = "extra"

    def discover(self, route_table):
        return []


class _Mapper:
    def try_bind(self, parameter, index, context):
        return Bound("query")


class TestDefaults:
    def test_strategies(self):
        assert [s.name for s in DocsConfig().discovery_strategies()] == ["model", "attribute"]

    def test_operation_filters_end_with_enable_query(self):
        config = DocsConfig()

        def mine(operation, context):
            return operation

        config.operation_filter(mine)
        filters = config.operation_filters()
        assert filters[0] is mine
        assert isinstance(filters[-1], EnableQueryFilter)

    def test_navigation_properties_removed_unless_included(self):
        config = DocsConfig()
        assert isinstance(config.document_filters()[-1], RemoveNavigationPropertiesFilter)
        config.include_navigation_properties()
        assert config.document_filters() == []

    def test_user_document_filters_run_first(self):
        config = DocsConfig()

        def mine(document, context):
            pass

        config.document_filter(mine)
        assert config.document_filters()[0] is mine

    def test_decimal_default_mapping(self):
        mappings = DocsConfig().schema_mappings()
        assert mappings["Edm.Decimal"]() == Schema(type="number", format="decimal")


class TestCustomization:
    def test_every_mutation_bumps_revision(self):
        config = DocsConfig()
        revisions = [config.revision]
        config.enable_caching()
        revisions.append(config.revision)
        config.set_host("example.com")
        revisions.append(config.revision)
        config.set_property_resolver(DeclaredNamePropertyResolver())
        revisions.append(config.revision)
        config.resolve_conflicting_actions(lambda ops: ops[0])
        revisions.append(config.revision)
        assert revisions == sorted(set(revisions))

    def test_user_mapping_overrides_default(self):
        config = DocsConfig()
        config.custom_schema_mapping("Edm.Decimal", Schema(type="string", format="decimal"))
        assert config.schema_mappings()["Edm.Decimal"] == Schema(type="string", format="decimal")

    def test_mapping_by_python_type_or_descriptor(self):
        config = DocsConfig()
        config.custom_schema_mapping(Decimal, Schema(type="string"))
        config.custom_schema_mapping(primitive("Edm.Guid"), Schema(type="string", format="guid"))
        mappings = config.schema_mappings()
        assert mappings["Edm.Decimal"] == Schema(type="string")
        assert mappings["Edm.Guid"].format == "guid"

    def test_policies_reach_the_reflector(self):
        reflector = TypeReflector()
        config = DocsConfig(reflector)
        resolver = DefaultAssembliesResolver()
        config.set_assemblies_resolver(resolver)
        assert reflector.assemblies_resolver is resolver

    def test_custom_routes_and_extra_strategies(self):
        config = DocsConfig()
        config.custom_route(CustomRoute(template="health"))
        config.add_discovery_strategy(_Strategy())
        strategies = config.discovery_strategies()
        assert [s.name for s in strategies] == ["model", "attribute", "custom", "extra"]
        assert isinstance(strategies[2], CustomRouteStrategy)
        assert len(strategies[2].discover(RouteTable())) == 1

    def test_inserted_mapper_runs_before_default(self):
        config = DocsConfig()
        mapper = _Mapper()
        config.insert_parameter_mapper(mapper)
        mappers = config.parameter_mappers()
        assert mappers[-2] is mapper
        assert isinstance(mappers[-1], MapToDefault)

    def test_inserted_mapper_at_front(self):
        config = DocsConfig()
        mapper = _Mapper()
        config.insert_parameter_mapper(mapper, 0)
        assert config.parameter_mappers()[0] is mapper

    def test_set_info(self):
        config = DocsConfig()
        config.set_info(title="Suppliers", description="All of them")
        assert (config.info.title, config.info.description) == ("Suppliers", "All of them")
        assert config.build_assembler().info.title == "Suppliers"

    def test_set_schemes(self):
        config = DocsConfig()
        revision = config.revision
        config.set_schemes("HTTPS", "http")
        assert config.revision > revision
        assert config.build_assembler().schemes == ["https", "http"]
