import logging

import pytest

from odata_swagger.errors import TypeLoadError, TypeNotFoundError
from odata_swagger.model.edm import EntitySet, MetadataModel
from odata_swagger.model.types import (
    MemberDescriptor,
    collection_of,
    complex_type,
    entity_type,
    enum_type,
    nullable_of,
    primitive,
)
from odata_swagger.reflection.reflector import (
    DeclaredNamePropertyResolver,
    DefaultAssembliesResolver,
    DefaultPropertyResolver,
    DefaultTypeResolver,
    ModelAssembly,
    TypeReflector,
)


class _Source:
    def __init__(self, name, types=None, error=None):
        self.name = name
        self._types = types or []
        self._error = error

    def get_types(self):
        if self._error is not None:
            raise self._error
        return self._types


class TestIsCollection:
    def test_string_is_never_a_collection(self):
        reflector = TypeReflector()
        is_collection, element = reflector.is_collection(primitive("Edm.String"))
        assert is_collection is False
        assert element is primitive("Edm.String")

    def test_collection_yields_element(self):
        reflector = TypeReflector()
        supplier = complex_type("Default.Supplier")
        is_collection, element = reflector.is_collection(collection_of(supplier))
        assert is_collection is True
        assert element is supplier

    def test_type_implementing_enumerable_interface(self):
        reflector = TypeReflector()
        bag = complex_type("Default.SupplierList")
        bag.interfaces.append(collection_of(primitive("Edm.Int32")))
        is_collection, element = reflector.is_collection(bag)
        assert is_collection is True
        assert element is primitive("Edm.Int32")

    def test_first_declared_interface_wins(self):
        reflector = TypeReflector()
        bag = complex_type("Default.Mixed")
        bag.interfaces.append(collection_of(primitive("Edm.Int32")))
        bag.interfaces.append(collection_of(primitive("Edm.String")))
        assert reflector.is_collection(bag) == (True, primitive("Edm.Int32"))

    def test_composite_is_not_a_collection(self):
        reflector = TypeReflector()
        assert reflector.is_collection(complex_type("Default.Address"))[0] is False

    def test_inner_element_type_requires_collection(self):
        reflector = TypeReflector()
        with pytest.raises(TypeError, match="Edm.Int32 is not a collection"):
            reflector.inner_element_type(primitive("Edm.Int32"))


class TestUnwrapping:
    def test_inner_most_element_type_through_nested_wrappers(self):
        reflector = TypeReflector()
        t = collection_of(nullable_of(collection_of(primitive("Edm.Guid"))))
        assert reflector.inner_most_element_type(t) is primitive("Edm.Guid")

    def test_self_referencing_type_is_terminal(self):
        reflector = TypeReflector()
        node = complex_type("Default.Node")
        node.members.append(MemberDescriptor(name="Next", type=node))
        assert reflector.inner_most_element_type(collection_of(node)) is node

    def test_nullable(self):
        reflector = TypeReflector()
        t = nullable_of(primitive("Edm.Int32"))
        assert reflector.is_nullable(t)
        assert not reflector.is_nullable(primitive("Edm.Int32"))
        assert reflector.underlying_type_or_self(t) is primitive("Edm.Int32")
        assert reflector.underlying_type_or_self(primitive("Edm.Int32")) is primitive("Edm.Int32")

    def test_to_nullable_is_idempotent(self):
        reflector = TypeReflector()
        once = reflector.to_nullable(primitive("Edm.Int32"))
        assert reflector.to_nullable(once) is once

    def test_nullable_enum_is_enum(self):
        reflector = TypeReflector()
        assert reflector.is_enum(nullable_of(enum_type("Default.Color", ["Red"])))


class TestIsQueryPrimitive:
    @pytest.mark.parametrize("name", ["Edm.Int32", "Edm.Boolean", "Edm.Decimal", "Edm.Guid", "Edm.DateTimeOffset", "Edm.Duration", "Edm.Uri"])
    def test_primitives_and_value_types(self, name):
        assert TypeReflector().is_query_primitive(primitive(name))

    def test_enum(self):
        assert TypeReflector().is_query_primitive(enum_type("Default.Color", ["Red", "Blue"]))

    def test_evaluated_on_innermost_element(self):
        assert TypeReflector().is_query_primitive(collection_of(nullable_of(primitive("Edm.Int64"))))

    def test_composite_is_not(self):
        assert not TypeReflector().is_query_primitive(complex_type("Default.Address"))

    def test_binary_is_not(self):
        assert not TypeReflector().is_query_primitive(primitive("Edm.Binary"))


class TestPropertyName:
    def test_default_prefers_alias(self):
        reflector = TypeReflector()
        member = MemberDescriptor(name="Name", type=primitive("Edm.String"), alias="displayName")
        assert reflector.property_name(member) == "displayName"

    def test_blank_alias_falls_back(self):
        reflector = TypeReflector()
        member = MemberDescriptor(name="Name", type=primitive("Edm.String"), alias="  ")
        assert reflector.property_name(member) == "Name"

    def test_model_name_is_the_default_name(self):
        reflector = TypeReflector()
        member = MemberDescriptor(name="Name", type=primitive("Edm.String"), model_name="name")
        assert reflector.property_name(member) == "name"

    def test_swap_and_reset_policy(self):
        reflector = TypeReflector()
        member = MemberDescriptor(name="Name", type=primitive("Edm.String"), alias="displayName")
        reflector.set_property_resolver(DeclaredNamePropertyResolver())
        assert reflector.property_name(member) == "Name"
        reflector.reset()
        assert reflector.property_name(member) == "displayName"

    def test_policies_are_per_instance(self):
        first = TypeReflector(property_resolver=DeclaredNamePropertyResolver())
        second = TypeReflector()
        member = MemberDescriptor(name="Name", type=primitive("Edm.String"), alias="displayName")
        assert first.property_name(member) == "Name"
        assert second.property_name(member) == "displayName"
        assert isinstance(second._property_resolver, DefaultPropertyResolver)


class TestLoadedTypes:
    def test_model_assembly_lists_declared_and_entity_types(self):
        supplier = entity_type("Default.Supplier", [MemberDescriptor(name="Id", type=primitive("Edm.Int64"))], ["Id"])
        color = enum_type("Default.Color", ["Red"])
        model = MetadataModel(types=[color], entity_sets=[EntitySet("Suppliers", supplier)])
        assert ModelAssembly(model).get_types() == [color, supplier]

    def test_failed_source_is_skipped(self, caplog):
        good = complex_type("Good.Type")
        reflector = TypeReflector(
            assemblies_resolver=DefaultAssembliesResolver([
                _Source("broken", error=ImportError("no module named broken")),
                _Source("good", [good]),
            ])
        )
        with caplog.at_level(logging.WARNING):
            assert reflector.loaded_types() == [good]
        assert "broken" in caplog.text

    def test_partial_source_contributes_what_loaded(self):
        loaded = complex_type("Partial.Loaded")
        reflector = TypeReflector(
            assemblies_resolver=DefaultAssembliesResolver([
                _Source("partial", error=TypeLoadError("partial", [loaded, None], ValueError("bad"))),
            ])
        )
        assert reflector.loaded_types() == [loaded]

    def test_find_type(self):
        wanted = complex_type("Default.Address")
        reflector = TypeReflector(assemblies_resolver=DefaultAssembliesResolver([_Source("s", [wanted])]))
        assert reflector.find_type("Default.Address") is wanted

    def test_find_type_not_found(self):
        reflector = TypeReflector()
        with pytest.raises(TypeNotFoundError) as exc_info:
            reflector.find_type("Default.Missing")
        assert exc_info.value.full_name == "Default.Missing"
        assert exc_info.value.code.value == "TYPE_NOT_FOUND"

    def test_find_type_unaffected_by_failed_source(self):
        wanted = complex_type("Default.Address")
        reflector = TypeReflector(
            assemblies_resolver=DefaultAssembliesResolver([_Source("bad", error=RuntimeError("boom")), _Source("s", [wanted])])
        )
        assert reflector.find_type("Default.Address") is wanted


class TestRevision:
    def test_policy_changes_bump_revision(self):
        reflector = TypeReflector()
        revisions = [reflector.revision]
        reflector.set_property_resolver(DeclaredNamePropertyResolver())
        revisions.append(reflector.revision)
        reflector.set_type_resolver(DefaultTypeResolver(reflector.loaded_types))
        revisions.append(reflector.revision)
        reflector.set_assemblies_resolver(DefaultAssembliesResolver())
        revisions.append(reflector.revision)
        reflector.reset()
        revisions.append(reflector.revision)
        assert len(set(revisions)) == len(revisions)

    def test_adding_a_source_bumps_revision(self):
        reflector = TypeReflector()
        before = reflector.revision
        reflector.assemblies_resolver.add(_Source("late", [complex_type("Late.Type")]))
        assert reflector.revision != before
        assert reflector.find_type("Late.Type").full_name == "Late.Type"

    def test_swapping_resolvers_never_repeats_a_revision(self):
        reflector = TypeReflector()
        reflector.assemblies_resolver.add(_Source("a"))
        seen = reflector.revision
        reflector.set_assemblies_resolver(DefaultAssembliesResolver())
        reflector.assemblies_resolver.add(_Source("b"))
        assert reflector.revision != seen
