"""Tests for the C# naming and type helpers."""

from __future__ import annotations

import pytest

from netscaffold.models import EntityDefinition, EntityProperty
from netscaffold.scaffolder.csharp import (
    DEFAULT_ENTITY_NAMESPACE,
    collection_initializer,
    csharp_type,
    entity_context,
    enrich_property,
    is_id_property,
    map_to_csharp_type,
    parameter_name,
)


pytestmark = pytest.mark.unit


class TestTypeMapping:
    @pytest.mark.parametrize(
        "tag,expected",
        [
            ("string", "string"),
            ("DateTime", "DateTime"),
            ("datetime", "DateTime"),
            ("Guid", "Guid"),
            ("boolean", "bool"),
            ("OrderStatus", "OrderStatus"),
        ],
    )
    def test_map_to_csharp_type(self, tag: str, expected: str):
        assert map_to_csharp_type(tag) == expected

    def test_scalar_type(self):
        assert csharp_type(EntityProperty(name="Price", type="decimal")) == "decimal"

    def test_collection_type(self):
        prop = EntityProperty(name="Tags", type="guid", is_collection="ICollection")
        assert csharp_type(prop) == "ICollection<Guid>"

    @pytest.mark.parametrize(
        "kind,expected",
        [
            ("List", "List<int>()"),
            ("IEnumerable", "List<int>()"),
            ("HashSet", "HashSet<int>()"),
            ("Array", "int[0]"),
        ],
    )
    def test_collection_initializer(self, kind: str, expected: str):
        assert collection_initializer(EntityProperty(name="Items", type="int", is_collection=kind)) == expected


class TestNames:
    def test_is_id_property(self):
        assert is_id_property(EntityProperty(name="Id", type="guid"))
        assert is_id_property(EntityProperty(name="CategoryId", type="guid"))
        assert not is_id_property(EntityProperty(name="Name", type="string"))

    def test_parameter_name_escapes_keywords(self):
        assert parameter_name("Price") == "price"
        assert parameter_name("Class") == "@class"
        assert parameter_name("Event") == "@event"


class TestContexts:
    def test_enrich_property(self):
        data = enrich_property(EntityProperty(name="Name", type="string", is_required=True))
        assert data["csharp_type"] == "string"
        assert data["parameter"] == "string name"
        assert data["is_string"] is True
        assert data["initializer"] is None

    def test_entity_context_splits_collections(self, product_entity: EntityDefinition):
        ctx = entity_context(product_entity)
        assert ctx["namespace"] == DEFAULT_ENTITY_NAMESPACE
        assert ctx["has_collections"] is True
        assert [p["name"] for p in ctx["constructor_properties"]] == ["Name", "Price", "Description"]
        assert [p["name"] for p in ctx["collection_properties"]] == ["Tags"]
        assert ctx["collection_properties"][0]["initializer"] == "List<string>()"

    def test_entity_context_custom_namespace(self):
        ctx = entity_context(EntityDefinition(name="Order", namespace="Domain.Sales"))
        assert ctx["namespace"] == "Domain.Sales"
        assert ctx["has_collections"] is False
