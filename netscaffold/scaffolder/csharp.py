"""C# naming and type helpers shared by the layer generators."""

from __future__ import annotations

from typing import Any

from ..models import EntityDefinition, EntityProperty
from ..utils import to_camel_case


DEFAULT_ENTITY_NAMESPACE = "Domain.Entities"

# Primitive type tags accepted in definitions -> C# type keyword.
CSHARP_TYPE_MAP: dict[str, str] = {
    "string": "string",
    "int": "int",
    "long": "long",
    "double": "double",
    "decimal": "decimal",
    "bool": "bool",
    "boolean": "bool",
    "date": "DateTime",
    "datetime": "DateTime",
    "guid": "Guid",
}

# Concrete type used to initialise each collection kind.
_COLLECTION_CONCRETE: dict[str, str] = {
    "List": "List",
    "ICollection": "List",
    "IEnumerable": "List",
    "HashSet": "HashSet",
}

_CSHARP_KEYWORDS = frozenset(
    {
        "abstract", "base", "bool", "break", "case", "catch", "char", "checked",
        "class", "const", "continue", "decimal", "default", "delegate", "do",
        "double", "else", "enum", "event", "explicit", "extern", "false",
        "finally", "fixed", "float", "for", "foreach", "goto", "if", "implicit",
        "in", "int", "interface", "internal", "is", "lock", "long", "namespace",
        "new", "null", "object", "operator", "out", "override", "params",
        "private", "protected", "public", "readonly", "ref", "return", "sbyte",
        "sealed", "short", "sizeof", "static", "string", "struct", "switch",
        "this", "throw", "true", "try", "typeof", "uint", "ulong", "unchecked",
        "unsafe", "ushort", "using", "virtual", "void", "volatile", "while",
    }
)


def map_to_csharp_type(type_tag: str) -> str:
    """Map a primitive type tag to its C# spelling; unknown tags pass through."""
    return CSHARP_TYPE_MAP.get(type_tag.lower(), type_tag)


def csharp_type(prop: EntityProperty) -> str:
    """Full C# type of *prop*, e.g. ``string`` or ``List<Guid>``."""
    element = map_to_csharp_type(prop.type)
    if prop.is_collection:
        return f"{prop.is_collection}<{element}>"
    return element


def collection_initializer(prop: EntityProperty) -> str:
    """Expression following ``new`` that creates an empty collection for *prop*."""
    element = map_to_csharp_type(prop.type)
    if prop.is_collection == "Array":
        return f"{element}[0]"
    concrete = _COLLECTION_CONCRETE.get(prop.is_collection or "", "List")
    return f"{concrete}<{element}>()"


def is_id_property(prop: EntityProperty) -> bool:
    """``True`` for properties whose name contains ``id`` (``Id``, ``CategoryId``)."""
    return "id" in prop.name.lower()


def parameter_name(name: str) -> str:
    """Constructor parameter name for a property, escaping C# keywords."""
    camel = to_camel_case(name)
    return f"@{camel}" if camel in _CSHARP_KEYWORDS else camel


def enrich_property(prop: EntityProperty) -> dict[str, Any]:
    """Flatten a property into the fields the templates use."""
    element = map_to_csharp_type(prop.type)
    full_type = csharp_type(prop)
    param = parameter_name(prop.name)
    return {
        "name": prop.name,
        "type": prop.type,
        "element_type": element,
        "csharp_type": full_type,
        "param_name": param,
        "parameter": f"{full_type} {param}",
        "is_required": prop.is_required,
        "is_collection": prop.is_collection,
        "is_navigation_property": prop.is_navigation_property,
        "is_id": is_id_property(prop),
        "is_string": full_type == "string",
        "initializer": collection_initializer(prop) if prop.is_collection else None,
    }


def entity_context(definition: EntityDefinition) -> dict[str, Any]:
    """Template context for ``domain/entities/Entity.cs.j2``."""
    properties = [enrich_property(p) for p in definition.properties]
    return {
        "name": definition.name,
        "namespace": definition.namespace or DEFAULT_ENTITY_NAMESPACE,
        "inherits_from_base": definition.inherits_from_base,
        "has_collections": any(p["is_collection"] for p in properties),
        "properties": properties,
        "constructor_properties": [p for p in properties if not p["is_collection"]],
        "collection_properties": [p for p in properties if p["is_collection"]],
    }
