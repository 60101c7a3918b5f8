"""Type declaration parser.

Collects interfaces, type aliases and enums from TypeScript sources into a
TypeRegistry used to resolve payload types named at HTTP call sites.
"""

import logging

from tree_sitter import Node

from .base import OBJECT_SENTINEL, SourceUnit, TypeDefinition, TypeKind, TypeRegistry
from .typescript import child_of_type, parse_source, squash, text, unquote, walk

logger = logging.getLogger(__name__)

_OBJECT_TYPES = ("object_type", "interface_body")


def build_registry(sources: list[SourceUnit] | None) -> TypeRegistry:
    """Parse every source unit and build the type registry."""
    if sources is None:
        raise ValueError("sources must not be None")

    definitions: list[TypeDefinition] = []
    for unit in sources:
        root = parse_source(unit)
        if root is None:
            continue
        found = find_types(root)
        logger.debug("Found %d type declarations in %s", len(found), unit.path)
        definitions.extend(found)

    return TypeRegistry.from_definitions(_merge_bases(definitions))


def find_types(root: Node) -> list[TypeDefinition]:
    """Return the type declarations found anywhere under ``root``."""
    types = []
    for node in walk(root):
        if node.type == "interface_declaration":
            types.append(_interface(node))
        elif node.type == "type_alias_declaration":
            types.append(_alias(node))
        elif node.type == "enum_declaration":
            types.append(_enum(node))
    return types


def _interface(node: Node) -> TypeDefinition:
    body = node.child_by_field_name("body")
    bases = []
    extends = child_of_type(node, "extends_type_clause")
    if extends is not None:
        for base in extends.named_children:
            if base.type == "generic_type":
                base = child_of_type(base, "type_identifier", "nested_type_identifier") or base
            bases.append(text(base).rsplit(".", 1)[-1])
    return TypeDefinition(
        name=text(node.child_by_field_name("name")),
        kind=TypeKind.INTERFACE,
        properties=_properties(body) if body is not None else {},
        bases=bases,
    )


def _alias(node: Node) -> TypeDefinition:
    value = node.child_by_field_name("value")
    if value is not None and value.type in _OBJECT_TYPES:
        properties = _properties(value)
    else:
        properties = {"type": squash(text(value)) if value is not None else "any"}
    return TypeDefinition(
        name=text(node.child_by_field_name("name")),
        kind=TypeKind.ALIAS,
        properties=properties,
    )


def _enum(node: Node) -> TypeDefinition:
    members: dict[str, str] = {}
    body = node.child_by_field_name("body")
    counter: int | None = 0
    for member in body.named_children if body is not None else []:
        if member.type == "enum_assignment":
            name = unquote(text(member.child_by_field_name("name")))
            value = member.child_by_field_name("value")
            if value is not None and value.type == "string":
                members[name] = unquote(text(value))
                counter = None
            else:
                members[name] = text(value) if value is not None else ""
                counter = _next_auto_value(members[name])
        elif member.type in ("property_identifier", "string", "number"):
            # Uninitialized members continue the numeric sequence.
            members[unquote(text(member))] = str(counter) if counter is not None else ""
            counter = counter + 1 if counter is not None else None
    return TypeDefinition(
        name=text(node.child_by_field_name("name")),
        kind=TypeKind.ENUM,
        properties=members,
    )


def _next_auto_value(value: str) -> int | None:
    try:
        return int(value) + 1
    except ValueError:
        return None


def _properties(body: Node) -> dict[str, str]:
    properties = {}
    for member in body.named_children:
        if member.type != "property_signature":
            continue
        name = unquote(text(member.child_by_field_name("name")))
        annotation = member.child_by_field_name("type")
        declared = annotation.named_children[0] if annotation is not None and annotation.named_child_count else None
        if declared is None:
            properties[name] = "any"
        elif declared.type == "object_type":
            properties[name] = OBJECT_SENTINEL
        else:
            properties[name] = squash(text(declared))
    return properties


def _merge_bases(definitions: list[TypeDefinition]) -> list[TypeDefinition]:
    """Fold properties inherited through ``extends`` into each interface."""
    by_name: dict[str, TypeDefinition] = {}
    for definition in definitions:
        by_name.setdefault(definition.name, definition)

    def inherited(definition: TypeDefinition, seen: set[str]) -> dict[str, str]:
        properties: dict[str, str] = {}
        for base_name in definition.bases:
            base = by_name.get(base_name)
            if base is None or base_name in seen:
                continue
            properties.update(inherited(base, seen | {base_name}))
        properties.update(definition.properties)
        return properties

    merged = []
    for definition in definitions:
        if definition.bases:
            definition = definition.model_copy(
                update={"properties": inherited(definition, {definition.name})}
            )
        merged.append(definition)
    return merged
