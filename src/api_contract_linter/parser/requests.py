"""HTTP call site parser.

Statically recovers fetch-style calls from TypeScript sources: the URL they
hit, the HTTP method, and the declared request and response payload types.
Nothing is executed; types come from annotations found in the syntax tree.
"""

import logging
import re
from urllib.parse import urlsplit

from tree_sitter import Node

from .base import CodeEndpoint, SourceUnit, TypeOrigin, TypeReference
from .typescript import (
    FUNCTION_NODES,
    ancestors,
    child_of_type,
    declarators,
    is_string_builder,
    literal_text,
    parse_source,
    text,
    unquote,
    walk,
)

logger = logging.getLogger(__name__)

DEFAULT_CALL_NAME = "fetch"
DEFAULT_SERIALIZER = "JSON.stringify"

ARRAY_WRAPPERS = ("Array", "ReadonlyArray")
_IMPORTED_NAME = re.compile(r"import\(\s*[\"'][^\"']*[\"']\s*\)\.([\w$]+)")
_SCOPE_NODES = ("program", "statement_block", "class_body", "switch_body")
_MAX_ALIAS_DEPTH = 8


def extract_endpoints(
    sources: list[SourceUnit] | None,
    call_name: str = DEFAULT_CALL_NAME,
    serializer: str = DEFAULT_SERIALIZER,
) -> list[CodeEndpoint]:
    """Extract the HTTP call sites of every source unit, in discovery order."""
    if sources is None:
        raise ValueError("sources must not be None")

    endpoints: list[CodeEndpoint] = []
    for unit in sources:
        root = parse_source(unit)
        if root is None:
            continue
        found = find_endpoints(root, unit.path, call_name, serializer)
        logger.debug("Found %d endpoints in %s", len(found), unit.path)
        endpoints.extend(found)
    return endpoints


def find_endpoints(
    root: Node,
    source: str = "",
    call_name: str = DEFAULT_CALL_NAME,
    serializer: str = DEFAULT_SERIALIZER,
) -> list[CodeEndpoint]:
    base_path = find_base_path(root)
    endpoints = []
    for node in walk(root):
        if node.type != "call_expression":
            continue
        callee = node.child_by_field_name("function")
        if callee is None or call_name not in text(callee):
            continue
        endpoint = _parse_call(node, base_path, source, serializer)
        if endpoint is not None:
            endpoints.append(endpoint)
    return endpoints


def find_base_path(root: Node) -> str:
    """Literal text of the last top-level template or concatenation initializer."""
    base_path = ""
    for statement in root.named_children:
        for declarator in declarators(statement):
            value = declarator.child_by_field_name("value")
            if is_string_builder(value):
                base_path = literal_text(value) or ""
    return base_path


def _parse_call(call: Node, base_path: str, source: str, serializer: str) -> CodeEndpoint | None:
    arguments = call.child_by_field_name("arguments")
    if arguments is None or arguments.named_child_count == 0:
        return None
    first, *rest = arguments.named_children

    url = literal_text(first)
    if not url:
        return None

    method = "GET"
    request_body = None
    for argument in rest:
        if argument.type != "object":
            continue
        for pair in argument.named_children:
            if pair.type != "pair":
                continue
            key = unquote(text(pair.child_by_field_name("key")))
            value = pair.child_by_field_name("value")
            if key == "method" and value is not None and value.type == "string":
                method = unquote(text(value)).upper()
            elif key == "body":
                request_body = _request_body_type(value, serializer)

    path = _resolve_url(url, base_path)
    if path is None:
        logger.warning("Skipping call to malformed URL %s in %s", url, source)
        return None

    return CodeEndpoint(
        method=method,
        path=path,
        request_body=request_body,
        response_body=_response_body_type(call),
        source=source,
    )


def _resolve_url(url: str, base_path: str) -> str | None:
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    if parts.scheme in ("http", "https") and parts.netloc:
        path = parts.path
    else:
        path = base_path + url
    return path[1:] if path.startswith("/") else path


def _request_body_type(value: Node | None, serializer: str) -> TypeReference | None:
    if value is None or value.type != "call_expression":
        return None
    function = value.child_by_field_name("function")
    if function is None or "".join(text(function).split()) != serializer:
        return None
    arguments = value.child_by_field_name("arguments")
    if arguments is None or arguments.named_child_count == 0:
        return None
    payload = arguments.named_children[0]
    if payload.type == "as_expression":
        return type_reference(_cast_type(payload))
    if payload.type == "identifier":
        return type_reference(declared_type(payload))
    return None


def _response_body_type(call: Node) -> TypeReference | None:
    initialized = call
    parent = call.parent
    if parent is not None and parent.type == "await_expression":
        initialized, parent = parent, parent.parent
    if parent is not None and parent.type == "variable_declarator":
        value = parent.child_by_field_name("value")
        annotation = parent.child_by_field_name("type")
        if value is not None and value == initialized and annotation is not None:
            return type_reference(annotation)

    for ancestor in ancestors(call):
        if ancestor.type in FUNCTION_NODES:
            return type_reference(ancestor.child_by_field_name("return_type"))
    return None


def declared_type(identifier: Node) -> Node | None:
    """Find the type annotation governing ``identifier`` in an enclosing scope."""
    return _lookup(text(identifier), identifier, 0)


def _lookup(name: str, start: Node, depth: int) -> Node | None:
    if depth > _MAX_ALIAS_DEPTH:
        return None
    for scope in ancestors(start):
        if scope.type in FUNCTION_NODES:
            annotation = _parameter_type(scope, name)
            if annotation is not None:
                return annotation
        if scope.type not in _SCOPE_NODES:
            continue
        for statement in scope.named_children:
            for declarator in declarators(statement):
                if text(declarator.child_by_field_name("name")) != name:
                    continue
                annotation = declarator.child_by_field_name("type")
                if annotation is not None:
                    return annotation
                value = declarator.child_by_field_name("value")
                if value is not None and value.type == "as_expression":
                    return _cast_type(value)
                if value is not None and value.type == "identifier":
                    return _lookup(text(value), declarator, depth + 1)
                return None
    return None


def _parameter_type(function: Node, name: str) -> Node | None:
    parameters = function.child_by_field_name("parameters")
    if parameters is None:
        return None
    for parameter in parameters.named_children:
        if parameter.type not in ("required_parameter", "optional_parameter"):
            continue
        pattern = parameter.child_by_field_name("pattern")
        if pattern is not None and text(pattern) == name:
            return parameter.child_by_field_name("type")
    return None


def _cast_type(node: Node) -> Node | None:
    children = node.named_children
    return children[-1] if len(children) > 1 else None


def type_reference(node: Node | None) -> TypeReference | None:
    """Reduce a type node to the payload type it names.

    Generic wrappers are followed through their first type argument, array
    forms set ``is_array``, unions and intersections take their first member
    and qualified names keep only their final member.
    """
    is_array = False
    while node is not None:
        kind = node.type
        if kind in ("type_annotation", "parenthesized_type", "readonly_type"):
            node = node.named_children[-1] if node.named_child_count else None
        elif kind in ("union_type", "intersection_type"):
            node = node.named_children[0] if node.named_child_count else None
        elif kind == "array_type":
            is_array = True
            node = node.named_children[0] if node.named_child_count else None
        elif kind == "generic_type":
            name = child_of_type(node, "type_identifier", "nested_type_identifier")
            arguments = child_of_type(node, "type_arguments")
            if arguments is not None and arguments.named_child_count:
                if name is not None and text(name) in ARRAY_WRAPPERS:
                    is_array = True
                node = arguments.named_children[0]
            else:
                node = name
        elif kind in ("type_identifier", "predefined_type"):
            return TypeReference(name=text(node), is_array=is_array)
        elif kind == "nested_type_identifier":
            return TypeReference(
                name=text(node).rsplit(".", 1)[-1],
                origin=TypeOrigin.IMPORTED,
                is_array=is_array,
            )
        else:
            match = _IMPORTED_NAME.search(text(node))
            if match is None:
                return None
            return TypeReference(name=match.group(1), origin=TypeOrigin.IMPORTED, is_array=is_array)
    return None
