"""TypeScript syntax layer built on tree-sitter.

Parses source units into concrete syntax trees and provides the small set of
node helpers the type and request parsers share.
"""

import logging
from collections.abc import Iterator
from functools import lru_cache

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from .base import SourceUnit

logger = logging.getLogger(__name__)

FUNCTION_NODES = (
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",
    "arrow_function",
    "method_definition",
)
DECLARATION_NODES = ("lexical_declaration", "variable_declaration")


@lru_cache(maxsize=None)
def _parser(dialect: str) -> Parser:
    if dialect == "tsx":
        language = Language(tree_sitter_typescript.language_tsx())
    else:
        language = Language(tree_sitter_typescript.language_typescript())
    return Parser(language)


def parse_source(unit: SourceUnit) -> Node | None:
    """Parse a source unit and return its root node.

    Returns None (after logging a warning) when the unit has syntax errors.
    """
    dialect = "tsx" if unit.path.endswith((".tsx", ".jsx")) else "typescript"
    tree = _parser(dialect).parse(unit.text.encode("utf-8"))
    if tree.root_node.has_error:
        logger.warning("Skipping %s: failed to parse", unit.path)
        return None
    return tree.root_node


def text(node: Node) -> str:
    return node.text.decode("utf-8")


def walk(root: Node) -> Iterator[Node]:
    """Yield ``root`` and all of its descendants in document order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def ancestors(node: Node) -> Iterator[Node]:
    parent = node.parent
    while parent is not None:
        yield parent
        parent = parent.parent


def child_of_type(node: Node, *types: str) -> Node | None:
    for child in node.named_children:
        if child.type in types:
            return child
    return None


def unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"`":
        return value[1:-1]
    return value


def squash(value: str) -> str:
    """Collapse runs of whitespace so multi-line type text compares cleanly."""
    return " ".join(value.split())


def literal_text(node: Node | None) -> str | None:
    """Reconstruct the literal text of a string-building expression.

    String literals give their contents, template strings their literal
    segments with ``${...}`` slots erased, and ``+`` concatenations the
    literal text of both operands. Returns None for anything else.
    """
    if node is None:
        return None
    if node.type == "string":
        return unquote(text(node))
    if node.type == "template_string":
        return _template_text(node)
    if node.type == "parenthesized_expression" and node.named_child_count:
        return literal_text(node.named_children[0])
    if node.type == "binary_expression":
        operator = node.child_by_field_name("operator")
        if operator is None or operator.type != "+":
            return None
        left = literal_text(node.child_by_field_name("left"))
        right = literal_text(node.child_by_field_name("right"))
        if left is None and right is None:
            return None
        return (left or "") + (right or "")
    return None


def is_string_builder(node: Node | None) -> bool:
    """True for template strings and ``+`` concatenations involving a string."""
    if node is None:
        return False
    if node.type == "template_string":
        return True
    return node.type == "binary_expression" and literal_text(node) is not None


def _template_text(node: Node) -> str:
    raw = node.text
    offset = node.start_byte
    parts = []
    cursor = 1  # opening backtick
    for child in node.named_children:
        if child.type == "template_substitution":
            parts.append(raw[cursor : child.start_byte - offset])
            cursor = child.end_byte - offset
    parts.append(raw[cursor : len(raw) - 1])  # closing backtick
    return b"".join(parts).decode("utf-8")


def declarators(statement: Node) -> Iterator[Node]:
    """Variable declarators of a declaration statement, looking through ``export``."""
    if statement.type == "export_statement":
        declaration = statement.child_by_field_name("declaration")
        if declaration is None:
            return
        statement = declaration
    if statement.type not in DECLARATION_NODES:
        return
    for child in statement.named_children:
        if child.type == "variable_declarator":
            yield child
