"""Unified data models shared by the parsers and the linter.

The Postman parser produces ContractEndpoint, the TypeScript parsers produce
CodeEndpoint and TypeRegistry, and the linter turns mismatches between them
into LintError values.
"""

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

ARRAY_MARKER = "[]"
OBJECT_SENTINEL = "object"
PRIMITIVE_TYPES = ("string", "number", "boolean", "any", "unknown")


class SourceUnit(BaseModel):
    """One source file handed to the TypeScript parsers."""

    path: str
    text: str


class TypeKind(str, Enum):
    INTERFACE = "interface"
    ALIAS = "alias"
    ENUM = "enum"


class PropertyKind(str, Enum):
    PRIMITIVE = "primitive"
    ARRAY = "array"
    OBJECT = "object"  # inline object literal type
    REFERENCE = "reference"


class PropertyDescriptor(BaseModel):
    kind: PropertyKind
    type_name: str  # element type for arrays

    @property
    def declared(self) -> str:
        """The declared type text this descriptor was derived from."""
        if self.kind == PropertyKind.ARRAY:
            return self.type_name + ARRAY_MARKER
        return self.type_name


class TypeDefinition(BaseModel):
    """A declared interface, type alias or enum.

    For enums ``properties`` maps member name to literal value, otherwise it
    maps property name to the declared type text.
    """

    name: str
    kind: TypeKind
    properties: dict[str, str] = {}
    bases: list[str] = []

    def describe(self, prop: str) -> PropertyDescriptor | None:
        """Classify the declared type of ``prop``."""
        type_text = self.properties.get(prop)
        if type_text is None:
            return None
        if type_text == OBJECT_SENTINEL:
            return PropertyDescriptor(kind=PropertyKind.OBJECT, type_name=type_text)
        if type_text.endswith(ARRAY_MARKER):
            return PropertyDescriptor(
                kind=PropertyKind.ARRAY, type_name=type_text[: -len(ARRAY_MARKER)]
            )
        if type_text in PRIMITIVE_TYPES or not type_text.replace("$", "_").isidentifier():
            return PropertyDescriptor(kind=PropertyKind.PRIMITIVE, type_name=type_text)
        return PropertyDescriptor(kind=PropertyKind.REFERENCE, type_name=type_text)


class TypeRegistry(BaseModel):
    """Name-indexed table of type declarations, immutable once built."""

    model_config = ConfigDict(frozen=True)

    types: dict[str, TypeDefinition] = {}

    @classmethod
    def from_definitions(cls, definitions: list[TypeDefinition]) -> "TypeRegistry":
        types: dict[str, TypeDefinition] = {}
        for definition in definitions:
            if definition.name in types:
                logger.warning("Duplicate type declaration %s ignored", definition.name)
                continue
            types[definition.name] = definition
        return cls(types=types)

    def __contains__(self, name: object) -> bool:
        return name in self.types

    def __len__(self) -> int:
        return len(self.types)

    def names(self) -> list[str]:
        return list(self.types)

    def get(self, name: str | None) -> TypeDefinition | None:
        if name is None:
            return None
        return self.types.get(name)

    def resolve(self, type_name: str | None) -> TypeDefinition | None:
        """Look up a type name, ignoring one trailing array marker."""
        if type_name is None:
            return None
        if type_name.endswith(ARRAY_MARKER):
            type_name = type_name[: -len(ARRAY_MARKER)]
        return self.types.get(type_name)

    def enum_values(self, name: str) -> list[str] | None:
        """Member values of the enum called ``name``, or None if it is not an enum."""
        definition = self.types.get(name)
        if definition is None or definition.kind != TypeKind.ENUM:
            return None
        return list(definition.properties.values())


class TypeOrigin(str, Enum):
    LOCAL = "local"
    IMPORTED = "imported"


class TypeReference(BaseModel):
    """A payload type named at an HTTP call site."""

    name: str
    origin: TypeOrigin = TypeOrigin.LOCAL
    is_array: bool = False

    def __str__(self) -> str:
        return self.name + (ARRAY_MARKER if self.is_array else "")


class CodeEndpoint(BaseModel):
    """An HTTP call site recovered from source code."""

    method: str = "GET"
    path: str  # leading slash stripped, not normalized
    request_body: TypeReference | None = None
    response_body: TypeReference | None = None
    source: str = ""

    @property
    def request_body_type(self) -> str | None:
        return self.request_body.name if self.request_body else None

    @property
    def is_request_body_array(self) -> bool:
        return bool(self.request_body and self.request_body.is_array)

    @property
    def response_body_type(self) -> str | None:
        return self.response_body.name if self.response_body else None

    @property
    def is_response_body_array(self) -> bool:
        return bool(self.response_body and self.response_body.is_array)


class ContractEndpoint(BaseModel):
    """An example request/response pair from the API contract."""

    name: str
    method: str  # GET / POST / PUT / DELETE / PATCH
    path: str
    request_body: Any = None
    response_body: Any = None


class LintErrorKind(str, Enum):
    MISSING_REQUEST_TYPE = "MissingRequestType"
    MISSING_RESPONSE_TYPE = "MissingResponseType"
    MISSING_PROPERTY = "MissingProperty"
    EXTRA_PROPERTY = "ExtraProperty"
    INVALID_ENUM_VALUE = "InvalidEnumValue"
    TYPE_MISMATCH = "TypeMismatch"
    REFERENCED_TYPE_NOT_FOUND = "ReferencedTypeNotFound"
    ENDPOINT_MISSING_IN_CONTRACT = "EndpointMissingInContract"
    ENDPOINT_MISSING_IN_CODE = "EndpointMissingInCode"


class MismatchKind(str, Enum):
    SCALAR = "scalar"
    ARRAY = "array"
    OBJECT = "object"


class LintError(BaseModel):
    """A single discrepancy between contract and code."""

    kind: LintErrorKind
    message: str
    endpoint: str = ""
    mismatch: MismatchKind | None = None

    def __str__(self) -> str:
        return self.message
