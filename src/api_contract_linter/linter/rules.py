"""Lint rules comparing contract endpoints with the endpoints found in code.

Endpoints are matched by method and normalized path. Matched pairs get their
example bodies diffed against the declared payload types; unmatched endpoints
on either side are reported. Every rule returns its own list of errors and
nothing stops early, so one run reports every discrepancy it can find.
"""

from typing import Any

from api_contract_linter.parser.base import (
    PRIMITIVE_TYPES,
    CodeEndpoint,
    ContractEndpoint,
    LintError,
    LintErrorKind,
    MismatchKind,
    PropertyDescriptor,
    PropertyKind,
    TypeDefinition,
    TypeReference,
    TypeRegistry,
)
from api_contract_linter.paths import normalize_path

ANY_TYPES = ("any", "unknown")


def lint_endpoints(
    contract: list[ContractEndpoint] | None,
    code: list[CodeEndpoint] | None,
    types: TypeRegistry | None,
) -> list[LintError]:
    """Compare contract endpoints with code endpoints and return every discrepancy."""
    if contract is None or code is None or types is None:
        raise ValueError("contract, code and types must all be provided")

    errors: list[LintError] = []
    for definition in contract:
        match = find_matching_endpoint(code, definition.method, definition.path)
        if match is None:
            continue
        errors += lint_body(definition, "request", definition.request_body, match.request_body, types)
        errors += lint_body(definition, "response", definition.response_body, match.response_body, types)

    errors += lint_endpoints_missing_in_contract(contract, code)
    errors += lint_endpoints_missing_in_code(contract, code)
    return errors


def find_matching_endpoint(code: list[CodeEndpoint], method: str, path: str) -> CodeEndpoint | None:
    """First code endpoint with the same method and normalized path."""
    normalized = normalize_path(path)
    for endpoint in code:
        if endpoint.method == method and normalize_path(endpoint.path) == normalized:
            return endpoint
    return None


def lint_body(
    definition: ContractEndpoint,
    body_type: str,
    example: Any,
    reference: TypeReference | None,
    types: TypeRegistry,
) -> list[LintError]:
    """Diff one example body against the type declared for it in code."""
    if example is None:
        return []

    matching_type = types.resolve(reference.name if reference else None)
    if matching_type is None:
        kind = (
            LintErrorKind.MISSING_REQUEST_TYPE
            if body_type == "request"
            else LintErrorKind.MISSING_RESPONSE_TYPE
        )
        return [
            LintError(
                kind=kind,
                endpoint=definition.name,
                message=f"No matching {body_type} type definition found for endpoint: {definition.name}",
            )
        ]

    sample = _sample_object(example)
    if sample is None:
        return []

    expected = list(matching_type.properties)
    actual = list(sample)
    return (
        lint_missing_properties(definition.name, expected, actual, body_type)
        + lint_extra_properties(definition.name, expected, actual, body_type)
        + lint_property_types(definition.name, sample, matching_type, types, body_type)
    )


def _sample_object(example: Any) -> dict | None:
    if isinstance(example, dict):
        return example
    if isinstance(example, list):
        return next((item for item in example if isinstance(item, dict)), None)
    return None


def lint_missing_properties(
    endpoint_name: str, expected: list[str], actual: list[str], body_type: str
) -> list[LintError]:
    missing = [prop for prop in expected if prop not in actual]
    if not missing:
        return []
    return [
        LintError(
            kind=LintErrorKind.MISSING_PROPERTY,
            endpoint=endpoint_name,
            message=(
                f"Missing properties in {body_type} body for endpoint {endpoint_name}: "
                f"{', '.join(missing)}. Expected properties: {', '.join(expected)}"
            ),
        )
    ]


def lint_extra_properties(
    endpoint_name: str, expected: list[str], actual: list[str], body_type: str
) -> list[LintError]:
    extra = [prop for prop in actual if prop not in expected]
    if not extra:
        return []
    return [
        LintError(
            kind=LintErrorKind.EXTRA_PROPERTY,
            endpoint=endpoint_name,
            message=(
                f"Extra properties in {body_type} body for endpoint {endpoint_name}: "
                f"{', '.join(extra)}. Expected properties: {', '.join(expected)}"
            ),
        )
    ]


def lint_property_types(
    endpoint_name: str,
    example: dict,
    matching_type: TypeDefinition,
    types: TypeRegistry,
    body_type: str,
) -> list[LintError]:
    """Check each declared property against the example value, when there is one."""
    errors: list[LintError] = []
    for prop in matching_type.properties:
        if prop not in example:
            # Absent example values carry no opinion.
            continue
        where = f"'{prop}' in {body_type} body for endpoint {endpoint_name}"
        errors += _lint_value(endpoint_name, where, example[prop], matching_type.describe(prop), types)
    return errors


def _lint_value(
    endpoint_name: str, where: str, value: Any, declared: PropertyDescriptor, types: TypeRegistry
) -> list[LintError]:
    if declared.kind == PropertyKind.REFERENCE:
        enum_values = types.enum_values(declared.type_name)
        if enum_values is not None:
            return _lint_enum(endpoint_name, where, value, enum_values)
    if declared.kind == PropertyKind.PRIMITIVE and declared.type_name in ANY_TYPES:
        return []
    if isinstance(value, list):
        return _lint_array(endpoint_name, where, value, declared, types)
    if isinstance(value, dict):
        if declared.kind == PropertyKind.OBJECT:
            return []
        if declared.kind == PropertyKind.REFERENCE and types.get(declared.type_name) is not None:
            return []
        return [
            _mismatch(
                endpoint_name,
                MismatchKind.OBJECT,
                f"Type mismatch for property {where}. Expected an object, but got: {declared.declared}",
            )
        ]

    actual = runtime_type(value)
    if actual != declared.declared:
        return [
            _mismatch(
                endpoint_name,
                MismatchKind.SCALAR,
                f"Type mismatch for property {where}. Expected type: {declared.declared}, Actual type: {actual}",
            )
        ]
    return []


def _lint_enum(endpoint_name: str, where: str, value: Any, enum_values: list[str]) -> list[LintError]:
    if isinstance(value, str):
        candidate = value
    elif runtime_type(value) == "number":
        candidate = _number_text(value)
    else:
        return []
    if candidate in enum_values:
        return []
    return [
        LintError(
            kind=LintErrorKind.INVALID_ENUM_VALUE,
            endpoint=endpoint_name,
            message=(
                f"Invalid enum value for property {where}. "
                f"Expected one of {', '.join(enum_values)}, but got: {value}"
            ),
        )
    ]


def _lint_array(
    endpoint_name: str, where: str, value: list, declared: PropertyDescriptor, types: TypeRegistry
) -> list[LintError]:
    if declared.kind != PropertyKind.ARRAY:
        return [
            _mismatch(
                endpoint_name,
                MismatchKind.ARRAY,
                f"Type mismatch for property {where}. Expected an array, but got: {declared.declared}",
            )
        ]

    base_type = declared.type_name
    if base_type in PRIMITIVE_TYPES:
        if base_type in ANY_TYPES or not value:
            return []
        item_types = sorted({runtime_type(item) for item in value})
        if item_types != [base_type]:
            return [
                _mismatch(
                    endpoint_name,
                    MismatchKind.ARRAY,
                    f"Type mismatch for array property {where}. "
                    f"Expected an array of {base_type}, but got: an array of {' | '.join(item_types)}",
                )
            ]
        return []

    if types.resolve(base_type) is None:
        return [
            LintError(
                kind=LintErrorKind.REFERENCED_TYPE_NOT_FOUND,
                endpoint=endpoint_name,
                message=f"Referenced type '{base_type}' not found for property {where}.",
            )
        ]
    return []


def _mismatch(endpoint_name: str, mismatch: MismatchKind, message: str) -> LintError:
    return LintError(
        kind=LintErrorKind.TYPE_MISMATCH,
        mismatch=mismatch,
        endpoint=endpoint_name,
        message=message,
    )


def runtime_type(value: Any) -> str:
    """JSON value kind named the way TypeScript spells primitive types."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def _number_text(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def lint_endpoints_missing_in_contract(
    contract: list[ContractEndpoint], code: list[CodeEndpoint]
) -> list[LintError]:
    """Code endpoints that no contract endpoint matches."""
    errors = []
    for endpoint in code:
        normalized = normalize_path(endpoint.path)
        if any(d.method == endpoint.method and normalize_path(d.path) == normalized for d in contract):
            continue
        errors.append(
            LintError(
                kind=LintErrorKind.ENDPOINT_MISSING_IN_CONTRACT,
                endpoint=f"{endpoint.method} {endpoint.path}",
                message=f"Endpoint found in code but not defined in contract: {endpoint.method} {endpoint.path}",
            )
        )
    return errors


def lint_endpoints_missing_in_code(
    contract: list[ContractEndpoint], code: list[CodeEndpoint]
) -> list[LintError]:
    """Contract endpoints that no code endpoint matches, with their example shapes."""
    errors = []
    for definition in contract:
        if find_matching_endpoint(code, definition.method, definition.path) is not None:
            continue
        details = ""
        request_shape = describe_shape(definition.request_body)
        if request_shape:
            details += f" with expected request body: {{ {request_shape} }}"
        response_shape = describe_shape(definition.response_body)
        if response_shape:
            details += f" and expected response body: {{ {response_shape} }}"
        errors.append(
            LintError(
                kind=LintErrorKind.ENDPOINT_MISSING_IN_CODE,
                endpoint=definition.name,
                message=(
                    f"Endpoint defined in contract but not found in code: "
                    f"{definition.method} {definition.path}{details}"
                ),
            )
        )
    return errors


def describe_shape(body: Any) -> str:
    """``key: kind`` summary of an example object, empty for anything else."""
    if not isinstance(body, dict):
        return ""
    return ", ".join(f"{key}: {runtime_type(value)}" for key, value in body.items())
