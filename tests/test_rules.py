import pytest

from api_contract_linter.linter.rules import describe_shape, find_matching_endpoint, lint_endpoints, runtime_type
from api_contract_linter.parser.base import (
    CodeEndpoint,
    ContractEndpoint,
    LintErrorKind,
    MismatchKind,
    TypeDefinition,
    TypeKind,
    TypeReference,
    TypeRegistry,
)

SIGN_IN_BODY = {"email": "user@example.com", "password": "password123", "stay_logged_in": True}


def _contract(name="Sign In", method="POST", path="auth/signin", request_body=None, response_body=None):
    return ContractEndpoint(
        name=name, method=method, path=path, request_body=request_body, response_body=response_body
    )


def _code(method="POST", path="auth/signin", request=None, response=None):
    return CodeEndpoint(
        method=method,
        path=path,
        request_body=TypeReference(name=request) if request else None,
        response_body=TypeReference(name=response) if response else None,
    )


def _types(*definitions):
    return TypeRegistry.from_definitions(list(definitions))


def _interface(name, **properties):
    return TypeDefinition(name=name, kind=TypeKind.INTERFACE, properties=properties)


def _kinds(errors):
    return [e.kind for e in errors]


class TestMatching:
    def test_matches_on_method_and_normalized_path(self):
        code = [_code("GET", "users/"), _code("GET", "/users/:id")]
        assert find_matching_endpoint(code, "GET", "users") is code[0]
        assert find_matching_endpoint(code, "POST", "users") is None

    def test_first_match_is_used(self):
        types = _types(_interface("Good", email="string"))
        code = [_code(request="Good"), _code(request="Missing")]
        errors = lint_endpoints([_contract(request_body={"email": "a"})], code, types)
        assert errors == []

    def test_method_is_case_sensitive(self):
        errors = lint_endpoints([_contract(method="POST")], [_code(method="post")], _types())
        assert _kinds(errors) == [
            LintErrorKind.ENDPOINT_MISSING_IN_CONTRACT,
            LintErrorKind.ENDPOINT_MISSING_IN_CODE,
        ]

    def test_none_inputs_rejected(self):
        with pytest.raises(ValueError):
            lint_endpoints(None, [], _types())
        with pytest.raises(ValueError):
            lint_endpoints([], None, _types())
        with pytest.raises(ValueError):
            lint_endpoints([], [], None)


class TestBodies:
    def test_no_discrepancy_gives_empty_output(self):
        types = _types(_interface("SignInRequestBody", email="string", password="string", stay_logged_in="boolean"))
        errors = lint_endpoints(
            [_contract(request_body=SIGN_IN_BODY)],
            [_code(request="SignInRequestBody")],
            types,
        )
        assert errors == []

    def test_missing_and_extra_properties(self):
        types = _types(_interface("SignInRequestBody", emails="string", password="string"))
        errors = lint_endpoints(
            [_contract(request_body=SIGN_IN_BODY)],
            [_code(request="SignInRequestBody")],
            types,
        )
        missing = [e for e in errors if e.kind == LintErrorKind.MISSING_PROPERTY]
        extra = [e for e in errors if e.kind == LintErrorKind.EXTRA_PROPERTY]
        assert len(missing) == 1
        assert len(extra) == 1
        assert str(missing[0]) == (
            "Missing properties in request body for endpoint Sign In: emails. "
            "Expected properties: emails, password"
        )
        assert str(extra[0]) == (
            "Extra properties in request body for endpoint Sign In: email, stay_logged_in. "
            "Expected properties: emails, password"
        )

    def test_missing_request_type(self):
        errors = lint_endpoints([_contract(request_body=SIGN_IN_BODY)], [_code(request="Nope")], _types())
        assert _kinds(errors) == [LintErrorKind.MISSING_REQUEST_TYPE]
        assert str(errors[0]) == "No matching request type definition found for endpoint: Sign In"

    def test_missing_response_type_when_code_declares_none(self):
        errors = lint_endpoints([_contract(response_body={"id": "1"})], [_code()], _types())
        assert _kinds(errors) == [LintErrorKind.MISSING_RESPONSE_TYPE]
        assert str(errors[0]) == "No matching response type definition found for endpoint: Sign In"

    def test_bodies_not_in_contract_are_not_checked(self):
        errors = lint_endpoints([_contract()], [_code(request="Nope", response="Nope")], _types())
        assert errors == []

    def test_array_response_uses_first_object(self):
        types = _types(_interface("User", id="string"))
        errors = lint_endpoints(
            [_contract(method="GET", path="users", response_body=[{"id": 1}, {"id": "2"}])],
            [_code(method="GET", path="users", response="User")],
            types,
        )
        assert _kinds(errors) == [LintErrorKind.TYPE_MISMATCH]

    def test_scalar_body_skips_property_checks(self):
        types = _types(_interface("Count", total="number"))
        errors = lint_endpoints(
            [_contract(method="GET", path="count", response_body=5)],
            [_code(method="GET", path="count", response="Count")],
            types,
        )
        assert errors == []


class TestPropertyTypes:
    def _lint(self, declared, value, *extra_types):
        types = _types(_interface("Body", field=declared), *extra_types)
        return lint_endpoints(
            [_contract(request_body={"field": value})],
            [_code(request="Body")],
            types,
        )

    def test_scalar_mismatch_shows_both_sides(self):
        errors = self._lint("number", "5")
        assert _kinds(errors) == [LintErrorKind.TYPE_MISMATCH]
        assert errors[0].mismatch == MismatchKind.SCALAR
        assert "Expected type: number, Actual type: string" in str(errors[0])

    def test_scalar_match(self):
        assert self._lint("boolean", False) == []
        assert self._lint("number", 1.5) == []

    def test_union_declarations_compare_verbatim(self):
        errors = self._lint("string | null", "x")
        assert errors[0].mismatch == MismatchKind.SCALAR

    def test_any_accepts_everything(self):
        assert self._lint("any", 1) == []
        assert self._lint("unknown", {"a": 1}) == []

    def test_invalid_enum_value(self):
        role = TypeDefinition(name="Role", kind=TypeKind.ENUM, properties={"Admin": "admin", "User": "user"})
        errors = self._lint("Role", "superadmin", role)
        assert _kinds(errors) == [LintErrorKind.INVALID_ENUM_VALUE]
        assert "Expected one of admin, user, but got: superadmin" in str(errors[0])

    def test_valid_enum_value(self):
        role = TypeDefinition(name="Role", kind=TypeKind.ENUM, properties={"Admin": "admin", "User": "user"})
        assert self._lint("Role", "user", role) == []

    def test_numeric_enum_value(self):
        level = TypeDefinition(name="Level", kind=TypeKind.ENUM, properties={"Low": "0", "High": "1"})
        assert self._lint("Level", 1, level) == []
        assert _kinds(self._lint("Level", 7, level)) == [LintErrorKind.INVALID_ENUM_VALUE]

    def test_array_element_type_mismatch(self):
        errors = self._lint("string[]", [1, 2, 3])
        assert _kinds(errors) == [LintErrorKind.TYPE_MISMATCH]
        assert errors[0].mismatch == MismatchKind.ARRAY
        assert "Expected an array of string, but got: an array of number" in str(errors[0])

    def test_mixed_array(self):
        errors = self._lint("number[]", [1, "2"])
        assert errors[0].mismatch == MismatchKind.ARRAY
        assert "an array of number | string" in str(errors[0])

    def test_array_matches(self):
        assert self._lint("string[]", ["a", "b"]) == []
        assert self._lint("string[]", []) == []
        assert self._lint("any[]", [1, "a"]) == []

    def test_array_against_non_array_declaration(self):
        errors = self._lint("string", ["a"])
        assert errors[0].mismatch == MismatchKind.ARRAY
        assert "Expected an array, but got: string" in str(errors[0])

    def test_array_of_unknown_reference(self):
        errors = self._lint("Tag[]", [{"id": 1}])
        assert _kinds(errors) == [LintErrorKind.REFERENCED_TYPE_NOT_FOUND]
        assert "Referenced type 'Tag' not found" in str(errors[0])

    def test_array_of_known_reference(self):
        assert self._lint("Tag[]", [{"id": 1}], _interface("Tag", id="number")) == []

    def test_object_against_inline_sentinel(self):
        assert self._lint("object", {"en": "x"}) == []

    def test_object_against_known_reference(self):
        assert self._lint("Preference", {"theme": "dark"}, _interface("Preference", theme="string")) == []

    def test_object_against_dollar_named_reference(self):
        assert self._lint("$Settings", {"theme": "dark"}, _interface("$Settings", theme="string")) == []

    def test_enum_array_elements_resolve_as_reference(self):
        role = TypeDefinition(name="Role", kind=TypeKind.ENUM, properties={"Admin": "admin"})
        assert self._lint("Role[]", ["admin"], role) == []

    def test_object_against_unknown_reference(self):
        errors = self._lint("Preference", {"theme": "dark"})
        assert errors[0].mismatch == MismatchKind.OBJECT
        assert "Expected an object, but got: Preference" in str(errors[0])

    def test_null_value(self):
        errors = self._lint("string", None)
        assert "Actual type: null" in str(errors[0])

    def test_absent_example_value_is_not_a_mismatch(self):
        types = _types(_interface("Body", email="string", age="number"))
        errors = lint_endpoints(
            [_contract(request_body={"email": "a"})],
            [_code(request="Body")],
            types,
        )
        assert LintErrorKind.TYPE_MISMATCH not in _kinds(errors)
        assert _kinds(errors) == [LintErrorKind.MISSING_PROPERTY]


class TestUnmatchedEndpoints:
    def test_unmatched_endpoint_symmetry(self):
        types = _types(_interface("SignInRequestBody", email="string", password="string", stay_logged_in="boolean"))
        contract = [
            _contract(request_body=SIGN_IN_BODY),
            _contract(name="Delete Widget", method="DELETE", path="/widgets/:id"),
        ]
        code = [_code(request="SignInRequestBody"), _code(method="GET", path="health")]
        errors = lint_endpoints(contract, code, types)
        assert _kinds(errors) == [
            LintErrorKind.ENDPOINT_MISSING_IN_CONTRACT,
            LintErrorKind.ENDPOINT_MISSING_IN_CODE,
        ]
        assert str(errors[0]) == "Endpoint found in code but not defined in contract: GET health"
        assert str(errors[1]) == "Endpoint defined in contract but not found in code: DELETE /widgets/:id"

    def test_missing_in_code_lists_body_shapes(self):
        contract = [
            _contract(
                name="Create",
                method="POST",
                path="items",
                request_body={"name": "x", "tags": [], "meta": {}, "count": 1, "ok": True, "gone": None},
                response_body={"id": "1"},
            )
        ]
        errors = lint_endpoints(contract, [], _types())
        assert str(errors[0]) == (
            "Endpoint defined in contract but not found in code: POST items"
            " with expected request body: { name: string, tags: array, meta: object,"
            " count: number, ok: boolean, gone: null }"
            " and expected response body: { id: string }"
        )

    def test_errors_are_ordered(self):
        types = _types(_interface("Body", a="string"))
        contract = [
            _contract(name="Only In Contract", method="GET", path="a"),
            _contract(request_body={"a": 1}),
        ]
        code = [_code(method="GET", path="b"), _code(request="Body")]
        errors = lint_endpoints(contract, code, types)
        assert _kinds(errors) == [
            LintErrorKind.TYPE_MISMATCH,
            LintErrorKind.ENDPOINT_MISSING_IN_CONTRACT,
            LintErrorKind.ENDPOINT_MISSING_IN_CODE,
        ]


class TestHelpers:
    def test_runtime_type(self):
        assert runtime_type(True) == "boolean"
        assert runtime_type(3) == "number"
        assert runtime_type(3.5) == "number"
        assert runtime_type("x") == "string"
        assert runtime_type(None) == "null"
        assert runtime_type([]) == "array"
        assert runtime_type({}) == "object"

    def test_describe_shape_ignores_non_objects(self):
        assert describe_shape([1, 2]) == ""
        assert describe_shape(None) == ""
