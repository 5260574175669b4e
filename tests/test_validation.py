# =============================================================================
# tests/test_validation.py - JSON Schema validation of payloads
# =============================================================================

import pytest

from core import validation


SIGNUP_SCHEMA = {
    "type": "object",
    "required": ["name", "email", "age"],
    "properties": {
        "name": {"type": "string", "minLength": 2},
        "email": {"type": "string", "format": "email"},
        "age": {"type": "integer", "minimum": 18, "maximum": 120},
        "plan": {"enum": ["free", "pro"]},
        "zip": {"type": "string", "pattern": "^[0-9]{5}$"},
        "address": {
            "type": "object",
            "required": ["city"],
            "properties": {"city": {"type": "string"}},
        },
        "tags": {"type": "array", "items": {"type": "string"}},
    },
}


class TestValidPayloads:

    def test_contact_payload_passes(self, contact_schema):
        result = validation.validate(contact_schema, {"email": "a@b.com"})

        assert result.ok
        assert result.errors == []

    def test_full_signup_payload_passes(self):
        payload = {
            "name": "Ada",
            "email": "ada@example.com",
            "age": 36,
            "plan": "pro",
            "zip": "12345",
            "address": {"city": "London"},
            "tags": ["math", "engines"],
        }

        assert validation.validate(SIGNUP_SCHEMA, payload).ok


class TestInvalidPayloads:

    def test_format_error_on_email(self, contact_schema):
        result = validation.validate(contact_schema, {"email": "not-an-email"})

        assert not result.ok
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.path == "email"
        assert error.keyword == "format"

    def test_missing_required_field_is_reported_by_its_path(self, contact_schema):
        result = validation.validate(contact_schema, {})

        assert not result.ok
        assert [(e.path, e.keyword) for e in result.errors] == [("email", "required")]
        assert "email" in result.errors[0].message

    def test_every_error_is_reported(self):
        payload = {
            "name": "A",
            "age": 12,
            "plan": "enterprise",
            "zip": "abc",
            "tags": ["ok", 3],
        }

        result = validation.validate(SIGNUP_SCHEMA, payload)

        found = {(e.path, e.keyword) for e in result.errors}
        assert found == {
            ("email", "required"),
            ("name", "minLength"),
            ("age", "minimum"),
            ("plan", "enum"),
            ("zip", "pattern"),
            ("tags.1", "type"),
        }

    def test_nested_required_field_path(self):
        payload = {"name": "Ada", "email": "ada@example.com", "age": 40, "address": {}}

        result = validation.validate(SIGNUP_SCHEMA, payload)

        assert [e.path for e in result.errors] == ["address.city"]

    def test_several_missing_fields_each_get_their_own_path(self):
        result = validation.validate(SIGNUP_SCHEMA, {})

        assert [e.path for e in result.errors] == ["age", "email", "name"]

    def test_type_mismatch_at_root(self, contact_schema):
        result = validation.validate(contact_schema, ["not", "an", "object"])

        assert [(e.path, e.keyword) for e in result.errors] == [("", "type")]

    def test_error_dicts_are_json_ready(self, contact_schema):
        result = validation.validate(contact_schema, {"email": "nope"})

        assert result.error_dicts() == [
            {"path": "email", "message": result.errors[0].message, "keyword": "format"}
        ]


class TestSchemaDrafts:

    def test_draft7_schema_is_honoured(self):
        schema = {
            "$schema": "http://json-schema.org/draft-07/schema#",
            "type": "object",
            "properties": {"n": {"type": "number", "exclusiveMaximum": 10}},
        }

        assert validation.validate(schema, {"n": 9}).ok
        assert not validation.validate(schema, {"n": 10}).ok


class TestCheckSchema:

    def test_valid_schema_passes(self, contact_schema):
        validation.check_schema(contact_schema)

    def test_bad_type_keyword_is_rejected(self):
        with pytest.raises(validation.SchemaDocumentError):
            validation.check_schema({"type": "strnig"})

    def test_non_object_schema_is_rejected(self):
        with pytest.raises(validation.SchemaDocumentError):
            validation.check_schema(["type", "object"])

    def test_local_refs_pass(self):
        schema = {
            "$defs": {"email": {"type": "string", "format": "email"}},
            "type": "object",
            "properties": {
                "email": {"$ref": "#/$defs/email"},
                "backup": {"$ref": "#/properties/email"},
            },
        }

        validation.check_schema(schema)

    def test_ref_inside_nested_id_resolves_against_it(self):
        schema = {
            "$id": "https://forms.handl.test/root.json",
            "properties": {
                "address": {
                    "$id": "address.json",
                    "$defs": {"city": {"type": "string"}},
                    "properties": {"city": {"$ref": "#/$defs/city"}},
                },
            },
        }

        validation.check_schema(schema)

    def test_dangling_ref_is_rejected(self):
        schema = {"properties": {"email": {"$ref": "#/$defs/missing"}}}

        with pytest.raises(validation.SchemaDocumentError) as exc_info:
            validation.check_schema(schema)

        assert "properties.email" in str(exc_info.value)

    def test_remote_ref_is_rejected(self):
        schema = {"properties": {"email": {"$ref": "https://schemas.handl.test/email.json"}}}

        with pytest.raises(validation.SchemaDocumentError):
            validation.check_schema(schema)

    def test_ref_shaped_enum_value_is_data(self):
        schema = {"enum": [{"$ref": "#/nowhere"}]}

        validation.check_schema(schema)


class TestUnusableStoredSchema:

    def test_dangling_ref_raises_schema_error_not_a_crash(self):
        schema = {"properties": {"email": {"$ref": "#/$defs/missing"}}}

        with pytest.raises(validation.SchemaDocumentError):
            validation.validate(schema, {"email": "a@b.com"})
