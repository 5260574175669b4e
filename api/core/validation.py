"""
JSON Schema validation of form payloads.

Thin wrapper over `jsonschema`: the draft is taken from the schema's
`$schema` (Draft 2020-12 when absent) and `format` is enforced. Every
error is collected so a client can fix all fields in one round trip.

A schema is only accepted if every `$ref` in it resolves, either inside
the schema itself or to one of the bundled JSON Schema meta-schemas.
Nothing is fetched over the network.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from jsonschema import Draft202012Validator, exceptions, validators
from jsonschema_specifications import REGISTRY as SPECIFICATIONS
from referencing import Resource
from referencing.exceptions import Unresolvable
from referencing.jsonschema import DRAFT202012

# Keywords whose values are instance data, not subschemas.
_DATA_KEYWORDS = frozenset({"const", "default", "enum", "examples"})


@dataclass(frozen=True)
class FieldError:
    path: str
    message: str
    keyword: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class ValidationResult:
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def error_dicts(self) -> list[dict[str, str]]:
        return [e.to_dict() for e in self.errors]


class SchemaDocumentError(ValueError):
    """The form definition's schema is not itself a valid JSON Schema."""


def _validator_class(schema: dict[str, Any]):
    return validators.validator_for(schema, default=Draft202012Validator)


def check_schema(schema: dict[str, Any]) -> None:
    if not isinstance(schema, dict):
        raise SchemaDocumentError("Schema must be a JSON object.")
    cls = _validator_class(schema)
    try:
        cls.check_schema(schema)
    except exceptions.SchemaError as exc:
        where = _join_path(exc.path)
        raise SchemaDocumentError(f"{where or 'schema'}: {exc.message}") from exc
    _check_refs(schema)


def _join_path(parts) -> str:
    return ".".join(str(p) for p in parts)


def _check_refs(schema: dict[str, Any]) -> None:
    resource = Resource.from_contents(schema, default_specification=DRAFT202012)
    base_uri = resource.id() or ""
    registry = SPECIFICATIONS.with_resource(uri=base_uri, resource=resource)
    _walk_refs(schema, resource._specification, registry.resolver(base_uri=base_uri), [])


def _walk_refs(node: Any, specification, resolver, path: list) -> None:
    if isinstance(node, list):
        for index, item in enumerate(node):
            _walk_refs(item, specification, resolver, path + [index])
        return
    if not isinstance(node, dict):
        return

    # A nested `$id` moves the base URI that relative refs resolve against.
    if path and isinstance(specification.id_of(node), str):
        resolver = resolver.in_subresource(specification.create_resource(node))

    ref = node.get("$ref")
    if isinstance(ref, str):
        try:
            resolver.lookup(ref)
        except Unresolvable as exc:
            where = _join_path(path)
            raise SchemaDocumentError(f"{where or 'schema'}: $ref {ref!r} cannot be resolved") from exc

    for key, value in node.items():
        if key not in _DATA_KEYWORDS:
            _walk_refs(value, specification, resolver, path + [key])


def _missing_property(error: exceptions.ValidationError) -> str | None:
    # jsonschema reports one `required` error per missing property but keeps
    # the path at the parent object; recover the property name.
    if error.validator != "required" or not isinstance(error.instance, dict):
        return None
    for name in error.validator_value or []:
        if name not in error.instance and error.message == f"{name!r} is a required property":
            return str(name)
    return None


def _to_field_error(error: exceptions.ValidationError) -> FieldError:
    parts = list(error.absolute_path)
    missing = _missing_property(error)
    if missing is not None:
        parts.append(missing)
    return FieldError(
        path=_join_path(parts),
        message=error.message,
        keyword=str(error.validator),
    )


def validate(schema: dict[str, Any], payload: Any) -> ValidationResult:
    cls = _validator_class(schema)
    validator = cls(schema, format_checker=cls.FORMAT_CHECKER)
    try:
        errors = [_to_field_error(e) for e in validator.iter_errors(payload)]
    except Unresolvable as exc:
        # Only reachable for schemas stored before refs were checked on write.
        raise SchemaDocumentError(f"$ref cannot be resolved: {exc}") from exc
    errors.sort(key=lambda e: (e.path, e.keyword, e.message))
    return ValidationResult(errors=errors)
