"""Validation and normalization of records against their rule tables."""
import copy
import logging
import math
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from jsonschema import Draft7Validator, FormatChecker
from jsonschema.validators import extend

from error_handler import ValidationFailedError
from schemas import ENTITY_SCHEMAS

logger = logging.getLogger(__name__)

format_checker = FormatChecker(formats=())


def _is_finite_number(checker, instance) -> bool:
    # NaN and Infinity are not numbers for range-checked fields
    return Draft7Validator.TYPE_CHECKER.is_type(instance, "number") and math.isfinite(instance)


def _is_finite_integer(checker, instance) -> bool:
    return _is_finite_number(checker, instance) and Draft7Validator.TYPE_CHECKER.is_type(instance, "integer")


RecordSchemaValidator = extend(
    Draft7Validator,
    type_checker=Draft7Validator.TYPE_CHECKER.redefine_many({
        "number": _is_finite_number,
        "integer": _is_finite_integer,
    }),
)

_BOOLEAN_STRINGS = {"true": True, "false": False}


def parse_datetime(value: str) -> datetime:
    """
    Parse an ISO-8601 date or date-time string into a naive UTC datetime.

    Raises:
        ValueError: If the string is not ISO-8601
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return to_naive_utc(datetime.fromisoformat(value))


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


@format_checker.checks("date-time", raises=ValueError)
def _is_date_time(value: Any) -> bool:
    if isinstance(value, str):
        parse_datetime(value)
    return True


def _coerce(schema: Dict[str, Any], value: Any) -> Any:
    """Drop nulls and undeclared keys, trim strings and cast scalars to their declared type."""
    declared = schema.get("type")

    if declared == "object" and isinstance(value, dict):
        properties = schema.get("properties")
        result = {}
        for key, item in value.items():
            if item is None:
                continue
            if properties is None:
                # Free-form map (e.g. notification payload data)
                result[key] = copy.deepcopy(item)
            elif key in properties:
                result[key] = _coerce(properties[key], item)
        return result

    if declared == "array" and isinstance(value, list):
        items = schema.get("items", {})
        return [_coerce(items, item) for item in value]

    if declared == "string":
        if isinstance(value, datetime):
            return to_naive_utc(value).isoformat()
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, str) and schema.get("trim"):
            return value.strip()
        return value

    if declared in ("number", "integer") and isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            # Left as-is so the type check reports it
            return value

    if declared == "boolean" and isinstance(value, str):
        return _BOOLEAN_STRINGS.get(value.strip().lower(), value)

    return value


def _has_defaults(schema: Dict[str, Any]) -> bool:
    for sub in (schema.get("properties") or {}).values():
        if "default" in sub:
            return True
        if sub.get("type") == "object" and _has_defaults(sub):
            return True
    return False


def _apply_defaults(schema: Dict[str, Any], document: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fill absent optional fields with their declared defaults.

    An absent nested object is created only when one of its children
    carries a default; otherwise it stays absent.
    """
    for key, sub in (schema.get("properties") or {}).items():
        declared = sub.get("type")
        if key not in document:
            if "default" in sub:
                document[key] = copy.deepcopy(sub["default"])
            elif declared == "object" and _has_defaults(sub):
                document[key] = _apply_defaults(sub, {})
        elif declared == "object" and isinstance(document[key], dict):
            _apply_defaults(sub, document[key])
        elif declared == "array" and isinstance(document[key], list):
            items = sub.get("items", {})
            if items.get("type") == "object":
                for element in document[key]:
                    if isinstance(element, dict):
                        _apply_defaults(items, element)
    return document


def _merge(schema: Dict[str, Any], current: Dict[str, Any], partial: Dict[str, Any]) -> Dict[str, Any]:
    """Deep-merge a partial update into a stored record. Arrays and free-form maps are replaced."""
    merged = copy.deepcopy(current)
    properties = schema.get("properties") or {}
    for key, value in partial.items():
        if value is None:
            continue
        sub = properties.get(key, {})
        if (
            isinstance(value, dict)
            and isinstance(merged.get(key), dict)
            and sub.get("properties") is not None
        ):
            merged[key] = _merge(sub, merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _hydrate(schema: Dict[str, Any], value: Any) -> Any:
    """Turn date-time strings into naive UTC datetimes, following the schema."""
    if isinstance(value, dict):
        properties = schema.get("properties")
        if properties is None:
            return value
        return {
            key: _hydrate(properties[key], item) if key in properties else item
            for key, item in value.items()
        }
    if isinstance(value, list):
        items = schema.get("items", {})
        return [_hydrate(items, item) for item in value]
    if schema.get("format") == "date-time":
        if isinstance(value, str):
            return parse_datetime(value)
        if isinstance(value, datetime):
            return to_naive_utc(value)
    return value


def _add_error(errors: Dict[str, List[str]], path: str, message: str) -> None:
    messages = errors.setdefault(path, [])
    if message not in messages:
        messages.append(message)


class RecordValidator:
    """
    Validates records of every kind against their rule tables.

    One generic traversal interprets the JSON Schema documents in
    ``schemas.ENTITY_SCHEMAS``; per-field checks are never hand-written.
    """

    def __init__(self, schemas: Optional[Dict[str, Dict[str, Any]]] = None):
        """
        Initialize validator.

        Args:
            schemas: Rule tables keyed by record kind (defaults to the built-in ones)
        """
        self._schemas = schemas if schemas is not None else ENTITY_SCHEMAS
        self._validators: Dict[str, Draft7Validator] = {}
        for kind, schema in self._schemas.items():
            Draft7Validator.check_schema(schema)
            self._validators[kind] = RecordSchemaValidator(schema, format_checker=format_checker)

    @property
    def kinds(self) -> List[str]:
        return list(self._schemas)

    def schema_for(self, kind: str) -> Dict[str, Any]:
        try:
            return self._schemas[kind]
        except KeyError:
            raise ValueError(f"Unknown record kind: {kind}") from None

    def validate(self, kind: str, record: Any, apply_defaults: bool = True) -> Dict[str, Any]:
        """
        Normalize a candidate record or reject it.

        Args:
            kind: Record kind (e.g. "Pump")
            record: Untyped key-value map
            apply_defaults: Fill absent optional fields (creation only)

        Returns:
            The normalized record

        Raises:
            ValidationFailedError: Carrying every violated field path
        """
        schema = self.schema_for(kind)
        if not isinstance(record, dict):
            raise ValidationFailedError({"record": ["Record must be an object"]}, kind)

        document = _coerce(schema, record)
        if apply_defaults:
            _apply_defaults(schema, document)

        errors = self._collect_errors(kind, document)
        if errors:
            logger.debug(f"{kind} validation failed: {errors}")
            raise ValidationFailedError(errors, kind)

        return _hydrate(schema, document)

    def validate_update(
        self,
        kind: str,
        current: Dict[str, Any],
        partial: Any,
    ) -> Dict[str, Any]:
        """
        Apply a partial update to a stored record and validate the result.

        Defaults are not re-applied; nulls in the partial leave fields untouched.
        """
        schema = self.schema_for(kind)
        if not isinstance(partial, dict):
            raise ValidationFailedError({"record": ["Record must be an object"]}, kind)
        merged = _merge(schema, current, partial)
        return self.validate(kind, merged, apply_defaults=False)

    def hydrate(self, kind: str, document: Dict[str, Any]) -> Dict[str, Any]:
        """Convert a stored document back to its in-memory form."""
        return _hydrate(self.schema_for(kind), document)

    def _collect_errors(self, kind: str, document: Dict[str, Any]) -> Dict[str, List[str]]:
        errors: Dict[str, List[str]] = {}
        for error in self._validators[kind].iter_errors(document):
            path = [str(part) for part in error.absolute_path]
            if error.validator == "required":
                # Keyed at the missing child, not at its parent
                for name in error.validator_value:
                    if isinstance(error.instance, dict) and name not in error.instance:
                        _add_error(errors, ".".join(path + [name]), f"Path `{name}` is required.")
                continue
            _add_error(errors, ".".join(path) or "record", error.message)
        return errors


record_validator = RecordValidator()
