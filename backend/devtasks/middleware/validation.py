"""
DevTasks Backend - Request Validation
======================================

What:  A small declarative validator for JSON request bodies, and the
       identifier format check applied to path parameters.
How:   Rule sets are plain data (field name → FieldRule). validate_payload()
       is a pure function over a rule set and a payload; the FastAPI
       dependency factories below wrap it and raise ValidationFailedError.
Who:   Route declarations (see schemas/rules.py for the rule sets).
When:  After authentication/authorization, before the handler runs.

Per-field algorithm (declared field order):
    a. required and value missing/None/"" → "<f> is required", next field
    b. not required and missing           → skip the field entirely
    c. type check                         → type-mismatch message
    d. strings: min/max length
    e. numbers: min/max range
    f. enumerated values
    g. custom pattern
    Steps c-g all run even if an earlier one failed.
"""

import enum
import json
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Pattern, Sequence, Union

from fastapi import Request

from devtasks.exceptions import ValidationFailedError
from devtasks.middleware.security import read_body

OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class FieldType(str, enum.Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    EMAIL = "email"
    DATE = "date"


@dataclass(frozen=True)
class FieldRule:
    """
    Constraints for one payload field. Unset bounds are not checked.

    `choices` holds the enumerated allowed values; `pattern` is matched
    with re.search semantics against string values only.
    """

    required: bool = False
    type: Optional[FieldType] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    min: Optional[float] = None
    max: Optional[float] = None
    choices: Optional[Sequence[Any]] = None
    pattern: Optional[Union[str, Pattern[str]]] = None


RuleSet = Mapping[str, FieldRule]


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def _is_number(value: Any) -> bool:
    # bool is an int subclass in Python but not a number in JSON terms
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not (isinstance(value, float) and math.isnan(value))


def _is_date(value: Any) -> bool:
    if isinstance(value, (datetime, date)):
        return True
    if not isinstance(value, str):
        return False
    candidate = value.strip()
    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"
    try:
        datetime.fromisoformat(candidate)
    except ValueError:
        return False
    return True


_TYPE_CHECKS: Dict[FieldType, tuple] = {
    FieldType.STRING: (lambda v: isinstance(v, str), "must be a string"),
    FieldType.NUMBER: (_is_number, "must be a number"),
    FieldType.BOOLEAN: (lambda v: isinstance(v, bool), "must be a boolean"),
    FieldType.EMAIL: (
        lambda v: isinstance(v, str) and EMAIL_PATTERN.match(v) is not None,
        "must be a valid email address",
    ),
    FieldType.DATE: (_is_date, "must be a valid date"),
}


def _format_bound(bound: float) -> str:
    """Whole-number bounds print without a decimal point or exponent."""
    if isinstance(bound, float) and bound.is_integer():
        return str(int(bound))
    return str(bound)


def _matches(pattern: Union[str, Pattern[str]], value: str) -> bool:
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
    return compiled.search(value) is not None


def _check_field(field: str, rule: FieldRule, value: Any) -> List[str]:
    errors: List[str] = []

    if rule.type is not None:
        check, message = _TYPE_CHECKS[rule.type]
        if not check(value):
            errors.append(f"{field} {message}")

    if isinstance(value, str):
        if rule.min_length is not None and len(value) < rule.min_length:
            errors.append(f"{field} must be at least {rule.min_length} characters long")
        if rule.max_length is not None and len(value) > rule.max_length:
            errors.append(f"{field} must not exceed {rule.max_length} characters")

    if _is_number(value):
        if rule.min is not None and value < rule.min:
            errors.append(f"{field} must be at least {_format_bound(rule.min)}")
        if rule.max is not None and value > rule.max:
            errors.append(f"{field} must not exceed {_format_bound(rule.max)}")

    if rule.choices is not None and value not in rule.choices:
        allowed = ", ".join(str(choice) for choice in rule.choices)
        errors.append(f"{field} must be one of: {allowed}")

    if rule.pattern is not None and isinstance(value, str) and not _matches(rule.pattern, value):
        errors.append(f"{field} format is invalid")

    return errors


def validate_payload(rules: RuleSet, payload: Mapping[str, Any]) -> List[str]:
    """
    Validate a payload against a rule set.

    Returns:
        Violation messages in the rule set's field order; empty when valid.
    """
    errors: List[str] = []
    for field, rule in rules.items():
        value = payload.get(field)
        if _is_missing(value):
            if rule.required:
                errors.append(f"{field} is required")
            continue
        errors.extend(_check_field(field, rule, value))
    return errors


def validate_body(rules: RuleSet) -> Callable:
    """
    FastAPI dependency factory: parse the JSON body and validate it.

    Usage:
        @router.post("/projects")
        async def create(payload: dict = Depends(validate_body(CREATE_PROJECT_RULES))):
            ...

    Returns the parsed body on success.

    Raises:
        ValidationFailedError (400): unparseable body, non-object body, or
        one aggregated error listing every rule violation.
        PayloadTooLargeError (413): body larger than app.state.max_body_bytes.
    """

    async def dependency(request: Request) -> Dict[str, Any]:
        raw = await read_body(request, getattr(request.app.state, "max_body_bytes", None))
        try:
            payload = json.loads(raw) if raw else {}
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValidationFailedError("Request body must be valid JSON")
        if not isinstance(payload, dict):
            raise ValidationFailedError("Request body must be a JSON object")

        errors = validate_payload(rules, payload)
        if errors:
            raise ValidationFailedError(
                f"Validation failed: {'; '.join(errors)}",
                errors=errors,
            )
        return payload

    return dependency


# ── Identifier format ─────────────────────────────────────────────────────

def is_object_id(value: Any) -> bool:
    """True for exactly 24 hexadecimal characters (either case)."""
    return isinstance(value, str) and OBJECT_ID_PATTERN.fullmatch(value) is not None


def check_object_id(param_name: str, params: Mapping[str, Any]) -> str:
    """
    Return params[param_name], lowercased, if it is a well-formed identifier.
    Stored identifiers are lowercase hex, so lookups must use this form.

    Raises:
        ValidationFailedError: "Invalid <param_name> format" (400)
    """
    value = params.get(param_name)
    if not is_object_id(value):
        raise ValidationFailedError(f"Invalid {param_name} format", field=param_name)
    return value.lower()


def validate_object_id(param_name: str = "id") -> Callable:
    """FastAPI dependency factory guarding a path parameter's format."""

    async def dependency(request: Request) -> str:
        return check_object_id(param_name, request.path_params)

    return dependency
