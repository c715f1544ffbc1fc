"""
Payload validation for registration and login.

Rules are declared as data: one ``FieldSpec`` per field, each with an
ordered tuple of ``Rule`` objects.  ``validate`` walks a ``Schema`` and
either returns the normalized record or every violated rule's message, in
field-declaration order and then rule order.

    outcome = validate(payload, REGISTRATION_SCHEMA)
    if not outcome.ok:
        raise ValidationError(outcome.errors)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional, Tuple

from email_validator import EmailNotValidError, validate_email

from auth.models import LoginInput, RegistrationInput

_MISSING = object()

NAME_PATTERN = re.compile(r"[a-zA-ZÀ-ÿ\s'-]+")
PASSWORD_SYMBOLS = "@$!%*?&"
_PASSWORD_COMPLEXITY = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*[0-9])(?=.*[@$!%*?&])[A-Za-z0-9@$!%*?&]", re.DOTALL)
# Longer digit strings are left alone and fail the integer check.
_INTEGER_STRING = re.compile(r"[+-]?[0-9]{1,9}")


@dataclass(frozen=True)
class Rule:
    check: Callable[[Any], bool]
    message: str


@dataclass(frozen=True)
class FieldSpec:
    """
    Declarative description of one payload field.

    Evaluation order: presence, optional ``coerce``, ``type_check``,
    ``normalize``, blank check (strings only), then every rule in ``rules``.
    A failed presence or type check yields a single message and skips the
    remaining rules for the field.
    """

    name: str
    required_message: str
    type_check: Callable[[Any], bool]
    type_message: str
    rules: Tuple[Rule, ...] = ()
    normalize: Optional[Callable[[Any], Any]] = None
    coerce: Optional[Callable[[Any], Any]] = None


@dataclass(frozen=True)
class Schema:
    fields: Tuple[FieldSpec, ...]
    record_type: type

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(spec.name for spec in self.fields)


@dataclass
class ValidationOutcome:
    value: Optional[Any] = None
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


# ── Predicates / normalizers ───────────────────────────────────────────


def _is_str(value: Any) -> bool:
    return isinstance(value, str)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _trim(value: str) -> str:
    return value.strip()


def _lower_trim(value: str) -> str:
    return value.lower().strip()


def _coerce_int(value: Any) -> Any:
    """Turn numeric-looking strings (``"30"``) and integral floats (``30.0``)
    into ints; leave the rest alone."""
    if isinstance(value, str) and _INTEGER_STRING.fullmatch(value.strip()):
        return int(value.strip())
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def is_valid_email(value: str) -> bool:
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def _min_len(n: int) -> Callable[[str], bool]:
    return lambda value: len(value) >= n


def _max_len(n: int) -> Callable[[str], bool]:
    return lambda value: len(value) <= n


# ── Rule tables ────────────────────────────────────────────────────────

_EMAIL_FIELD = FieldSpec(
    name="email",
    required_message="Email is required",
    type_check=_is_str,
    type_message="Email must be a string",
    normalize=_lower_trim,
    rules=(Rule(is_valid_email, "Please provide a valid email address"),),
)

REGISTRATION_SCHEMA = Schema(
    fields=(
        FieldSpec(
            name="name",
            required_message="Name is required",
            type_check=_is_str,
            type_message="Name must be a string",
            normalize=_trim,
            rules=(
                Rule(_min_len(2), "Name must be at least 2 characters long"),
                Rule(_max_len(50), "Name must be at most 50 characters long"),
                Rule(
                    lambda value: NAME_PATTERN.fullmatch(value) is not None,
                    "Name may only contain letters, spaces, hyphens and apostrophes",
                ),
            ),
        ),
        _EMAIL_FIELD,
        FieldSpec(
            name="password",
            required_message="Password is required",
            type_check=_is_str,
            type_message="Password must be a string",
            rules=(
                Rule(_min_len(8), "Password must be at least 8 characters long"),
                Rule(_max_len(128), "Password must be at most 128 characters long"),
                Rule(
                    lambda value: _PASSWORD_COMPLEXITY.match(value) is not None,
                    "Password must contain at least one lowercase letter, one uppercase "
                    f"letter, one digit and one special character ({PASSWORD_SYMBOLS})",
                ),
            ),
        ),
        FieldSpec(
            name="age",
            required_message="Age is required",
            type_check=_is_int,
            type_message="Age must be an integer",
            coerce=_coerce_int,
            rules=(
                Rule(lambda value: value >= 13, "Age must be at least 13"),
                Rule(lambda value: value <= 120, "Age must be at most 120"),
            ),
        ),
    ),
    record_type=RegistrationInput,
)

LOGIN_SCHEMA = Schema(
    fields=(
        _EMAIL_FIELD,
        FieldSpec(
            name="password",
            required_message="Password is required",
            type_check=_is_str,
            type_message="Password must be a string",
        ),
    ),
    record_type=LoginInput,
)


# ── Engine ─────────────────────────────────────────────────────────────


def _check_field(spec: FieldSpec, raw: Mapping[str, Any]) -> Tuple[Any, List[str]]:
    value = raw.get(spec.name, _MISSING)
    if value is _MISSING or value is None:
        return None, [spec.required_message]

    if spec.coerce is not None:
        value = spec.coerce(value)
    if not spec.type_check(value):
        return None, [spec.type_message]

    if spec.normalize is not None:
        value = spec.normalize(value)
    if isinstance(value, str) and value == "":
        return None, [spec.required_message]

    errors = [rule.message for rule in spec.rules if not rule.check(value)]
    return value, errors


def validate(raw: Any, schema: Schema) -> ValidationOutcome:
    """Check ``raw`` against ``schema``; pure, never raises on bad input."""
    if not isinstance(raw, Mapping):
        return ValidationOutcome(errors=["Request body must be a JSON object"])

    clean = {}
    errors: List[str] = []
    for spec in schema.fields:
        value, field_errors = _check_field(spec, raw)
        errors.extend(field_errors)
        clean[spec.name] = value

    known = set(schema.field_names)
    for key in raw:
        if key not in known:
            errors.append(f"property {key} should not exist")

    if errors:
        return ValidationOutcome(errors=errors)
    return ValidationOutcome(value=schema.record_type(**clean))
