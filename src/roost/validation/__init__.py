"""Form validation: composable rules, clean results.

Usage::

    from roost.validation import validate, required, max_length, integer

    result = validate(form, {
        "title": [required, max_length(200)],
        "views": [integer],
    })
    if not result:
        raise ValidationFailed(result.errors)

For model forms, ``validate_fields`` derives the rules from reflected
field metadata instead.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from roost.validation.rules import (
    Validator,
    date_value,
    datetime_value,
    each,
    email,
    integer,
    max_length,
    min_length,
    number,
    one_of,
    required,
    rules_for_field,
    uuid,
)

if TYPE_CHECKING:
    from roost.admin.fields import FieldInfo

__all__ = [
    "ValidationResult",
    "Validator",
    "date_value",
    "datetime_value",
    "each",
    "email",
    "integer",
    "max_length",
    "min_length",
    "number",
    "one_of",
    "required",
    "rules_for_field",
    "uuid",
    "validate",
    "validate_fields",
]


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of checking a submitted form. Falsy when any field failed.

    ``data`` keeps the submitted strings of the fields that passed;
    ``errors`` maps each failed field to its messages, in rule order.
    """

    data: dict[str, str]
    errors: dict[str, list[str]]

    def __bool__(self) -> bool:
        return not self.errors

    def with_error(self, name: str, message: str) -> ValidationResult:
        """A copy in which field *name* also failed with *message*."""
        data = {k: v for k, v in self.data.items() if k != name}
        return ValidationResult(data, {**self.errors, name: [*self.errors.get(name, ()), message]})


def validate(
    data: Mapping[str, str],
    rules: dict[str, list[Validator]],
) -> ValidationResult:
    """Validate data against a set of rules.

    Args:
        data: Any mapping of field names to string values: ``FormData``,
            ``QueryParams``, or a plain ``dict``.
        rules: Field name to validators. Each validator returns an error
            message string on failure, or ``None`` on success.

    Returns:
        A ``ValidationResult`` with ``.data`` (submitted values of the
        fields that passed) and ``.errors`` (field to messages).

    An empty value only runs ``required``; the format rules apply to
    values that were actually submitted.
    """
    errors: dict[str, list[str]] = {}
    cleaned: dict[str, str] = {}

    for field_name, validators in rules.items():
        value = data.get(field_name) or ""

        field_errors: list[str] = []
        for validator in validators:
            if validator is not required and not value.strip():
                continue
            error = validator(value)
            if error is not None:
                field_errors.append(error)
                if validator is required:
                    break

        if field_errors:
            errors[field_name] = field_errors
        else:
            cleaned[field_name] = value

    return ValidationResult(data=cleaned, errors=errors)


def validate_fields(data: Mapping[str, str], fields: Iterable[FieldInfo]) -> ValidationResult:
    """Validate *data* against the rules implied by model *fields*.

    Non-editable, auto, and primary key fields are skipped.
    """
    return validate(data, {f.name: rules_for_field(f) for f in fields if f.is_form_field})
