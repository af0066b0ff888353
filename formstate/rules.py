"""Factory helpers for common validation rules and visibility conditionals.

These are conveniences for callers configuring a form; the engine itself
only relies on the ValidationRule and ConditionalVisibility contracts.

Rules built here never raise on unexpected values. A value a rule cannot
interpret (a missing value for a length check, an unparseable date) fails
the rule instead.

Examples:
    >>> from formstate.manager import FormManager
    >>> form = FormManager()
    >>> field = form.add_field(
    ...     "username", "",
    ...     validation_rules=[required("Username"), min_length("Username", 3)],
    ... )
    >>> form.update_field_value_and_propagate("username", "al")
    >>> field.error_message
    'Username should contain at least 3 characters.'
"""

import re
from datetime import date, datetime, time
from typing import Any, Callable, Dict, Iterable, Optional, Union

from dateutil import parser as date_parser
from jsonschema import Draft7Validator

from formstate.conditional import ConditionalEvent, ConditionalVisibility
from formstate.types import RuleKind
from formstate.validation import RulePredicate, ValidationRule


def create_rule(kind: str, error_message: str, predicate: RulePredicate) -> ValidationRule:
    """Build a ValidationRule from its parts.

    Module-level alias of ValidationRule.create_rule.

    Args:
        kind: Rule identifier, e.g. "REQUIRED"
        error_message: Message stored on the field when the rule fails
        predicate: Callable taking (value, form) and returning a bool

    Returns:
        The new ValidationRule
    """
    return ValidationRule.create_rule(kind, error_message, predicate)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return len(value) == 0
    except TypeError:
        return False


def _length(value: Any) -> int:
    if value is None:
        return 0
    try:
        return len(value)
    except TypeError:
        return len(str(value))


def required(label: str, message: Optional[str] = None) -> ValidationRule:
    """Value must be present.

    Fails on None, blank strings and empty collections. 0 and False pass.

    Args:
        label: Field label used in the default message
        message: Message to use instead of "<label> is required."

    Returns:
        A REQUIRED rule
    """
    return create_rule(
        RuleKind.REQUIRED.value,
        message or f"{label} is required.",
        lambda value, form: not _is_empty(value),
    )


def min_length(label: str, minimum: int, message: Optional[str] = None) -> ValidationRule:
    """Value must have at least minimum items or characters.

    None counts as length 0. Values without a length are measured as str().

    Args:
        label: Field label used in the default message
        minimum: Smallest accepted length
        message: Message to use instead of the default

    Returns:
        A MIN_LENGTH rule
    """
    return create_rule(
        RuleKind.MIN_LENGTH.value,
        message or f"{label} should contain at least {minimum} characters.",
        lambda value, form: _length(value) >= minimum,
    )


def max_length(label: str, maximum: int, message: Optional[str] = None) -> ValidationRule:
    """Value must have at most maximum items or characters. See min_length().

    Args:
        label: Field label used in the default message
        maximum: Largest accepted length
        message: Message to use instead of the default

    Returns:
        A MAX_LENGTH rule
    """
    return create_rule(
        RuleKind.MAX_LENGTH.value,
        message or f"{label} should contain at most {maximum} characters.",
        lambda value, form: _length(value) <= maximum,
    )


def pattern(label: str, regex: Union[str, re.Pattern], message: Optional[str] = None) -> ValidationRule:
    """Value must fully match regex. None is treated as the empty string.

    Args:
        label: Field label used in the default message
        regex: Pattern string or compiled pattern
        message: Message to use instead of the default

    Returns:
        A PATTERN rule

    Raises:
        re.error: If regex does not compile
    """
    compiled = re.compile(regex) if isinstance(regex, str) else regex
    return create_rule(
        RuleKind.PATTERN.value,
        message or f"{label} has an invalid format.",
        lambda value, form: compiled.fullmatch("" if value is None else str(value)) is not None,
    )


def schema_rule(label: str, schema: Dict[str, Any], message: Optional[str] = None) -> ValidationRule:
    """Value must satisfy a JSON Schema (Draft 7) fragment.

    Examples:
        >>> rule = schema_rule("Age", {"type": "integer", "minimum": 18})
        >>> rule.evaluate(21, None), rule.evaluate(12, None)
        (True, False)

    Raises:
        jsonschema.SchemaError: If the schema itself is invalid
    """
    Draft7Validator.check_schema(schema)
    validator = Draft7Validator(schema)
    return create_rule(
        RuleKind.SCHEMA.value,
        message or f"{label} is invalid.",
        lambda value, form: validator.is_valid(value),
    )


def _to_datetime(value: Any) -> Optional[datetime]:
    """Coerce a date, datetime or date string to a naive datetime.

    Returns None for anything that cannot be read as a date.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = date_parser.parse(value)
        except (ValueError, OverflowError):
            return None
    else:
        return None
    return parsed.replace(tzinfo=None)


def _date_rule(kind: RuleKind, bound: Any, message: str, compare: Callable[[datetime, datetime], bool]) -> ValidationRule:
    bound_dt = _to_datetime(bound)
    if bound_dt is None:
        raise ValueError(f"Invalid date bound for {kind.value}: {bound!r}")

    def check(value: Any, form: Any) -> bool:
        value_dt = _to_datetime(value)
        return value_dt is not None and compare(value_dt, bound_dt)

    return create_rule(kind.value, message, check)


def date_after(label: str, bound: Any, message: Optional[str] = None) -> ValidationRule:
    """Value must be a date strictly after bound.

    Dates may be date/datetime objects or strings dateutil can parse.
    Timezone information is dropped before comparing.

    Raises:
        ValueError: If bound cannot be read as a date
    """
    return _date_rule(
        RuleKind.DATE_AFTER, bound,
        message or f"{label} must be after {bound}.",
        lambda value, limit: value > limit,
    )


def date_before(label: str, bound: Any, message: Optional[str] = None) -> ValidationRule:
    """Value must be a date strictly before bound. See date_after()."""
    return _date_rule(
        RuleKind.DATE_BEFORE, bound,
        message or f"{label} must be before {bound}.",
        lambda value, limit: value < limit,
    )


def _dependency_value(event: ConditionalEvent, name: str) -> Any:
    # Hidden or missing dependencies read as None
    field = event.form.get_field_by_name(name)
    return None if field is None else field.value


def visible_when(dependency: str, test: Callable[[Any], bool]) -> ConditionalVisibility:
    """Visible while test(value of dependency) is true.

    A dependency that is itself hidden reads as None.
    """
    return ConditionalVisibility(
        dependencies=(dependency,),
        predicate=lambda event: bool(test(_dependency_value(event, dependency))),
    )


def visible_when_equals(dependency: str, expected: Any) -> ConditionalVisibility:
    """Visible while the dependency's value equals expected.

    Args:
        dependency: Name of the field to watch
        expected: Value that shows the field

    Returns:
        A ConditionalVisibility depending on that one field
    """
    return visible_when(dependency, lambda value: value == expected)


def visible_when_not_equals(dependency: str, unexpected: Any) -> ConditionalVisibility:
    """Visible unless the dependency's value equals unexpected.

    A hidden dependency reads as None, so the field shows while it is hidden
    unless unexpected is None.
    """
    return visible_when(dependency, lambda value: value != unexpected)


def visible_when_in(dependency: str, options: Iterable[Any]) -> ConditionalVisibility:
    """Visible while the dependency's value is one of options.

    Args:
        dependency: Name of the field to watch
        options: Values that show the field; consumed once

    Returns:
        A ConditionalVisibility depending on that one field
    """
    choices = list(options)
    return visible_when(dependency, lambda value: value in choices)


__all__ = [
    "create_rule",
    "required",
    "min_length",
    "max_length",
    "pattern",
    "schema_rule",
    "date_after",
    "date_before",
    "visible_when",
    "visible_when_equals",
    "visible_when_not_equals",
    "visible_when_in",
]
