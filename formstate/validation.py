"""Validation rules and field validity evaluation.

A ValidationRule is an immutable named predicate with an error message.
Rules are evaluated against a field's current value and may read the rest of
the form, but must never mutate it. A rule signals failure by returning False;
it never signals failure by raising.

evaluate_rules() walks a field's rules in declaration order and reports the
first failure. It does not write anything back; FormManager does that.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict

if TYPE_CHECKING:
    from formstate.field import Field
    from formstate.manager import FormManager


RulePredicate = Callable[[Any, "FormManager"], bool]
"""Signature of a rule predicate: (value, form) -> passed."""


@dataclass(frozen=True)
class ValidationRule:
    """Immutable validation rule.

    Attributes:
        kind: Descriptive rule category (e.g. "REQUIRED", "MIN_LENGTH").
            Not unique across rules.
        error_message: Message reported when the rule fails
        predicate: Callable (value, form) -> bool

    Examples:
        >>> rule = ValidationRule("REQUIRED", "Username is required.", lambda v, form: len(v) > 0)
        >>> rule.evaluate("alice", None)
        True
        >>> rule.evaluate("", None)
        False
    """
    kind: str
    error_message: str
    predicate: RulePredicate

    def evaluate(self, value: Any, form: "FormManager") -> bool:
        """Run the predicate. Exceptions from the predicate propagate."""
        return bool(self.predicate(value, form))

    @classmethod
    def create_rule(cls, kind: str, error_message: str, predicate: RulePredicate) -> "ValidationRule":
        """Build a rule. Wrap this in a function to make reusable parametrized rules.

        Examples:
            >>> def min_length_rule(label, minimum):
            ...     return ValidationRule.create_rule(
            ...         "MIN_LENGTH",
            ...         f"{label} should contain at least {minimum} characters.",
            ...         lambda value, form: len(value) >= minimum,
            ...     )
            >>> min_length_rule("Username", 3).error_message
            'Username should contain at least 3 characters.'
        """
        return cls(kind=kind, error_message=error_message, predicate=predicate)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of evaluating a field's rules.

    Attributes:
        is_valid: Whether every rule passed
        error_message: Message of the first failing rule, empty when valid
        kind: Kind of the first failing rule, None when valid
    """
    is_valid: bool
    error_message: str = ""
    kind: Any = None

    @classmethod
    def passed(cls) -> "ValidationResult":
        return cls(is_valid=True, error_message="", kind=None)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        result: Dict[str, Any] = {
            "isValid": self.is_valid,
            "errorMessage": self.error_message,
        }
        if self.kind is not None:
            result["kind"] = self.kind
        return result


def evaluate_rules(field: "Field", form: "FormManager") -> ValidationResult:
    """Evaluate a field's rules in order and return the first failure.

    Args:
        field: The field whose current value is checked
        form: The owning form, handed to each rule

    Returns:
        ValidationResult for the first failing rule, or a passing result when
        every rule passes or the field has no rules.
    """
    for rule in field.validation_rules or []:
        if not rule.evaluate(field.value, form):
            return ValidationResult(
                is_valid=False,
                error_message=rule.error_message,
                kind=rule.kind,
            )
    return ValidationResult.passed()


__all__ = [
    "RulePredicate",
    "ValidationRule",
    "ValidationResult",
    "evaluate_rules",
]
