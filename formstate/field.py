"""The Field record managed by FormManager."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from formstate.conditional import ConditionalVisibility
from formstate.types import FieldContext
from formstate.validation import ValidationRule


@dataclass(eq=False)
class Field:
    """A named, validatable, conditionally visible unit of form state.

    Fields are compared by identity. The same Field object is kept when the
    form moves it between the active and removed buckets, so references held
    by a UI layer keep observing updates.

    Attributes:
        name: Unique name within the form. Do not change it after creation.
        value: Current application-defined value
        is_valid: Result of the last validation run. Only validation writes it.
        is_touched: Set on the first value change or blur; never reset
        error_message: Message of the first failing rule, empty when valid
        validation_rules: Rules evaluated in order
        conditional: Visibility predicate and its dependencies
        is_visible: Bookkeeping mirror of the field's bucket. Membership in
            FormManager.get_visible_fields() is the authoritative signal.
        context: Caller-defined metadata. The engine never reads it.

    Examples:
        >>> f = Field(name="username", value="")
        >>> f.is_valid, f.is_touched, f.is_visible
        (False, False, True)
    """
    name: str
    value: Any = None
    is_valid: bool = False
    is_touched: bool = False
    error_message: str = ""
    validation_rules: List[ValidationRule] = field(default_factory=list)
    conditional: ConditionalVisibility = field(default_factory=ConditionalVisibility.always)
    is_visible: bool = True
    context: FieldContext = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for rendering or debugging."""
        return {
            "name": self.name,
            "value": self.value,
            "isValid": self.is_valid,
            "isTouched": self.is_touched,
            "isVisible": self.is_visible,
            "errorMessage": self.error_message,
            "rules": [rule.kind for rule in self.validation_rules],
            "dependencies": list(self.conditional.dependencies),
        }


__all__ = [
    "Field",
]
