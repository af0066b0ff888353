"""formstate: reactive form-state engine.

formstate tracks a set of named input fields and provides:
- Ordered, first-failure-wins validation rules per field
- Conditional visibility driven by declared field dependencies
- One-level propagation of visibility changes on every edit
- An event stream of every mutation for UI layers and audit trails
- Declarative form definitions validated with JSON Schema

Basic usage:
    >>> from formstate import FormManager
    >>> from formstate.rules import required, visible_when_equals
    >>> form = FormManager()
    >>> country = form.add_field("country", "", validation_rules=[required("Country")])
    >>> state = form.add_field("state", "", conditional=visible_when_equals("country", "US"))
    >>> form.update_field_value_and_propagate("country", "CA")
    >>> form.get_values()
    {'country': 'CA'}
"""

__version__ = "0.1.0"
__author__ = "formstate developers"

# Version info
VERSION = (0, 1, 0)

# Core exports
from formstate.conditional import ConditionalEvent, ConditionalVisibility
from formstate.definition import load_form
from formstate.errors import (
    DuplicateFieldError,
    FieldNotFoundError,
    FormDefinitionError,
    FormStateError,
)
from formstate.field import Field
from formstate.manager import FormManager
from formstate.types import FieldVisibility, FormEventType
from formstate.validation import ValidationResult, ValidationRule

# Package metadata
__all__ = [
    "__version__",
    "VERSION",
    "FormManager",
    "Field",
    "ValidationRule",
    "ValidationResult",
    "ConditionalVisibility",
    "ConditionalEvent",
    "FieldVisibility",
    "FormEventType",
    "FormStateError",
    "FieldNotFoundError",
    "DuplicateFieldError",
    "FormDefinitionError",
    "load_form",
]
