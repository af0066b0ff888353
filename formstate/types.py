"""Core type definitions for the formstate engine.

This module defines the fundamental types used throughout the engine:
- FieldVisibility: The two mutually exclusive buckets a field can live in
- FormEventType: Audit event types emitted by FormManager
- RuleKind: Rule categories understood by declarative form definitions

Type aliases for the shapes passed across the engine boundary live here too.
"""

from enum import Enum
from typing import Any, Dict

from typing_extensions import TypeAlias


class FieldVisibility(str, Enum):
    """Visibility state of a field within a FormManager.

    A field is ACTIVE when it is shown and participates in form validity and
    values. A field is REMOVED when conditional logic has hidden it; it keeps
    its state and can come back.
    """
    ACTIVE = "active"
    REMOVED = "removed"


class FormEventType(str, Enum):
    """Audit event types emitted by FormManager."""
    FIELD_ADDED = "field.added"
    FIELD_REMOVED = "field.removed"
    FIELD_TOUCHED = "field.touched"
    VALUE_CHANGED = "field.value_changed"
    VALIDATION_PASSED = "validation.passed"
    VALIDATION_FAILED = "validation.failed"
    FIELD_SHOWN = "field.shown"
    FIELD_HIDDEN = "field.hidden"


class RuleKind(str, Enum):
    """Rule categories for declarative definitions.

    ValidationRule.kind is free text; these are only the kinds that
    formstate.definition knows how to build.
    """
    REQUIRED = "REQUIRED"
    MIN_LENGTH = "MIN_LENGTH"
    MAX_LENGTH = "MAX_LENGTH"
    PATTERN = "PATTERN"
    SCHEMA = "SCHEMA"
    DATE_AFTER = "DATE_AFTER"
    DATE_BEFORE = "DATE_BEFORE"


FieldValues: TypeAlias = Dict[str, Any]
"""Mapping of field name to value, as returned by FormManager.get_values()."""

FieldContext: TypeAlias = Dict[str, Any]
"""Caller-defined metadata attached to a Field. The engine never reads it."""


__all__ = [
    "FieldVisibility",
    "FormEventType",
    "RuleKind",
    "FieldValues",
    "FieldContext",
]
