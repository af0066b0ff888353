"""FormManager orchestrator for the formstate engine.

FormManager owns the fields of one form, runs their validation rules and
keeps their conditional visibility up to date. A UI layer calls
update_field_value_and_propagate() on every edit and
update_field_state_on_blur() when a field loses focus, then reads the
resulting state back.

Propagation is one level deep. When field A changes, every field that
declares a dependency on A is re-evaluated once, whether it is currently
active or hidden. A field that becomes visible during that pass is not
scanned for its own dependents in the same call; chains of the form
A -> B -> C need a further change on B to reach C.

The engine runs user-supplied predicates without a safety net: an exception
raised by a rule or a conditional propagates to the caller.

FormManager has no internal locking. Drive each instance from a single
caller, or guard it with one lock per instance.

Usage:
    >>> from formstate.manager import FormManager
    >>> from formstate.rules import required, visible_when_equals
    >>> form = FormManager(form_id="address")
    >>> country = form.add_field("country", "", validation_rules=[required("Country")])
    >>> state = form.add_field("state", "", conditional=visible_when_equals("country", "US"))
    >>> form.update_field_value_and_propagate("country", "CA")
    >>> sorted(form.get_values())
    ['country']
    >>> form.update_field_value_and_propagate("country", "US")
    >>> sorted(form.get_values())
    ['country', 'state']
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from formstate.conditional import ConditionalEvent, ConditionalVisibility
from formstate.events import EventEmitter, FormEvent
from formstate.field import Field
from formstate.repository import FieldRepository
from formstate.types import FieldContext, FieldValues, FieldVisibility, FormEventType
from formstate.validation import ValidationResult, ValidationRule, evaluate_rules

logger = logging.getLogger(__name__)


class FormManager:
    """Reactive state for a set of named fields.

    Attributes:
        form_id: Identifier stamped on every emitted event
        events: EventEmitter notified of every mutation

    Examples:
        >>> form = FormManager()
        >>> field = form.add_field("username", "")
        >>> form.is_form_valid()
        False
        >>> form.update_field_state_on_blur("username")
        >>> field.is_touched, form.is_form_valid()
        (True, True)
    """

    def __init__(self, form_id: Optional[str] = None, emitter: Optional[EventEmitter] = None):
        """Initialize an empty form.

        Args:
            form_id: Identifier for events. Generated when omitted.
            emitter: EventEmitter to publish to. A private one is created
                when omitted.
        """
        self.form_id = form_id or f"form_{uuid.uuid4().hex[:16]}"
        self.events = emitter if emitter is not None else EventEmitter()
        self._fields = FieldRepository()

    def __repr__(self) -> str:
        return (
            f"FormManager(form_id={self.form_id!r}, "
            f"active={len(self.get_visible_fields())}, removed={len(self.get_removed_fields())})"
        )

    def add_field(
        self,
        name: str,
        initial_value: Any = None,
        *,
        validation_rules: Optional[Iterable[ValidationRule]] = None,
        conditional: Optional[ConditionalVisibility] = None,
        context: Optional[FieldContext] = None,
        replace: bool = False,
    ) -> Field:
        """Create a field and place it in the active bucket.

        The new field starts not valid, not touched and visible. Its
        conditional is not evaluated here.

        Args:
            name: Unique field name
            initial_value: Starting value
            validation_rules: Rules evaluated in order. Defaults to none.
            conditional: Visibility predicate. Defaults to always visible.
            context: Caller metadata stored on the field
            replace: Overwrite an existing field of the same name instead of
                raising

        Returns:
            The new Field

        Raises:
            DuplicateFieldError: If name is taken and replace is False
        """
        field = Field(
            name=name,
            value=initial_value,
            validation_rules=list(validation_rules or []),
            conditional=conditional or ConditionalVisibility.always(),
            context=dict(context or {}),
        )
        self._fields.add(field, replace=replace)
        logger.debug("Added field '%s' to form %s", name, self.form_id)
        self._emit(FormEventType.FIELD_ADDED, name, payload={"value": initial_value})
        return field

    def remove_field(self, name: str) -> Field:
        """Permanently delete a field from whichever bucket holds it.

        Raises:
            FieldNotFoundError: If the form does not hold the field
        """
        visibility = self._fields.visibility_of(name)
        field = self._fields.remove(name)
        logger.debug("Removed field '%s' (%s) from form %s", name, visibility.value, self.form_id)
        self._emit(FormEventType.FIELD_REMOVED, name, payload={"visibility": visibility.value})
        return field

    def is_form_valid(self) -> bool:
        """True iff every active field is valid. Hidden fields are ignored."""
        return all(field.is_valid for field in self.get_visible_fields().values())

    def get_visible_fields(self) -> Dict[str, Field]:
        """Active fields by name, in bucket order."""
        return self._fields.fields(FieldVisibility.ACTIVE)

    def get_removed_fields(self) -> Dict[str, Field]:
        """Conditionally hidden fields by name, in bucket order."""
        return self._fields.fields(FieldVisibility.REMOVED)

    def get_field_by_name(self, name: str) -> Optional[Field]:
        """Look up an active field.

        Hidden fields are not returned even though the form still holds them;
        use get_removed_fields() or get_visibility() to reach those.

        Returns:
            The Field, or None if no active field has that name
        """
        entry = self._fields.lookup(name)
        if entry is None or entry.visibility != FieldVisibility.ACTIVE:
            return None
        return entry.field

    def get_visibility(self, name: str) -> FieldVisibility:
        """Which bucket a field is in.

        Raises:
            FieldNotFoundError: If the form does not hold the field
        """
        return self._fields.visibility_of(name)

    def get_values(self) -> FieldValues:
        """Snapshot of active field values by name."""
        return {name: field.value for name, field in self.get_visible_fields().items()}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the whole form state for rendering or debugging."""
        return {
            "formId": self.form_id,
            "isValid": self.is_form_valid(),
            "fields": [field.to_dict() for field in self.get_visible_fields().values()],
            "removedFields": [field.to_dict() for field in self.get_removed_fields().values()],
        }

    def run_validations(self, name: str) -> ValidationResult:
        """Evaluate an active field's rules and store the outcome on it.

        Returns:
            The ValidationResult written onto the field

        Raises:
            FieldNotFoundError: If no active field has that name
        """
        field = self._fields.get_in(name, FieldVisibility.ACTIVE)
        result = evaluate_rules(field, self)
        field.is_valid = result.is_valid
        field.error_message = result.error_message

        event_type = FormEventType.VALIDATION_PASSED if result.is_valid else FormEventType.VALIDATION_FAILED
        self._emit(event_type, name, payload=result.to_dict())
        return result

    def run_conditional(self, name: str, reason: str) -> bool:
        """Evaluate a field's visibility and move it to the matching bucket.

        Works on active and hidden fields alike. Running it again with the
        same predicate outcome changes nothing.

        Args:
            name: Field to evaluate
            reason: Name of the field whose change prompted the evaluation

        Returns:
            Whether the field is visible after the evaluation

        Raises:
            FieldNotFoundError: If the form does not hold the field
        """
        field = self._fields.get(name).field
        event = ConditionalEvent(field=field, form=self, reason=reason)
        visible = field.conditional.is_visible(event)

        target = FieldVisibility.ACTIVE if visible else FieldVisibility.REMOVED
        if self._fields.transition(name, target):
            event_type = FormEventType.FIELD_SHOWN if visible else FormEventType.FIELD_HIDDEN
            self._emit(event_type, name, reason=reason)
        return visible

    def update_field_value_and_propagate(self, name: str, new_value: Any) -> None:
        """Handle a user edit on an active field.

        Marks the field touched. If the value actually changed, stores it,
        re-validates the field and re-evaluates the visibility of every field
        that depends on it. Re-submitting the current value only marks the
        field touched.

        Raises:
            FieldNotFoundError: If no active field has that name. Hidden
                fields must become visible before they can be edited.
        """
        field = self._fields.get_in(name, FieldVisibility.ACTIVE)
        self._touch(field)

        if self._is_same_value(field.value, new_value):
            logger.debug("Value of '%s' unchanged, skipping validation and propagation", name)
            return

        old_value = field.value
        field.value = new_value
        self._emit(FormEventType.VALUE_CHANGED, name, payload={"old": old_value, "new": new_value})

        self.run_validations(name)
        self._propagate(name)

    def update_field_state_on_blur(self, name: str) -> None:
        """Handle focus loss: mark touched and re-validate. No propagation.

        Raises:
            FieldNotFoundError: If no active field has that name
        """
        field = self._fields.get_in(name, FieldVisibility.ACTIVE)
        self._touch(field)
        self.run_validations(name)

    def _propagate(self, name: str) -> None:
        """Re-evaluate every field that depends on name, one level deep.

        Both dependent lists are taken before any field moves, so a field
        shown or hidden in this pass is evaluated exactly once and its own
        dependents are left alone.
        """
        active_dependents = self._fields.dependents_of(name, FieldVisibility.ACTIVE)
        removed_dependents = self._fields.dependents_of(name, FieldVisibility.REMOVED)
        logger.debug(
            "Propagating change of '%s': %d active, %d removed dependents",
            name, len(active_dependents), len(removed_dependents),
        )

        for dependent in active_dependents:
            self.run_conditional(dependent, name)
        for dependent in removed_dependents:
            self.run_conditional(dependent, name)

    @staticmethod
    def _is_same_value(current: Any, new_value: Any) -> bool:
        # 0 == False and 1 == 1.0 in Python, but they are distinct edits
        return current is new_value or (type(current) is type(new_value) and current == new_value)

    def _touch(self, field: Field) -> None:
        if not field.is_touched:
            field.is_touched = True
            self._emit(FormEventType.FIELD_TOUCHED, field.name)

    def _emit(
        self,
        event_type: FormEventType,
        field_name: str,
        reason: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        event = FormEvent(
            event_id=f"evt_{uuid.uuid4().hex[:16]}",
            type=event_type,
            form_id=self.form_id,
            field_name=field_name,
            ts=datetime.now(timezone.utc),
            reason=reason,
            payload=payload,
        )
        self.events.emit(event)


__all__ = [
    "FormManager",
]
