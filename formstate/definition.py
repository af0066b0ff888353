"""Declarative form definitions.

A form can be described as plain data (a dict, or a JSON string) instead of
being assembled in code:

    {
        "formId": "address",
        "fields": [
            {"name": "country", "initialValue": "",
             "rules": [{"kind": "REQUIRED", "message": "Country is required."}]},
            {"name": "state", "label": "State", "initialValue": "",
             "rules": [{"kind": "MIN_LENGTH", "value": 2}],
             "visibleIf": {"field": "country", "equals": "US"}}
        ]
    }

Definitions are checked against DEFINITION_SCHEMA with jsonschema, then for
unique names and known visibleIf dependencies, before any field is built.
Rule parameters (patterns, schemas, date bounds) are checked as each rule is
built. load_form() evaluates each conditional once after all fields exist,
dependencies first, so the initial buckets agree with the initial values
even when visibleIf conditions are chained.
"""

import json
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Union

import jsonschema
from jsonschema import Draft7Validator
from jsonschema.exceptions import best_match

from formstate import rules
from formstate.conditional import ConditionalVisibility
from formstate.errors import FormDefinitionError
from formstate.events import EventEmitter
from formstate.manager import FormManager
from formstate.types import RuleKind
from formstate.validation import ValidationRule

logger = logging.getLogger(__name__)


_LENGTH_KINDS = [RuleKind.MIN_LENGTH.value, RuleKind.MAX_LENGTH.value]
_DATE_KINDS = [RuleKind.DATE_AFTER.value, RuleKind.DATE_BEFORE.value]


DEFINITION_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["fields"],
    "properties": {
        "formId": {"type": "string", "minLength": 1},
        "fields": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name"],
                "additionalProperties": False,
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "label": {"type": "string"},
                    "initialValue": {},
                    "context": {"type": "object"},
                    "rules": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["kind"],
                            "additionalProperties": False,
                            "properties": {
                                "kind": {"enum": [kind.value for kind in RuleKind]},
                                "message": {"type": "string"},
                                "value": {},
                            },
                            "allOf": [
                                {
                                    "if": {"properties": {"kind": {"enum": _LENGTH_KINDS}}},
                                    "then": {
                                        "required": ["value"],
                                        "properties": {"value": {"type": "integer", "minimum": 0}},
                                    },
                                },
                                {
                                    "if": {"properties": {"kind": {"const": RuleKind.PATTERN.value}}},
                                    "then": {
                                        "required": ["value"],
                                        "properties": {"value": {"type": "string"}},
                                    },
                                },
                                {
                                    "if": {"properties": {"kind": {"const": RuleKind.SCHEMA.value}}},
                                    "then": {
                                        "required": ["value"],
                                        "properties": {"value": {"type": ["object", "boolean"]}},
                                    },
                                },
                                {
                                    "if": {"properties": {"kind": {"enum": _DATE_KINDS}}},
                                    "then": {
                                        "required": ["value"],
                                        "properties": {"value": {"type": "string"}},
                                    },
                                },
                            ],
                        },
                    },
                    "visibleIf": {
                        "type": "object",
                        "required": ["field"],
                        "additionalProperties": False,
                        "properties": {
                            "field": {"type": "string", "minLength": 1},
                            "equals": {},
                            "notEquals": {},
                            "in": {"type": "array"},
                        },
                        "oneOf": [
                            {"required": ["equals"]},
                            {"required": ["notEquals"]},
                            {"required": ["in"]},
                        ],
                    },
                },
            },
        },
    },
}

_validator = Draft7Validator(DEFINITION_SCHEMA)


def _error_path(error: jsonschema.ValidationError) -> str:
    return ".".join(str(p) for p in error.absolute_path)


def validate_definition(definition: Mapping[str, Any]) -> None:
    """Check a definition without building anything.

    Raises:
        FormDefinitionError: With the path of the most relevant problem
    """
    error = best_match(_validator.iter_errors(definition))
    if error is not None:
        raise FormDefinitionError(error.message, _error_path(error))

    seen = set()
    for index, spec in enumerate(definition["fields"]):
        name = spec["name"]
        if name in seen:
            raise FormDefinitionError(f"Duplicate field name '{name}'", f"fields.{index}.name")
        seen.add(name)

    for index, spec in enumerate(definition["fields"]):
        visible_if = spec.get("visibleIf")
        if visible_if is not None and visible_if["field"] not in seen:
            raise FormDefinitionError(
                f"visibleIf refers to unknown field '{visible_if['field']}'",
                f"fields.{index}.visibleIf.field",
            )


def build_rule(label: str, spec: Mapping[str, Any]) -> ValidationRule:
    """Build one ValidationRule from its definition entry.

    Raises:
        FormDefinitionError: If the parameter cannot be used (bad regex,
            bad JSON Schema, unreadable date)
    """
    kind = RuleKind(spec["kind"])
    message: Optional[str] = spec.get("message")
    value = spec.get("value")

    try:
        if kind == RuleKind.REQUIRED:
            return rules.required(label, message)
        if kind == RuleKind.MIN_LENGTH:
            return rules.min_length(label, value, message)
        if kind == RuleKind.MAX_LENGTH:
            return rules.max_length(label, value, message)
        if kind == RuleKind.PATTERN:
            return rules.pattern(label, value, message)
        if kind == RuleKind.SCHEMA:
            return rules.schema_rule(label, value, message)
        if kind == RuleKind.DATE_AFTER:
            return rules.date_after(label, value, message)
        if kind == RuleKind.DATE_BEFORE:
            return rules.date_before(label, value, message)
    except re.error as e:
        raise FormDefinitionError(f"Invalid pattern: {e}") from e
    except jsonschema.SchemaError as e:
        raise FormDefinitionError(f"Invalid JSON Schema: {e.message}") from e
    except ValueError as e:
        raise FormDefinitionError(str(e)) from e

    raise FormDefinitionError(f"Unsupported rule kind '{kind.value}'")


def build_conditional(spec: Optional[Mapping[str, Any]]) -> ConditionalVisibility:
    """Build a ConditionalVisibility from a visibleIf entry (None -> always visible)."""
    if spec is None:
        return ConditionalVisibility.always()
    dependency = spec["field"]
    if "equals" in spec:
        return rules.visible_when_equals(dependency, spec["equals"])
    if "notEquals" in spec:
        return rules.visible_when_not_equals(dependency, spec["notEquals"])
    return rules.visible_when_in(dependency, spec["in"])


def _evaluation_order(dependencies: Mapping[str, str]) -> List[str]:
    """Order conditional fields so each comes after the field it depends on.

    Args:
        dependencies: Conditional field name -> name of its visibleIf field,
            in definition order

    Returns:
        Conditional field names, dependencies first. Independent fields keep
        definition order. A dependency cycle is cut where it is first entered.
    """
    order: List[str] = []
    seen = set()

    def visit(name: str) -> None:
        if name in seen:
            return
        seen.add(name)
        dependency = dependencies[name]
        if dependency in dependencies:
            visit(dependency)
        order.append(name)

    for name in dependencies:
        visit(name)
    return order


def load_form(
    definition: Union[str, Mapping[str, Any]],
    emitter: Optional[EventEmitter] = None,
) -> FormManager:
    """Build a FormManager from a definition.

    Args:
        definition: Definition dict, or a JSON string holding one
        emitter: Optional EventEmitter for the new form

    Returns:
        FormManager with every field added and every conditional evaluated
        once, after the conditional of the field it depends on

    Raises:
        FormDefinitionError: If the definition is malformed
    """
    if isinstance(definition, str):
        try:
            definition = json.loads(definition)
        except json.JSONDecodeError as e:
            raise FormDefinitionError(f"Definition is not valid JSON: {e.msg}") from e

    validate_definition(definition)

    form = FormManager(form_id=definition.get("formId"), emitter=emitter)
    conditional_fields: Dict[str, str] = {}

    for index, spec in enumerate(definition["fields"]):
        name = spec["name"]
        label = spec.get("label", name)
        built_rules = []
        for rule_index, rule_spec in enumerate(spec.get("rules", [])):
            try:
                built_rules.append(build_rule(label, rule_spec))
            except FormDefinitionError as e:
                raise FormDefinitionError(e.message, f"fields.{index}.rules.{rule_index}") from e

        form.add_field(
            name,
            spec.get("initialValue"),
            validation_rules=built_rules,
            conditional=build_conditional(spec.get("visibleIf")),
            context=spec.get("context"),
        )
        if "visibleIf" in spec:
            conditional_fields[name] = spec["visibleIf"]["field"]

    for name in _evaluation_order(conditional_fields):
        form.run_conditional(name, reason=conditional_fields[name])

    logger.debug(
        "Loaded form %s: %d fields, %d hidden",
        form.form_id, len(definition["fields"]), len(form.get_removed_fields()),
    )
    return form


__all__ = [
    "DEFINITION_SCHEMA",
    "validate_definition",
    "build_rule",
    "build_conditional",
    "load_form",
]
