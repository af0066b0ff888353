"""Unit tests for declarative form definitions.

Tests cover:
- Schema validation of definitions and error paths
- Consistency checks (duplicate names, unknown dependencies)
- Rule building for every supported kind
- Conditional building and initial visibility evaluation
- Loading from JSON strings
"""

import json

import pytest

from formstate.definition import build_conditional, build_rule, load_form, validate_definition
from formstate.errors import FormDefinitionError
from formstate.events import EventEmitter
from formstate.types import FieldVisibility, FormEventType


ADDRESS_DEFINITION = {
    "formId": "address",
    "fields": [
        {
            "name": "country",
            "label": "Country",
            "initialValue": "CA",
            "rules": [{"kind": "REQUIRED"}],
        },
        {
            "name": "state",
            "label": "State",
            "initialValue": "",
            "rules": [{"kind": "REQUIRED"}, {"kind": "MIN_LENGTH", "value": 2}],
            "visibleIf": {"field": "country", "equals": "US"},
        },
        {
            "name": "province",
            "initialValue": "",
            "visibleIf": {"field": "country", "in": ["CA"]},
            "context": {"widget": "select"},
        },
    ],
}


class TestValidateDefinition:
    """Test schema and consistency checks."""

    def test_valid_definition(self):
        """Should accept a well-formed definition."""
        validate_definition(ADDRESS_DEFINITION)

    def test_fields_required(self):
        """Should reject a definition without fields."""
        with pytest.raises(FormDefinitionError) as exc_info:
            validate_definition({"formId": "x"})
        assert "fields" in exc_info.value.message

    def test_unknown_rule_kind(self):
        """Should report the path of an unknown rule kind."""
        definition = {"fields": [{"name": "a", "rules": [{"kind": "BOGUS"}]}]}
        with pytest.raises(FormDefinitionError) as exc_info:
            validate_definition(definition)
        assert exc_info.value.path == "fields.0.rules.0.kind"

    def test_length_rule_needs_value(self):
        """Should require an integer value for length rules."""
        definition = {"fields": [{"name": "a", "rules": [{"kind": "MIN_LENGTH"}]}]}
        with pytest.raises(FormDefinitionError):
            validate_definition(definition)

    def test_unknown_field_property(self):
        """Should reject properties the definition format does not know."""
        with pytest.raises(FormDefinitionError):
            validate_definition({"fields": [{"name": "a", "colour": "red"}]})

    def test_visible_if_needs_one_operator(self):
        """Should require exactly one of equals, notEquals, in."""
        definition = {"fields": [
            {"name": "a"},
            {"name": "b", "visibleIf": {"field": "a"}},
        ]}
        with pytest.raises(FormDefinitionError):
            validate_definition(definition)

    def test_duplicate_names(self):
        """Should reject duplicate field names with the offending path."""
        definition = {"fields": [{"name": "a"}, {"name": "a"}]}
        with pytest.raises(FormDefinitionError) as exc_info:
            validate_definition(definition)
        assert exc_info.value.path == "fields.1.name"

    def test_unknown_dependency(self):
        """Should reject visibleIf references to undeclared fields."""
        definition = {"fields": [{"name": "b", "visibleIf": {"field": "a", "equals": 1}}]}
        with pytest.raises(FormDefinitionError) as exc_info:
            validate_definition(definition)
        assert exc_info.value.path == "fields.0.visibleIf.field"

    def test_not_an_object(self):
        """Should reject a definition that is not an object."""
        with pytest.raises(FormDefinitionError):
            validate_definition([])


class TestBuildRule:
    """Test build_rule() for each kind."""

    @pytest.mark.parametrize("spec,good,bad", [
        ({"kind": "REQUIRED"}, "x", ""),
        ({"kind": "MIN_LENGTH", "value": 2}, "ab", "a"),
        ({"kind": "MAX_LENGTH", "value": 2}, "ab", "abc"),
        ({"kind": "PATTERN", "value": r"[A-Z]{2}"}, "NY", "ny"),
        ({"kind": "SCHEMA", "value": {"type": "integer"}}, 3, "3"),
        ({"kind": "DATE_AFTER", "value": "2024-01-01"}, "2024-02-01", "2023-02-01"),
        ({"kind": "DATE_BEFORE", "value": "2024-01-01"}, "2023-02-01", "2024-02-01"),
    ])
    def test_rule_kinds(self, spec, good, bad):
        """Should build a rule of the declared kind that behaves accordingly."""
        rule = build_rule("Field", spec)
        assert rule.kind == spec["kind"]
        assert rule.evaluate(good, None) is True
        assert rule.evaluate(bad, None) is False

    def test_custom_message(self):
        """Should use the message from the definition."""
        rule = build_rule("State", {"kind": "REQUIRED", "message": "Pick a state"})
        assert rule.error_message == "Pick a state"

    def test_label_in_default_message(self):
        """Should build default messages from the label."""
        assert build_rule("State", {"kind": "MIN_LENGTH", "value": 2}).error_message == (
            "State should contain at least 2 characters."
        )

    def test_bad_pattern(self):
        """Should wrap regex errors in FormDefinitionError."""
        with pytest.raises(FormDefinitionError):
            build_rule("A", {"kind": "PATTERN", "value": "("})

    def test_bad_schema(self):
        """Should wrap schema errors in FormDefinitionError."""
        with pytest.raises(FormDefinitionError):
            build_rule("A", {"kind": "SCHEMA", "value": {"type": 12}})

    def test_bad_date_bound(self):
        """Should wrap unreadable date bounds in FormDefinitionError."""
        with pytest.raises(FormDefinitionError):
            build_rule("A", {"kind": "DATE_AFTER", "value": "not a date"})


class TestBuildConditional:
    """Test build_conditional()."""

    def test_none_is_always_visible(self):
        """Should return the default conditional when no visibleIf is given."""
        assert build_conditional(None).dependencies == ()

    def test_dependencies_from_field(self):
        """Should depend on the referenced field."""
        assert build_conditional({"field": "country", "notEquals": "US"}).dependencies == ("country",)


class TestLoadForm:
    """Test load_form()."""

    def test_fields_added_in_order(self):
        """Should add every field with its initial value and context."""
        form = load_form(ADDRESS_DEFINITION)
        assert form.form_id == "address"
        assert form.get_values() == {"country": "CA", "province": ""}
        assert form.get_removed_fields()["state"].value == ""
        assert form.get_field_by_name("province").context == {"widget": "select"}

    def test_initial_visibility_evaluated(self):
        """Should evaluate each conditional once after loading."""
        form = load_form(ADDRESS_DEFINITION)
        assert form.get_visibility("state") == FieldVisibility.REMOVED
        assert form.get_visibility("province") == FieldVisibility.ACTIVE

    def test_loaded_form_propagates(self):
        """Should behave like a hand-built form after loading."""
        form = load_form(ADDRESS_DEFINITION)
        form.update_field_value_and_propagate("country", "US")
        assert form.get_visibility("state") == FieldVisibility.ACTIVE
        assert form.get_visibility("province") == FieldVisibility.REMOVED
        form.update_field_state_on_blur("state")
        assert form.get_field_by_name("state").error_message == "State is required."

    def test_label_defaults_to_name(self):
        """Should use the field name when no label is given."""
        form = load_form({"fields": [{"name": "city", "rules": [{"kind": "REQUIRED"}]}]})
        form.update_field_state_on_blur("city")
        assert form.get_field_by_name("city").error_message == "city is required."

    def test_generated_form_id(self):
        """Should generate a form id when none is declared."""
        form = load_form({"fields": []})
        assert form.form_id.startswith("form_")

    def test_from_json_string(self):
        """Should accept a JSON string."""
        form = load_form(json.dumps(ADDRESS_DEFINITION))
        assert form.get_visibility("state") == FieldVisibility.REMOVED

    def test_invalid_json(self):
        """Should raise FormDefinitionError for malformed JSON."""
        with pytest.raises(FormDefinitionError):
            load_form("{not json")

    def test_bad_rule_reports_path(self):
        """Should report the path of a rule that cannot be built."""
        definition = {"fields": [{"name": "a", "rules": [{"kind": "REQUIRED"}, {"kind": "PATTERN", "value": "("}]}]}
        with pytest.raises(FormDefinitionError) as exc_info:
            load_form(definition)
        assert exc_info.value.path == "fields.0.rules.1"

    def test_uses_given_emitter(self):
        """Should publish loading events to the supplied emitter."""
        emitter = EventEmitter()
        received = []
        emitter.on_any(received.append)
        load_form(ADDRESS_DEFINITION, emitter=emitter)
        types = [e.type for e in received]
        assert types.count(FormEventType.FIELD_ADDED) == 3
        assert FormEventType.FIELD_HIDDEN in types

    def test_chained_conditionals_evaluated_dependencies_first(self):
        """Should hide a field whose visibleIf field is hidden by its own condition."""
        form = load_form({"fields": [
            {"name": "c", "initialValue": "no"},
            {"name": "a", "visibleIf": {"field": "b", "equals": "x"}},
            {"name": "b", "initialValue": "x", "visibleIf": {"field": "c", "equals": "yes"}},
        ]})
        assert list(form.get_visible_fields()) == ["c"]
        assert list(form.get_removed_fields()) == ["b", "a"]

    def test_chained_conditionals_reveal(self):
        """Should show the whole chain when the root value satisfies it."""
        form = load_form({"fields": [
            {"name": "c", "initialValue": "yes"},
            {"name": "a", "visibleIf": {"field": "b", "equals": "x"}},
            {"name": "b", "initialValue": "x", "visibleIf": {"field": "c", "equals": "yes"}},
        ]})
        assert form.get_visibility("a") == FieldVisibility.ACTIVE
        assert form.get_visibility("b") == FieldVisibility.ACTIVE

    def test_cyclic_conditionals_load(self):
        """Should load mutually dependent fields, evaluating each once."""
        emitter = EventEmitter()
        hidden = []
        emitter.on(FormEventType.FIELD_HIDDEN, lambda e: hidden.append(e.field_name))
        form = load_form({"fields": [
            {"name": "a", "initialValue": 1, "visibleIf": {"field": "b", "equals": 1}},
            {"name": "b", "initialValue": 2, "visibleIf": {"field": "a", "equals": 2}},
        ]}, emitter=emitter)
        assert hidden == ["b", "a"]
        assert form.get_visible_fields() == {}
