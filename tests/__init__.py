"""Test suite for the formstate engine.

This package contains tests for:
- Validation rules and rule factories
- Field repository and visibility transitions
- FormManager validation and propagation
- Event system (emission, serialization)
- Declarative form definitions
- Integration scenarios (address, sign-up, shipping forms)
"""
