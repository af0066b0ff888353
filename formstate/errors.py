"""Exception types raised by the formstate engine.

Every lookup failure is raised before any state is touched, so an operation
that raises leaves the form exactly as it found it.

Exceptions raised by user-supplied rule or conditional predicates are not
wrapped in any of these types. They propagate to the caller unchanged.
"""

from typing import Optional


class FormStateError(Exception):
    """Base class for all errors raised by the engine."""


class FieldNotFoundError(FormStateError, KeyError):
    """Raised when an operation references a field the form does not hold.

    Attributes:
        name: The field name that was looked up
        message: Human-readable error message
    """

    def __init__(self, name: str, message: Optional[str] = None):
        self.name = name
        self.message = message or f"{name} form field does not exist."
        super().__init__(self.message)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.message


class DuplicateFieldError(FormStateError, ValueError):
    """Raised when adding a field whose name is already registered.

    Attributes:
        name: The duplicate field name
    """

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"{name} form field already exists. "
            f"Remove it first or pass replace=True to overwrite it."
        )


class FormDefinitionError(FormStateError, ValueError):
    """Raised when a declarative form definition is rejected.

    Attributes:
        message: Human-readable error message
        path: Dot-notation path to the offending part of the definition
    """

    def __init__(self, message: str, path: str = ""):
        self.message = message
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


__all__ = [
    "FormStateError",
    "FieldNotFoundError",
    "DuplicateFieldError",
    "FormDefinitionError",
]
