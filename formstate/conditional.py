"""Conditional visibility predicates.

A ConditionalVisibility pairs a predicate with the names of the fields it
depends on. When one of those fields changes, FormManager builds a
ConditionalEvent and asks the predicate whether the dependent field should be
shown. The predicate must not mutate the form; the engine does not enforce
this.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterable, Tuple

if TYPE_CHECKING:
    from formstate.field import Field
    from formstate.manager import FormManager


@dataclass(frozen=True)
class ConditionalEvent:
    """Context handed to a visibility predicate.

    Attributes:
        field: The field whose visibility is being decided
        form: The owning FormManager
        reason: Name of the field whose change triggered this evaluation
    """
    field: "Field"
    form: "FormManager"
    reason: str


VisibilityPredicate = Callable[[ConditionalEvent], bool]


def _always_visible(event: ConditionalEvent) -> bool:
    return True


@dataclass(frozen=True)
class ConditionalVisibility:
    """Visibility predicate plus the fields it depends on.

    Attributes:
        dependencies: Names of fields whose changes trigger re-evaluation.
            Stored as a tuple in insertion order, duplicates dropped.
        predicate: Callable (ConditionalEvent) -> bool

    Examples:
        >>> cond = ConditionalVisibility(["country"], lambda e: True)
        >>> cond.dependencies
        ('country',)
        >>> cond.depends_on("country")
        True
        >>> ConditionalVisibility.always().dependencies
        ()
    """
    dependencies: Tuple[str, ...] = field(default_factory=tuple)
    predicate: VisibilityPredicate = _always_visible

    def __post_init__(self):
        """Normalize dependencies to an ordered tuple without duplicates."""
        deps: Iterable[str] = self.dependencies or ()
        if isinstance(deps, str):
            deps = (deps,)
        object.__setattr__(self, "dependencies", tuple(dict.fromkeys(deps)))

    @classmethod
    def always(cls) -> "ConditionalVisibility":
        """Default conditional: no dependencies, always visible."""
        return cls(dependencies=(), predicate=_always_visible)

    def depends_on(self, name: str) -> bool:
        return name in self.dependencies

    def is_visible(self, event: ConditionalEvent) -> bool:
        """Run the predicate. Exceptions from the predicate propagate."""
        return bool(self.predicate(event))


__all__ = [
    "ConditionalEvent",
    "ConditionalVisibility",
    "VisibilityPredicate",
]
