"""Field storage for FormManager.

Fields live in a single table keyed by name. Each entry carries the Field and
a visibility tag (ACTIVE or REMOVED), so a name is always in exactly one
bucket. Moving a field between buckets is a transition on the tag; the Field
object itself is never copied.

Bucket iteration order follows the order in which fields entered the bucket:
a field that moves is enumerated after the fields that were already there.

Usage:
    >>> from formstate.field import Field
    >>> repo = FieldRepository()
    >>> repo.add(Field(name="country", value=""))
    >>> repo.visibility_of("country")
    <FieldVisibility.ACTIVE: 'active'>
    >>> repo.transition("country", FieldVisibility.REMOVED)
    True
    >>> list(repo.fields(FieldVisibility.REMOVED))
    ['country']
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from formstate.errors import DuplicateFieldError, FieldNotFoundError
from formstate.field import Field
from formstate.types import FieldVisibility

logger = logging.getLogger(__name__)


@dataclass
class FieldEntry:
    """A stored field and the bucket it currently occupies."""

    field: Field
    visibility: FieldVisibility = FieldVisibility.ACTIVE


class FieldRepository:
    """Single-table store of fields tagged ACTIVE or REMOVED."""

    def __init__(self):
        self._entries: Dict[str, FieldEntry] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, field: Field, replace: bool = False) -> None:
        """Insert a field into the ACTIVE bucket.

        Args:
            field: Field to store
            replace: Overwrite an existing field with the same name instead
                of raising. The old field is discarded from either bucket.

        Raises:
            DuplicateFieldError: If the name is taken and replace is False
        """
        if field.name in self._entries:
            if not replace:
                raise DuplicateFieldError(field.name)
            logger.debug("Replacing existing field '%s'", field.name)
            del self._entries[field.name]
        field.is_visible = True
        self._entries[field.name] = FieldEntry(field=field, visibility=FieldVisibility.ACTIVE)

    def remove(self, name: str) -> Field:
        """Delete a field from whichever bucket holds it.

        Args:
            name: Field to delete

        Returns:
            The removed Field

        Raises:
            FieldNotFoundError: If no bucket holds the name
        """
        entry = self.get(name)
        del self._entries[name]
        return entry.field

    def lookup(self, name: str) -> Optional[FieldEntry]:
        """Find the entry for name without raising.

        Args:
            name: Field to look up

        Returns:
            The FieldEntry from either bucket, or None if the name is unknown
        """
        return self._entries.get(name)

    def get(self, name: str) -> FieldEntry:
        """Return the entry for name.

        Raises:
            FieldNotFoundError: If no bucket holds the name
        """
        entry = self._entries.get(name)
        if entry is None:
            raise FieldNotFoundError(name)
        return entry

    def get_in(self, name: str, visibility: FieldVisibility) -> Field:
        """Return the field only if it sits in the given bucket.

        Raises:
            FieldNotFoundError: If the name is absent from that bucket
        """
        entry = self._entries.get(name)
        if entry is None or entry.visibility != visibility:
            raise FieldNotFoundError(name)
        return entry.field

    def visibility_of(self, name: str) -> FieldVisibility:
        """Report which bucket holds a field.

        Args:
            name: Field to look up

        Returns:
            FieldVisibility.ACTIVE or FieldVisibility.REMOVED

        Raises:
            FieldNotFoundError: If no bucket holds the name
        """
        return self.get(name).visibility

    def transition(self, name: str, target: FieldVisibility) -> bool:
        """Move a field into the target bucket.

        Idempotent: moving a field into the bucket it already occupies leaves
        everything untouched, including iteration order.

        Args:
            name: Field to move
            target: Destination bucket

        Returns:
            True if the field changed buckets, False if it was already there

        Raises:
            FieldNotFoundError: If no bucket holds the name
        """
        entry = self.get(name)
        if entry.visibility == target:
            return False

        # Re-append so the field is enumerated last in its new bucket
        del self._entries[name]
        entry.visibility = target
        entry.field.is_visible = target == FieldVisibility.ACTIVE
        self._entries[name] = entry
        logger.debug("Moved field '%s' to %s", name, target.value)
        return True

    def fields(self, visibility: FieldVisibility) -> Dict[str, Field]:
        """Ordered snapshot of one bucket, name -> Field.

        The dict is new on every call; the Field objects are the stored ones.

        Args:
            visibility: Bucket to list

        Returns:
            Fields of that bucket in the order they entered it
        """
        return {
            name: entry.field
            for name, entry in self._entries.items()
            if entry.visibility == visibility
        }

    def dependents_of(self, name: str, visibility: FieldVisibility) -> List[str]:
        """Find the fields of one bucket whose conditional depends on name.

        Args:
            name: Field whose dependents are wanted
            visibility: Bucket to search

        Returns:
            Dependent names in bucket order
        """
        return [
            other
            for other, field in self.fields(visibility).items()
            if field.conditional.depends_on(name)
        ]


__all__ = [
    "FieldEntry",
    "FieldRepository",
]
