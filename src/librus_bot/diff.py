"""
Snapshot diffing.

Computes the added/removed delta between two snapshots of a category.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar

T = TypeVar("T")


@dataclass
class Delta(Generic[T]):
    """Items that appeared in and disappeared from a snapshot."""
    added: List[T] = field(default_factory=list)
    removed: List[T] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.added and not self.removed

    def __bool__(self) -> bool:
        return not self.is_empty


def diff(
    old_items: Sequence[T],
    new_items: Sequence[T],
    key: Optional[Callable[[T], Any]] = None,
) -> Delta[T]:
    """
    Compute the delta between two snapshots.

    Items sharing an identity key are considered the same item, even if
    other fields differ. Without a key, whole records are compared.

    Args:
        old_items: Previous snapshot
        new_items: Freshly fetched snapshot
        key: Identity function, or None for whole-record equality

    Returns:
        Delta: ``added`` in the order of ``new_items``, ``removed`` in the
        order of ``old_items``
    """
    old_items = list(old_items)
    new_items = list(new_items)

    if old_items == new_items:
        return Delta()

    if key is None:
        added = [item for item in new_items if item not in old_items]
        removed = [item for item in old_items if item not in new_items]
        return Delta(added=added, removed=removed)

    old_keys = {key(item) for item in old_items}
    new_keys = {key(item) for item in new_items}

    return Delta(
        added=[item for item in new_items if key(item) not in old_keys],
        removed=[item for item in old_items if key(item) not in new_keys],
    )
