"""Operator selection for bulk actions."""
from typing import Iterable


class SelectionManager:
    """Set of selected product ids. In memory only."""

    def __init__(self):
        self._selected: set[str] = set()

    def select_all(self, ids: Iterable[str]) -> None:
        self._selected = set(ids)

    def select_none(self) -> None:
        self._selected = set()

    def toggle(self, product_id: str) -> bool:
        """Flip selection of product_id. Returns the new state."""
        if product_id in self._selected:
            self._selected.discard(product_id)
            return False
        self._selected.add(product_id)
        return True

    def is_selected(self, product_id: str) -> bool:
        return product_id in self._selected

    def size(self) -> int:
        return len(self._selected)

    def selected(self) -> frozenset[str]:
        return frozenset(self._selected)

    def discard_many(self, ids: Iterable[str]) -> None:
        """Evict ids, e.g. after the records were deleted."""
        self._selected.difference_update(ids)

    def all_selected(self, ids: Iterable[str]) -> bool:
        """True when ids is non-empty and every one of them is selected."""
        ids = set(ids)
        return bool(ids) and ids <= self._selected
