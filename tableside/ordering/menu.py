# tableside/ordering/menu.py
from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional

from ..models import MenuCategory, MenuItem


class MenuCatalog:
    """
    Read-only snapshot of the menu, indexed by id.
    Cart drafts resolve prices against this, never against live store data.
    """

    def __init__(self, items_by_id: Dict[int, MenuItem]):
        self._items_by_id = items_by_id

    @classmethod
    def from_items(cls, items: Iterable[MenuItem]) -> "MenuCatalog":
        items_by_id: Dict[int, MenuItem] = {}
        for it in items:
            # unsaved items can't be referenced by an order line
            if it.id is not None:
                items_by_id[it.id] = it
        return cls(items_by_id)

    def get(self, menu_item_id: int) -> Optional[MenuItem]:
        return self._items_by_id.get(menu_item_id)

    def __contains__(self, menu_item_id: object) -> bool:
        return menu_item_id in self._items_by_id

    def __iter__(self) -> Iterator[MenuItem]:
        return iter(self._items_by_id.values())

    def __len__(self) -> int:
        return len(self._items_by_id)

    def by_category(self, category: MenuCategory) -> List[MenuItem]:
        return [it for it in self if it.category == category]

    def available(self) -> List[MenuItem]:
        return [it for it in self if it.is_available]

    def categories(self) -> List[MenuCategory]:
        present = {it.category for it in self}
        return [c for c in MenuCategory if c in present]
