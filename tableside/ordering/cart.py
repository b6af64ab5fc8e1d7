# tableside/ordering/cart.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from ..errors import EmptyCart, InvalidInput, UnknownMenuItem
from ..models import OrderLine
from . import pricing
from .menu import MenuCatalog

logger = logging.getLogger(__name__)


@dataclass
class CartEntry:
    quantity: int
    note: str = ""


class Cart:
    """
    Item selections for one order being composed at the console.

    Keyed by menu item id, so the resulting draft does not depend on the order
    in which staff touched items. Never talks to the store.
    """

    def __init__(self) -> None:
        self._entries: Dict[int, CartEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, menu_item_id: object) -> bool:
        return menu_item_id in self._entries

    def entries(self) -> Dict[int, CartEntry]:
        return {mid: CartEntry(e.quantity, e.note) for mid, e in sorted(self._entries.items())}

    def clear(self) -> None:
        self._entries.clear()

    def set_quantity(self, menu_item_id: int, qty: int) -> None:
        if isinstance(qty, bool) or not isinstance(qty, int):
            raise InvalidInput(f"Quantity must be a whole number, got {qty!r}")
        if qty < 0:
            raise InvalidInput(f"Quantity cannot be negative, got {qty}")

        if qty == 0:
            self._entries.pop(menu_item_id, None)
            return

        entry = self._entries.get(menu_item_id)
        if entry:
            entry.quantity = qty
        else:
            self._entries[menu_item_id] = CartEntry(quantity=qty)

    def set_note(self, menu_item_id: int, note: Optional[str]) -> None:
        note = note or ""
        entry = self._entries.get(menu_item_id)
        if entry:
            entry.note = note
        elif note.strip():
            # a note on an untouched item adds one of it
            self._entries[menu_item_id] = CartEntry(quantity=1, note=note)

    def to_order_draft(self, catalog: MenuCatalog) -> List[OrderLine]:
        if not self._entries:
            raise EmptyCart()

        lines: List[OrderLine] = []
        for menu_item_id, entry in sorted(self._entries.items()):
            item = catalog.get(menu_item_id)
            if item is None:
                raise UnknownMenuItem(menu_item_id)
            lines.append(
                OrderLine(
                    menu_item_id=menu_item_id,
                    menu_item_name=item.name,
                    quantity=entry.quantity,
                    unit_price=item.price,
                    notes=entry.note.strip() or None,
                )
            )
        return lines

    def total(self, catalog: MenuCatalog) -> Decimal:
        """Running total while composing; unknown ids count as zero."""
        total = Decimal("0")
        for menu_item_id, entry in self._entries.items():
            item = catalog.get(menu_item_id)
            if item is None:
                logger.debug("cart total skipping unknown menu item %s", menu_item_id)
                continue
            total += pricing.line_total(item.price, entry.quantity)
        return pricing.round_money(total)

    def summary(self, catalog: MenuCatalog, currency_symbol: str = "$") -> Tuple[str, Decimal]:
        if not self._entries:
            return ("The order is empty.", Decimal("0.00"))

        text: List[str] = []
        for i, (menu_item_id, entry) in enumerate(sorted(self._entries.items()), start=1):
            item = catalog.get(menu_item_id)
            if item is None:
                # shown but not priced, same as total(); submitting still fails
                text.append(f"{i}. x{entry.quantity} item #{menu_item_id} is no longer on the menu")
                continue
            line_total = pricing.line_total(item.price, entry.quantity)
            row = f"{i}. x{entry.quantity} {item.name} = {currency_symbol}{line_total:.2f}"
            if entry.note.strip():
                row += f" ({entry.note.strip()})"
            text.append(row)

        total = self.total(catalog)
        return ("Order summary:\n" + "\n".join(text) + f"\n\nTotal: {currency_symbol}{total:.2f}", total)

    def missing(self, catalog: MenuCatalog) -> List[int]:
        """Ids in the cart that the catalog no longer knows."""
        return [mid for mid in sorted(self._entries) if mid not in catalog]
