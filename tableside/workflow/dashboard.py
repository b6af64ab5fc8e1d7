# tableside/workflow/dashboard.py
from __future__ import annotations

import asyncio
from datetime import date
from typing import Optional

from ..auth import Session
from ..models import OrderStatus, Role, TableStatus, WireModel
from ..store.base import Store
from .machines import ORDER_MACHINE

# Orders the kitchen still has to act on.
KITCHEN_QUEUE = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PREPARING})


class DashboardStats(WireModel):
    total_menu_items: int
    total_tables: int
    available_tables: int
    pending_orders: int
    active_orders: int
    today_reservations: int


async def dashboard_stats(session: Session, store: Store, today: Optional[date] = None) -> DashboardStats:
    session.require(Role.STAFF)
    today = today or date.today()

    menu, tables, orders, reservations = await asyncio.gather(
        store.list_menu_items(),
        store.list_tables(),
        store.list_orders(),
        store.list_reservations(),
    )

    return DashboardStats(
        total_menu_items=len(menu),
        total_tables=len(tables),
        available_tables=sum(1 for t in tables if t.status == TableStatus.AVAILABLE),
        pending_orders=sum(1 for o in orders if o.status in KITCHEN_QUEUE),
        active_orders=sum(1 for o in orders if not ORDER_MACHINE.is_terminal(o.status)),
        today_reservations=sum(1 for r in reservations if r.reservation_date.date() == today),
    )
