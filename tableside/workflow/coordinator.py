# tableside/workflow/coordinator.py
from __future__ import annotations

import logging
from typing import List, Optional

from ..auth import Session
from ..errors import CascadeFailure, ConsoleError, EmptyCart, InvalidInput
from ..models import (
    CustomerInfo,
    MenuItem,
    NewUser,
    Order,
    OrderLine,
    OrderStatus,
    Reservation,
    ReservationStatus,
    Role,
    Table,
    TableStatus,
    User,
)
from ..ordering import pricing
from ..ordering.cart import Cart
from ..ordering.menu import MenuCatalog
from ..store.base import Store
from .guard import EntityGuard
from .machines import ORDER_MACHINE, RESERVATION_MACHINE, TABLE_MACHINE

logger = logging.getLogger(__name__)

# Reservations that will need the table later (but aren't sitting at it yet).
_UPCOMING = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})


class WorkflowCoordinator:
    """
    Single entry point for every status-changing operation at the console.

    Validation happens locally before any store call. Cascades (reservation ->
    table, order -> table) are a second, separate store call: if it fails the
    first change stands and CascadeFailure tells staff which step to redo.
    """

    def __init__(self, store: Store, guard: Optional[EntityGuard] = None):
        self.store = store
        self.guard = guard or EntityGuard()

    # -------------------
    # Catalog
    # -------------------
    async def load_catalog(self, session: Session) -> MenuCatalog:
        session.require(Role.STAFF)
        return MenuCatalog.from_items(await self.store.list_menu_items())

    async def create_menu_item(self, session: Session, item: MenuItem) -> MenuItem:
        session.require(Role.MANAGER)
        return await self.store.create_menu_item(item)

    async def update_menu_item(self, session: Session, menu_item_id: int, item: MenuItem) -> MenuItem:
        session.require(Role.MANAGER)
        return await self.store.update_menu_item(menu_item_id, item)

    async def delete_menu_item(self, session: Session, menu_item_id: int) -> None:
        session.require(Role.MANAGER)
        await self.store.delete_menu_item(menu_item_id)
        logger.info("menu item %s deleted", menu_item_id)

    # -------------------
    # Orders
    # -------------------
    async def create_order(
        self,
        session: Session,
        table_id: int,
        lines: List[OrderLine],
        customer: Optional[CustomerInfo] = None,
    ) -> Order:
        session.require(Role.STAFF)
        if not lines:
            raise EmptyCart()
        # prices and quantities are checked here, before the store sees anything
        pricing.order_total(lines)

        table = await self.store.get_table(table_id)
        if table.status == TableStatus.MAINTENANCE:
            raise InvalidInput(f"Table {table.table_number} is under maintenance")

        customer = customer or CustomerInfo()
        draft = Order(
            table_id=table_id,
            customer_name=customer.customer_name,
            customer_phone=customer.customer_phone,
            notes=customer.notes,
            lines=lines,
            status=OrderStatus.PENDING,
        )
        order = await self.store.create_order(draft)
        logger.info(
            "order %s created for table %s: %d lines, total %s",
            order.id, table.table_number, len(order.lines), order.total_amount,
        )
        return order

    async def submit_cart(
        self,
        session: Session,
        cart: Cart,
        table_id: int,
        customer: Optional[CustomerInfo] = None,
    ) -> Order:
        session.require(Role.STAFF)
        if not len(cart):
            raise EmptyCart()
        catalog = await self.load_catalog(session)
        lines = cart.to_order_draft(catalog)
        order = await self.create_order(session, table_id, lines, customer)
        # only a successful submission empties the cart; failures leave it for a retry
        cart.clear()
        return order

    async def change_order_status(self, session: Session, order_id: int, status: OrderStatus) -> Order:
        session.require(Role.STAFF)
        async with self.guard.hold("order", order_id):
            order = await self.store.get_order(order_id)
            ORDER_MACHINE.check(order.status, status)
            if order.status == status:
                return order

            updated = await self.store.update_order_status(order_id, status)
            logger.info("order %s: %s -> %s", order_id, order.status.value, status.value)

            if ORDER_MACHINE.is_terminal(status):
                await self._release_table(
                    updated.table_id,
                    committed=updated,
                    step=f"Order {order_id} marked {status.value}, but updating table {updated.table_id} failed",
                )
            return updated

    async def delete_order(self, session: Session, order_id: int) -> None:
        session.require(Role.MANAGER)
        async with self.guard.hold("order", order_id):
            await self.store.delete_order(order_id)
        logger.info("order %s deleted", order_id)

    # -------------------
    # Reservations
    # -------------------
    async def create_reservation(self, session: Session, reservation: Reservation) -> Reservation:
        session.require(Role.STAFF)
        if reservation.table_id is not None:
            await self.store.get_table(reservation.table_id)
        # new bookings always start at the beginning of the flow
        draft = reservation.model_copy(update={"id": None, "status": ReservationStatus.PENDING})
        return await self.store.create_reservation(draft)

    async def change_reservation_status(
        self, session: Session, reservation_id: int, status: ReservationStatus
    ) -> Reservation:
        session.require(Role.STAFF)
        async with self.guard.hold("reservation", reservation_id):
            reservation = await self.store.get_reservation(reservation_id)
            previous = reservation.status
            RESERVATION_MACHINE.check(previous, status)
            if previous == status:
                return reservation

            updated = await self.store.update_reservation_status(reservation_id, status)
            logger.info("reservation %s: %s -> %s", reservation_id, previous.value, status.value)

            table_id = updated.table_id
            if table_id is None:
                return updated

            if status == ReservationStatus.SEATED:
                await self._set_table_status(
                    table_id,
                    TableStatus.OCCUPIED,
                    committed=updated,
                    step=f"Reservation {reservation_id} marked SEATED, but table {table_id} update failed",
                )
            elif previous == ReservationStatus.SEATED and RESERVATION_MACHINE.is_terminal(status):
                await self._release_table(
                    table_id,
                    committed=updated,
                    step=f"Reservation {reservation_id} marked {status.value}, but table {table_id} update failed",
                )
            return updated

    # -------------------
    # Tables
    # -------------------
    async def create_table(self, session: Session, table: Table) -> Table:
        session.require(Role.STAFF)
        return await self.store.create_table(table)

    async def update_table(self, session: Session, table_id: int, table: Table) -> Table:
        session.require(Role.STAFF)
        async with self.guard.hold("table", table_id):
            return await self.store.update_table(table_id, table)

    async def delete_table(self, session: Session, table_id: int) -> None:
        session.require(Role.MANAGER)
        async with self.guard.hold("table", table_id):
            await self.store.delete_table(table_id)
        logger.info("table %s deleted", table_id)

    async def change_table_status(self, session: Session, table_id: int, status: TableStatus) -> Table:
        """Manual override: no effect on orders or reservations."""
        session.require(Role.STAFF)
        async with self.guard.hold("table", table_id):
            table = await self.store.get_table(table_id)
            TABLE_MACHINE.check(table.status, status)
            if table.status == status:
                return table
            updated = await self.store.update_table_status(table_id, status)
            logger.info("table %s: %s -> %s", table.table_number, table.status.value, status.value)
            return updated

    # -------------------
    # Users
    # -------------------
    async def provision_user(self, session: Session, new_user: NewUser) -> User:
        session.require(Role.ADMIN)
        user = await self.store.create_user(new_user)
        logger.info("user %s created with roles %s", user.username, ", ".join(new_user.roles))
        return user

    # -------------------
    # Cascades
    # -------------------
    async def _table_claim(self, table_id: int) -> Optional[TableStatus]:
        """
        What the remaining orders and reservations say the table should be:
        OCCUPIED if someone is at it, RESERVED if someone is booked on it,
        None if nothing claims it.
        """
        orders = await self.store.list_orders()
        for o in orders:
            if o.table_id == table_id and not ORDER_MACHINE.is_terminal(o.status):
                return TableStatus.OCCUPIED

        booked = False
        for r in await self.store.list_reservations():
            if r.table_id != table_id:
                continue
            if r.status == ReservationStatus.SEATED:
                return TableStatus.OCCUPIED
            if r.status in _UPCOMING:
                booked = True
        return TableStatus.RESERVED if booked else None

    async def _release_table(self, table_id: int, committed: object, step: str) -> None:
        try:
            table = await self.store.get_table(table_id)
            # manual states (and an already free table) are left alone
            if table.status in (TableStatus.MAINTENANCE, TableStatus.AVAILABLE):
                return
            # the entity that triggered this is already terminal, so it can't claim
            target = await self._table_claim(table_id) or TableStatus.AVAILABLE
        except ConsoleError as e:
            logger.warning("%s: %s", step, e)
            raise CascadeFailure(committed, step, e) from e
        if table.status != target:
            await self._set_table_status(table_id, target, committed=committed, step=step)

    async def _set_table_status(self, table_id: int, status: TableStatus, committed: object, step: str) -> None:
        try:
            async with self.guard.hold("table", table_id):
                await self.store.update_table_status(table_id, status)
        except ConsoleError as e:
            logger.warning("%s: %s", step, e)
            raise CascadeFailure(committed, step, e) from e
        logger.info("table %s -> %s (cascade)", table_id, status.value)
