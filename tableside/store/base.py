# tableside/store/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Tuple

from ..models import (
    MenuCategory,
    MenuItem,
    NewUser,
    Order,
    OrderStatus,
    Reservation,
    ReservationStatus,
    Table,
    TableStatus,
    User,
)

# The console never persists anything itself. Everything below is provided by
# the remote restaurant API (see store/rest.py). Implementations raise
# NotFound / Unauthorized / PersistenceError from tableside.errors.


class MenuCatalogStore(ABC):
    @abstractmethod
    async def list_menu_items(self) -> List[MenuItem]: ...

    @abstractmethod
    async def get_menu_item(self, menu_item_id: int) -> MenuItem: ...

    @abstractmethod
    async def list_menu_items_by_category(self, category: MenuCategory) -> List[MenuItem]: ...

    @abstractmethod
    async def list_available_menu_items(self) -> List[MenuItem]: ...

    @abstractmethod
    async def create_menu_item(self, item: MenuItem) -> MenuItem: ...

    @abstractmethod
    async def update_menu_item(self, menu_item_id: int, item: MenuItem) -> MenuItem: ...

    @abstractmethod
    async def delete_menu_item(self, menu_item_id: int) -> None: ...


class TableStore(ABC):
    @abstractmethod
    async def list_tables(self) -> List[Table]: ...

    @abstractmethod
    async def get_table(self, table_id: int) -> Table: ...

    @abstractmethod
    async def list_tables_by_status(self, status: TableStatus) -> List[Table]: ...

    @abstractmethod
    async def list_tables_by_capacity(self, capacity: int) -> List[Table]: ...

    @abstractmethod
    async def create_table(self, table: Table) -> Table: ...

    @abstractmethod
    async def update_table(self, table_id: int, table: Table) -> Table: ...

    @abstractmethod
    async def update_table_status(self, table_id: int, status: TableStatus) -> Table: ...

    @abstractmethod
    async def delete_table(self, table_id: int) -> None: ...


class OrderStore(ABC):
    @abstractmethod
    async def list_orders(self) -> List[Order]: ...

    @abstractmethod
    async def get_order(self, order_id: int) -> Order: ...

    @abstractmethod
    async def list_orders_by_status(self, status: OrderStatus) -> List[Order]: ...

    @abstractmethod
    async def create_order(self, order: Order) -> Order: ...

    @abstractmethod
    async def update_order(self, order_id: int, order: Order) -> Order: ...

    @abstractmethod
    async def update_order_status(self, order_id: int, status: OrderStatus) -> Order: ...

    @abstractmethod
    async def delete_order(self, order_id: int) -> None: ...


class ReservationStore(ABC):
    @abstractmethod
    async def list_reservations(self) -> List[Reservation]: ...

    @abstractmethod
    async def get_reservation(self, reservation_id: int) -> Reservation: ...

    @abstractmethod
    async def list_reservations_by_status(self, status: ReservationStatus) -> List[Reservation]: ...

    @abstractmethod
    async def create_reservation(self, reservation: Reservation) -> Reservation: ...

    @abstractmethod
    async def update_reservation(self, reservation_id: int, reservation: Reservation) -> Reservation: ...

    @abstractmethod
    async def update_reservation_status(self, reservation_id: int, status: ReservationStatus) -> Reservation: ...


class AuthGateway(ABC):
    @abstractmethod
    async def sign_in(self, username: str, password: str) -> Tuple[str, User]: ...

    @abstractmethod
    async def create_user(self, new_user: NewUser) -> User: ...


class Store(MenuCatalogStore, TableStore, OrderStore, ReservationStore, AuthGateway):
    """Everything the console needs from the remote API."""
