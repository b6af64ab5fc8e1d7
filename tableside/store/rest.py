# tableside/store/rest.py
from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..auth import Session
from ..config import settings
from ..errors import NotFound, PersistenceError, Unauthorized
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
from .base import Store

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_SIGN_IN_PATH = "/auth/signin"


def _error_message(resp: httpx.Response, fallback: str) -> str:
    try:
        body = resp.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or fallback)
    return fallback


class RestStore(Store):
    """
    Store collaborator backed by the restaurant REST API.

    Reads the bearer token from the session on every request. A 401 on
    anything but sign-in tears the session down, forcing a fresh login.
    """

    def __init__(
        self,
        session: Session,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout if timeout is not None else settings.request_timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RestStore":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # -------------------
    # Plumbing
    # -------------------
    def _headers(self) -> dict:
        token = (self.session.token or "").strip()
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        entity: str = "resource",
        entity_id: Any = None,
    ) -> Any:
        try:
            resp = await self._client.request(method, path, json=json, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise PersistenceError(f"Could not reach the restaurant API ({e.__class__.__name__})") from e

        if resp.status_code == 401:
            if path == _SIGN_IN_PATH:
                raise Unauthorized(_error_message(resp, "Bad credentials"))
            self.session.teardown("API answered 401 Unauthorized")
            raise Unauthorized("Session expired, sign in again", session_expired=True)

        if resp.status_code == 403:
            raise Unauthorized(_error_message(resp, "Not allowed"), forbidden=True)

        if resp.status_code == 404:
            raise NotFound(entity, entity_id if entity_id is not None else path)

        if resp.is_error:
            message = _error_message(resp, f"Restaurant API error {resp.status_code}")
            logger.warning("%s %s -> %s: %s", method, path, resp.status_code, message)
            raise PersistenceError(message, status_code=resp.status_code)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise PersistenceError(f"Unreadable response from {method} {path}") from e

    @staticmethod
    def _one(model: Type[M], data: Any) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise PersistenceError(f"Unexpected {model.__name__} payload from API: {e.error_count()} errors") from e

    @classmethod
    def _many(cls, model: Type[M], data: Any) -> List[M]:
        if not isinstance(data, list):
            raise PersistenceError(f"Expected a list of {model.__name__}, got {type(data).__name__}")
        return [cls._one(model, x) for x in data]

    # -------------------
    # Auth
    # -------------------
    async def sign_in(self, username: str, password: str) -> Tuple[str, User]:
        data = await self._request("POST", _SIGN_IN_PATH, json={"username": username, "password": password})
        if not isinstance(data, dict):
            raise PersistenceError("Unexpected sign-in response from API")
        token = str(data.pop("token", "") or "")
        return token, self._one(User, data)

    async def create_user(self, new_user: NewUser) -> User:
        data = await self._request("POST", "/auth/admin/create-user", json=new_user.wire())
        return self._one(User, data)

    # -------------------
    # Menu
    # -------------------
    async def list_menu_items(self) -> List[MenuItem]:
        return self._many(MenuItem, await self._request("GET", "/menu/items"))

    async def get_menu_item(self, menu_item_id: int) -> MenuItem:
        data = await self._request("GET", f"/menu/items/{menu_item_id}", entity="menu item", entity_id=menu_item_id)
        return self._one(MenuItem, data)

    async def list_menu_items_by_category(self, category: MenuCategory) -> List[MenuItem]:
        return self._many(MenuItem, await self._request("GET", f"/menu/items/category/{category.value}"))

    async def list_available_menu_items(self) -> List[MenuItem]:
        return self._many(MenuItem, await self._request("GET", "/menu/items/available"))

    async def create_menu_item(self, item: MenuItem) -> MenuItem:
        data = await self._request("POST", "/menu/items", json=item.wire(exclude={"id"}))
        return self._one(MenuItem, data)

    async def update_menu_item(self, menu_item_id: int, item: MenuItem) -> MenuItem:
        data = await self._request(
            "PUT", f"/menu/items/{menu_item_id}", json=item.wire(exclude={"id"}),
            entity="menu item", entity_id=menu_item_id,
        )
        return self._one(MenuItem, data)

    async def delete_menu_item(self, menu_item_id: int) -> None:
        await self._request("DELETE", f"/menu/items/{menu_item_id}", entity="menu item", entity_id=menu_item_id)

    # -------------------
    # Tables
    # -------------------
    async def list_tables(self) -> List[Table]:
        return self._many(Table, await self._request("GET", "/tables"))

    async def get_table(self, table_id: int) -> Table:
        return self._one(Table, await self._request("GET", f"/tables/{table_id}", entity="table", entity_id=table_id))

    async def list_tables_by_status(self, status: TableStatus) -> List[Table]:
        return self._many(Table, await self._request("GET", f"/tables/status/{status.value}"))

    async def list_tables_by_capacity(self, capacity: int) -> List[Table]:
        return self._many(Table, await self._request("GET", f"/tables/capacity/{capacity}"))

    async def create_table(self, table: Table) -> Table:
        return self._one(Table, await self._request("POST", "/tables", json=table.wire(exclude={"id"})))

    async def update_table(self, table_id: int, table: Table) -> Table:
        data = await self._request(
            "PUT", f"/tables/{table_id}", json=table.wire(exclude={"id"}), entity="table", entity_id=table_id
        )
        return self._one(Table, data)

    async def update_table_status(self, table_id: int, status: TableStatus) -> Table:
        data = await self._request(
            "PUT", f"/tables/{table_id}/status", json=status.value, entity="table", entity_id=table_id
        )
        return self._one(Table, data)

    async def delete_table(self, table_id: int) -> None:
        await self._request("DELETE", f"/tables/{table_id}", entity="table", entity_id=table_id)

    # -------------------
    # Orders
    # -------------------
    async def list_orders(self) -> List[Order]:
        return self._many(Order, await self._request("GET", "/orders"))

    async def get_order(self, order_id: int) -> Order:
        return self._one(Order, await self._request("GET", f"/orders/{order_id}", entity="order", entity_id=order_id))

    async def list_orders_by_status(self, status: OrderStatus) -> List[Order]:
        return self._many(Order, await self._request("GET", f"/orders/status/{status.value}"))

    async def create_order(self, order: Order) -> Order:
        data = await self._request("POST", "/orders", json=order.wire(exclude={"id", "created_at"}))
        return self._one(Order, data)

    async def update_order(self, order_id: int, order: Order) -> Order:
        data = await self._request(
            "PUT", f"/orders/{order_id}", json=order.wire(exclude={"id", "created_at"}),
            entity="order", entity_id=order_id,
        )
        return self._one(Order, data)

    async def update_order_status(self, order_id: int, status: OrderStatus) -> Order:
        data = await self._request(
            "PUT", f"/orders/{order_id}/status", json=status.value, entity="order", entity_id=order_id
        )
        return self._one(Order, data)

    async def delete_order(self, order_id: int) -> None:
        await self._request("DELETE", f"/orders/{order_id}", entity="order", entity_id=order_id)

    # -------------------
    # Reservations
    # -------------------
    async def list_reservations(self) -> List[Reservation]:
        return self._many(Reservation, await self._request("GET", "/reservations"))

    async def get_reservation(self, reservation_id: int) -> Reservation:
        data = await self._request(
            "GET", f"/reservations/{reservation_id}", entity="reservation", entity_id=reservation_id
        )
        return self._one(Reservation, data)

    async def list_reservations_by_status(self, status: ReservationStatus) -> List[Reservation]:
        return self._many(Reservation, await self._request("GET", f"/reservations/status/{status.value}"))

    async def create_reservation(self, reservation: Reservation) -> Reservation:
        data = await self._request("POST", "/reservations", json=reservation.wire(exclude={"id"}))
        return self._one(Reservation, data)

    async def update_reservation(self, reservation_id: int, reservation: Reservation) -> Reservation:
        data = await self._request(
            "PUT", f"/reservations/{reservation_id}", json=reservation.wire(exclude={"id"}),
            entity="reservation", entity_id=reservation_id,
        )
        return self._one(Reservation, data)

    async def update_reservation_status(self, reservation_id: int, status: ReservationStatus) -> Reservation:
        data = await self._request(
            "PUT", f"/reservations/{reservation_id}/status", json=status.value,
            entity="reservation", entity_id=reservation_id,
        )
        return self._one(Reservation, data)
