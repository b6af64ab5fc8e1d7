# tableside/models.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    PlainSerializer,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .ordering import pricing

# Prices travel as JSON numbers, not strings.
Money = Annotated[Decimal, Field(ge=0), PlainSerializer(float, return_type=float, when_used="json")]


# -------------------
# Enums
# -------------------
class MenuCategory(str, Enum):
    APPETIZERS = "Appetizers"
    MAIN_COURSE = "Main Course"
    DESSERTS = "Desserts"
    BEVERAGES = "Beverages"
    SALADS = "Salads"


class TableStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    RESERVED = "RESERVED"
    MAINTENANCE = "MAINTENANCE"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    READY = "READY"
    SERVED = "SERVED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ReservationStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    SEATED = "SEATED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


class Role(str, Enum):
    ADMIN = "ROLE_ADMIN"
    MANAGER = "ROLE_MANAGER"
    STAFF = "ROLE_STAFF"


# -------------------
# Base
# -------------------
class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python; both accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def wire(self, **kwargs: Any) -> Dict[str, Any]:
        kwargs.setdefault("exclude_none", True)
        return self.model_dump(mode="json", by_alias=True, **kwargs)


def _flatten_ref(data: Any, nested_key: str, id_key: str) -> Any:
    # The API embeds related entities ({"table": {"id": 7, ...}}) in responses
    # but expects bare ids ({"tableId": 7}) in requests.
    if isinstance(data, dict) and isinstance(data.get(nested_key), dict) and id_key not in data:
        data = dict(data)
        data[id_key] = data[nested_key].get("id")
    return data


# -------------------
# Menu / tables
# -------------------
class MenuItem(WireModel):
    id: Optional[int] = None
    name: str = Field(min_length=1)
    description: str = ""
    price: Money
    category: MenuCategory
    is_available: bool = True
    image_url: Optional[str] = None
    preparation_time: Optional[int] = Field(default=None, ge=0)


class Table(WireModel):
    id: Optional[int] = None
    table_number: int = Field(ge=1)
    capacity: int = Field(ge=1)
    location: Optional[str] = None
    status: TableStatus = TableStatus.AVAILABLE


# -------------------
# Orders
# -------------------
class OrderLine(WireModel):
    menu_item_id: int
    menu_item_name: Optional[str] = Field(default=None, exclude=True)
    quantity: int = Field(ge=1)
    unit_price: Money
    notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _menu_item_ref(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("menuItem"), dict):
            data = _flatten_ref(dict(data), "menuItem", "menuItemId")
            data.setdefault("menuItemName", data["menuItem"].get("name"))
        return data

    @computed_field(alias="totalPrice")
    @property
    def total_price(self) -> Money:
        return pricing.line_total(self.unit_price, self.quantity)


class CustomerInfo(WireModel):
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("customer_name", "customer_phone", "notes")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        v = (v or "").strip()
        return v or None


class Order(WireModel):
    id: Optional[int] = None
    table_id: int
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    lines: List[OrderLine] = Field(default_factory=list, alias="orderItems")
    status: OrderStatus = OrderStatus.PENDING
    created_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def _table_ref(cls, data: Any) -> Any:
        return _flatten_ref(data, "table", "tableId")

    @computed_field(alias="totalAmount")
    @property
    def total_amount(self) -> Money:
        return pricing.order_total(self.lines)


# -------------------
# Reservations
# -------------------
class Reservation(WireModel):
    id: Optional[int] = None
    customer_name: str = Field(min_length=1)
    customer_phone: str = Field(min_length=1)
    customer_email: Optional[str] = None
    reservation_date: datetime
    party_size: int = Field(ge=1)
    table_id: Optional[int] = None
    notes: Optional[str] = None
    status: ReservationStatus = ReservationStatus.PENDING

    @model_validator(mode="before")
    @classmethod
    def _table_ref(cls, data: Any) -> Any:
        return _flatten_ref(data, "table", "tableId")


# -------------------
# Users
# -------------------
class User(WireModel):
    id: Optional[int] = None
    username: str
    email: Optional[str] = None
    roles: List[Role] = Field(default_factory=list)

    @field_validator("roles", mode="before")
    @classmethod
    def _known_roles(cls, v: Any) -> List[str]:
        # the API may hand back roles this console has no use for
        known = {r.value for r in Role}
        return [str(getattr(r, "value", r)) for r in (v or []) if getattr(r, "value", r) in known]


class NewUser(WireModel):
    username: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=1)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    phone: Optional[str] = None
    roles: List[Literal["admin", "manager", "staff"]] = Field(default_factory=lambda: ["staff"], min_length=1)
