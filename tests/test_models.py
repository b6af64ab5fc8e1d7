from decimal import Decimal

import pytest
from pydantic import ValidationError

from tableside.models import (
    CustomerInfo,
    MenuCategory,
    MenuItem,
    NewUser,
    Order,
    OrderLine,
    OrderStatus,
    Reservation,
    Role,
    User,
)


def _order() -> Order:
    return Order(
        table_id=4,
        customer_name="Dana",
        lines=[
            OrderLine(menu_item_id=1, menu_item_name="Bruschetta", quantity=2, unit_price=Decimal("12.50")),
            OrderLine(menu_item_id=2, quantity=1, unit_price=Decimal("5.00"), notes="no onions"),
        ],
    )


class TestOrderWire:
    def test_camel_case_payload(self):
        payload = _order().wire(exclude={"id"})

        assert payload == {
            "tableId": 4,
            "customerName": "Dana",
            "orderItems": [
                {"menuItemId": 1, "quantity": 2, "unitPrice": 12.5, "totalPrice": 25.0},
                {"menuItemId": 2, "quantity": 1, "unitPrice": 5.0, "notes": "no onions", "totalPrice": 5.0},
            ],
            "status": "PENDING",
            "totalAmount": 30.0,
        }

    def test_totals_are_derived_not_trusted(self):
        order = Order.model_validate(
            {
                "tableId": 4,
                "totalAmount": 999,
                "orderItems": [{"menuItemId": 1, "quantity": 2, "unitPrice": 12.5, "totalPrice": 1}],
            }
        )
        assert order.lines[0].total_price == Decimal("25.00")
        assert order.total_amount == Decimal("25.00")

    def test_nested_references_flattened(self):
        order = Order.model_validate(
            {
                "id": 12,
                "table": {"id": 7, "tableNumber": 7, "capacity": 6},
                "orderItems": [{"menuItem": {"id": 2, "name": "Garden Salad"}, "quantity": 1, "unitPrice": 5}],
                "status": "SERVED",
                "createdAt": "2026-10-19T18:30:00",
            }
        )
        assert order.table_id == 7
        assert order.status == OrderStatus.SERVED
        assert order.lines[0].menu_item_id == 2
        assert order.lines[0].menu_item_name == "Garden Salad"

    def test_nested_reference_does_not_touch_input(self):
        raw = {"menuItem": {"id": 2, "name": "Garden Salad"}, "quantity": 1, "unitPrice": 5}
        OrderLine.model_validate(raw)
        assert "menuItemId" not in raw

    def test_line_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            OrderLine(menu_item_id=1, quantity=0, unit_price=Decimal("1.00"))


class TestMenuItem:
    def test_reads_api_shape(self):
        item = MenuItem.model_validate(
            {"id": 3, "name": "Lemonade", "price": 3.5, "category": "Beverages", "isAvailable": False}
        )
        assert item.category == MenuCategory.BEVERAGES
        assert item.price == Decimal("3.5")
        assert not item.is_available

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            MenuItem(name="Oops", price=Decimal("-1"), category=MenuCategory.DESSERTS)


class TestReservation:
    def test_table_reference(self):
        r = Reservation.model_validate(
            {
                "customerName": "Lee",
                "customerPhone": "555-0100",
                "reservationDate": "2026-10-19T19:00:00",
                "partySize": 4,
                "table": {"id": 7},
            }
        )
        assert r.table_id == 7
        assert r.wire()["tableId"] == 7


class TestUsers:
    def test_unknown_roles_dropped(self):
        user = User.model_validate({"username": "u", "roles": ["ROLE_ADMIN", "ROLE_USER"]})
        assert user.roles == [Role.ADMIN]

    def test_roles_accept_enum_members(self):
        assert User(username="u", roles=[Role.STAFF]).roles == [Role.STAFF]

    def test_new_user_defaults_to_staff(self):
        new_user = NewUser(
            username="kim", email="kim@example.com", password="s3cret", first_name="Kim", last_name="Ng"
        )
        assert new_user.roles == ["staff"]
        assert new_user.wire()["firstName"] == "Kim"

    @pytest.mark.parametrize("roles", [[], ["owner"]])
    def test_new_user_bad_roles(self, roles):
        with pytest.raises(ValidationError):
            NewUser(
                username="kim",
                email="kim@example.com",
                password="s3cret",
                first_name="Kim",
                last_name="Ng",
                roles=roles,
            )


def test_customer_blank_fields_become_none():
    info = CustomerInfo(customer_name="  ", customer_phone="555-0101", notes="")
    assert info.customer_name is None
    assert info.customer_phone == "555-0101"
    assert info.notes is None
