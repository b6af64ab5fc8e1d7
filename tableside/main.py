# tableside/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import Body, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .auth import Session
from .config import settings
from .errors import (
    CascadeFailure,
    ConcurrentModification,
    ConsoleError,
    EmptyCart,
    IllegalTransition,
    InvalidInput,
    NotFound,
    PersistenceError,
    Unauthorized,
    UnknownMenuItem,
)
from .models import CustomerInfo, NewUser, OrderStatus, ReservationStatus, Role, TableStatus
from .ordering.cart import Cart
from .store.base import Store
from .store.rest import RestStore
from .workflow.coordinator import WorkflowCoordinator
from .workflow.dashboard import dashboard_stats

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


# -------------------
# Console state (one signed-in user per process)
# -------------------
class Console:
    def __init__(self, session: Session, store: Store):
        self.session = session
        self.store = store
        self.coordinator = WorkflowCoordinator(store)
        self.cart = Cart()


_console: Optional[Console] = None


def get_console() -> Console:
    global _console
    if _console is None:
        session = Session.load(settings.session_file)
        _console = Console(session, RestStore(session))
    return _console


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if _console is not None and isinstance(_console.store, RestStore):
        await _console.store.aclose()


app = FastAPI(
    title="Tableside Console API",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
    lifespan=lifespan,
)


# -------------------
# Errors
# -------------------
_HTTP_STATUS = (
    (InvalidInput, 400),
    (UnknownMenuItem, 400),
    (EmptyCart, 400),
    (NotFound, 404),
    (IllegalTransition, 409),
    (ConcurrentModification, 409),
    (CascadeFailure, 502),
    (PersistenceError, 502),
)


@app.exception_handler(ConsoleError)
async def console_error_handler(request: Request, exc: ConsoleError) -> JSONResponse:
    body: Dict[str, Any] = {"detail": str(exc), "error": exc.__class__.__name__}

    if isinstance(exc, Unauthorized):
        status_code = 403 if exc.forbidden else 401
    else:
        status_code = next((code for kind, code in _HTTP_STATUS if isinstance(exc, kind)), 500)

    if isinstance(exc, CascadeFailure):
        body["step"] = exc.step
        committed = exc.committed
        body["committed"] = committed.wire() if hasattr(committed, "wire") else None

    return JSONResponse(status_code=status_code, content=body)


# -------------------
# Schemas
# -------------------
class LoginIn(BaseModel):
    username: str
    password: str


class CartItemIn(BaseModel):
    quantity: Optional[int] = None
    notes: Optional[str] = None


class SubmitIn(CustomerInfo):
    table_id: int


# -------------------
# Helpers
# -------------------
def _user_view(session: Session) -> Dict[str, Any]:
    if not session.is_authenticated:
        raise Unauthorized("Sign in required", session_expired=True)
    return {
        "user": session.user.wire(),
        "isAdmin": session.is_admin(),
        "isManager": session.is_manager(),
        "isStaff": session.is_staff(),
    }


async def _cart_view(console: Console) -> Dict[str, Any]:
    catalog = await console.coordinator.load_catalog(console.session)
    items: List[Dict[str, Any]] = [
        {"menuItemId": mid, "quantity": e.quantity, "notes": e.note or None}
        for mid, e in console.cart.entries().items()
    ]
    summary, total = console.cart.summary(catalog, currency_symbol=settings.currency_symbol)
    missing = console.cart.missing(catalog)
    return {
        "items": items,
        "summary": summary,
        "total": float(total),
        "missing": missing,
        "canSubmit": bool(items) and not missing,
    }


# -------------------
# Health
# -------------------
@app.get("/health")
def health():
    return {"ok": True, "service": "tableside-console"}


# -------------------
# Auth
# -------------------
@app.post("/auth/login")
async def login(payload: LoginIn, console: Console = Depends(get_console)):
    await console.session.login(console.store, payload.username, payload.password)
    return {"ok": True, **_user_view(console.session)}


@app.post("/auth/logout")
def logout(console: Console = Depends(get_console)):
    console.session.logout()
    console.cart.clear()
    return {"ok": True}


@app.get("/auth/me")
def me(console: Console = Depends(get_console)):
    return _user_view(console.session)


# -------------------
# Menu
# -------------------
@app.get("/menu")
async def menu(console: Console = Depends(get_console)):
    catalog = await console.coordinator.load_catalog(console.session)
    return [it.wire() for it in catalog]


# -------------------
# Cart (order being composed)
# -------------------
@app.get("/cart")
async def get_cart(console: Console = Depends(get_console)):
    return await _cart_view(console)


@app.put("/cart/items/{menu_item_id}")
async def set_cart_item(menu_item_id: int, payload: CartItemIn, console: Console = Depends(get_console)):
    catalog = await console.coordinator.load_catalog(console.session)
    # removing an item that has left the menu is always allowed
    removing = payload.quantity == 0
    if menu_item_id not in catalog and not removing:
        raise UnknownMenuItem(menu_item_id)

    # set_quantity validates before it mutates, so it goes first;
    # a note sent alongside quantity 0 is dropped with the item
    if payload.quantity is not None:
        console.cart.set_quantity(menu_item_id, payload.quantity)
    if payload.notes is not None and not removing:
        console.cart.set_note(menu_item_id, payload.notes)
    return await _cart_view(console)


@app.delete("/cart")
def clear_cart(console: Console = Depends(get_console)):
    console.cart.clear()
    return {"ok": True}


@app.post("/cart/submit", status_code=201)
async def submit_cart(payload: SubmitIn, console: Console = Depends(get_console)):
    order = await console.coordinator.submit_cart(console.session, console.cart, payload.table_id, payload)
    return order.wire()


# -------------------
# Status changes
# -------------------
@app.put("/orders/{order_id}/status")
async def order_status(order_id: int, status: OrderStatus = Body(...), console: Console = Depends(get_console)):
    order = await console.coordinator.change_order_status(console.session, order_id, status)
    return order.wire()


@app.put("/reservations/{reservation_id}/status")
async def reservation_status(
    reservation_id: int, status: ReservationStatus = Body(...), console: Console = Depends(get_console)
):
    reservation = await console.coordinator.change_reservation_status(console.session, reservation_id, status)
    return reservation.wire()


@app.put("/tables/{table_id}/status")
async def table_status(table_id: int, status: TableStatus = Body(...), console: Console = Depends(get_console)):
    table = await console.coordinator.change_table_status(console.session, table_id, status)
    return table.wire()


# -------------------
# Admin
# -------------------
@app.post("/users", status_code=201)
async def create_user(payload: NewUser, console: Console = Depends(get_console)):
    user = await console.coordinator.provision_user(console.session, payload)
    return user.wire()


@app.get("/dashboard")
async def dashboard(console: Console = Depends(get_console)):
    stats = await dashboard_stats(console.session, console.store)
    return stats.wire()
