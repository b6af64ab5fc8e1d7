# tableside/errors.py
from __future__ import annotations

from typing import Any, Optional


class ConsoleError(Exception):
    """Base class for every failure the console reports to staff."""


# -------------------
# Local validation (raised before any store call)
# -------------------
class InvalidInput(ConsoleError):
    pass


class UnknownMenuItem(ConsoleError):
    def __init__(self, menu_item_id: int):
        super().__init__(f"Menu item {menu_item_id} is no longer on the menu")
        self.menu_item_id = menu_item_id


class EmptyCart(ConsoleError):
    def __init__(self, message: str = "Cannot submit an order with no items"):
        super().__init__(message)


class IllegalTransition(ConsoleError):
    def __init__(self, entity: str, current: Any, target: Any):
        super().__init__(f"Cannot move {entity} from {_status_text(current)} to {_status_text(target)}")
        self.entity = entity
        self.current = current
        self.target = target


class ConcurrentModification(ConsoleError):
    def __init__(self, entity: str, entity_id: int):
        super().__init__(f"{entity.capitalize()} {entity_id} already has a change in progress")
        self.entity = entity
        self.entity_id = entity_id


# -------------------
# Store collaborator / session
# -------------------
class NotFound(ConsoleError):
    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity.capitalize()} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class PersistenceError(ConsoleError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class Unauthorized(ConsoleError):
    """
    `session_expired`: the session was (or already is) torn down, sign in again.
    `forbidden`: signed in, but the role is not enough.
    """

    def __init__(self, message: str = "Not authorized", session_expired: bool = False, forbidden: bool = False):
        super().__init__(message)
        self.session_expired = session_expired
        self.forbidden = forbidden


class CascadeFailure(ConsoleError):
    """
    The primary change was committed but its follow-up was not.
    Nothing is rolled back; staff retry the failed step by hand.
    """

    def __init__(self, committed: Any, step: str, cause: ConsoleError):
        super().__init__(f"{step}: {cause}")
        self.committed = committed
        self.step = step
        self.cause = cause


def _status_text(status: Any) -> str:
    return str(getattr(status, "value", status))
