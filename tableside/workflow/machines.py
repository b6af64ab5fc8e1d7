# tableside/workflow/machines.py
from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Iterable, Type

from ..errors import IllegalTransition
from ..models import OrderStatus, ReservationStatus, TableStatus


class StateMachine:
    """
    Explicit transition table for one entity kind.

    `transitions` maps each status to the statuses it may move to. A move to
    the current status is a no-op unless that status is terminal.
    """

    def __init__(
        self,
        entity: str,
        states: Type[Enum],
        transitions: Dict[Enum, FrozenSet[Enum]],
        terminal: FrozenSet[Enum] = frozenset(),
    ):
        missing = set(states) - set(transitions)
        if missing:
            raise ValueError(f"{entity} transition table has no entry for {sorted(s.value for s in missing)}")
        self.entity = entity
        self.states = states
        self.transitions = transitions
        self.terminal = terminal

    def is_terminal(self, status: Enum) -> bool:
        return status in self.terminal

    def allowed(self, current: Enum) -> FrozenSet[Enum]:
        return self.transitions[current]

    def can_transition(self, current: Enum, target: Enum) -> bool:
        if current == target:
            return not self.is_terminal(current)
        return target in self.transitions[current]

    def check(self, current: Enum, target: Enum) -> None:
        if not self.can_transition(current, target):
            raise IllegalTransition(self.entity, current, target)


def _open_table(states: Iterable[Enum], terminal: FrozenSet[Enum]) -> Dict[Enum, FrozenSet[Enum]]:
    # Non-terminal statuses may move anywhere (staff correct mistakes);
    # terminal statuses go nowhere.
    states = list(states)
    table: Dict[Enum, FrozenSet[Enum]] = {}
    for s in states:
        if s in terminal:
            table[s] = frozenset()
        else:
            table[s] = frozenset(t for t in states if t != s)
    return table


# -------------------
# Tables: any status to any status, nothing terminal
# -------------------
TABLE_MACHINE = StateMachine(
    "table",
    TableStatus,
    _open_table(TableStatus, frozenset()),
)


# -------------------
# Orders: PENDING -> CONFIRMED -> PREPARING -> READY -> SERVED -> COMPLETED,
# CANCELLED from anywhere not terminal
# -------------------
ORDER_TERMINAL = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})
ORDER_MACHINE = StateMachine(
    "order",
    OrderStatus,
    _open_table(OrderStatus, ORDER_TERMINAL),
    ORDER_TERMINAL,
)


# -------------------
# Reservations: PENDING -> CONFIRMED -> SEATED -> COMPLETED,
# CANCELLED / NO_SHOW from anywhere not terminal
# -------------------
RESERVATION_TERMINAL = frozenset(
    {ReservationStatus.COMPLETED, ReservationStatus.CANCELLED, ReservationStatus.NO_SHOW}
)
RESERVATION_MACHINE = StateMachine(
    "reservation",
    ReservationStatus,
    _open_table(ReservationStatus, RESERVATION_TERMINAL),
    RESERVATION_TERMINAL,
)

