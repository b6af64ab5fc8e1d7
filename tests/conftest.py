"""
Shared fixtures: a seeded in-memory store, sessions per role, a coordinator.

Seed data (see fakes.seeded_store):
  menu   1 Bruschetta 12.50, 2 Garden Salad 5.00, 3 Tiramisu 7.25 (unavailable)
  tables 4 and 7 AVAILABLE, 9 MAINTENANCE
"""
import pytest

from fakes import make_token, seeded_store
from tableside.auth import Session
from tableside.models import Role, User
from tableside.workflow.coordinator import WorkflowCoordinator


@pytest.fixture
def store():
    return seeded_store()


@pytest.fixture
def session_for(tmp_path):
    def make(role: Role = Role.STAFF, username: str = None) -> Session:
        user = User(id=1, username=username or role.name.lower(), roles=[role])
        return Session(path=tmp_path / "session.json", token=make_token(user.username), user=user)

    return make


@pytest.fixture
def staff(session_for):
    return session_for(Role.STAFF)


@pytest.fixture
def manager(session_for):
    return session_for(Role.MANAGER)


@pytest.fixture
def admin(session_for):
    return session_for(Role.ADMIN)


@pytest.fixture
def coordinator(store):
    return WorkflowCoordinator(store)
