import json
import stat
from datetime import datetime, timedelta, timezone

import pytest

from fakes import make_token, seeded_store
from tableside.auth import Session, token_expiry
from tableside.errors import Unauthorized
from tableside.models import Role, User


class TestRoleHierarchy:
    def test_admin_is_everything(self, admin):
        assert admin.is_admin() and admin.is_manager() and admin.is_staff()

    def test_manager_is_staff_but_not_admin(self, manager):
        assert manager.is_manager() and manager.is_staff()
        assert not manager.is_admin()

    def test_has_role_is_literal(self, admin):
        assert admin.has_role(Role.ADMIN)
        assert not admin.has_role(Role.STAFF)

    def test_user_without_roles(self, tmp_path):
        session = Session(path=tmp_path / "s.json", token=make_token("x"), user=User(username="x"))
        assert not session.is_staff()
        with pytest.raises(Unauthorized) as exc:
            session.require(Role.STAFF)
        assert not exc.value.session_expired


class TestRequire:
    def test_returns_user(self, manager):
        assert manager.require(Role.STAFF).username == "manager"

    def test_insufficient_role_keeps_session(self, staff):
        with pytest.raises(Unauthorized, match="Manager role required") as exc:
            staff.require(Role.MANAGER)
        assert not exc.value.session_expired
        assert exc.value.forbidden
        assert staff.is_authenticated

    def test_signed_out(self, tmp_path):
        with pytest.raises(Unauthorized) as exc:
            Session(path=tmp_path / "s.json").require()
        assert exc.value.session_expired

    def test_expired_token_tears_down(self, tmp_path):
        path = tmp_path / "s.json"
        session = Session(path=path, token=make_token("sam", minutes=-5), user=User(username="sam", roles=[Role.STAFF]))
        session.save()
        assert path.exists()

        with pytest.raises(Unauthorized) as exc:
            session.require()

        assert exc.value.session_expired
        assert session.token is None and session.user is None
        assert not path.exists()


class TestTokenExpiry:
    def test_reads_exp(self):
        exp = token_expiry(make_token("sam", minutes=10))
        assert exp is not None
        assert exp > datetime.now(timezone.utc) + timedelta(minutes=9)

    def test_opaque_token(self):
        assert token_expiry("not-a-jwt") is None

    def test_opaque_token_never_expires_locally(self, tmp_path):
        session = Session(path=tmp_path / "s.json", token="opaque", user=User(username="x", roles=[Role.STAFF]))
        assert not session.is_expired()
        assert session.require().username == "x"


class TestPersistence:
    def test_save_then_load(self, staff):
        staff.save()
        restored = Session.load(staff.path)
        assert restored.token == staff.token
        assert restored.user == staff.user

    def test_file_is_owner_only(self, staff):
        staff.path.write_text("{}", encoding="utf-8")
        staff.path.chmod(0o644)

        staff.save()

        assert stat.S_IMODE(staff.path.stat().st_mode) == 0o600
        assert Session.load(staff.path).token == staff.token

    def test_missing_file(self, tmp_path):
        session = Session.load(tmp_path / "nope.json")
        assert not session.is_authenticated

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            json.dumps(["a list"]),
            json.dumps({"token": "", "user": {"username": "sam"}}),
            json.dumps({"token": "abc", "user": {"roles": []}}),
        ],
    )
    def test_unreadable_file_is_discarded(self, tmp_path, content):
        path = tmp_path / "session.json"
        path.write_text(content, encoding="utf-8")

        session = Session.load(path)

        assert not session.is_authenticated
        assert not path.exists()

    def test_logout_removes_file(self, staff):
        staff.save()
        staff.logout()
        assert not staff.is_authenticated
        assert not staff.path.exists()


class TestLogin:
    @pytest.mark.asyncio
    async def test_success_persists(self, tmp_path):
        session = Session(path=tmp_path / "s.json")
        user = await session.login(seeded_store(), "marco", "pw-marco")

        assert user.roles == [Role.MANAGER]
        assert session.is_manager()
        assert Session.load(tmp_path / "s.json").user.username == "marco"

    @pytest.mark.asyncio
    async def test_bad_credentials(self, tmp_path):
        session = Session(path=tmp_path / "s.json")
        with pytest.raises(Unauthorized):
            await session.login(seeded_store(), "marco", "wrong")
        assert not session.is_authenticated

    @pytest.mark.asyncio
    @pytest.mark.parametrize("username,password", [("", "pw"), ("  ", "pw"), ("sam", "")])
    async def test_blank_credentials_never_reach_server(self, tmp_path, username, password):
        store = seeded_store()
        with pytest.raises(Unauthorized):
            await Session(path=tmp_path / "s.json").login(store, username, password)
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_blank_token_rejected(self, tmp_path):
        class BlankTokenGateway:
            async def sign_in(self, username, password):
                return "  ", User(username=username, roles=[Role.STAFF])

        session = Session(path=tmp_path / "s.json")
        with pytest.raises(Unauthorized, match="Invalid token"):
            await session.login(BlankTokenGateway(), "sam", "pw")
        assert not session.is_authenticated
        assert not (tmp_path / "s.json").exists()
