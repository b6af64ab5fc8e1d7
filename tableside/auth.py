# tableside/auth.py
from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from pydantic import ValidationError

from .errors import Unauthorized
from .models import Role, User
from .store.base import AuthGateway

logger = logging.getLogger(__name__)

# ADMIN can do everything MANAGER can, MANAGER everything STAFF can.
_ROLE_RANK = {Role.STAFF: 1, Role.MANAGER: 2, Role.ADMIN: 3}


def token_expiry(token: str) -> Optional[datetime]:
    """
    Read `exp` from a JWT without verifying it; the server does the verifying.
    Opaque (non-JWT) tokens have no known expiry.
    """
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return None
    exp = claims.get("exp")
    if exp is None:
        return None
    try:
        return datetime.fromtimestamp(int(exp), tz=timezone.utc)
    except (TypeError, ValueError):
        return None


def _safe_json_dict(raw: str | None) -> Dict[str, Any]:
    if not raw:
        return {}
    try:
        v = json.loads(raw)
        return v if isinstance(v, dict) else {}
    except ValueError:
        return {}


class Session:
    """
    The signed-in user at this console: bearer token plus cached user record.

    Passed explicitly to every operation that needs authorization. Persisted to
    `path` so a restart keeps the login; torn down on logout or on any 401.
    """

    def __init__(self, path: Optional[Path] = None, token: Optional[str] = None, user: Optional[User] = None):
        self.path = path
        self.token = token
        self.user = user

    # -------------------
    # Init / persistence
    # -------------------
    @classmethod
    def load(cls, path: Path) -> "Session":
        session = cls(path=path)
        if not path.exists():
            return session

        data = _safe_json_dict(path.read_text(encoding="utf-8"))
        token = str(data.get("token") or "").strip()
        try:
            user = User.model_validate(data["user"]) if data.get("user") else None
        except ValidationError:
            user = None

        if token and user:
            session.token = token
            session.user = user
            logger.info("restored session for %s", user.username)
        else:
            logger.warning("discarding unreadable session file %s", path)
            session.teardown()
        return session

    def save(self) -> None:
        if self.path is None or not self.token or not self.user:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"token": self.token, "user": self.user.model_dump(mode="json", by_alias=True)}
        # owner-only from creation; fchmod also tightens a pre-existing file
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        os.fchmod(fd, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(json.dumps(payload, ensure_ascii=False))

    def teardown(self, reason: Optional[str] = None) -> None:
        if reason:
            logger.warning("ending session: %s", reason)
        self.token = None
        self.user = None
        if self.path is not None and self.path.exists():
            self.path.unlink()

    # -------------------
    # Login / logout
    # -------------------
    async def login(self, gateway: AuthGateway, username: str, password: str) -> User:
        if not (username or "").strip() or not password:
            raise Unauthorized("Username and password are required")

        token, user = await gateway.sign_in(username.strip(), password)
        if not token or not token.strip():
            raise Unauthorized("Invalid token received from server")

        self.token = token.strip()
        self.user = user
        self.save()
        logger.info("signed in as %s (%s)", user.username, ", ".join(r.value for r in user.roles) or "no roles")
        return user

    def logout(self) -> None:
        self.teardown()

    # -------------------
    # Role queries
    # -------------------
    @property
    def is_authenticated(self) -> bool:
        return bool(self.token) and self.user is not None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if not self.token:
            return False
        exp = token_expiry(self.token)
        if exp is None:
            return False
        return (now or datetime.now(timezone.utc)) >= exp

    def has_role(self, role: Role) -> bool:
        return self.user is not None and role in self.user.roles

    def _rank(self) -> int:
        if self.user is None:
            return 0
        return max((_ROLE_RANK[r] for r in self.user.roles), default=0)

    def is_admin(self) -> bool:
        return self._rank() >= _ROLE_RANK[Role.ADMIN]

    def is_manager(self) -> bool:
        return self._rank() >= _ROLE_RANK[Role.MANAGER]

    def is_staff(self) -> bool:
        return self._rank() >= _ROLE_RANK[Role.STAFF]

    def require(self, role: Role = Role.STAFF) -> User:
        """Return the current user if signed in with at least `role`."""
        if not self.is_authenticated:
            raise Unauthorized("Sign in required", session_expired=True)
        if self.is_expired():
            self.teardown("token expired")
            raise Unauthorized("Session expired, sign in again", session_expired=True)
        if self._rank() < _ROLE_RANK[role]:
            raise Unauthorized(f"{role.name.capitalize()} role required", forbidden=True)
        return self.user
