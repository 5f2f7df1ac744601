"""Admin authentication backend for SQLAdmin."""

import asyncio
import uuid

from sqladmin.authentication import AuthenticationBackend
from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker
from starlette.requests import Request

from photoshare.api.auth import verify_password
from photoshare.models.db import get_session_maker
from photoshare.models.user import User


class AdminAuth(AuthenticationBackend):
    """Session-cookie login for the admin panel, restricted to users with ``is_admin``."""

    def __init__(self, secret_key: str, session_maker: sessionmaker[Session] | None = None):
        super().__init__(secret_key=secret_key)
        self.session_maker = session_maker or get_session_maker()

    async def login(self, request: Request) -> bool:
        form = await request.form()
        email = str(form.get("username") or "").strip().lower()  # SQLAdmin names the field 'username'
        password = str(form.get("password") or "")
        if not email or not password:
            return False

        user_id = await asyncio.to_thread(self._check_credentials, email, password)
        if user_id is None:
            return False
        request.session.update({"user_id": str(user_id)})
        return True

    def _check_credentials(self, email: str, password: str) -> uuid.UUID | None:
        with self.session_maker() as db:
            user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
            if not user or not user.is_admin or not verify_password(password, user.password_hash):
                return None
            return user.id

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> bool:
        user_id = request.session.get("user_id")
        if not user_id:
            return False
        try:
            user_uuid = uuid.UUID(user_id)
        except ValueError:
            return False
        return await asyncio.to_thread(self._is_admin, user_uuid)

    def _is_admin(self, user_id: uuid.UUID) -> bool:
        # Re-checked on every request so revoking is_admin takes effect immediately
        with self.session_maker() as db:
            user = db.execute(select(User).where(User.id == user_id)).scalar_one_or_none()
            return bool(user and user.is_admin)
