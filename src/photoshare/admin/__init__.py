"""Admin panel for moderators."""

from fastapi import FastAPI
from sqladmin import Admin
from sqlalchemy.orm import Session, sessionmaker

from photoshare.admin.auth import AdminAuth
from photoshare.admin.views import CommentAdmin, PhotoAdmin, UserAdmin
from photoshare.auth_utils import authsettings
from photoshare.models.db import get_engine


def setup_admin(app: FastAPI, session_maker: sessionmaker[Session] | None = None) -> Admin:
    # sqladmin reconfigures the sessionmaker it is given, so it never gets the API's
    session_maker = session_maker or sessionmaker(bind=get_engine())
    admin = Admin(
        app,
        session_maker=session_maker,
        authentication_backend=AdminAuth(secret_key=authsettings.admin_secret_key, session_maker=session_maker),
        title="PhotoShare Admin",
    )
    admin.admin.state.get_s3_client = lambda: app.state.s3_client
    admin.add_view(UserAdmin)
    admin.add_view(PhotoAdmin)
    admin.add_view(CommentAdmin)
    return admin


__all__ = ["AdminAuth", "CommentAdmin", "PhotoAdmin", "UserAdmin", "setup_admin"]
