"""Session authentication middleware."""

from functools import wraps
from typing import Callable, ParamSpec, TypeVar

from flask import Flask, g
from flask_login import current_user

from taskflow.errors import Unauthorized
from taskflow.extensions import db, login_manager
from taskflow.models import User


P = ParamSpec("P")
T = TypeVar("T")


def register_login_manager(app: Flask) -> None:
    """Wire Flask-Login to the user table.

    The user row is reloaded on every request, so a deleted or unverified
    account turns its session anonymous.
    """
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id: str) -> User | None:
        try:
            user = db.session.get(User, int(user_id))
        except (TypeError, ValueError):
            return None
        if user is None or not user.is_active:
            return None
        return user

    @login_manager.unauthorized_handler
    def unauthorized():
        raise Unauthorized()


def login_required(f: Callable[P, T]) -> Callable[P, T]:
    """Decorator to require an authenticated session.

    Sets g.current_user to the loaded user.
    Raises Unauthorized (401) when the session is anonymous.
    """

    @wraps(f)
    def decorated(*args: P.args, **kwargs: P.kwargs) -> T:
        if not current_user.is_authenticated:
            return login_manager.unauthorized()

        g.current_user = current_user._get_current_object()
        return f(*args, **kwargs)

    return decorated
