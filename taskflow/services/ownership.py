"""Per-user ownership guard for owned rows."""

import enum
from typing import Protocol, TypeVar

from taskflow.errors import Forbidden, NotFound


class Owned(Protocol):
    user_id: int


class Caller(Protocol):
    id: int


R = TypeVar("R", bound=Owned)


class Access(enum.Enum):
    ALLOWED = "allowed"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"


def check_access(caller: Caller, resource: Owned | None) -> Access:
    """Decide whether ``caller`` may touch ``resource``.

    Existence is checked before ownership, so a missing row is NOT_FOUND for
    every caller while a foreign row is FORBIDDEN.
    """
    if resource is None:
        return Access.NOT_FOUND
    if resource.user_id != caller.id:
        return Access.FORBIDDEN
    return Access.ALLOWED


def require_access(caller: Caller, resource: R | None, name: str = "Resource") -> R:
    access = check_access(caller, resource)
    if access is Access.NOT_FOUND:
        raise NotFound(f"{name} not found")
    if access is Access.FORBIDDEN:
        raise Forbidden()
    return resource
