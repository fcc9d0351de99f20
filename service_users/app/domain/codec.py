"""
Translation between remote ``UserService`` records and subgraph entities.

Every function here is pure: no I/O, no logging, no validation beyond what
the models themselves enforce.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union

from .models import User, UserCreate, UserListRecord, UserRecord, UserRole, UserUpdate


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """Render an instant as ISO-8601 UTC with millisecond precision."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def normalize_created_at(
    value: Optional[Union[int, str]],
    now: Callable[[], datetime] = _utcnow,
) -> str:
    """Return the creation timestamp of a remote record as ISO-8601 text.

    Text is kept verbatim, positive epoch seconds are converted, and anything
    else (missing, empty, zero) falls back to ``now()``. The fallback hides a
    remote that omits timestamps, so callers must not read it as the real
    creation time.
    """
    if isinstance(value, str) and value:
        return value
    if isinstance(value, int) and value > 0:
        return format_timestamp(datetime.fromtimestamp(value, tz=timezone.utc))
    return format_timestamp(now())


def to_entity(record: UserRecord, now: Callable[[], datetime] = _utcnow) -> User:
    """Convert a remote user record into a ``User`` entity."""
    return User(
        id=str(record.id),
        name=record.name,
        email=record.email,
        role=UserRole(record.role),
        created_at=normalize_created_at(record.created_at, now),
    )


def to_entities(record: Optional[UserListRecord], now: Callable[[], datetime] = _utcnow) -> List[User]:
    """Convert a GetAllUsers response into entities; never returns ``None``."""
    if record is None:
        return []
    return [to_entity(user, now) for user in record.users]


def to_create_request(payload: UserCreate) -> Dict[str, Any]:
    """Build the CreateUser request body."""
    return {
        "name": payload.name,
        "email": payload.email,
        "role": payload.role.value,
    }


def to_update_request(payload: UserUpdate) -> Dict[str, Any]:
    """Build the UpdateUser request body from the fields the caller supplied.

    Omitted and null fields are left out entirely so the remote keeps its
    current value for them.
    """
    fields = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "role" in fields:
        fields["role"] = UserRole(fields["role"]).value
    return fields
