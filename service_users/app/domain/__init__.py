"""
Domain layer for the user subgraph: entity/record models, the codec that
translates between them, and the errors surfaced to GraphQL.
"""

from .models import (
    DeleteUserRecord,
    User,
    UserCreate,
    UserListRecord,
    UserRecord,
    UserRole,
    UserUpdate,
)
from .errors import InvalidIdentifierError, UserServiceError

__all__ = [
    "DeleteUserRecord",
    "User",
    "UserCreate",
    "UserListRecord",
    "UserRecord",
    "UserRole",
    "UserUpdate",
    "InvalidIdentifierError",
    "UserServiceError",
]
