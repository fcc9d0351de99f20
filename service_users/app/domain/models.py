"""
User data models for the user subgraph.

Three families live here:

- Remote records: the shape of each ``UserService`` RPC response.
- The ``User`` entity: what the GraphQL schema exposes.
- Inputs: create/update payloads coming in through GraphQL.
"""

from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, Enum):
    """Closed set of roles a user can hold."""
    USER = "USER"
    ADMIN = "ADMIN"
    MODERATOR = "MODERATOR"


class UserRecord(BaseModel):
    """``User`` message as returned by GetUser, CreateUser and UpdateUser."""

    model_config = ConfigDict(extra="ignore")

    id: int = 0
    name: str = ""
    email: str = ""
    role: str = ""
    # Epoch seconds from the remote service; text when a proxy already formatted it.
    created_at: Optional[Union[int, str]] = None


class UserListRecord(BaseModel):
    """GetAllUsers response."""

    model_config = ConfigDict(extra="ignore")

    users: List[UserRecord] = Field(default_factory=list)
    total_count: int = 0


class DeleteUserRecord(BaseModel):
    """DeleteUser response.

    ``success`` stays ``None`` when the remote did not state an outcome.
    """

    model_config = ConfigDict(extra="ignore")

    success: Optional[bool] = None
    message: Optional[str] = None


class User(BaseModel):
    """User entity as exposed by the subgraph."""

    id: str
    name: str
    email: str
    role: UserRole
    created_at: str


class UserCreate(BaseModel):
    """Payload for creating a user."""

    name: str
    email: str
    role: UserRole


class UserUpdate(BaseModel):
    """Payload for updating a user; unset fields are left unchanged remotely."""

    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[UserRole] = None
