"""
Federated GraphQL schema for the user subgraph.

The ``User`` type is a federation entity keyed on ``id`` so the router can
merge fields other subgraphs contribute for the same user. Resolvers are
taken from the execution context (``user_resolvers``) rather than a module
global.
"""

from typing import List, Optional

import strawberry
from graphql.validation import NoSchemaIntrospectionCustomRule
from strawberry.extensions import AddValidationRules
from strawberry.types import Info

from ..domain.models import User, UserCreate, UserRole, UserUpdate
from .extensions import OperationLoggingExtension
from .resolvers import UserResolvers

CONTEXT_KEY = "user_resolvers"

UserRoleType = strawberry.enum(UserRole, name="UserRole", description="Role a user holds")


def get_resolvers(info: Info) -> UserResolvers:
    return info.context[CONTEXT_KEY]


@strawberry.federation.type(keys=["id"], name="User")
class UserType:
    id: strawberry.ID
    name: str
    email: str
    role: UserRoleType
    created_at: str

    @classmethod
    def from_entity(cls, entity: User) -> "UserType":
        return cls(
            id=strawberry.ID(entity.id),
            name=entity.name,
            email=entity.email,
            role=entity.role,
            created_at=entity.created_at,
        )

    @classmethod
    async def resolve_reference(cls, info: Info, id: strawberry.ID) -> Optional["UserType"]:
        entity = await get_resolvers(info).resolve_reference(id)
        return cls.from_entity(entity) if entity is not None else None


@strawberry.input(name="CreateUserInput")
class CreateUserInput:
    name: str
    email: str
    role: UserRoleType

    def to_model(self) -> UserCreate:
        return UserCreate(name=self.name, email=self.email, role=self.role)


@strawberry.input(name="UpdateUserInput")
class UpdateUserInput:
    name: Optional[str] = strawberry.UNSET
    email: Optional[str] = strawberry.UNSET
    role: Optional[UserRoleType] = strawberry.UNSET

    def to_model(self) -> UserUpdate:
        fields = {
            key: value
            for key, value in (("name", self.name), ("email", self.email), ("role", self.role))
            if value is not strawberry.UNSET
        }
        return UserUpdate(**fields)


@strawberry.type
class Query:
    @strawberry.field(description="Fetch one user by id")
    async def user(self, info: Info, id: strawberry.ID) -> Optional[UserType]:
        entity = await get_resolvers(info).user(id)
        return UserType.from_entity(entity)

    @strawberry.field(description="Fetch every user")
    async def users(self, info: Info) -> List[UserType]:
        entities = await get_resolvers(info).users()
        return [UserType.from_entity(entity) for entity in entities]


@strawberry.type
class Mutation:
    @strawberry.mutation(description="Create a user")
    async def create_user(self, info: Info, input: CreateUserInput) -> UserType:
        entity = await get_resolvers(info).create_user(input.to_model())
        return UserType.from_entity(entity)

    @strawberry.mutation(description="Update the supplied fields of a user")
    async def update_user(self, info: Info, id: strawberry.ID, input: UpdateUserInput) -> UserType:
        entity = await get_resolvers(info).update_user(id, input.to_model())
        return UserType.from_entity(entity)

    @strawberry.mutation(description="Delete a user")
    async def delete_user(self, info: Info, id: strawberry.ID) -> bool:
        return await get_resolvers(info).delete_user(id)


def build_schema(introspection: bool = True) -> strawberry.federation.Schema:
    """Build the federated schema served by the subgraph.

    With ``introspection`` off, standard introspection queries are rejected;
    the router still composes through the federation ``_service`` field.
    """
    extensions = [OperationLoggingExtension]
    if not introspection:
        extensions.append(lambda: AddValidationRules([NoSchemaIntrospectionCustomRule]))
    return strawberry.federation.Schema(
        query=Query,
        mutation=Mutation,
        types=[UserType],
        extensions=extensions,
    )
