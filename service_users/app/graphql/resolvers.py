"""
Field resolvers for the user subgraph.

Each resolver makes exactly one adapter call and shapes the result through
the codec. No state is kept between calls.
"""

from typing import Any, Awaitable, Callable, List, Optional, TypeVar, Union

from shared.errors import SubgraphException
from shared.logging import get_logger

from ..adapters.user_rpc_adapter import UserRpcAdapter
from ..domain import codec
from ..domain.errors import UserServiceError
from ..domain.models import User, UserCreate, UserUpdate

T = TypeVar("T")

UserId = Union[int, str]


class UserResolvers:
    """Binds schema fields to user service calls."""

    def __init__(self, adapter: UserRpcAdapter):
        self.adapter = adapter
        self.logger = get_logger("users.resolvers")

    async def user(self, user_id: UserId) -> User:
        return await self._guard("fetch user", self.adapter.get_user(user_id), codec.to_entity)

    async def users(self) -> List[User]:
        return await self._guard("fetch users", self.adapter.get_all_users(), codec.to_entities)

    async def create_user(self, payload: UserCreate) -> User:
        request = codec.to_create_request(payload)
        entity = await self._guard("create user", self.adapter.create_user(request), codec.to_entity)
        self.logger.info("User created", user_id=entity.id)
        return entity

    async def update_user(self, user_id: UserId, payload: UserUpdate) -> User:
        request = codec.to_update_request(payload)
        entity = await self._guard("update user", self.adapter.update_user(user_id, request), codec.to_entity)
        self.logger.info("User updated", user_id=entity.id, fields=sorted(request))
        return entity

    async def delete_user(self, user_id: UserId) -> bool:
        deleted = await self._guard("delete user", self.adapter.delete_user(user_id))
        self.logger.info("User deleted", user_id=str(user_id), deleted=deleted)
        return deleted

    async def resolve_reference(self, user_id: UserId) -> Optional[User]:
        """Resolve a federation reference; failures become ``None``.

        An unresolvable reference must not abort the rest of the federated
        response, so every error is logged and swallowed here.
        """
        try:
            return await self.user(user_id)
        except Exception as error:
            self.logger.warning("Could not resolve user reference", user_id=str(user_id), error=str(error))
            return None

    async def _guard(self, operation: str, call: Awaitable[Any], shape: Optional[Callable[[Any], T]] = None) -> T:
        """Await an adapter call and shape its record, wrapping failures in ``UserServiceError``.

        A record the codec cannot shape (an empty or unknown role, say) fails
        the same way a remote error does.
        """
        try:
            record = await call
            return shape(record) if shape is not None else record
        except SubgraphException:
            raise
        except Exception as error:
            self.logger.error(f"Error while trying to {operation}", error=str(error))
            raise UserServiceError(operation, error) from error
