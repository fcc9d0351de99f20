"""
Async adapter over the callback-style user service client.

This is the only place that knows about completion callbacks: every method
issues exactly one remote call and awaits a single result. Remote errors are
raised verbatim; there are no retries, no batching and no timeouts here.
"""

import asyncio
import re
import time
from typing import Any, Dict, Optional, Protocol, Union

from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..domain.errors import InvalidIdentifierError
from ..domain.models import DeleteUserRecord, UserListRecord, UserRecord
from .grpc_client import RpcCallback

_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1
_NUMERIC_ID = re.compile(r"[+-]?\d+")


class CallbackUserClient(Protocol):
    """Anything exposing the user service operations in callback style."""

    def get_user(self, request: Dict[str, Any], callback: RpcCallback) -> None: ...

    def get_all_users(self, request: Dict[str, Any], callback: RpcCallback) -> None: ...

    def create_user(self, request: Dict[str, Any], callback: RpcCallback) -> None: ...

    def update_user(self, request: Dict[str, Any], callback: RpcCallback) -> None: ...

    def delete_user(self, request: Dict[str, Any], callback: RpcCallback) -> None: ...


def coerce_user_id(user_id: Union[int, str]) -> int:
    """Convert a caller-supplied identifier to the remote's int64 id.

    Raises ``InvalidIdentifierError`` for anything that is not an integer or
    a decimal integer string within int64 range.
    """
    if isinstance(user_id, bool):
        raise InvalidIdentifierError(user_id)
    if isinstance(user_id, int):
        value = user_id
    elif isinstance(user_id, str) and _NUMERIC_ID.fullmatch(user_id.strip()):
        value = int(user_id.strip())
    else:
        raise InvalidIdentifierError(user_id)

    if not _INT64_MIN <= value <= _INT64_MAX:
        raise InvalidIdentifierError(user_id)
    return value


class UserRpcAdapter:
    """Single-result async operations against the remote user service."""

    def __init__(self, client: CallbackUserClient, metrics: Optional[MetricsCollector] = None):
        self.client = client
        self.metrics = metrics
        self.logger = get_logger("users.rpc_adapter")

    async def get_user(self, user_id: Union[int, str]) -> UserRecord:
        """Fetch one user by id."""
        request = {"id": coerce_user_id(user_id)}
        response = await self._call("get_user", request)
        return UserRecord.model_validate(response)

    async def get_all_users(self) -> UserListRecord:
        """Fetch every user."""
        response = await self._call("get_all_users", {})
        return UserListRecord.model_validate(response)

    async def create_user(self, payload: Dict[str, Any]) -> UserRecord:
        """Create a user; the remote assigns the id and creation time."""
        response = await self._call("create_user", dict(payload))
        return UserRecord.model_validate(response)

    async def update_user(self, user_id: Union[int, str], payload: Dict[str, Any]) -> UserRecord:
        """Update a user, sending only the fields present in ``payload``."""
        request = {"id": coerce_user_id(user_id), **payload}
        response = await self._call("update_user", request)
        return UserRecord.model_validate(response)

    async def delete_user(self, user_id: Union[int, str]) -> bool:
        """Delete a user.

        Only an explicit ``success: false`` counts as failure; a missing or
        ambiguous indicator is reported as success.
        """
        request = {"id": coerce_user_id(user_id)}
        response = await self._call("delete_user", request)
        record = DeleteUserRecord.model_validate(response)
        if record.success is None:
            self.logger.debug("Delete response carried no success flag, assuming success", user_id=request["id"])
        return record.success is not False

    async def _call(self, operation: str, request: Dict[str, Any]) -> Dict[str, Any]:
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        started = time.perf_counter()

        def _settle(error: Optional[BaseException], response: Optional[Dict[str, Any]]) -> None:
            # The awaiting request may have been cancelled; the remote call is not.
            if future.done():
                self.logger.debug("Discarding late RPC completion", operation=operation)
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(response or {})

        def _complete(error: Optional[BaseException], response: Optional[Dict[str, Any]]) -> None:
            self._record(operation, "error" if error is not None else "ok", started)
            loop.call_soon_threadsafe(_settle, error, response)

        self.logger.debug("Issuing RPC", operation=operation)
        getattr(self.client, operation)(request, _complete)

        try:
            return await future
        except Exception as error:
            self.logger.warning("RPC failed", operation=operation, error=str(error))
            raise

    def _record(self, operation: str, status: str, started: float) -> None:
        if self.metrics is not None:
            self.metrics.record_rpc_call(operation, status, time.perf_counter() - started)
