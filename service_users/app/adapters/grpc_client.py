"""
Callback-style client for the remote user service.

Each method takes a request dict and a completion callback. The callback is
invoked exactly once, as ``callback(error, None)`` or ``callback(None,
response)``, usually from a gRPC worker thread. Responses are plain dicts
holding only the fields the remote actually set.
"""

from typing import Any, Callable, Dict, Optional

import grpc

from shared.logging import get_logger

from .user_service_pb import METHODS, RpcMethod, message_to_dict

RpcCallback = Callable[[Optional[BaseException], Optional[Dict[str, Any]]], None]


class UserServiceClient:
    """gRPC channel client for ``org.jrg.grpc.UserService``.

    The channel is insecure and connects lazily, so constructing a client
    never fails because the remote is down. Production deployments pass a
    secure channel in through ``channel``.
    """

    def __init__(self, target: str, channel: Optional[grpc.Channel] = None):
        self.target = target
        self.channel = channel or grpc.insecure_channel(target)
        self.logger = get_logger("users.grpc_client")
        self._stubs = {
            operation: self.channel.unary_unary(
                method.path,
                request_serializer=method.request_type.SerializeToString,
                response_deserializer=method.response_type.FromString,
            )
            for operation, method in METHODS.items()
        }

    def get_user(self, request: Dict[str, Any], callback: RpcCallback) -> None:
        self._invoke("get_user", request, callback)

    def get_all_users(self, request: Dict[str, Any], callback: RpcCallback) -> None:
        self._invoke("get_all_users", request, callback)

    def create_user(self, request: Dict[str, Any], callback: RpcCallback) -> None:
        self._invoke("create_user", request, callback)

    def update_user(self, request: Dict[str, Any], callback: RpcCallback) -> None:
        self._invoke("update_user", request, callback)

    def delete_user(self, request: Dict[str, Any], callback: RpcCallback) -> None:
        self._invoke("delete_user", request, callback)

    def _invoke(self, operation: str, request: Dict[str, Any], callback: RpcCallback) -> None:
        method: RpcMethod = METHODS[operation]
        call = self._stubs[operation].future(method.request_type(**request))

        def _on_done(future: grpc.Future) -> None:
            try:
                response = future.result()
            except (grpc.RpcError, grpc.FutureCancelledError) as error:
                callback(error, None)
            else:
                callback(None, message_to_dict(response))

        call.add_done_callback(_on_done)

    def close(self) -> None:
        """Close the underlying channel."""
        self.logger.info("Closing user service channel", target=self.target)
        self.channel.close()
