"""
Adapters package for the user subgraph.

Contains the client side of the remote ``UserService``:

- user_service_pb: message classes and method table for the wire contract
- grpc_client: callback-style channel client
- user_rpc_adapter: the async, single-result facade the resolvers use

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .grpc_client import UserServiceClient
from .user_rpc_adapter import UserRpcAdapter, coerce_user_id

__all__ = [
    "UserServiceClient",
    "UserRpcAdapter",
    "coerce_user_id",
]
