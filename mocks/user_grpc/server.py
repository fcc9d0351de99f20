"""
Mock user gRPC service backed by an in-memory store.

Speaks the same ``org.jrg.grpc.UserService`` contract as the real remote so
the subgraph can be run and tested end to end without it.
"""

import threading
import time
from concurrent import futures
from typing import Dict, Optional

import grpc

from shared.logging import get_logger
from service_users.app.adapters import user_service_pb as pb


class MockUserGrpcServer:
    """Mock user service implementation."""

    def __init__(self, address: str = "0.0.0.0:9090", seed: bool = True, max_workers: int = 4):
        self.address = address
        self.logger = get_logger("mock.user_grpc")
        self._users: Dict[int, pb.User] = {}
        self._next_id = 1
        self._lock = threading.Lock()
        self.server = grpc.server(futures.ThreadPoolExecutor(max_workers=max_workers))
        self.server.add_generic_rpc_handlers((self._handler(),))
        self.port: Optional[int] = None

        if seed:
            self._seed()

    def _seed(self):
        for name, email, role in (
            ("John Doe", "john.doe@example.com", "ADMIN"),
            ("Jane Smith", "jane.smith@example.com", "USER"),
            ("Bob Johnson", "bob.johnson@example.com", "USER"),
            ("Alice Brown", "alice.brown@example.com", "MODERATOR"),
        ):
            self._insert(name, email, role)

    def _handler(self) -> grpc.GenericRpcHandler:
        implementations = {
            "get_user": self.get_user,
            "get_all_users": self.get_all_users,
            "create_user": self.create_user,
            "update_user": self.update_user,
            "delete_user": self.delete_user,
        }
        return grpc.method_handlers_generic_handler(
            pb.SERVICE_NAME,
            {
                method.name: grpc.unary_unary_rpc_method_handler(
                    implementations[operation],
                    request_deserializer=method.request_type.FromString,
                    response_serializer=method.response_type.SerializeToString,
                )
                for operation, method in pb.METHODS.items()
            },
        )

    def _insert(self, name: str, email: str, role: str) -> pb.User:
        with self._lock:
            user = pb.User(
                id=self._next_id, name=name, email=email, role=role, created_at=int(time.time())
            )
            self._users[user.id] = user
            self._next_id += 1
            return _copy(user)

    def get_user(self, request, context):
        with self._lock:
            user = _copy(self._users.get(request.id))
        if user is None:
            context.abort(grpc.StatusCode.NOT_FOUND, f"User not found with id: {request.id}")
        return user

    def get_all_users(self, request, context):
        with self._lock:
            users = list(self._users.values())
        return pb.GetAllUsersResponse(users=users, total_count=len(users))

    def create_user(self, request, context):
        user = self._insert(request.name, request.email, request.role)
        self.logger.info("Mock user created", user_id=user.id)
        return user

    def update_user(self, request, context):
        with self._lock:
            user = self._users.get(request.id)
            if user is not None:
                for field in ("name", "email", "role"):
                    if request.HasField(field):
                        setattr(user, field, getattr(request, field))
                user = _copy(user)
        if user is None:
            context.abort(grpc.StatusCode.NOT_FOUND, f"User not found with id: {request.id}")
        return user

    def delete_user(self, request, context):
        with self._lock:
            deleted = self._users.pop(request.id, None) is not None
        return pb.DeleteUserResponse(
            success=deleted,
            message="User deleted successfully" if deleted else "User not found",
        )

    def start(self) -> int:
        """Start serving; returns the bound port."""
        self.port = self.server.add_insecure_port(self.address)
        self.server.start()
        self.logger.info("Mock user gRPC service started", address=self.address, port=self.port)
        return self.port

    def stop(self, grace: Optional[float] = None):
        self.server.stop(grace)


def _copy(user: Optional[pb.User]) -> Optional[pb.User]:
    if user is None:
        return None
    clone = pb.User()
    clone.CopyFrom(user)
    return clone


if __name__ == "__main__":
    server = MockUserGrpcServer()
    server.start()
    server.server.wait_for_termination()
