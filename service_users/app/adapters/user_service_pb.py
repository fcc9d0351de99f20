"""
Wire contract of the remote ``org.jrg.grpc.UserService``.

Message classes are built at import time from descriptors, so the subgraph
needs no generated ``*_pb2`` modules. The equivalent ``.proto``::

    syntax = "proto3";
    package org.jrg.grpc;

    service UserService {
      rpc GetUser (GetUserRequest) returns (User);
      rpc GetAllUsers (GetAllUsersRequest) returns (GetAllUsersResponse);
      rpc CreateUser (CreateUserRequest) returns (User);
      rpc UpdateUser (UpdateUserRequest) returns (User);
      rpc DeleteUser (DeleteUserRequest) returns (DeleteUserResponse);
    }

    message User {
      int64 id = 1; string name = 2; string email = 3;
      string role = 4; int64 created_at = 5;
    }
    message GetUserRequest { int64 id = 1; }
    message GetAllUsersRequest {}
    message GetAllUsersResponse { repeated User users = 1; int32 total_count = 2; }
    message CreateUserRequest { string name = 1; string email = 2; string role = 3; }
    message UpdateUserRequest {
      int64 id = 1; optional string name = 2;
      optional string email = 3; optional string role = 4;
    }
    message DeleteUserRequest { int64 id = 1; }
    message DeleteUserResponse { bool success = 1; string message = 2; }
"""

from typing import Any, Dict, NamedTuple, Type

from google.protobuf import descriptor_pb2, descriptor_pool
from google.protobuf.message import Message
from google.protobuf.message_factory import GetMessageClass

PACKAGE = "org.jrg.grpc"
SERVICE_NAME = f"{PACKAGE}.UserService"

_Field = descriptor_pb2.FieldDescriptorProto


def _add_field(message, name: str, number: int, field_type: int,
               label: int = _Field.LABEL_OPTIONAL, type_name: str = ""):
    field = message.field.add(name=name, number=number, type=field_type, label=label)
    if type_name:
        field.type_name = type_name
    return field


def _add_presence_field(message, name: str, number: int, field_type: int):
    """Add a proto3 ``optional`` field, which needs its own synthetic oneof."""
    message.oneof_decl.add(name=f"_{name}")
    field = _add_field(message, name, number, field_type)
    field.proto3_optional = True
    field.oneof_index = len(message.oneof_decl) - 1
    return field


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="user_service.proto", package=PACKAGE, syntax="proto3"
    )

    user = file_proto.message_type.add(name="User")
    _add_field(user, "id", 1, _Field.TYPE_INT64)
    _add_field(user, "name", 2, _Field.TYPE_STRING)
    _add_field(user, "email", 3, _Field.TYPE_STRING)
    _add_field(user, "role", 4, _Field.TYPE_STRING)
    _add_field(user, "created_at", 5, _Field.TYPE_INT64)

    get_user = file_proto.message_type.add(name="GetUserRequest")
    _add_field(get_user, "id", 1, _Field.TYPE_INT64)

    file_proto.message_type.add(name="GetAllUsersRequest")

    get_all = file_proto.message_type.add(name="GetAllUsersResponse")
    _add_field(get_all, "users", 1, _Field.TYPE_MESSAGE,
               label=_Field.LABEL_REPEATED, type_name=f".{PACKAGE}.User")
    _add_field(get_all, "total_count", 2, _Field.TYPE_INT32)

    create = file_proto.message_type.add(name="CreateUserRequest")
    _add_field(create, "name", 1, _Field.TYPE_STRING)
    _add_field(create, "email", 2, _Field.TYPE_STRING)
    _add_field(create, "role", 3, _Field.TYPE_STRING)

    update = file_proto.message_type.add(name="UpdateUserRequest")
    _add_field(update, "id", 1, _Field.TYPE_INT64)
    _add_presence_field(update, "name", 2, _Field.TYPE_STRING)
    _add_presence_field(update, "email", 3, _Field.TYPE_STRING)
    _add_presence_field(update, "role", 4, _Field.TYPE_STRING)

    delete = file_proto.message_type.add(name="DeleteUserRequest")
    _add_field(delete, "id", 1, _Field.TYPE_INT64)

    delete_response = file_proto.message_type.add(name="DeleteUserResponse")
    _add_field(delete_response, "success", 1, _Field.TYPE_BOOL)
    _add_field(delete_response, "message", 2, _Field.TYPE_STRING)

    service = file_proto.service.add(name="UserService")
    for method_name, request_name, response_name in (
        ("GetUser", "GetUserRequest", "User"),
        ("GetAllUsers", "GetAllUsersRequest", "GetAllUsersResponse"),
        ("CreateUser", "CreateUserRequest", "User"),
        ("UpdateUser", "UpdateUserRequest", "User"),
        ("DeleteUser", "DeleteUserRequest", "DeleteUserResponse"),
    ):
        service.method.add(
            name=method_name,
            input_type=f".{PACKAGE}.{request_name}",
            output_type=f".{PACKAGE}.{response_name}",
        )

    return file_proto


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_build_file().SerializeToString())


def _message_class(name: str) -> Type[Message]:
    return GetMessageClass(_pool.FindMessageTypeByName(f"{PACKAGE}.{name}"))


User = _message_class("User")
GetUserRequest = _message_class("GetUserRequest")
GetAllUsersRequest = _message_class("GetAllUsersRequest")
GetAllUsersResponse = _message_class("GetAllUsersResponse")
CreateUserRequest = _message_class("CreateUserRequest")
UpdateUserRequest = _message_class("UpdateUserRequest")
DeleteUserRequest = _message_class("DeleteUserRequest")
DeleteUserResponse = _message_class("DeleteUserResponse")


class RpcMethod(NamedTuple):
    """One unary method of the user service."""

    name: str
    request_type: Type[Message]
    response_type: Type[Message]

    @property
    def path(self) -> str:
        return f"/{SERVICE_NAME}/{self.name}"


METHODS: Dict[str, RpcMethod] = {
    "get_user": RpcMethod("GetUser", GetUserRequest, User),
    "get_all_users": RpcMethod("GetAllUsers", GetAllUsersRequest, GetAllUsersResponse),
    "create_user": RpcMethod("CreateUser", CreateUserRequest, User),
    "update_user": RpcMethod("UpdateUser", UpdateUserRequest, User),
    "delete_user": RpcMethod("DeleteUser", DeleteUserRequest, DeleteUserResponse),
}


def message_to_dict(message: Message) -> Dict[str, Any]:
    """Convert a message to a plain dict of the fields actually present.

    Unlike ``json_format.MessageToDict`` this keeps 64-bit integers as ints
    and uses the proto field names.
    """
    result: Dict[str, Any] = {}
    for field, value in message.ListFields():
        if field.message_type is None:
            result[field.name] = value
        elif isinstance(value, Message):
            result[field.name] = message_to_dict(value)
        else:
            result[field.name] = [message_to_dict(item) for item in value]
    return result
