"""
Errors raised by the user subgraph.
"""

from typing import Any, Dict, Optional

from shared.errors import ExternalServiceError, ValidationError


class InvalidIdentifierError(ValidationError):
    """A user identifier that cannot be sent to the remote service."""

    def __init__(self, identifier: Any):
        super().__init__(
            f"Invalid user id: {identifier!r}",
            details={"field": "id", "value": str(identifier)},
        )
        self.identifier = identifier


class UserServiceError(ExternalServiceError):
    """A remote user service call failed; ``cause`` is the original error."""

    def __init__(self, operation: str, cause: BaseException):
        details: Dict[str, Any] = {"operation": operation, "cause": str(cause)}
        status = _grpc_status(cause)
        if status:
            details["grpc_status"] = status
        super().__init__("user-service", f"Failed to {operation}: {cause}", details)
        self.operation = operation
        self.cause = cause


def _grpc_status(error: BaseException) -> Optional[str]:
    code = getattr(error, "code", None)
    if not callable(code):
        return None
    return getattr(code(), "name", None)
