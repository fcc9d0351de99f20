"""
Schema extensions for the user subgraph.
"""

import time

from strawberry.extensions import SchemaExtension

from shared.logging import get_logger, set_operation_name

logger = get_logger("users.graphql")


class OperationLoggingExtension(SchemaExtension):
    """Bind the operation name to the log context and log each operation."""

    def on_operation(self):
        started = time.perf_counter()
        set_operation_name(self.execution_context.operation_name)
        try:
            yield
        finally:
            result = self.execution_context.result
            errors = len(result.errors) if result is not None and result.errors else 0
            logger.info(
                "GraphQL operation",
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                errors=errors,
            )
            set_operation_name(None)
