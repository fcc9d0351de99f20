"""
User subgraph service.

Serves the federated user schema over HTTP and translates every field into
a single call on the remote gRPC user service.
"""

from typing import Any, Dict, Optional

from strawberry.fastapi import GraphQLRouter

from shared.base_service import BaseService
from shared.config import SubgraphConfig

from .adapters import UserRpcAdapter, UserServiceClient
from .adapters.user_rpc_adapter import CallbackUserClient
from .graphql import CONTEXT_KEY, UserResolvers, build_schema


class UserSubgraphService(BaseService):
    """User subgraph service implementation."""

    def __init__(self, config: Optional[SubgraphConfig] = None,
                 client: Optional[CallbackUserClient] = None):
        super().__init__(config)

        self.client = client or UserServiceClient(self.config.grpc_service_url)
        self.adapter = UserRpcAdapter(self.client, metrics=self.metrics)
        self.resolvers = UserResolvers(self.adapter)
        self.schema = build_schema(introspection=self.config.introspection_enabled)

        self._setup_graphql_routes()

    def _setup_graphql_routes(self):
        """Mount the GraphQL endpoint and the service descriptor."""

        async def get_context() -> Dict[str, Any]:
            return {CONTEXT_KEY: self.resolvers}

        graphql_router = GraphQLRouter(
            self.schema,
            context_getter=get_context,
            graphql_ide="graphiql" if self.config.introspection_enabled else None,
        )
        self.app.include_router(graphql_router, prefix=self.config.graphql_path)

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": self.service_name,
                "message": "User GraphQL subgraph",
                "version": "1.0.0",
                "graphql_path": self.config.graphql_path,
                "grpc_service_url": self.config.grpc_service_url,
            }

    async def _on_startup(self) -> None:
        self.logger.info(
            "User subgraph ready",
            graphql=f"http://localhost:{self.config.port}{self.config.graphql_path}",
            health=f"http://localhost:{self.config.port}/health",
            remote=self.config.grpc_service_url,
        )

    async def _on_shutdown(self) -> None:
        close = getattr(self.client, "close", None)
        if callable(close):
            close()


def create_app():
    """Create FastAPI application."""
    service = UserSubgraphService()
    return service.app


def main():
    service = UserSubgraphService()
    service.run()


if __name__ == "__main__":
    main()
