"""
Shared configuration management for the user subgraph.
"""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="USERS_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")


class SubgraphConfig(BaseConfig):
    """Configuration for the user subgraph process."""

    service_name: str = Field(default="user-graphql-service")
    host: str = Field(default="0.0.0.0")
    port: int = Field(
        default=4001,
        validation_alias=AliasChoices("USERS_PORT", "PORT", "port"),
    )
    graphql_path: str = Field(default="/graphql")

    # Remote user service (gRPC)
    grpc_service_url: str = Field(
        default="user-grpc-service:9090",
        validation_alias=AliasChoices(
            "USERS_GRPC_SERVICE_URL", "GRPC_SERVICE_URL", "grpc_service_url"
        ),
    )

    @property
    def introspection_enabled(self) -> bool:
        """Schema introspection and GraphiQL are only served outside production."""
        return self.env.lower() != "production"


@lru_cache(maxsize=1)
def get_config() -> SubgraphConfig:
    """Get the process-wide configuration, read once at first use."""
    return SubgraphConfig()
