"""
GraphQL layer for the user subgraph: schema declarations and the resolver
set they delegate to.
"""

from .resolvers import UserResolvers
from .schema import CONTEXT_KEY, build_schema

__all__ = [
    "CONTEXT_KEY",
    "UserResolvers",
    "build_schema",
]
