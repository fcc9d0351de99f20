"""
User GraphQL subgraph.

The subgraph contributes the ``User`` entity to the federated graph and
backs every field with one call to the remote gRPC user service.

Structure:
- app.main: FastAPI app, GraphQL router and health/metrics wiring.
- app.graphql: federated schema and the resolver set behind it.
- app.adapters: wire contract, callback gRPC client and async adapter.
- app.domain: entity/record models, codec and errors.
"""
