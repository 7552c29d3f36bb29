# src/batch_graphql/plugins/clients/__init__.py
"""Remote clients: the GraphQL call executor and its token authority.

Example:
    from batch_graphql.plugins.clients import GraphQLClient, TokenAuthority

    client = GraphQLClient(url=url, query=query, connections=10, authority=TokenAuthority.static(token))
"""

from batch_graphql.plugins.clients.auth import AuthMode, CachedToken, TokenAuthority
from batch_graphql.plugins.clients.graphql import GraphQLClient, create_http_client

__all__ = [
    "AuthMode",
    "CachedToken",
    "GraphQLClient",
    "TokenAuthority",
    "create_http_client",
]
