"""
GraphQL API for the helpdesk workflow.
"""

from .graphql_api import schema, create_graphql_router

__all__ = ['schema', 'create_graphql_router']
