"""Clients for the GitHub API and the optional AI suggestion service."""

from gh_usecases.providers.base import AuthProvider, RemoteApi, SuggestionClient
from gh_usecases.providers.gemini import GeminiSuggestionClient
from gh_usecases.providers.github_graphql import GitHubGraphQLApi
from gh_usecases.providers.graphql import GraphQLClient

__all__ = [
    "AuthProvider",
    "GeminiSuggestionClient",
    "GitHubGraphQLApi",
    "GraphQLClient",
    "RemoteApi",
    "SuggestionClient",
]
