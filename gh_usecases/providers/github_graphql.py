"""GitHub implementation of the remote API over GraphQL."""

from collections.abc import Callable
from typing import Any

import structlog

from gh_usecases.enums import ErrorKind, TeamPermission, Visibility
from gh_usecases.exceptions import AuthenticationError, NetworkError
from gh_usecases.models.domain import (
    CurrentUser,
    Repository,
    Team,
    TeamRepository,
    TeamWithRepositories,
)
from gh_usecases.providers.base import AuthProvider, RemoteApi
from gh_usecases.providers.graphql import GraphQLClient
from gh_usecases.utils.retry import async_retry

log = structlog.get_logger(__name__)

# Repositories per team sent to the AI client as context
TEAM_REPOSITORY_SAMPLE = 10

VIEWER_QUERY = """
query {
  viewer {
    login
    organizations(first: 100) {
      nodes { login }
    }
  }
}
"""

SEARCH_REPOSITORIES_QUERY = """
query SearchRepositories($query: String!, $first: Int!) {
  search(query: $query, type: REPOSITORY, first: $first) {
    nodes {
      ... on Repository {
        id
        name
        description
        visibility
        isFork
        owner { login }
      }
    }
  }
}
"""

CREATE_REPOSITORY_MUTATION = """
mutation CreateRepository($input: CreateRepositoryInput!) {
  createRepository(input: $input) {
    repository {
      id
      name
      description
      visibility
      isFork
      owner { login }
    }
  }
}
"""

USER_ID_QUERY = """
query GetUserId($login: String!) {
  user(login: $login) { id }
}
"""

ORGANIZATION_ID_QUERY = """
query GetOrganizationId($login: String!) {
  organization(login: $login) { id }
}
"""

LIST_TEAMS_QUERY = """
query ListTeams($org: String!) {
  organization(login: $org) {
    teams(first: 100) {
      nodes { id name slug }
    }
  }
}
"""

LIST_TEAMS_WITH_REPOSITORIES_QUERY = """
query ListTeamsWithRepositories($org: String!, $repositories: Int!) {
  organization(login: $org) {
    teams(first: 100) {
      nodes {
        id
        name
        slug
        repositories(first: $repositories) {
          nodes { name description }
        }
      }
    }
  }
}
"""

UPDATE_TEAMS_REPOSITORY_MUTATION = """
mutation UpdateTeamsRepository($input: UpdateTeamsRepositoryInput!) {
  updateTeamsRepository(input: $input) {
    repository { id }
  }
}
"""


class GitHubGraphQLApi(RemoteApi):
    """Remote API client for github.com.

    A GraphQL client is built lazily from the auth provider's token and
    reused until ``reset`` is called (after credentials are refreshed).
    Read-only queries are retried once on network errors; mutations are
    never retried.
    """

    def __init__(
        self,
        auth: AuthProvider,
        client_factory: Callable[[str], GraphQLClient] = GraphQLClient,
    ) -> None:
        self.auth = auth
        self.client_factory = client_factory
        self._client: GraphQLClient | None = None

    async def _graphql(self) -> GraphQLClient:
        if self._client is None:
            token = await self.auth.get_token()
            if not token:
                raise AuthenticationError(
                    "No GitHub authentication token found",
                    suggestion="Run `gh auth login`, or check ~/.config/gh/hosts.yml",
                )
            self._client = self.client_factory(token)
        return self._client

    async def _request(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        failure_kind: ErrorKind = ErrorKind.UNKNOWN,
    ) -> dict[str, Any]:
        client = await self._graphql()
        return await client.request(query, variables, failure_kind=failure_kind)

    async def reset(self) -> None:
        """Drop the cached client so the next call fetches a fresh token."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def aclose(self) -> None:
        await self.reset()

    @async_retry(exceptions=(NetworkError,))
    async def get_current_user(self) -> CurrentUser:
        log.info("get_current_user")
        data = await self._request(VIEWER_QUERY)
        viewer = data["viewer"]
        return CurrentUser(
            login=viewer["login"],
            organizations=tuple(org["login"] for org in viewer["organizations"]["nodes"] if org),
        )

    @async_retry(exceptions=(NetworkError,))
    async def search_repositories(self, query: str, owner: str, limit: int = 20) -> list[Repository]:
        log.info("search_repositories", query=query, owner=owner, limit=limit)
        data = await self._request(
            SEARCH_REPOSITORIES_QUERY,
            {"query": f"user:{owner} {query.strip()} in:name", "first": limit},
        )
        # Non-repository nodes come back as empty objects
        repositories = [Repository.from_node(node) for node in data["search"]["nodes"] if node and node.get("id")]
        # Qualifiers typed into the query (user:, org:) can widen the search
        owned = [repository for repository in repositories if repository.owner.login.lower() == owner.lower()]
        if len(owned) < len(repositories):
            log.debug("search_results_filtered", owner=owner, dropped=len(repositories) - len(owned))
        return owned

    async def create_repository(
        self,
        name: str,
        visibility: Visibility,
        description: str | None = None,
        owner: str | None = None,
    ) -> Repository:
        log.info("create_repository", name=name, visibility=visibility.value, owner=owner)
        repository_input: dict[str, Any] = {"name": name, "visibility": visibility.value}
        if description:
            repository_input["description"] = description
        if owner:
            repository_input["ownerId"] = await self.get_owner_id(owner, "organization")

        data = await self._request(
            CREATE_REPOSITORY_MUTATION,
            {"input": repository_input},
            failure_kind=ErrorKind.REPOSITORY_CREATION,
        )
        repository = Repository.from_node(data["createRepository"]["repository"])
        log.info("repository_created", repository=repository.full_name, id=repository.id)
        return repository

    @async_retry(exceptions=(NetworkError,))
    async def get_owner_id(self, login: str, kind: str) -> str:
        if kind == "user":
            data = await self._request(USER_ID_QUERY, {"login": login}, failure_kind=ErrorKind.NOT_FOUND)
            return data["user"]["id"]
        if kind == "organization":
            data = await self._request(ORGANIZATION_ID_QUERY, {"login": login}, failure_kind=ErrorKind.NOT_FOUND)
            return data["organization"]["id"]
        raise ValueError(f"Unknown owner kind: {kind}")

    @async_retry(exceptions=(NetworkError,))
    async def list_teams(self, org: str) -> list[Team]:
        log.info("list_teams", org=org)
        data = await self._request(LIST_TEAMS_QUERY, {"org": org}, failure_kind=ErrorKind.TEAM_LISTING)
        return [Team(id=node["id"], name=node["name"], slug=node["slug"]) for node in _team_nodes(data)]

    @async_retry(exceptions=(NetworkError,))
    async def list_teams_with_repositories(self, org: str) -> list[TeamWithRepositories]:
        log.info("list_teams_with_repositories", org=org)
        data = await self._request(
            LIST_TEAMS_WITH_REPOSITORIES_QUERY,
            {"org": org, "repositories": TEAM_REPOSITORY_SAMPLE},
            failure_kind=ErrorKind.TEAM_LISTING,
        )
        return [
            TeamWithRepositories(
                id=node["id"],
                name=node["name"],
                slug=node["slug"],
                repositories=tuple(
                    TeamRepository(name=repo["name"], description=repo.get("description") or None)
                    for repo in (node.get("repositories") or {}).get("nodes", [])
                    if repo
                ),
            )
            for node in _team_nodes(data)
        ]

    async def add_repository_to_teams(
        self,
        repository_id: str,
        team_ids: list[str],
        permission: TeamPermission = TeamPermission.WRITE,
    ) -> None:
        log.info("add_repository_to_teams", repository_id=repository_id, teams=len(team_ids))
        await self._request(
            UPDATE_TEAMS_REPOSITORY_MUTATION,
            {
                "input": {
                    "repositoryId": repository_id,
                    "teamIds": list(team_ids),
                    "permission": permission.value,
                }
            },
            failure_kind=ErrorKind.TEAM_LINKING,
        )


def _team_nodes(data: dict[str, Any]) -> list[dict[str, Any]]:
    organization = data.get("organization") or {}
    return [node for node in (organization.get("teams") or {}).get("nodes", []) if node]
