"""Tests for gh_usecases.providers.github_graphql - typed GitHub operations."""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from gh_usecases.enums import ErrorKind, TeamPermission, Visibility
from gh_usecases.exceptions import ApiError, AuthenticationError, NetworkError
from gh_usecases.providers.github_graphql import GitHubGraphQLApi
from gh_usecases.providers.graphql import GraphQLClient


class FakeGitHub:
    """MockTransport handler answering by GraphQL operation."""

    def __init__(self, responses):
        self.responses = responses
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        for marker, response in self.responses.items():
            if marker in body["query"]:
                if callable(response):
                    return response(request)
                return httpx.Response(200, json={"data": response})
        raise AssertionError(f"Unexpected query: {body['query']}")

    def variables(self, marker):
        return [body["variables"] for body in self.requests if marker in body["query"]]


def repository_node(name, id=None, owner="acme", description=None, visibility="PRIVATE"):
    return {
        "id": id or f"R_{name}",
        "name": name,
        "description": description,
        "visibility": visibility,
        "isFork": False,
        "owner": {"login": owner},
    }


@pytest.fixture
def api_for(mock_auth):
    def build(responses):
        github = FakeGitHub(responses)
        api = GitHubGraphQLApi(
            mock_auth,
            client_factory=lambda token: GraphQLClient(token, transport=httpx.MockTransport(github)),
        )
        return api, github

    return build


class TestClientLifecycle:
    """Tests for token handling."""

    @pytest.mark.asyncio
    async def test_no_token_raises_authentication_error(self, mock_auth, api_for):
        mock_auth.get_token.return_value = None
        api, _ = api_for({})

        with pytest.raises(AuthenticationError):
            await api.list_teams("acme")

    @pytest.mark.asyncio
    async def test_client_reused_until_reset(self, mock_auth, api_for):
        api, _ = api_for({"viewer": {"viewer": {"login": "octocat", "organizations": {"nodes": []}}}})

        await api.get_current_user()
        await api.get_current_user()
        assert mock_auth.get_token.await_count == 1

        await api.reset()
        await api.get_current_user()
        assert mock_auth.get_token.await_count == 2
        await api.aclose()


class TestQueries:
    """Tests for read-only operations."""

    @pytest.mark.asyncio
    async def test_get_current_user(self, api_for):
        api, _ = api_for(
            {"viewer": {"viewer": {"login": "octocat", "organizations": {"nodes": [{"login": "acme"}]}}}}
        )

        user = await api.get_current_user()

        assert user.login == "octocat"
        assert user.organizations == ("acme",)
        assert [account.label for account in user.accounts()] == ["Personal (octocat)", "Organization (acme)"]

    @pytest.mark.asyncio
    async def test_search_repositories(self, api_for):
        api, github = api_for(
            {
                "search(": {
                    "search": {
                        "nodes": [
                            repository_node("my-repo-a", description=""),
                            repository_node("my-repo-b", description="Second"),
                            {},
                        ]
                    }
                }
            }
        )

        repositories = await api.search_repositories("my-repo", "acme")

        assert [repository.name for repository in repositories] == ["my-repo-a", "my-repo-b"]
        assert repositories[0].description is None
        assert github.variables("search(") == [{"query": "user:acme my-repo in:name", "first": 20}]

    @pytest.mark.asyncio
    async def test_internal_repositories_count_as_private(self, api_for):
        api, _ = api_for(
            {
                "search(": {
                    "search": {
                        "nodes": [
                            repository_node("my-repo-a", visibility="PRIVATE"),
                            repository_node("my-repo-b", visibility="INTERNAL"),
                            repository_node("my-repo-c", visibility="PUBLIC"),
                        ]
                    }
                }
            }
        )

        repositories = await api.search_repositories("my-repo", "acme")

        assert [repository.visibility for repository in repositories] == [
            Visibility.PRIVATE,
            Visibility.PRIVATE,
            Visibility.PUBLIC,
        ]

    @pytest.mark.asyncio
    async def test_search_drops_repositories_of_other_owners(self, api_for):
        api, github = api_for(
            {
                "search(": {
                    "search": {
                        "nodes": [
                            repository_node("x", owner="other"),
                            repository_node("x-tools", owner="ACME"),
                        ]
                    }
                }
            }
        )

        repositories = await api.search_repositories("user:other x", "acme")

        assert [repository.full_name for repository in repositories] == ["ACME/x-tools"]
        assert github.variables("search(")[0]["query"] == "user:acme user:other x in:name"

    @pytest.mark.asyncio
    async def test_list_teams(self, api_for):
        api, github = api_for(
            {
                "ListTeams(": {
                    "organization": {"teams": {"nodes": [{"id": "T_1", "name": "Platform", "slug": "platform"}]}}
                }
            }
        )

        teams = await api.list_teams("acme")

        assert [team.slug for team in teams] == ["platform"]
        assert github.variables("ListTeams(") == [{"org": "acme"}]

    @pytest.mark.asyncio
    async def test_list_teams_with_repositories(self, api_for):
        api, github = api_for(
            {
                "ListTeamsWithRepositories": {
                    "organization": {
                        "teams": {
                            "nodes": [
                                {
                                    "id": "T_1",
                                    "name": "Platform",
                                    "slug": "platform",
                                    "repositories": {"nodes": [{"name": "infra", "description": ""}]},
                                }
                            ]
                        }
                    }
                }
            }
        )

        (team,) = await api.list_teams_with_repositories("acme")

        assert team.slug == "platform"
        assert team.repositories[0].name == "infra"
        assert team.repositories[0].description is None
        assert github.variables("ListTeamsWithRepositories")[0]["repositories"] == 10

    @pytest.mark.asyncio
    async def test_team_listing_failure_kind(self, api_for):
        api, _ = api_for(
            {"ListTeams(": lambda request: httpx.Response(200, json={"errors": [{"message": "Something broke"}]})}
        )

        with pytest.raises(ApiError) as exc_info:
            await api.list_teams("acme")

        assert exc_info.value.kind == ErrorKind.TEAM_LISTING

    @pytest.mark.asyncio
    async def test_query_retried_once_on_network_error(self, api_for):
        attempts = []

        def flaky(request):
            attempts.append(1)
            if len(attempts) == 1:
                raise httpx.ConnectError("reset", request=request)
            return httpx.Response(200, json={"data": {"organization": {"teams": {"nodes": []}}}})

        api, _ = api_for({"ListTeams(": flaky})

        with patch("gh_usecases.utils.retry.asyncio.sleep", new_callable=AsyncMock):
            assert await api.list_teams("acme") == []

        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_get_owner_id(self, api_for):
        api, _ = api_for(
            {
                "GetOrganizationId": {"organization": {"id": "O_acme"}},
                "GetUserId": {"user": {"id": "U_octocat"}},
            }
        )

        assert await api.get_owner_id("acme", "organization") == "O_acme"
        assert await api.get_owner_id("octocat", "user") == "U_octocat"
        with pytest.raises(ValueError):
            await api.get_owner_id("acme", "enterprise")


class TestMutations:
    """Tests for repository creation and team linking."""

    @pytest.mark.asyncio
    async def test_create_personal_repository(self, api_for):
        api, github = api_for(
            {"CreateRepository": {"createRepository": {"repository": repository_node("demo", owner="octocat")}}}
        )

        repository = await api.create_repository(name="demo", visibility=Visibility.PRIVATE)

        assert repository.name == "demo"
        assert repository.owner.login == "octocat"
        assert repository.visibility == Visibility.PRIVATE
        assert github.variables("CreateRepository") == [{"input": {"name": "demo", "visibility": "PRIVATE"}}]

    @pytest.mark.asyncio
    async def test_create_organization_repository_resolves_owner_id(self, api_for):
        api, github = api_for(
            {
                "GetOrganizationId": {"organization": {"id": "O_acme"}},
                "CreateRepository": {
                    "createRepository": {"repository": repository_node("demo", description="A demo")}
                },
            }
        )

        await api.create_repository("demo", Visibility.PUBLIC, description="A demo", owner="acme")

        (variables,) = github.variables("CreateRepository")
        assert variables["input"] == {
            "name": "demo",
            "visibility": "PUBLIC",
            "description": "A demo",
            "ownerId": "O_acme",
        }

    @pytest.mark.asyncio
    async def test_create_is_not_retried(self, api_for):
        attempts = []

        def offline(request):
            attempts.append(1)
            raise httpx.ConnectError("offline", request=request)

        api, _ = api_for({"CreateRepository": offline})

        with pytest.raises(NetworkError):
            await api.create_repository("demo", Visibility.PRIVATE)

        assert len(attempts) == 1

    @pytest.mark.asyncio
    async def test_create_name_taken(self, api_for):
        api, _ = api_for(
            {
                "CreateRepository": lambda request: httpx.Response(
                    200,
                    json={"errors": [{"type": "UNPROCESSABLE", "message": "Name already exists on this account"}]},
                )
            }
        )

        with pytest.raises(ApiError) as exc_info:
            await api.create_repository("demo", Visibility.PRIVATE)

        assert exc_info.value.kind == ErrorKind.REPOSITORY_CREATION

    @pytest.mark.asyncio
    async def test_add_repository_to_teams(self, api_for):
        api, github = api_for({"UpdateTeamsRepository": {"updateTeamsRepository": {"repository": {"id": "R_demo"}}}})

        await api.add_repository_to_teams("R_demo", ["T_1", "T_2"])

        assert github.variables("UpdateTeamsRepository") == [
            {"input": {"repositoryId": "R_demo", "teamIds": ["T_1", "T_2"], "permission": "WRITE"}}
        ]

    @pytest.mark.asyncio
    async def test_add_repository_to_teams_permission_denied(self, api_for):
        api, _ = api_for(
            {
                "UpdateTeamsRepository": lambda request: httpx.Response(
                    200, json={"errors": [{"type": "FORBIDDEN", "message": "Must have admin rights"}]}
                )
            }
        )

        with pytest.raises(ApiError) as exc_info:
            await api.add_repository_to_teams("R_demo", ["T_1"], permission=TeamPermission.ADMIN)

        assert exc_info.value.kind == ErrorKind.PERMISSION
