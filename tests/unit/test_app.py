"""Tests for gh_usecases.wizard.app - complete wizard runs."""

import httpx
import pytest

from gh_usecases.auth.gh_cli import GhCliAuthProvider
from gh_usecases.config.settings import AppSettings
from gh_usecases.enums import ErrorKind, Visibility
from gh_usecases.exceptions import ApiError
from gh_usecases.models.domain import AuthState, CurrentUser
from gh_usecases.providers.gemini import GeminiSuggestionClient
from gh_usecases.providers.github_graphql import GitHubGraphQLApi
from gh_usecases.providers.graphql import GraphQLClient
from gh_usecases.wizard.app import WizardApp
from gh_usecases.wizard.console import Key
from gh_usecases.wizard.state import Step, WizardState
from gh_usecases.wizard.steps import AccountStep, RepositoryCreatorStep, TeamSelectorStep


@pytest.fixture
def app(console, mock_auth, mock_api, mock_ai, store, history):
    return WizardApp(
        console=console,
        auth=mock_auth,
        api=mock_api,
        ai=mock_ai,
        store=store,
        history=history,
        search_delay=0.05,
    )


class TestWizardRuns:
    """End-to-end runs with mocked collaborators."""

    @pytest.mark.asyncio
    async def test_personal_account_cannot_add_to_teams(self, app, console, store, mock_api, personal_account):
        await store.set_selected_account(personal_account)
        console.script = [1]

        state = await app.run()

        assert state.step == Step.BLOCKED
        assert state.last_error.kind == ErrorKind.WRONG_ACCOUNT_TYPE
        assert "❌ Account Type Error" in console.lines
        mock_api.search_repositories.assert_not_awaited()
        mock_api.list_teams.assert_not_awaited()
        mock_api.reset.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_repository(self, app, console, store, mock_api, org_account, repository_factory):
        await store.set_selected_account(org_account)
        mock_api.create_repository.return_value = repository_factory("demo")
        console.script = [0, "demo", "", 0, console.press(Key.ENTER)]

        state = await app.run()

        assert state.step == Step.DONE
        assert state.message == "Repository acme/demo created: https://github.com/acme/demo"
        assert console.lines[-1] == "✅ Repository acme/demo created: https://github.com/acme/demo"

    @pytest.mark.asyncio
    async def test_create_retries_in_place_after_permission_error(
        self, app, console, store, mock_api, org_account, repository_factory
    ):
        await store.set_selected_account(org_account)
        mock_api.create_repository.side_effect = [
            ApiError("Forbidden", kind=ErrorKind.PERMISSION, status_code=403),
            repository_factory("demo", visibility=Visibility.PUBLIC),
        ]
        console.script = [0, "demo", "Demo", 1, 0, 1, console.press(Key.ENTER)]

        state = await app.run()

        assert state.step == Step.DONE
        assert mock_api.create_repository.await_count == 2
        second = mock_api.create_repository.await_args_list[1].kwargs
        assert second == {"name": "demo", "visibility": Visibility.PUBLIC, "description": "Demo", "owner": "acme"}
        # name and description were asked only once
        assert console.prompts.count("Repository name") == 1

    @pytest.mark.asyncio
    async def test_create_and_add_to_teams(
        self, app, console, store, mock_api, org_account, repository_factory, sample_teams
    ):
        await store.set_selected_account(org_account)
        mock_api.create_repository.return_value = repository_factory("demo")
        mock_api.list_teams.return_value = sample_teams
        console.script = [
            2,
            "demo",
            "",
            0,
            console.press(Key.ENTER),
            console.press(Key.SPACE),
            console.press(Key.ENTER),
        ]

        state = await app.run()

        assert state.step == Step.DONE
        assert state.message == "Added acme/demo to teams: Platform"
        mock_api.add_repository_to_teams.assert_awaited_once_with("R_demo", ["T_platform"])
        assert await store.get_default_teams("acme") == ["platform"]

    @pytest.mark.asyncio
    async def test_add_existing_repository_to_teams(
        self, app, console, store, mock_api, org_account, repository_factory, sample_teams
    ):
        await store.set_selected_account(org_account)
        mock_api.search_repositories.return_value = [repository_factory("billing-api")]
        mock_api.list_teams.return_value = sample_teams
        console.script = [
            1,
            *console.keys("bill"),
            console.press(Key.ENTER),
            console.press(Key.DOWN),
            console.press(Key.SPACE),
            console.press(Key.ENTER),
        ]

        state = await app.run()

        assert state.message == "Added acme/billing-api to teams: Backend"
        assert state.selected_team_ids == ("T_backend",)

    @pytest.mark.asyncio
    async def test_foreign_repository_never_offered(
        self, console, mock_auth, mock_ai, store, history, org_account
    ):
        def github(request: httpx.Request) -> httpx.Response:
            node = {"id": "R_x", "name": "x", "visibility": "PUBLIC", "owner": {"login": "other"}}
            return httpx.Response(200, json={"data": {"search": {"nodes": [node]}}})

        api = GitHubGraphQLApi(
            mock_auth,
            client_factory=lambda token: GraphQLClient(token, transport=httpx.MockTransport(github)),
        )
        app = WizardApp(console, mock_auth, api, mock_ai, store, history=history, search_delay=0.05)
        await store.set_selected_account(org_account)
        console.script = [
            1,
            *console.keys("user:other x"),
            console.press(Key.ENTER),
            console.press(Key.ESCAPE),
            5,
        ]

        state = await app.run()

        assert state.step == Step.DONE
        assert state.repository is None
        assert 'No repository matching "user:other x" found in acme' in console.lines

    @pytest.mark.asyncio
    async def test_configure_ai_then_exit(self, app, console, store, org_account):
        await store.set_selected_account(org_account)
        console.script = [3, "gemini-key", 5]

        state = await app.run()

        assert state.step == Step.DONE
        assert state.message is None
        assert await store.get_gemini_api_key() == "gemini-key"
        assert len(console.choices) == 2

    @pytest.mark.asyncio
    async def test_cancel_in_flow_returns_to_menu(self, app, console, store, mock_api, org_account):
        await store.set_selected_account(org_account)
        console.script = [0, "demo", "", 2, 5]

        state = await app.run()

        assert state.step == Step.DONE
        mock_api.create_repository.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_change_account(self, app, console, store, mock_api, org_account):
        await store.set_selected_account(org_account)
        mock_api.get_current_user.return_value = CurrentUser("octocat", ("acme",))
        console.script = [4, 0, 5]

        state = await app.run()

        assert state.selected_account.login == "octocat"
        assert (await store.get_selected_account()).login == "octocat"

    @pytest.mark.asyncio
    async def test_failed_authentication_is_retried(self, app, console, mock_auth, store, org_account):
        await store.set_selected_account(org_account)
        mock_auth.check_status.side_effect = [
            AuthState(is_authenticated=True, permissions=["repo", "read:org"]),
            AuthState(is_authenticated=True, permissions=["repo", "read:org"]),
        ]
        mock_auth.get_token.side_effect = [None, "gho_test"]
        console.script = [5]

        state = await app.run()

        assert state.step == Step.DONE
        assert state.auth_state.token == "gho_test"
        assert "❌ Authentication Error" in console.lines


class TestBuildStep:
    """Tests for build_step and from_settings."""

    def test_components_per_step(self, app, org_account, repository_factory):
        assert isinstance(app.build_step(WizardState(step=Step.AWAITING_ACCOUNT)), AccountStep)
        changing = app.build_step(WizardState(step=Step.CHANGING_ACCOUNT, selected_account=org_account))
        assert changing.changing is True
        creating = WizardState(step=Step.CREATING, selected_account=org_account)
        assert isinstance(app.build_step(creating), RepositoryCreatorStep)
        teams = WizardState(step=Step.AWAITING_TEAMS, selected_account=org_account, repository=repository_factory())
        assert isinstance(app.build_step(teams), TeamSelectorStep)

    @pytest.mark.parametrize("step", [Step.DONE, Step.BLOCKED])
    def test_terminal_steps_have_no_component(self, app, step):
        with pytest.raises(ValueError):
            app.build_step(WizardState(step=step))

    def test_from_settings(self, tmp_path, console, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        settings = AppSettings(config_path=tmp_path / "config.json", search_delay=0.1, gemini_model="gemini-test")

        app = WizardApp.from_settings(settings, console=console)

        assert app.context.console is console
        assert app.context.store.path == tmp_path / "config.json"
        assert app.context.search_delay == 0.1
        assert isinstance(app.context.auth, GhCliAuthProvider)
        assert isinstance(app.context.api, GitHubGraphQLApi)
        assert isinstance(app.context.ai, GeminiSuggestionClient)
        assert app.context.ai.model == "gemini-test"
        assert app.context.ai.store is app.context.store
