"""Pytest configuration and shared fixtures."""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from gh_usecases.config.store import ConfigStore
from gh_usecases.enums import AccountType, Visibility
from gh_usecases.models.domain import Account, AuthState, Repository, RepositoryOwner, Team
from gh_usecases.providers.base import AuthProvider, RemoteApi, SuggestionClient
from gh_usecases.utils.history import InteractionHistory
from gh_usecases.wizard.console import Console, Key, KeyPress
from gh_usecases.wizard.steps import StepContext


@dataclass(frozen=True)
class Pause:
    """Script item: let the event loop run for ``seconds`` before the next key."""

    seconds: float


def keys(text: str) -> list[KeyPress]:
    """Key presses for typing ``text``."""
    return [KeyPress(Key.SPACE, " ") if char == " " else KeyPress(Key.CHARACTER, char) for char in text]


def press(key: Key) -> KeyPress:
    return KeyPress(key)


class ScriptedConsole(Console):
    """Console that answers reads from a script and records everything echoed.

    Script items are consumed in order: ``str`` for prompts, ``bool`` for
    confirmations, ``int`` (option index) for choices, ``KeyPress`` for key
    reads, and ``Pause`` to wait before the next key read.
    """

    keys = staticmethod(keys)
    press = staticmethod(press)
    pause = Pause

    def __init__(self, script: list | None = None) -> None:
        self.script = list(script or [])
        self.lines: list[str] = []
        self.prompts: list[str] = []
        self.choices: list[tuple[str, list[str]]] = []

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def _next(self, expected: type | tuple[type, ...]):
        if not self.script:
            raise AssertionError(f"Console script exhausted; output so far:\n{self.text}")
        item = self.script.pop(0)
        if isinstance(item, bool) and expected is int:
            raise AssertionError(f"Expected {expected}, script has {item!r}")
        if not isinstance(item, expected):
            raise AssertionError(f"Expected {expected}, script has {item!r}")
        return item

    def echo(self, message: str = "", fg: str | None = None, bold: bool = False) -> None:
        self.lines.append(message)

    async def prompt(self, text: str, default: str | None = None, hide_input: bool = False) -> str:
        self.prompts.append(text)
        answer = self._next(str)
        if not answer and default is not None:
            return default
        return answer

    async def confirm(self, text: str, default: bool = True) -> bool:
        self.prompts.append(text)
        return self._next(bool)

    async def choose(self, text: str, options: list[str], default: int = 0) -> int:
        self.choices.append((text, list(options)))
        index = self._next(int)
        assert 0 <= index < len(options), f"Option {index} not in {options}"
        return index

    async def read_key(self) -> KeyPress:
        while self.script and isinstance(self.script[0], Pause):
            await asyncio.sleep(self.script.pop(0).seconds)
        await asyncio.sleep(0)
        return self._next(KeyPress)


def make_repository(
    name: str = "demo",
    owner: str = "acme",
    id: str | None = None,
    visibility: Visibility = Visibility.PRIVATE,
    description: str | None = None,
) -> Repository:
    return Repository(
        id=id or f"R_{name}",
        name=name,
        visibility=visibility,
        owner=RepositoryOwner(login=owner),
        description=description,
    )


@pytest.fixture
def repository_factory():
    """Build repositories; defaults to acme/demo, private."""
    return make_repository


@pytest.fixture
def org_account() -> Account:
    return Account(AccountType.ORGANIZATION, "acme")


@pytest.fixture
def personal_account() -> Account:
    return Account(AccountType.PERSONAL, "octocat")


@pytest.fixture
def authenticated() -> AuthState:
    return AuthState(is_authenticated=True, token="gho_test", permissions=["repo", "read:org"])


@pytest.fixture
def sample_teams() -> list[Team]:
    return [
        Team(id="T_platform", name="Platform", slug="platform"),
        Team(id="T_backend", name="Backend", slug="backend"),
        Team(id="T_frontend", name="Frontend", slug="frontend"),
    ]


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "home" / ".gh-usecases.json"


@pytest.fixture
def store(config_path: Path) -> ConfigStore:
    return ConfigStore(config_path)


@pytest.fixture
def history() -> InteractionHistory:
    return InteractionHistory()


@pytest.fixture
def mock_auth() -> AsyncMock:
    auth = AsyncMock(spec=AuthProvider)
    auth.check_status.return_value = AuthState(is_authenticated=True, permissions=["repo", "read:org"])
    auth.get_token.return_value = "gho_test"
    return auth


@pytest.fixture
def mock_api() -> AsyncMock:
    return AsyncMock(spec=RemoteApi)


@pytest.fixture
def mock_ai() -> AsyncMock:
    ai = AsyncMock(spec=SuggestionClient)
    ai.is_available.return_value = False
    ai.suggest_repository_details.return_value = None
    ai.suggest_teams.return_value = None
    return ai


@pytest.fixture
def console() -> ScriptedConsole:
    return ScriptedConsole()


@pytest.fixture
def context(console, mock_auth, mock_api, mock_ai, store, history) -> StepContext:
    return StepContext(
        console=console,
        auth=mock_auth,
        api=mock_api,
        ai=mock_ai,
        store=store,
        history=history,
        search_delay=0.05,
    )
