"""
Abstract base classes for the wizard's external collaborators.

The wizard depends only on these contracts; the concrete ``gh`` CLI,
GitHub GraphQL and Gemini implementations are injected at startup, and
tests substitute mocks.
"""

from abc import ABC, abstractmethod

from gh_usecases.enums import TeamPermission, Visibility
from gh_usecases.models.domain import (
    AuthState,
    CurrentUser,
    Repository,
    RepositorySuggestion,
    Team,
    TeamWithRepositories,
)


class AuthProvider(ABC):
    """Source of authentication state and bearer tokens."""

    @abstractmethod
    async def check_status(self) -> AuthState:
        """Report whether the user is logged in and with which scopes.

        Returns:
            AuthState; an unauthenticated user is a normal result.

        Raises:
            AuthenticationError: The auth mechanism itself failed.
            NetworkError: The host could not be reached.
        """
        pass

    @abstractmethod
    async def get_token(self) -> str | None:
        """Return the bearer token, or None if none is available."""
        pass

    @abstractmethod
    async def login(self) -> None:
        """Run the interactive login flow."""
        pass

    @abstractmethod
    async def refresh_scopes(self, scopes: list[str]) -> None:
        """Re-authorize the token with ``scopes``."""
        pass


class RemoteApi(ABC):
    """Typed operations against the source-control host.

    Every operation raises ``AuthenticationError`` when no token is
    available and ``ApiError`` (with a structured kind) on failure.
    """

    @abstractmethod
    async def get_current_user(self) -> CurrentUser:
        pass

    @abstractmethod
    async def search_repositories(self, query: str, owner: str, limit: int = 20) -> list[Repository]:
        """Search repositories of ``owner`` whose name matches ``query``."""
        pass

    @abstractmethod
    async def create_repository(
        self,
        name: str,
        visibility: Visibility,
        description: str | None = None,
        owner: str | None = None,
    ) -> Repository:
        """Create a repository, under organization ``owner`` when given."""
        pass

    @abstractmethod
    async def get_owner_id(self, login: str, kind: str) -> str:
        """Resolve the node id of a ``"user"`` or ``"organization"``."""
        pass

    @abstractmethod
    async def list_teams(self, org: str) -> list[Team]:
        pass

    @abstractmethod
    async def list_teams_with_repositories(self, org: str) -> list[TeamWithRepositories]:
        pass

    @abstractmethod
    async def add_repository_to_teams(
        self,
        repository_id: str,
        team_ids: list[str],
        permission: TeamPermission = TeamPermission.WRITE,
    ) -> None:
        pass

    async def reset(self) -> None:
        """Forget cached credentials so the next call picks up a refreshed token."""
        pass


class SuggestionClient(ABC):
    """Optional generative-AI helper.

    Implementations never raise from the suggest methods; failures are
    reported as None.
    """

    @abstractmethod
    async def is_available(self) -> bool:
        pass

    @abstractmethod
    async def suggest_repository_details(self, context: str | None = None) -> RepositorySuggestion | None:
        pass

    @abstractmethod
    async def suggest_teams(self, repository_name: str, teams: list[TeamWithRepositories]) -> list[str] | None:
        """Return up to five team slugs, most relevant first."""
        pass
