"""Enumerations shared across the gh-usecases wizard."""

from enum import Enum


class AccountType(str, Enum):
    """Kind of GitHub account the wizard operates on.

    Only organization accounts own teams, so team steps are reachable
    for ORGANIZATION only.
    """

    PERSONAL = "personal"
    ORGANIZATION = "organization"

    def __str__(self) -> str:
        return self.value


class Visibility(str, Enum):
    """Repository visibility as spelled by the GitHub GraphQL API."""

    PRIVATE = "PRIVATE"
    PUBLIC = "PUBLIC"

    def __str__(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return self.value.capitalize()


class UseCase(str, Enum):
    """Top-level choices offered after an account is selected."""

    CREATE = "create"
    ADD_TO_TEAMS = "add-to-teams"
    CREATE_AND_ADD = "create-and-add"
    CONFIGURE_AI = "configure-ai"
    CHANGE_ACCOUNT = "change-account"

    def __str__(self) -> str:
        return self.value

    @property
    def requires_teams(self) -> bool:
        """Whether this use case ends in linking a repository to teams."""
        return self in (UseCase.ADD_TO_TEAMS, UseCase.CREATE_AND_ADD)


class InteractionType(str, Enum):
    """Category of an interaction history entry."""

    INPUT = "input"
    SELECTION = "selection"
    ACTION = "action"


class TeamPermission(str, Enum):
    """Repository permission granted to a team (GraphQL RepositoryPermission)."""

    READ = "READ"
    TRIAGE = "TRIAGE"
    WRITE = "WRITE"
    MAINTAIN = "MAINTAIN"
    ADMIN = "ADMIN"


class ErrorKind(str, Enum):
    """Structured error categories, listed in classification priority order.

    Transport-level kinds (NETWORK through MALFORMED_REQUEST) win over the
    domain kinds; a backend failure that carries none of them falls back to
    the domain kind of the operation that failed.
    """

    NETWORK = "network"
    AUTHENTICATION = "authentication"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"
    MALFORMED_REQUEST = "malformed_request"
    REPOSITORY_CREATION = "repository_creation"
    TEAM_LISTING = "team_listing"
    TEAM_LINKING = "team_linking"
    VALIDATION = "validation"
    TEAM_SELECTION_EMPTY = "team_selection_empty"
    WRONG_ACCOUNT_TYPE = "wrong_account_type"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value

    @property
    def retry_in_place(self) -> bool:
        """Whether a failed call of this kind is retried without re-entering input.

        These failures are about credentials or connectivity rather than the
        data the user typed, so the user stays on the step right before the
        failed call and may refresh credentials and retry.
        """
        return self in (
            ErrorKind.NETWORK,
            ErrorKind.AUTHENTICATION,
            ErrorKind.PERMISSION,
            ErrorKind.RATE_LIMIT,
        )
