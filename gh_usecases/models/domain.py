"""
Domain models for the gh-usecases wizard.

These dataclasses are the normalized internal representation of what the
GitHub GraphQL API returns, plus the authentication state reported by the
``gh`` CLI. Provider code converts raw payloads into these types; the
wizard never touches raw JSON.

Example:
    Building a repository from a GraphQL node::

        repository = Repository.from_node(
            {
                "id": "R_kgDOabc",
                "name": "demo",
                "description": None,
                "visibility": "PRIVATE",
                "owner": {"login": "acme"},
            }
        )
"""

from dataclasses import dataclass, field
from typing import Any

from gh_usecases.enums import AccountType, Visibility


@dataclass(frozen=True)
class Account:
    """The personal account or organization the wizard acts on."""

    type: AccountType
    login: str

    @property
    def is_organization(self) -> bool:
        return self.type == AccountType.ORGANIZATION

    @property
    def label(self) -> str:
        kind = "Organization" if self.is_organization else "Personal"
        return f"{kind} ({self.login})"


@dataclass(frozen=True)
class RepositoryOwner:
    login: str


@dataclass(frozen=True)
class Repository:
    """A GitHub repository as created or found by the wizard."""

    id: str
    name: str
    visibility: Visibility
    owner: RepositoryOwner
    description: str | None = None
    is_fork: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.owner.login}/{self.name}"

    @property
    def url(self) -> str:
        return f"https://github.com/{self.full_name}"

    @property
    def ssh_url(self) -> str:
        return f"git@github.com:{self.full_name}.git"

    @classmethod
    def from_node(cls, node: dict[str, Any]) -> "Repository":
        """Convert a GraphQL ``Repository`` node.

        Missing or empty descriptions are normalized to None. Anything that
        is not public (including enterprise ``INTERNAL`` repositories) maps
        to PRIVATE.
        """
        visibility = node.get("visibility")
        if visibility is None:
            visibility = "PRIVATE" if node.get("isPrivate", True) else "PUBLIC"
        return cls(
            id=node["id"],
            name=node["name"],
            visibility=Visibility.PUBLIC if visibility == "PUBLIC" else Visibility.PRIVATE,
            owner=RepositoryOwner(login=node["owner"]["login"]),
            description=node.get("description") or None,
            is_fork=bool(node.get("isFork", False)),
        )


@dataclass(frozen=True)
class Team:
    """An organization team that repositories can be linked to."""

    id: str
    name: str
    slug: str


@dataclass(frozen=True)
class TeamRepository:
    name: str
    description: str | None = None


@dataclass(frozen=True)
class TeamWithRepositories(Team):
    """A team plus a bounded sample of its repositories, used as AI context."""

    repositories: tuple[TeamRepository, ...] = ()


@dataclass(frozen=True)
class CurrentUser:
    """The authenticated viewer and the organizations they belong to."""

    login: str
    organizations: tuple[str, ...] = ()

    def accounts(self) -> list[Account]:
        """All accounts the viewer can act on, personal first."""
        return [Account(AccountType.PERSONAL, self.login)] + [
            Account(AccountType.ORGANIZATION, org) for org in self.organizations
        ]


@dataclass(frozen=True)
class RepositorySuggestion:
    """Name and optional description proposed by the AI client."""

    name: str
    description: str | None = None


@dataclass
class AuthState:
    """Authentication state reported by the ``gh`` CLI.

    The token lives in process memory only and is never persisted.
    """

    is_authenticated: bool
    token: str | None = None
    permissions: list[str] = field(default_factory=list)

    def has_scopes(self, scopes: list[str]) -> bool:
        return all(scope in self.permissions for scope in scopes)
