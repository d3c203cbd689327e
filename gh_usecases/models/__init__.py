"""Domain models for the gh-usecases wizard.

Key Models:
    - Account: Personal account or organization the wizard acts on
    - Repository: Repository created or selected during a session
    - Team / TeamWithRepositories: Organization teams (with AI context)
    - CurrentUser: Authenticated viewer and their organizations
    - RepositorySuggestion: AI-proposed name and description
    - AuthState: Authentication state reported by the gh CLI

Example:
    >>> from gh_usecases.models import Account
    >>> from gh_usecases.enums import AccountType
    >>> account = Account(AccountType.ORGANIZATION, "acme")
    >>> account.label
    'Organization (acme)'
"""

from gh_usecases.models.domain import (
    Account,
    AuthState,
    CurrentUser,
    Repository,
    RepositoryOwner,
    RepositorySuggestion,
    Team,
    TeamRepository,
    TeamWithRepositories,
)

__all__ = [
    "Account",
    "AuthState",
    "CurrentUser",
    "Repository",
    "RepositoryOwner",
    "RepositorySuggestion",
    "Team",
    "TeamRepository",
    "TeamWithRepositories",
]
