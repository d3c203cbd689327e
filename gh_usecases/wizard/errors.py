"""User-facing error explanations.

Each ``ErrorKind`` maps to a fixed title, a list of likely causes and a
list of fixes. Steps classify whatever they caught, then render it with
``format_error_display``, which also appends the raw message and the
latest interaction history entries.
"""

from dataclasses import dataclass

from gh_usecases.enums import ErrorKind
from gh_usecases.exceptions import GhUsecasesError
from gh_usecases.utils.history import InteractionHistory

RECENT_INTERACTIONS = 10


@dataclass(frozen=True)
class ErrorInfo:
    title: str
    causes: tuple[str, ...]
    solutions: tuple[str, ...]


ERROR_INFO: dict[ErrorKind, ErrorInfo] = {
    ErrorKind.NETWORK: ErrorInfo(
        title="Network Connection Error",
        causes=(
            "Internet connection is disconnected",
            "Cannot connect to GitHub servers",
            "Firewall or proxy settings",
        ),
        solutions=(
            "Check your internet connection",
            "If using VPN, try disabling it temporarily",
            "Wait a while and try again",
        ),
    ),
    ErrorKind.AUTHENTICATION: ErrorInfo(
        title="Authentication Error",
        causes=(
            "GitHub authentication credentials are invalid or expired",
            "Insufficient access token permissions",
            "Not logged in to gh CLI",
        ),
        solutions=(
            "Run `gh auth login` to log in again",
            "Check authentication status with `gh auth status`",
            "Ensure the token has the repo and read:org scopes",
        ),
    ),
    ErrorKind.PERMISSION: ErrorInfo(
        title="Access Permission Error",
        causes=(
            "Required permissions not granted",
            "Access restricted by organization settings",
            "No access to repositories or teams",
        ),
        solutions=(
            "Request necessary permissions from organization administrator",
            "Check access token scopes",
            "Update permissions with `gh auth refresh -s repo,read:org`",
        ),
    ),
    ErrorKind.NOT_FOUND: ErrorInfo(
        title="Resource Not Found",
        causes=(
            "Specified repository, organization, or team does not exist",
            "No access permissions to resource",
            "Incorrect name or ID",
        ),
        solutions=(
            "Verify name or ID is correct",
            "Confirm you have access permissions",
            "Check the spelling of organization or repository names",
        ),
    ),
    ErrorKind.RATE_LIMIT: ErrorInfo(
        title="API Rate Limit Error",
        causes=(
            "GitHub API rate limit reached",
            "Too many requests sent in a short time",
        ),
        solutions=(
            "Wait a while and try again (usually 1 hour)",
            "Check rate limit status with `gh api rate_limit`",
            "Ensure you are running as an authenticated user",
        ),
    ),
    ErrorKind.MALFORMED_REQUEST: ErrorInfo(
        title="API Request Error",
        causes=(
            "GitHub API specification changed",
            "Invalid query parameters",
            "Temporary server-side issue",
        ),
        solutions=(
            "Update gh-usecases to the latest version",
            "Check that input does not contain special characters",
            "Wait a while and try again",
        ),
    ),
    ErrorKind.REPOSITORY_CREATION: ErrorInfo(
        title="Repository Creation Error",
        causes=(
            "Repository name already in use",
            "No permission to create repositories in the organization",
            "Organization repository policy prevents this visibility",
        ),
        solutions=(
            "Try a different repository name",
            "Check permissions with organization administrator",
            "Try a different visibility",
        ),
    ),
    ErrorKind.TEAM_LISTING: ErrorInfo(
        title="Team Loading Error",
        causes=(
            "No access to organization teams",
            "Organization does not exist or is inaccessible",
        ),
        solutions=(
            "Confirm you are a member of the organization",
            "Verify organization name is correct",
            "Update permissions with `gh auth refresh -s read:org`",
        ),
    ),
    ErrorKind.TEAM_LINKING: ErrorInfo(
        title="Team Addition Error",
        causes=(
            "No permission to add repositories to teams",
            "Repository already added to team",
        ),
        solutions=(
            "Request permissions from team administrator",
            "Verify selected teams",
            "Check repository settings with organization administrator",
        ),
    ),
    ErrorKind.VALIDATION: ErrorInfo(
        title="Input Error",
        causes=(
            "Required fields not filled",
            "Invalid input format",
            "Character limit exceeded",
        ),
        solutions=(
            "Fill in all required fields",
            "Use only letters, digits, hyphens, underscores and periods",
            "Keep repository name under 100 characters",
        ),
    ),
    ErrorKind.TEAM_SELECTION_EMPTY: ErrorInfo(
        title="Team Selection Error",
        causes=("No teams selected",),
        solutions=(
            "Select one or more teams using the space key",
            "Press Enter to confirm selection",
        ),
    ),
    ErrorKind.WRONG_ACCOUNT_TYPE: ErrorInfo(
        title="Account Type Error",
        causes=("Personal accounts do not have team features",),
        solutions=(
            "Select an organization account",
            "Skip team addition for personal repositories",
        ),
    ),
    ErrorKind.UNKNOWN: ErrorInfo(
        title="An Error Occurred",
        causes=("An unexpected error occurred",),
        solutions=(
            "Check error message details",
            "If problem persists, check GitHub status page",
            "Try restarting the application",
        ),
    ),
}


def classify(error: BaseException | ErrorKind) -> ErrorKind:
    """Return the kind of ``error``; errors from outside the hierarchy are UNKNOWN."""
    if isinstance(error, ErrorKind):
        return error
    if isinstance(error, GhUsecasesError):
        return error.kind
    return ErrorKind.UNKNOWN


def get_error_info(error: BaseException | ErrorKind) -> ErrorInfo:
    return ERROR_INFO[classify(error)]


def error_message(error: BaseException) -> str:
    if isinstance(error, GhUsecasesError):
        return error.message
    return str(error)


def format_error_display(
    error: BaseException | ErrorKind,
    history: InteractionHistory | None = None,
    details: str | None = None,
    recent: int = RECENT_INTERACTIONS,
) -> list[str]:
    """Render an error as display lines.

    Args:
        error: The caught exception, or a kind for errors raised in place
            (such as an empty team selection)
        history: Interaction history to append, if any
        details: Message shown after ``Details:``; defaults to the
            exception's message
        recent: Number of history entries to include

    Returns:
        Lines ready to be echoed, starting with ``❌ <title>``.
    """
    info = get_error_info(error)
    lines = [f"❌ {info.title}", ""]

    if info.causes:
        lines.append("Possible causes:")
        lines.extend(f"  • {cause}" for cause in info.causes)
        lines.append("")

    if info.solutions:
        lines.append("How to fix:")
        lines.extend(f"  {index}. {solution}" for index, solution in enumerate(info.solutions, start=1))

    if details is None and isinstance(error, BaseException):
        details = error_message(error)
    if details:
        lines.extend(["", f"Details: {details}"])

    if history is not None and len(history):
        lines.extend(["", "Recent interactions:"])
        lines.extend(f"  {line}" for line in history.formatted(recent))

    return lines
