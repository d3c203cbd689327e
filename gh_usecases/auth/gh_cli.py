"""Authentication through the GitHub CLI.

The wizard never asks for credentials itself. It relies on ``gh`` having
been logged in, reads the token with ``gh auth token``, and falls back to
the ``oauth_token`` stored in ``~/.config/gh/hosts.yml`` for older ``gh``
installs that keep the token in plain text.
"""

from pathlib import Path
from typing import Any

import structlog
import yaml

from gh_usecases.exceptions import AuthenticationError, NetworkError
from gh_usecases.models.domain import AuthState
from gh_usecases.providers.base import AuthProvider
from gh_usecases.utils.async_subprocess import CommandResult, run_command

log = structlog.get_logger(__name__)

GITHUB_HOST = "github.com"

# Scopes needed to create repositories and read organization teams
REQUIRED_SCOPES = ["repo", "read:org"]

INSTALL_SUGGESTION = "Install the GitHub CLI from https://cli.github.com/ and run `gh auth login`"
LOGIN_SUGGESTION = "Run `gh auth login` to authenticate with GitHub"

_NOT_LOGGED_IN_MARKERS = ("not logged in", "gh auth login", "is invalid")
_NETWORK_MARKERS = ("error connecting", "dial tcp", "no such host", "i/o timeout")


def default_hosts_path() -> Path:
    return Path.home() / ".config" / "gh" / "hosts.yml"


class GhCliAuthProvider(AuthProvider):
    """Auth provider backed by the ``gh`` executable.

    Example:
        >>> auth = GhCliAuthProvider()
        >>> state = await auth.check_status()
        >>> if state.is_authenticated:
        ...     token = await auth.get_token()
    """

    def __init__(
        self,
        executable: str = "gh",
        hostname: str = GITHUB_HOST,
        hosts_path: Path | None = None,
    ) -> None:
        self.executable = executable
        self.hostname = hostname
        self.hosts_path = hosts_path or default_hosts_path()

    async def _gh(self, *args: str, capture_output: bool = True) -> CommandResult:
        try:
            return await run_command(self.executable, *args, check=False, capture_output=capture_output)
        except FileNotFoundError as e:
            raise AuthenticationError("GitHub CLI (gh) is not installed", suggestion=INSTALL_SUGGESTION) from e

    async def check_status(self) -> AuthState:
        """Ask ``gh`` whether the user is logged in.

        Returns:
            AuthState with the token scopes as permissions. A "not logged in"
            answer is an unauthenticated state, not an error.

        Raises:
            AuthenticationError: gh is missing or failed unexpectedly.
            NetworkError: gh could not reach the GitHub API.
        """
        result = await self._gh("auth", "status", "--hostname", self.hostname)

        if result.returncode == 0:
            permissions = parse_token_scopes(result.output)
            log.info("gh_auth_status", authenticated=True, scopes=permissions)
            return AuthState(is_authenticated=True, permissions=permissions)

        output = result.output.lower()
        if any(marker in output for marker in _NETWORK_MARKERS):
            raise NetworkError(f"gh could not reach {self.hostname}: {result.output.strip()}")
        if any(marker in output for marker in _NOT_LOGGED_IN_MARKERS):
            log.info("gh_auth_status", authenticated=False)
            return AuthState(is_authenticated=False)

        raise AuthenticationError(
            f"gh auth status failed: {result.output.strip() or f'exit code {result.returncode}'}",
            suggestion=LOGIN_SUGGESTION,
        )

    async def get_token(self) -> str | None:
        """Retrieve the bearer token, or None if none can be found.

        ``gh auth token`` works with every storage method gh supports
        (keyring, file); the hosts.yml read is a fallback.
        """
        try:
            result = await self._gh("auth", "token", "--hostname", self.hostname)
        except AuthenticationError:
            result = None

        if result is not None and result.returncode == 0:
            token = result.stdout.strip()
            if token and not any(ch.isspace() for ch in token):
                return token
            log.warning("gh_token_invalid_format", empty=not token)
        else:
            log.warning("gh_token_command_failed")

        token = self._read_hosts_token()
        if token:
            log.info("gh_token_from_hosts_file", path=str(self.hosts_path))
        return token

    def _read_hosts_token(self) -> str | None:
        if not self.hosts_path.exists():
            return None
        try:
            hosts: Any = yaml.safe_load(self.hosts_path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            log.warning("gh_hosts_file_unreadable", path=str(self.hosts_path), error=str(e))
            return None
        return extract_hosts_token(hosts, self.hostname)

    async def login(self) -> None:
        """Run the interactive ``gh auth login`` flow in the user's terminal."""
        result = await self._gh("auth", "login", "--hostname", self.hostname, capture_output=False)
        if result.returncode != 0:
            raise AuthenticationError("gh auth login did not complete", suggestion=LOGIN_SUGGESTION)

    async def refresh_scopes(self, scopes: list[str]) -> None:
        """Re-authorize the token with additional scopes (interactive)."""
        log.info("gh_auth_refresh", scopes=scopes)
        result = await self._gh(
            "auth",
            "refresh",
            "--hostname",
            self.hostname,
            "--scopes",
            ",".join(scopes),
            capture_output=False,
        )
        if result.returncode != 0:
            raise AuthenticationError(
                f"gh auth refresh failed for scopes: {', '.join(scopes)}",
                suggestion=f"Run `gh auth refresh -s {','.join(scopes)}` manually",
            )

    async def ensure_scopes(self, scopes: list[str]) -> AuthState:
        """Refresh the token if any of ``scopes`` is missing."""
        state = await self.check_status()
        if not state.is_authenticated:
            raise AuthenticationError("Not authenticated with GitHub", suggestion=LOGIN_SUGGESTION)

        missing = [scope for scope in scopes if scope not in state.permissions]
        if missing:
            log.info("gh_scopes_missing", missing=missing)
            await self.refresh_scopes(scopes)
            state = await self.check_status()
        return state


def parse_token_scopes(output: str) -> list[str]:
    """Extract the scopes from the ``Token scopes:`` line of ``gh auth status``.

    Newer gh versions quote each scope (``'repo', 'read:org'``).
    """
    scopes: list[str] = []
    for line in output.splitlines():
        if "Token scopes:" not in line:
            continue
        raw = line.split("Token scopes:", 1)[1]
        for scope in raw.split(","):
            scope = scope.strip().strip("'\"")
            if scope and scope.lower() != "none" and scope not in scopes:
                scopes.append(scope)
    return scopes


def extract_hosts_token(hosts: Any, hostname: str) -> str | None:
    """Find the oauth token for ``hostname`` in a parsed hosts.yml document.

    Supports the legacy layout (``oauth_token`` on the host) and the
    multi-account layout (``users: {login: {oauth_token: ...}}``).
    """
    if not isinstance(hosts, dict):
        return None
    host = hosts.get(hostname)
    if not isinstance(host, dict):
        return None

    token = host.get("oauth_token")
    if isinstance(token, str) and token.strip():
        return token.strip()

    users = host.get("users")
    active_user = host.get("user")
    if isinstance(users, dict):
        ordered = sorted(users.items(), key=lambda item: item[0] != active_user)
        for _, user in ordered:
            if isinstance(user, dict) and isinstance(user.get("oauth_token"), str):
                return user["oauth_token"].strip() or None
    return None

