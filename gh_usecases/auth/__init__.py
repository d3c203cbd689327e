"""Authentication against GitHub through the ``gh`` CLI."""

from gh_usecases.auth.gh_cli import REQUIRED_SCOPES, GhCliAuthProvider

__all__ = ["GhCliAuthProvider", "REQUIRED_SCOPES"]
