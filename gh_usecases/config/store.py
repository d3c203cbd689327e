"""Persistence of the wizard's config document.

The document is a single JSON file (``~/.gh-usecases.json`` by default),
read and written with ``aiofiles`` so the event loop stays free while the
debounced search timers are running. Writes go to a ``.tmp`` sibling first
and then replace the document, so a failed write leaves the previous
document intact.
"""

import json
from pathlib import Path

import aiofiles
import structlog
from pydantic import ValidationError as PydanticValidationError

from gh_usecases.config.settings import ConfigDocument, SelectedAccount
from gh_usecases.exceptions import ConfigurationError
from gh_usecases.models.domain import Account

log = structlog.get_logger(__name__)


class ConfigStore:
    """Load and save the config document and expose typed accessors.

    Example:
        >>> store = ConfigStore(Path.home() / ".gh-usecases.json")
        >>> await store.set_default_teams("acme", ["platform"])
        >>> await store.get_default_teams("acme")
        ['platform']
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    async def load(self) -> ConfigDocument | None:
        """Read the document.

        Returns:
            The parsed document, or None if the file does not exist.

        Raises:
            ConfigurationError: If the file exists but is unreadable, is not
                valid JSON, or does not match the schema.
        """
        if not self.path.exists():
            return None

        try:
            async with aiofiles.open(self.path, encoding="utf-8") as f:
                content = await f.read()
            data = json.loads(content)
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {self.path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Config file is not valid JSON: {self.path}") from e

        try:
            return ConfigDocument.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Config file has an invalid format: {self.path}\n{e}") from e

    async def save(self, config: ConfigDocument) -> None:
        """Write the document atomically, creating the parent directory if needed."""
        tmp_path = self.path.with_suffix(".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(config.to_json() + "\n")
            tmp_path.replace(self.path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            log.error("config_save_failed", path=str(self.path), error=str(e))
            raise ConfigurationError(f"Cannot write config file {self.path}: {e}") from e
        log.debug("config_saved", path=str(self.path))

    async def _load_or_empty(self) -> ConfigDocument:
        return await self.load() or ConfigDocument()

    async def get_selected_account(self) -> Account | None:
        config = await self.load()
        if config is None or config.selected_account is None:
            return None
        return Account(config.selected_account.type, config.selected_account.login)

    async def set_selected_account(self, account: Account) -> None:
        config = await self._load_or_empty()
        config.selected_account = SelectedAccount(type=account.type, login=account.login)
        await self.save(config)

    async def clear_selected_account(self) -> None:
        config = await self.load()
        if config is None or config.selected_account is None:
            return
        config.selected_account = None
        await self.save(config)

    async def get_default_teams(self, org: str) -> list[str]:
        """Team slugs last used for ``org``; empty if none were saved."""
        config = await self.load()
        if config is None or not config.default_teams:
            return []
        return list(config.default_teams.get(org, []))

    async def set_default_teams(self, org: str, slugs: list[str]) -> None:
        """Replace the saved team slugs for ``org``, leaving other orgs untouched."""
        config = await self._load_or_empty()
        teams = dict(config.default_teams or {})
        teams[org] = list(slugs)
        config.default_teams = teams
        await self.save(config)

    async def get_gemini_api_key(self) -> str | None:
        config = await self.load()
        return config.gemini_api_key if config else None

    async def set_gemini_api_key(self, api_key: str | None) -> None:
        """Store the key; passing None removes it."""
        config = await self._load_or_empty()
        config.gemini_api_key = api_key or None
        await self.save(config)
