"""
Configuration models using Pydantic.

Two kinds of configuration exist:

- ``AppSettings``: process settings read from the environment
  (``GH_USECASES_*`` variables, plus ``GEMINI_API_KEY``).
- ``ConfigDocument``: the small JSON document persisted in the user's home
  directory between invocations. Field names on disk are camelCase.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gh_usecases.enums import AccountType

CONFIG_FILE_NAME = ".gh-usecases.json"


class SelectedAccount(BaseModel):
    """Persisted account selection."""

    type: AccountType
    login: str = Field(..., min_length=1)


class ConfigDocument(BaseModel):
    """The cross-invocation state of the wizard.

    Example on disk::

        {
          "selectedAccount": {"type": "organization", "login": "acme"},
          "defaultTeams": {"acme": ["platform", "backend"]},
          "geminiApiKey": "..."
        }
    """

    model_config = ConfigDict(populate_by_name=True)

    selected_account: SelectedAccount | None = Field(default=None, alias="selectedAccount")
    default_teams: dict[str, list[str]] | None = Field(default=None, alias="defaultTeams")
    gemini_api_key: str | None = Field(default=None, alias="geminiApiKey")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)


class AppSettings(BaseSettings):
    """Environment-driven settings.

    All fields can be overridden with ``GH_USECASES_<FIELD>`` environment
    variables; the Gemini key also honors the conventional ``GEMINI_API_KEY``.
    """

    model_config = SettingsConfigDict(env_prefix="GH_USECASES_", extra="ignore", populate_by_name=True)

    config_path: Path = Field(
        default_factory=lambda: Path.home() / CONFIG_FILE_NAME,
        description="Location of the persisted config document",
    )
    log_level: str | None = Field(
        default=None,
        description="Minimum structlog level; defaults to WARNING with a log file, ERROR on stderr",
    )
    log_file: Path | None = Field(default=None, description="Write logs here instead of stderr")
    graphql_url: str = Field(default="https://api.github.com/graphql", description="GitHub GraphQL endpoint")
    http_timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    search_delay: float = Field(default=0.5, ge=0, description="Quiet period before a search fires, in seconds")
    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "GH_USECASES_GEMINI_API_KEY"),
        description="Gemini API key; takes precedence over the persisted key",
    )
    gemini_model: str = Field(default="gemini-2.0-flash", description="Gemini model used for suggestions")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini REST API base URL",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str | None) -> str | None:
        if value is None:
            return None
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def effective_log_level(self) -> str:
        """The configured level, or the default for the current log destination."""
        if self.log_level is not None:
            return self.log_level
        return "WARNING" if self.log_file is not None else "ERROR"
