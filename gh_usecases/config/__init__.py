"""Configuration for gh-usecases.

Key Components:
    - AppSettings: Environment-driven process settings
    - ConfigDocument: The JSON document persisted between invocations
    - ConfigStore: Async load/save and typed accessors for the document

Example:
    >>> from gh_usecases.config import AppSettings, ConfigStore
    >>> settings = AppSettings()
    >>> store = ConfigStore(settings.config_path)
"""

from gh_usecases.config.settings import AppSettings, ConfigDocument, SelectedAccount
from gh_usecases.config.store import ConfigStore

__all__ = ["AppSettings", "ConfigDocument", "ConfigStore", "SelectedAccount"]
