"""Gemini suggestion client.

Talks to the Gemini ``generateContent`` REST endpoint with structured JSON
output. The client is optional: with no API key it reports itself as
unavailable and makes no network calls, and every backend failure is
logged and turned into None so the wizard can continue without AI.
"""

import json
from pathlib import Path
from typing import Any

import httpx
import structlog

from gh_usecases.config.store import ConfigStore
from gh_usecases.exceptions import ConfigurationError
from gh_usecases.models.domain import RepositorySuggestion, TeamWithRepositories
from gh_usecases.providers.base import SuggestionClient

log = structlog.get_logger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.0-flash"

# Upper bound on markdown text sent as context
MARKDOWN_CONTEXT_LIMIT = 50 * 1024
MAX_TEAM_SUGGESTIONS = 5
TEAM_REPOSITORY_CONTEXT = 10

REPOSITORY_PROMPT = """Based on the following context, suggest a GitHub repository name and optionally a description.

Requirements:
- Repository name should be based on the current directory name if appropriate
- Repository name should be lowercase, use hyphens for spaces, and be concise
- Description is OPTIONAL - only provide it if you have enough context to create a meaningful one
- If provided, description should be clear and informative (max 100 characters)
- If the markdown files contain a good description or title, use them
- If there's not enough information for a description, do NOT provide one (omit the description field)

Context:
{context}"""

TEAMS_PROMPT = """Based on the repository name and existing team structures, suggest which teams this repository should be added to.

Repository to add: {repository_name}

Existing teams and their repositories:
{teams}

Requirements:
- Return an array of team slugs (not names)
- Only suggest teams where the repository would logically fit based on naming patterns and existing repositories
- If no teams seem appropriate, return an empty array
- Maximum 5 suggestions
- Order by relevance (most relevant first)"""

REPOSITORY_SCHEMA = {
    "type": "OBJECT",
    "required": ["name"],
    "properties": {
        "name": {"type": "STRING"},
        "description": {"type": "STRING"},
    },
}

TEAMS_SCHEMA = {"type": "ARRAY", "items": {"type": "STRING"}}


def read_markdown_context(directory: Path, limit: int = MARKDOWN_CONTEXT_LIMIT) -> str:
    """Concatenate the ``*.md`` files of ``directory``, capped at ``limit`` characters.

    Each file is introduced by a ``---<filename>`` line. The file that
    crosses the limit is cut and marked ``[truncated]``; unreadable files
    are skipped.
    """
    content = ""
    total = 0
    try:
        files = sorted(path for path in directory.iterdir() if path.suffix == ".md")
    except OSError as e:
        log.debug("markdown_context_unavailable", directory=str(directory), error=str(e))
        return ""

    for path in files:
        if total >= limit:
            break
        try:
            if not path.is_file():
                continue
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            continue

        remaining = limit - total
        if len(text) <= remaining:
            content += f"\n---{path.name}\n{text}\n"
            total += len(text)
        else:
            content += f"\n---{path.name}\n{text[:remaining]}\n[truncated]\n"
            total = limit
    return content


class GeminiSuggestionClient(SuggestionClient):
    """AI suggestions for repository metadata and team membership.

    The API key is looked up on every call: the explicit key (normally
    ``GEMINI_API_KEY``) wins over the key persisted in the config document,
    so a key saved by the AI configurator takes effect immediately.

    Example:
        >>> client = GeminiSuggestionClient(store=ConfigStore(path))
        >>> if await client.is_available():
        ...     suggestion = await client.suggest_repository_details()
    """

    def __init__(
        self,
        api_key: str | None = None,
        store: ConfigStore | None = None,
        model: str = DEFAULT_MODEL,
        base_url: str = GEMINI_BASE_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        working_dir: Path | None = None,
    ) -> None:
        self.api_key = api_key
        self.store = store
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.working_dir = working_dir or Path.cwd()

    async def _resolve_api_key(self) -> str | None:
        if self.api_key:
            return self.api_key
        if self.store is None:
            return None
        try:
            return await self.store.get_gemini_api_key()
        except ConfigurationError as e:
            log.warning("gemini_key_lookup_failed", error=e.message)
            return None

    async def is_available(self) -> bool:
        return await self._resolve_api_key() is not None

    async def _generate(self, api_key: str, prompt: str, schema: dict[str, Any]) -> Any:
        """Call generateContent and decode the JSON text of the first candidate."""
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(
                f"{self.base_url}/models/{self.model}:generateContent",
                headers={"x-goog-api-key": api_key, "Content-Type": "application/json"},
                json={
                    "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                    "generationConfig": {
                        "responseMimeType": "application/json",
                        "responseSchema": schema,
                    },
                },
            )
            response.raise_for_status()

        candidates = response.json().get("candidates") or []
        if not candidates:
            raise ValueError("Gemini returned no candidates")
        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts)
        return json.loads(text)

    async def suggest_repository_details(self, context: str | None = None) -> RepositorySuggestion | None:
        """Suggest a repository name and optional description.

        The prompt context is the working directory name, the contents of
        its markdown files, and ``context`` when given.

        Returns:
            The suggestion, or None if AI is unavailable or the call failed.
        """
        api_key = await self._resolve_api_key()
        if not api_key:
            return None

        try:
            prompt_context = f"Current directory name: {self.working_dir.name}\n"
            markdown = read_markdown_context(self.working_dir)
            if markdown:
                prompt_context += f"\nMarkdown files content:\n{markdown}\n"
            if context:
                prompt_context += f"\nAdditional context:\n{context}"

            data = await self._generate(api_key, REPOSITORY_PROMPT.format(context=prompt_context), REPOSITORY_SCHEMA)
            name = str(data.get("name") or "").strip()
            if not name:
                log.warning("gemini_suggestion_empty")
                return None
            description = data.get("description")
            log.info("gemini_repository_suggested", name=name)
            return RepositorySuggestion(name=name, description=str(description).strip() if description else None)
        except Exception as e:
            log.warning("gemini_request_failed", operation="suggest_repository_details", error=str(e))
            return None

    async def suggest_teams(self, repository_name: str, teams: list[TeamWithRepositories]) -> list[str] | None:
        """Rank the organization's teams for a repository.

        Returns:
            Up to five known team slugs, most relevant first, or None if AI
            is unavailable or the call failed.
        """
        api_key = await self._resolve_api_key()
        if not api_key:
            return None

        try:
            team_info = [
                {
                    "name": team.name,
                    "slug": team.slug,
                    "repositories": [repo.name for repo in team.repositories[:TEAM_REPOSITORY_CONTEXT]],
                }
                for team in teams
            ]
            prompt = TEAMS_PROMPT.format(repository_name=repository_name, teams=json.dumps(team_info, indent=2))
            data = await self._generate(api_key, prompt, TEAMS_SCHEMA)
            if not isinstance(data, list):
                raise ValueError("Gemini team suggestion is not a list")

            known = {team.slug for team in teams}
            suggestions: list[str] = []
            for slug in data:
                if slug in known and slug not in suggestions:
                    suggestions.append(slug)
            log.info("gemini_teams_suggested", count=len(suggestions))
            return suggestions[:MAX_TEAM_SUGGESTIONS]
        except Exception as e:
            log.warning("gemini_request_failed", operation="suggest_teams", error=str(e))
            return None
