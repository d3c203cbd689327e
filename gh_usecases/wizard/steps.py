"""
Step components of the wizard.

Each step renders one screen, talks to the collaborators it needs and
finishes with exactly one event for ``transition``. Steps only read the
``WizardState`` they were built with; anything they keep while running
(the current query, the team cursor) is local to the step.

Errors from collaborators are caught here, classified, and displayed
together with the recent interaction history. Whether the user then
retries in place or falls back is decided by the event the step returns.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import structlog

from gh_usecases.auth.gh_cli import REQUIRED_SCOPES
from gh_usecases.config.store import ConfigStore
from gh_usecases.enums import ErrorKind, InteractionType, UseCase, Visibility
from gh_usecases.exceptions import ConfigurationError, GhUsecasesError, ValidationError
from gh_usecases.models.domain import Account, AuthState, Repository, Team
from gh_usecases.providers.base import AuthProvider, RemoteApi, SuggestionClient
from gh_usecases.utils.history import InteractionHistory
from gh_usecases.wizard.console import Console, Key
from gh_usecases.wizard.errors import format_error_display
from gh_usecases.wizard.search import DEFAULT_SEARCH_DELAY, DebouncedSearch, SubmitOutcome
from gh_usecases.wizard.state import (
    AccountSelected,
    AIConfigured,
    AuthCompleted,
    Cancelled,
    CreationFailed,
    Event,
    InstructionsAcknowledged,
    LinkFailed,
    RepositoryCreated,
    RepositoryDraft,
    RepositorySelected,
    ResumeAt,
    TeamsLinked,
    UseCaseSelected,
    WizardState,
)

log = structlog.get_logger(__name__)

REPOSITORY_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")
MAX_REPOSITORY_NAME_LENGTH = 100

GEMINI_KEY_URL = "https://aistudio.google.com/apikey"

USE_CASE_LABELS = {
    UseCase.CREATE: "Create a new repository",
    UseCase.ADD_TO_TEAMS: "Add existing repository to teams",
    UseCase.CREATE_AND_ADD: "Create repository and add to teams",
    UseCase.CONFIGURE_AI: "Configure Gemini API key",
    UseCase.CHANGE_ACCOUNT: "Change account",
}


def validate_repository_name(name: str) -> str:
    """Return the trimmed name, or raise ValidationError.

    Example:
        >>> validate_repository_name("  my-repo ")
        'my-repo'
    """
    name = name.strip()
    if not name:
        raise ValidationError("Repository name is required")
    if len(name) > MAX_REPOSITORY_NAME_LENGTH:
        raise ValidationError(f"Repository name must be at most {MAX_REPOSITORY_NAME_LENGTH} characters")
    if name in (".", ".."):
        raise ValidationError(f"Repository name cannot be {name!r}")
    if not REPOSITORY_NAME_PATTERN.match(name):
        raise ValidationError("Repository name may only contain letters, digits, '-', '_' and '.'")
    return name


@dataclass
class StepContext:
    """Collaborators shared by all steps of one wizard run."""

    console: Console
    auth: AuthProvider
    api: RemoteApi
    ai: SuggestionClient
    store: ConfigStore
    history: InteractionHistory = field(default_factory=InteractionHistory)
    search_delay: float = DEFAULT_SEARCH_DELAY

    def show_error(self, error: BaseException | ErrorKind, details: str | None = None) -> None:
        self.console.echo()
        self.console.echo_lines(format_error_display(error, self.history, details=details), fg="red")
        self.console.echo()

    async def refresh_credentials(self) -> bool:
        """Re-authorize the gh token with the required scopes.

        Returns:
            True if the refresh succeeded.
        """
        self.history.record(InteractionType.ACTION, "Credentials", "Refresh requested")
        try:
            await self.auth.refresh_scopes(REQUIRED_SCOPES)
        except GhUsecasesError as e:
            self.show_error(e)
            return False
        await self.api.reset()
        self.console.echo("✓ Credentials refreshed", fg="green")
        return True


class WizardStep(ABC):
    """One screen of the wizard."""

    def __init__(self, context: StepContext, state: WizardState) -> None:
        self.context = context
        self.state = state

    @property
    def console(self) -> Console:
        return self.context.console

    @property
    def account(self) -> Account:
        if self.state.selected_account is None:
            raise GhUsecasesError(f"No account selected in step {self.state.step}")
        return self.state.selected_account

    @abstractmethod
    async def run(self) -> Event:
        pass


class AuthStep(WizardStep):
    """Check gh authentication and offer ``gh auth login`` if needed."""

    async def run(self) -> Event:
        auth = self.context.auth
        self.console.echo("Checking authentication status...")
        try:
            auth_state = await auth.check_status()
            if not auth_state.is_authenticated:
                self._show_setup_instructions()
                if not await self.console.confirm("Run `gh auth login` now?", default=True):
                    return Cancelled()
                self.context.history.record(InteractionType.ACTION, "Authentication", "gh auth login")
                await auth.login()
                auth_state = await auth.check_status()
                if not auth_state.is_authenticated:
                    return AuthCompleted(auth_state)

            token = await auth.get_token()
        except GhUsecasesError as e:
            self.context.show_error(e)
            if await self.console.confirm("Try again?", default=True):
                return AuthCompleted(AuthState(is_authenticated=False))
            return Cancelled()

        if not token:
            self.context.show_error(ErrorKind.AUTHENTICATION, details="No GitHub authentication token found")
            return AuthCompleted(AuthState(is_authenticated=False))

        missing = [scope for scope in REQUIRED_SCOPES if scope not in auth_state.permissions]
        if auth_state.permissions and missing:
            self.console.echo(
                f"Token is missing scopes: {', '.join(missing)}. "
                f"Run `gh auth refresh -s {','.join(REQUIRED_SCOPES)}` or press Shift+Tab when an action fails.",
                fg="yellow",
            )

        log.info("authenticated", scopes=auth_state.permissions)
        return AuthCompleted(AuthState(is_authenticated=True, token=token, permissions=auth_state.permissions))

    def _show_setup_instructions(self) -> None:
        self.console.echo("GitHub Authentication Required", fg="yellow", bold=True)
        self.console.echo("You need to authenticate with GitHub CLI to use this tool.")
        self.console.echo()
        self.console.echo("Setup instructions:", fg="green")
        self.console.echo("1. Run the following command to log in to GitHub:")
        self.console.echo("   gh auth login", fg="cyan", bold=True)
        self.console.echo("2. Follow the prompts to select authentication method")
        self.console.echo("   • Select GitHub.com")
        self.console.echo("   • HTTPS is recommended")
        self.console.echo("   • Authenticate via browser or paste token")
        self.console.echo()
        self.console.echo("More info: https://cli.github.com/manual/gh_auth_login")
        self.console.echo()


class AccountStep(WizardStep):
    """Pick the account to act on; the saved account is reused unless changing."""

    def __init__(self, context: StepContext, state: WizardState, changing: bool = False) -> None:
        super().__init__(context, state)
        self.changing = changing

    async def run(self) -> Event:
        store = self.context.store
        if not self.changing:
            try:
                saved = await store.get_selected_account()
            except ConfigurationError as e:
                self.context.show_error(e)
                saved = None
            if saved is not None:
                self.console.echo(f"Using account: {saved.label}")
                return AccountSelected(saved)

        while True:
            try:
                user = await self.context.api.get_current_user()
                break
            except GhUsecasesError as e:
                self.context.show_error(e)
                if not await self.console.confirm("Try again?", default=True):
                    return Cancelled()

        accounts = user.accounts()
        index = await self.console.choose("Select an account:", [account.label for account in accounts])
        account = accounts[index]
        self.context.history.record(InteractionType.SELECTION, "Account", account.label)

        try:
            await store.set_selected_account(account)
        except ConfigurationError as e:
            log.warning("account_not_saved", error=e.message)
            self.console.echo(f"Warning: account selection was not saved: {e.message}", fg="yellow")
        return AccountSelected(account)


class UseCaseStep(WizardStep):
    async def run(self) -> Event:
        ai_available = await self.context.ai.is_available()
        self.console.echo(f"Account: {self.account.label}", bold=True)
        self.console.echo(f"AI suggestions: {'enabled' if ai_available else 'disabled'}")
        self.console.echo()

        use_cases = list(USE_CASE_LABELS)
        labels = [USE_CASE_LABELS[use_case] for use_case in use_cases]
        if ai_available:
            labels[use_cases.index(UseCase.CONFIGURE_AI)] += " (configured)"
        labels.append("Exit")

        index = await self.console.choose("What would you like to do?", labels)
        if index == len(use_cases):
            return Cancelled()

        use_case = use_cases[index]
        self.context.history.record(InteractionType.SELECTION, "Use case", USE_CASE_LABELS[use_case])
        return UseCaseSelected(use_case)


class RepositoryCreatorStep(WizardStep):
    """Collect name, description and visibility, then create the repository.

    After a failed create call the state carries the draft. Credential and
    connectivity failures resume at the visibility choice with a
    refresh-and-retry option; all other failures resume at name entry with
    the draft pre-filled.
    """

    async def run(self) -> Event:
        state = self.state
        if state.last_error is not None:
            self.context.show_error(state.last_error)

        draft = state.draft
        if draft is not None and state.resume_at == ResumeAt.VISIBILITY:
            if state.retry_pending:
                choice = await self.console.choose(
                    "How would you like to continue?",
                    ["Retry", "Refresh credentials and retry", "Edit name and description", "Cancel"],
                )
                if choice == 1:
                    await self.context.refresh_credentials()
                elif choice == 2:
                    draft = await self._enter_details(draft)
                elif choice == 3:
                    return Cancelled()
        else:
            draft = await self._enter_details(draft)

        visibility = await self._choose_visibility()
        if visibility is None:
            return Cancelled()
        return await self._create(draft, visibility)

    async def _enter_details(self, draft: RepositoryDraft | None) -> RepositoryDraft:
        if draft is None:
            draft = await self._suggested_draft()

        while True:
            raw = await self.console.prompt("Repository name", default=draft.name if draft else None)
            try:
                name = validate_repository_name(raw)
                break
            except ValidationError as e:
                self.context.show_error(e)
        self.context.history.record(InteractionType.INPUT, "Repository name", name)

        description = (
            await self.console.prompt("Description (optional)", default=draft.description if draft else None)
        ).strip() or None
        self.context.history.record(InteractionType.INPUT, "Description", description or "(none)")
        return RepositoryDraft(name=name, description=description)

    async def _suggested_draft(self) -> RepositoryDraft | None:
        ai = self.context.ai
        if not await ai.is_available():
            return None
        self.console.echo("Asking Gemini for a repository name...")
        suggestion = await ai.suggest_repository_details()
        if suggestion is None:
            self.console.echo("No suggestion available.", fg="yellow")
            return None
        self.console.echo(f"Suggested name: {suggestion.name}", fg="cyan")
        return RepositoryDraft(name=suggestion.name, description=suggestion.description)

    async def _choose_visibility(self) -> Visibility | None:
        options = [Visibility.PRIVATE, Visibility.PUBLIC]
        default = options.index(self.state.last_attempted_visibility or Visibility.PRIVATE)
        index = await self.console.choose(
            "Repository visibility:", [option.label for option in options] + ["Cancel"], default=default
        )
        if index == len(options):
            return None
        self.context.history.record(InteractionType.SELECTION, "Visibility", options[index].label)
        return options[index]

    async def _create(self, draft: RepositoryDraft, visibility: Visibility) -> Event:
        account = self.account
        self.console.echo(f"Creating repository {account.login}/{draft.name}...")
        try:
            repository = await self.context.api.create_repository(
                name=draft.name,
                visibility=visibility,
                description=draft.description,
                owner=account.login if account.is_organization else None,
            )
        except GhUsecasesError as e:
            log.warning("repository_creation_failed", name=draft.name, kind=e.kind.value)
            return CreationFailed(error=e, draft=draft, visibility=visibility)

        self.context.history.record(InteractionType.ACTION, "Repository created", repository.full_name)
        return RepositoryCreated(repository)


class InstructionsStep(WizardStep):
    async def run(self) -> Event:
        repository = self.state.repository
        if repository is None:
            raise GhUsecasesError("Instructions shown without a repository")

        for line in instruction_lines(repository):
            self.console.echo(line)
        self.console.echo()

        if self.state.show_continue_prompt:
            self.console.echo("Press Enter to continue to team selection...", fg="blue")
        else:
            self.console.echo("Press Enter to exit")

        while True:
            key = await self.console.read_key()
            if key.key == Key.ENTER:
                return InstructionsAcknowledged()
            if key.key == Key.ESCAPE:
                return Cancelled()


def instruction_lines(repository: Repository) -> list[str]:
    """Push instructions for a freshly created repository."""
    remote = repository.ssh_url
    return [
        f'✅ Repository "{repository.name}" created successfully!',
        "",
        "Repository URL:",
        f"  {repository.url}",
        "",
        "To push your code to this repository:",
        "",
        "  # If this is a new project:",
        "  git init",
        "  git add .",
        '  git commit -m "Initial commit"',
        "  git branch -M main",
        f"  git remote add origin {remote}",
        "  git push -u origin main",
        "",
        "  # If you already have a git repository:",
        f"  git remote add origin {remote}",
        "  git branch -M main",
        "  git push -u origin main",
    ]


class RepositorySelectorStep(WizardStep):
    """Incremental search over the account's repositories."""

    def __init__(self, context: StepContext, state: WizardState) -> None:
        super().__init__(context, state)
        owner = self.account.login
        self.search = DebouncedSearch(
            lambda query: self.context.api.search_repositories(query, owner),
            delay=context.search_delay,
            history=context.history,
            on_change=self._render,
        )

    async def run(self) -> Event:
        self.console.echo(f"Search repositories in {self.account.login}", bold=True)
        self.console.echo("Type to search. Enter: select, ↑/↓: move, Tab: complete, Esc: cancel, Shift+Tab: refresh credentials")

        search = self.search
        while True:
            press = await self.console.read_key()

            if press.key in (Key.CHARACTER, Key.SPACE):
                search.type_char(press.char or " ")
                self._echo_query()
            elif press.key == Key.BACKSPACE:
                search.backspace()
                self._echo_query()
            elif press.key == Key.UP:
                search.move_focus(-1)
            elif press.key == Key.DOWN:
                search.move_focus(1)
            elif press.key == Key.TAB:
                if search.autocomplete():
                    self._echo_query()
            elif press.key == Key.ESCAPE:
                search.cancel()
                self.context.history.record(InteractionType.ACTION, "Repository search", "Cancelled")
                return Cancelled()
            elif press.key == Key.SHIFT_TAB:
                if await self.context.refresh_credentials():
                    await search.refresh()
            elif press.key == Key.ENTER:
                repository = await self._submit()
                if repository is not None:
                    self.context.history.record(InteractionType.SELECTION, "Repository", repository.full_name)
                    return RepositorySelected(repository)

    async def _submit(self) -> Repository | None:
        result = await self.search.submit()

        if result.outcome == SubmitOutcome.SELECTED:
            return result.repository
        if result.outcome == SubmitOutcome.CHOOSE:
            candidates = result.candidates
            index = await self.console.choose(
                "Several repositories match:",
                [repository.full_name for repository in candidates] + ["Back to search"],
            )
            if index < len(candidates):
                return candidates[index]
            self._echo_query()
        elif result.outcome == SubmitOutcome.NOT_FOUND:
            self.console.echo(f'No repository matching "{self.search.query}" found in {self.account.login}', fg="yellow")
        elif result.outcome == SubmitOutcome.EMPTY_QUERY:
            self.console.echo("Type part of a repository name first", fg="yellow")
        return None

    def _echo_query(self) -> None:
        self.console.echo(f"Search: {self.search.query}")

    def _render(self) -> None:
        search = self.search
        if search.error is not None:
            self.context.show_error(search.error)
            return
        if not search.query.strip():
            return

        results = search.current_results
        if not results:
            self.console.echo("  (no matches)")
            return
        for index, repository in enumerate(results):
            marker = ">" if index == search.focus else " "
            description = f" - {repository.description}" if repository.description else ""
            self.console.echo(f"{marker} {repository.name} [{repository.visibility.label}]{description}")


class TeamSelectorStep(WizardStep):
    """Multi-select the organization's teams and link the repository to them."""

    def __init__(self, context: StepContext, state: WizardState) -> None:
        super().__init__(context, state)
        self.teams: list[Team] = []
        self.selected: set[str] = set()
        self.cursor = 0

    async def run(self) -> Event:
        repository = self.state.repository
        if repository is None:
            raise GhUsecasesError("Team selection started without a repository")
        org = self.account.login

        if self.state.last_error is not None:
            self.context.show_error(self.state.last_error)

        teams = await self._load_teams(org)
        if teams is None:
            return Cancelled()
        if not teams:
            self.console.echo(f"No teams found in {org}", fg="yellow")
            return Cancelled()
        self.teams = teams
        self.selected = await self._initial_selection(org, repository)

        retry_mode = self.state.retry_pending and bool(self.state.selected_team_ids)
        self.console.echo(f"Add {repository.full_name} to teams", bold=True)
        if retry_mode:
            self.console.echo("Shift+Tab: refresh credentials and retry, Enter: retry, Esc: cancel", fg="yellow")
        else:
            self.console.echo("Space: toggle, ↑/↓: move, Enter: confirm, Esc: cancel")
        self._render()

        while True:
            press = await self.console.read_key()
            if press.key == Key.UP:
                self.cursor = (self.cursor - 1) % len(self.teams)
                self._render()
            elif press.key == Key.DOWN:
                self.cursor = (self.cursor + 1) % len(self.teams)
                self._render()
            elif press.key == Key.SPACE:
                self._toggle(self.teams[self.cursor])
                self._render()
            elif press.key == Key.ESCAPE:
                self.context.history.record(InteractionType.ACTION, "Team selection", "Cancelled")
                return Cancelled()
            elif press.key == Key.SHIFT_TAB and retry_mode:
                await self.context.refresh_credentials()
                return await self._link(org, repository)
            elif press.key == Key.ENTER:
                if not self.selected:
                    self.context.show_error(ErrorKind.TEAM_SELECTION_EMPTY, details="Please select at least one team")
                    continue
                return await self._link(org, repository)

    async def _load_teams(self, org: str) -> list[Team] | None:
        while True:
            try:
                return await self.context.api.list_teams(org)
            except GhUsecasesError as e:
                self.context.show_error(e)
                if not await self.console.confirm("Try again?", default=True):
                    return None

    async def _initial_selection(self, org: str, repository: Repository) -> set[str]:
        by_slug = {team.slug: team.id for team in self.teams}
        known_ids = set(by_slug.values())

        if self.state.selected_team_ids:
            return {team_id for team_id in self.state.selected_team_ids if team_id in known_ids}

        try:
            defaults = await self.context.store.get_default_teams(org)
        except ConfigurationError as e:
            log.warning("default_teams_unavailable", error=e.message)
            defaults = []
        if defaults:
            return {by_slug[slug] for slug in defaults if slug in by_slug}

        if not await self.context.ai.is_available():
            return set()
        self.console.echo("Asking Gemini which teams fit...")
        try:
            teams_with_repositories = await self.context.api.list_teams_with_repositories(org)
        except GhUsecasesError as e:
            log.warning("team_context_unavailable", error=e.message)
            return set()
        slugs = await self.context.ai.suggest_teams(repository.name, teams_with_repositories)
        if slugs:
            self.console.echo(f"Suggested teams: {', '.join(slugs)}", fg="cyan")
        return {by_slug[slug] for slug in slugs or [] if slug in by_slug}

    def _toggle(self, team: Team) -> None:
        if team.id in self.selected:
            self.selected.discard(team.id)
        else:
            self.selected.add(team.id)
        self.context.history.record(
            InteractionType.SELECTION,
            "Team",
            f"{team.slug} ({'selected' if team.id in self.selected else 'deselected'})",
        )

    def _render(self) -> None:
        for index, team in enumerate(self.teams):
            cursor = ">" if index == self.cursor else " "
            mark = "x" if team.id in self.selected else " "
            self.console.echo(f"{cursor} [{mark}] {team.name} ({team.slug})")

    async def _link(self, org: str, repository: Repository) -> Event:
        chosen = [team for team in self.teams if team.id in self.selected]
        team_ids = tuple(team.id for team in chosen)
        slugs = [team.slug for team in chosen]

        self.console.echo(f"Adding {repository.full_name} to {len(chosen)} team(s)...")
        try:
            await self.context.api.add_repository_to_teams(repository.id, list(team_ids))
        except GhUsecasesError as e:
            log.warning("team_linking_failed", repository=repository.full_name, kind=e.kind.value)
            return LinkFailed(error=e, team_ids=team_ids)

        self.context.history.record(InteractionType.ACTION, "Teams linked", ", ".join(slugs))
        try:
            await self.context.store.set_default_teams(org, slugs)
        except ConfigurationError as e:
            log.warning("default_teams_not_saved", error=e.message)
        return TeamsLinked(tuple(chosen))


class AIConfiguratorStep(WizardStep):
    """Save or clear the Gemini API key."""

    async def run(self) -> Event:
        store = self.context.store
        try:
            has_key = bool(await store.get_gemini_api_key())
        except ConfigurationError as e:
            self.context.show_error(e)
            return Cancelled()

        self.console.echo("Configure Gemini API Key", bold=True)
        self.console.echo(f"Get your API key from: {GEMINI_KEY_URL}")
        if has_key:
            self.console.echo("✓ API key is currently configured", fg="green")
        self.console.echo()

        suffix = " (or press Enter to clear existing key)" if has_key else ""
        api_key = (await self.console.prompt(f"Enter your Gemini API key{suffix}", hide_input=True)).strip()

        try:
            if api_key:
                await store.set_gemini_api_key(api_key)
                self.context.history.record(InteractionType.ACTION, "Gemini API Key", "Configured")
                self.console.echo("✓ Gemini API key configuration saved successfully!", fg="green")
            elif has_key:
                await store.set_gemini_api_key(None)
                self.context.history.record(InteractionType.ACTION, "Gemini API Key", "Cleared")
                self.console.echo("✓ Gemini API key cleared", fg="green")
            else:
                self.console.echo("API key is required", fg="red")
                return Cancelled()
        except ConfigurationError as e:
            self.context.show_error(e)
            return Cancelled()

        return AIConfigured()
