"""The wizard runner.

``WizardApp`` owns the collaborators and the interaction history. It builds
the step component for the current step, awaits its completion event, and
folds the event into the state until a terminal step is reached.
"""

import structlog

from gh_usecases.auth.gh_cli import GhCliAuthProvider
from gh_usecases.config.settings import AppSettings
from gh_usecases.config.store import ConfigStore
from gh_usecases.providers.base import AuthProvider, RemoteApi, SuggestionClient
from gh_usecases.providers.gemini import GeminiSuggestionClient
from gh_usecases.providers.github_graphql import GitHubGraphQLApi
from gh_usecases.providers.graphql import GraphQLClient
from gh_usecases.utils.history import InteractionHistory
from gh_usecases.wizard.console import ClickConsole, Console
from gh_usecases.wizard.errors import format_error_display
from gh_usecases.wizard.search import DEFAULT_SEARCH_DELAY
from gh_usecases.wizard.state import Step, WizardState, transition
from gh_usecases.wizard.steps import (
    AccountStep,
    AIConfiguratorStep,
    AuthStep,
    InstructionsStep,
    RepositoryCreatorStep,
    RepositorySelectorStep,
    StepContext,
    TeamSelectorStep,
    UseCaseStep,
    WizardStep,
)

log = structlog.get_logger(__name__)


class WizardApp:
    """Runs the wizard from authentication to a terminal step.

    Example:
        >>> app = WizardApp.from_settings(AppSettings())
        >>> final_state = await app.run()
    """

    def __init__(
        self,
        console: Console,
        auth: AuthProvider,
        api: RemoteApi,
        ai: SuggestionClient,
        store: ConfigStore,
        history: InteractionHistory | None = None,
        search_delay: float = DEFAULT_SEARCH_DELAY,
    ) -> None:
        self.context = StepContext(
            console=console,
            auth=auth,
            api=api,
            ai=ai,
            store=store,
            history=history if history is not None else InteractionHistory(),
            search_delay=search_delay,
        )

    @classmethod
    def from_settings(cls, settings: AppSettings, console: Console | None = None) -> "WizardApp":
        """Wire the production collaborators from ``settings``."""
        store = ConfigStore(settings.config_path)
        auth = GhCliAuthProvider()
        api = GitHubGraphQLApi(
            auth,
            client_factory=lambda token: GraphQLClient(
                token, url=settings.graphql_url, timeout=settings.http_timeout
            ),
        )
        ai = GeminiSuggestionClient(
            api_key=settings.gemini_api_key,
            store=store,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout=settings.http_timeout,
        )
        return cls(
            console=console or ClickConsole(),
            auth=auth,
            api=api,
            ai=ai,
            store=store,
            search_delay=settings.search_delay,
        )

    @property
    def history(self) -> InteractionHistory:
        return self.context.history

    def build_step(self, state: WizardState) -> WizardStep:
        context = self.context
        if state.step == Step.AWAITING_AUTH:
            return AuthStep(context, state)
        if state.step == Step.AWAITING_ACCOUNT:
            return AccountStep(context, state)
        if state.step == Step.CHANGING_ACCOUNT:
            return AccountStep(context, state, changing=True)
        if state.step == Step.AWAITING_USE_CASE:
            return UseCaseStep(context, state)
        if state.step == Step.CREATING:
            return RepositoryCreatorStep(context, state)
        if state.step == Step.INSTRUCTIONS:
            return InstructionsStep(context, state)
        if state.step == Step.SELECTING:
            return RepositorySelectorStep(context, state)
        if state.step == Step.AWAITING_TEAMS:
            return TeamSelectorStep(context, state)
        if state.step == Step.CONFIGURING_AI:
            return AIConfiguratorStep(context, state)
        raise ValueError(f"No step component for {state.step}")

    async def run(self, state: WizardState | None = None) -> WizardState:
        """Drive the wizard until it is blocked or done.

        Returns:
            The terminal state.
        """
        state = state or WizardState()
        try:
            while not state.step.is_terminal:
                step = self.build_step(state)
                event = await step.run()
                log.debug("wizard_event", step=state.step.value, wizard_event=type(event).__name__)
                state = transition(state, event)
        finally:
            await self.context.api.reset()

        self._finish(state)
        return state

    def _finish(self, state: WizardState) -> None:
        console = self.context.console
        if state.step == Step.BLOCKED and state.last_error is not None:
            console.echo_lines(format_error_display(state.last_error, self.history), fg="red")
        elif state.message:
            console.echo(f"✅ {state.message}", fg="green")
        log.info("wizard_finished", step=state.step.value)
