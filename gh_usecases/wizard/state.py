"""
The wizard's step-state machine.

The whole flow is an explicit ``Step`` plus an immutable ``WizardState``.
Step components never mutate the state; they finish with exactly one
event, and ``transition`` folds that event into the next state::

    state = WizardState()
    state = transition(state, AuthCompleted(auth_state))
    state = transition(state, AccountSelected(account))
    state = transition(state, UseCaseSelected(UseCase.CREATE))
    assert state.step is Step.CREATING

``transition`` is pure: no I/O, no clock, no randomness. A pair of step
and event that the flow does not define raises ``InvalidTransitionError``.
"""

from dataclasses import dataclass, replace
from enum import Enum

from gh_usecases.enums import ErrorKind, UseCase, Visibility
from gh_usecases.exceptions import GhUsecasesError, InvalidTransitionError, ValidationError
from gh_usecases.models.domain import Account, AuthState, Repository, Team


class Step(str, Enum):
    AWAITING_AUTH = "awaiting_auth"
    AWAITING_ACCOUNT = "awaiting_account"
    AWAITING_USE_CASE = "awaiting_use_case"
    CREATING = "creating"
    INSTRUCTIONS = "instructions"
    SELECTING = "selecting"
    AWAITING_TEAMS = "awaiting_teams"
    CONFIGURING_AI = "configuring_ai"
    CHANGING_ACCOUNT = "changing_account"
    BLOCKED = "blocked"
    DONE = "done"

    def __str__(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        return self in (Step.BLOCKED, Step.DONE)


class ResumeAt(str, Enum):
    """Where the repository creator picks up after a failed create call."""

    NAME = "name"
    VISIBILITY = "visibility"


@dataclass(frozen=True)
class RepositoryDraft:
    """Name and description captured before the create call."""

    name: str
    description: str | None = None


@dataclass(frozen=True)
class WizardState:
    """Snapshot of the wizard between two step components.

    Attributes:
        step: Step to render next
        auth_state: Result of the auth step
        selected_account: Account all operations act on
        current_use_case: Use case chosen for the current flow
        repository: Repository created or selected in this flow
        show_instructions: Whether push instructions are due
        last_attempted_visibility: Visibility of the last create attempt
        draft: Name and description kept across failed create attempts
        resume_at: Input the repository creator resumes at after a failure
        selected_team_ids: Teams kept across failed link attempts
        retry_pending: The last failure can be retried after refreshing credentials
        last_error: The last failure, shown by the next step
        message: Final message shown when the wizard stops
    """

    step: Step = Step.AWAITING_AUTH
    auth_state: AuthState | None = None
    selected_account: Account | None = None
    current_use_case: UseCase | None = None
    repository: Repository | None = None
    show_instructions: bool = False
    last_attempted_visibility: Visibility | None = None
    draft: RepositoryDraft | None = None
    resume_at: ResumeAt | None = None
    selected_team_ids: tuple[str, ...] = ()
    retry_pending: bool = False
    last_error: Exception | None = None
    message: str | None = None

    @property
    def show_continue_prompt(self) -> bool:
        """Whether the instructions step offers to continue to the team step."""
        return self.show_instructions and self.current_use_case == UseCase.CREATE_AND_ADD


@dataclass(frozen=True)
class AuthCompleted:
    auth_state: AuthState


@dataclass(frozen=True)
class AccountSelected:
    account: Account


@dataclass(frozen=True)
class UseCaseSelected:
    use_case: UseCase


@dataclass(frozen=True)
class RepositoryCreated:
    repository: Repository


@dataclass(frozen=True)
class CreationFailed:
    error: Exception
    draft: RepositoryDraft
    visibility: Visibility


@dataclass(frozen=True)
class InstructionsAcknowledged:
    pass


@dataclass(frozen=True)
class RepositorySelected:
    repository: Repository


@dataclass(frozen=True)
class TeamsLinked:
    teams: tuple[Team, ...]


@dataclass(frozen=True)
class LinkFailed:
    error: Exception
    team_ids: tuple[str, ...]


@dataclass(frozen=True)
class AIConfigured:
    pass


@dataclass(frozen=True)
class Cancelled:
    pass


Event = (
    AuthCompleted
    | AccountSelected
    | UseCaseSelected
    | RepositoryCreated
    | CreationFailed
    | InstructionsAcknowledged
    | RepositorySelected
    | TeamsLinked
    | LinkFailed
    | AIConfigured
    | Cancelled
)

# Steps that belong to a use-case flow; cancelling them returns to the menu
_FLOW_STEPS = frozenset(
    {
        Step.CREATING,
        Step.SELECTING,
        Step.AWAITING_TEAMS,
        Step.INSTRUCTIONS,
        Step.CONFIGURING_AI,
        Step.CHANGING_ACCOUNT,
    }
)
_EXIT_STEPS = frozenset({Step.AWAITING_AUTH, Step.AWAITING_ACCOUNT, Step.AWAITING_USE_CASE})

PERSONAL_TEAMS_MESSAGE = "Personal accounts do not have team features"


def error_kind(error: Exception) -> ErrorKind:
    return error.kind if isinstance(error, GhUsecasesError) else ErrorKind.UNKNOWN


def to_use_case_menu(state: WizardState) -> WizardState:
    """Return to the use-case menu with every per-flow field cleared."""
    return replace(
        state,
        step=Step.AWAITING_USE_CASE,
        current_use_case=None,
        repository=None,
        show_instructions=False,
        last_attempted_visibility=None,
        draft=None,
        resume_at=None,
        selected_team_ids=(),
        retry_pending=False,
        last_error=None,
        message=None,
    )


def _check_owner(state: WizardState, repository: Repository) -> None:
    account = state.selected_account
    if account is None or repository.owner.login.lower() != account.login.lower():
        raise ValidationError(
            f"Repository {repository.full_name} is not owned by "
            f"{account.login if account else 'the selected account'}"
        )


def _enter_teams(state: WizardState, repository: Repository) -> WizardState:
    _check_owner(state, repository)
    if state.selected_account is None or not state.selected_account.is_organization:
        return _blocked(state)
    return replace(
        state,
        step=Step.AWAITING_TEAMS,
        repository=repository,
        show_instructions=False,
        selected_team_ids=(),
        retry_pending=False,
        last_error=None,
    )


def _blocked(state: WizardState) -> WizardState:
    return replace(
        state,
        step=Step.BLOCKED,
        last_error=ValidationError(PERSONAL_TEAMS_MESSAGE, kind=ErrorKind.WRONG_ACCOUNT_TYPE),
        message=PERSONAL_TEAMS_MESSAGE,
    )


def _select_use_case(state: WizardState, use_case: UseCase) -> WizardState:
    state = replace(to_use_case_menu(state), current_use_case=use_case)
    account = state.selected_account

    if use_case.requires_teams and (account is None or not account.is_organization):
        return _blocked(state)
    if use_case in (UseCase.CREATE, UseCase.CREATE_AND_ADD):
        return replace(state, step=Step.CREATING, resume_at=ResumeAt.NAME)
    if use_case == UseCase.ADD_TO_TEAMS:
        return replace(state, step=Step.SELECTING)
    if use_case == UseCase.CONFIGURE_AI:
        return replace(state, step=Step.CONFIGURING_AI)
    return replace(state, step=Step.CHANGING_ACCOUNT)


def transition(state: WizardState, event: Event) -> WizardState:
    """Compute the state that follows ``event``.

    Args:
        state: Current state
        event: Completion event of the current step component

    Returns:
        The next state. ``state`` itself is never modified.

    Raises:
        InvalidTransitionError: ``event`` is not defined for ``state.step``.
        ValidationError: A repository does not belong to the selected account.
    """
    step = state.step

    if isinstance(event, AuthCompleted) and step == Step.AWAITING_AUTH:
        if not event.auth_state.is_authenticated:
            return state
        return replace(state, step=Step.AWAITING_ACCOUNT, auth_state=event.auth_state, last_error=None)

    if isinstance(event, AccountSelected) and step in (Step.AWAITING_ACCOUNT, Step.CHANGING_ACCOUNT):
        return to_use_case_menu(replace(state, selected_account=event.account))

    if isinstance(event, UseCaseSelected) and step == Step.AWAITING_USE_CASE:
        return _select_use_case(state, event.use_case)

    if isinstance(event, RepositoryCreated) and step == Step.CREATING:
        _check_owner(state, event.repository)
        return replace(
            state,
            step=Step.INSTRUCTIONS,
            repository=event.repository,
            show_instructions=True,
            last_attempted_visibility=event.repository.visibility,
            draft=None,
            resume_at=None,
            retry_pending=False,
            last_error=None,
        )

    if isinstance(event, CreationFailed) and step == Step.CREATING:
        retry = error_kind(event.error).retry_in_place
        return replace(
            state,
            draft=event.draft,
            last_attempted_visibility=event.visibility,
            resume_at=ResumeAt.VISIBILITY if retry else ResumeAt.NAME,
            retry_pending=retry,
            last_error=event.error,
        )

    if isinstance(event, InstructionsAcknowledged) and step == Step.INSTRUCTIONS and state.repository:
        if state.current_use_case == UseCase.CREATE_AND_ADD:
            return _enter_teams(state, state.repository)
        return replace(
            state,
            step=Step.DONE,
            show_instructions=False,
            message=f"Repository {state.repository.full_name} created: {state.repository.url}",
        )

    if isinstance(event, RepositorySelected) and step == Step.SELECTING:
        return _enter_teams(state, event.repository)

    if isinstance(event, TeamsLinked) and step == Step.AWAITING_TEAMS and state.repository:
        names = ", ".join(team.name for team in event.teams)
        return replace(
            state,
            step=Step.DONE,
            selected_team_ids=tuple(team.id for team in event.teams),
            retry_pending=False,
            last_error=None,
            message=f"Added {state.repository.full_name} to teams: {names}",
        )

    if isinstance(event, LinkFailed) and step == Step.AWAITING_TEAMS:
        return replace(
            state,
            selected_team_ids=tuple(event.team_ids),
            retry_pending=error_kind(event.error).retry_in_place,
            last_error=event.error,
        )

    if isinstance(event, AIConfigured) and step == Step.CONFIGURING_AI:
        return to_use_case_menu(state)

    if isinstance(event, Cancelled):
        if step in _FLOW_STEPS and state.selected_account is not None:
            return to_use_case_menu(state)
        if step in _EXIT_STEPS:
            return replace(state, step=Step.DONE, message=None)

    raise InvalidTransitionError(str(step), type(event).__name__)
