"""Debounced incremental repository search.

``DebouncedSearch`` holds the query, the results and the focus of the
repository selector, independent of how keys arrive:

- every query change cancels the pending search and schedules a new one
  ``delay`` seconds later; an empty query clears the results at once;
- a search that already fired is never aborted, but its results are only
  applied while its query is still the current one;
- results are de-duplicated by repository id, first occurrence wins.
"""

import functools
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

import structlog

from gh_usecases.enums import InteractionType
from gh_usecases.models.domain import Repository
from gh_usecases.utils.debounce import CancellableTimer
from gh_usecases.utils.history import InteractionHistory

log = structlog.get_logger(__name__)

DEFAULT_SEARCH_DELAY = 0.5

SearchFunction = Callable[[str], Awaitable[list[Repository]]]


def dedupe_by_id(repositories: Iterable[Repository]) -> list[Repository]:
    """Drop repeated repositories, keeping the first occurrence of each id."""
    seen: set[str] = set()
    unique: list[Repository] = []
    for repository in repositories:
        if repository.id in seen:
            continue
        seen.add(repository.id)
        unique.append(repository)
    return unique


class SubmitOutcome(str, Enum):
    SELECTED = "selected"
    CHOOSE = "choose"
    NOT_FOUND = "not_found"
    EMPTY_QUERY = "empty_query"
    FAILED = "failed"


@dataclass(frozen=True)
class SubmitResult:
    outcome: SubmitOutcome
    repository: Repository | None = None
    candidates: list[Repository] = field(default_factory=list)


class DebouncedSearch:
    """Query state of the repository selector.

    Args:
        search: Coroutine function running one search for a query
        delay: Quiet period before a search fires, in seconds
        history: Interaction history for submitted queries
        on_change: Called after results or errors change
    """

    def __init__(
        self,
        search: SearchFunction,
        delay: float = DEFAULT_SEARCH_DELAY,
        history: InteractionHistory | None = None,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._search = search
        self.delay = delay
        self.history = history
        self.on_change = on_change
        self.timer = CancellableTimer()

        self.query = ""
        self.results: list[Repository] = []
        self.results_query = ""
        self.focus: int | None = None
        self.error: Exception | None = None
        self.calls = 0

    @property
    def searching(self) -> bool:
        return self.timer.pending or self.timer.in_flight > 0

    @property
    def current_results(self) -> list[Repository]:
        """Results that belong to the current query."""
        return self.results if self.results_query == self.query else []

    @property
    def focused(self) -> Repository | None:
        results = self.current_results
        if self.focus is None or not results:
            return None
        return results[self.focus]

    def set_query(self, query: str) -> None:
        """Replace the query and (re)schedule the search."""
        self.timer.cancel_pending()
        self.query = query
        self.focus = None
        self.error = None

        if not query.strip():
            self.results = []
            self.results_query = query
            self._notify()
            return

        self.timer.schedule(self.delay, functools.partial(self._run, query))

    def type_char(self, char: str) -> None:
        self.set_query(self.query + char)

    def backspace(self) -> None:
        if self.query:
            self.set_query(self.query[:-1])

    def move_focus(self, delta: int) -> None:
        """Move the focus through the current results, wrapping at both ends."""
        results = self.current_results
        if not results:
            return
        if self.focus is None:
            self.focus = 0 if delta > 0 else len(results) - 1
        else:
            self.focus = (self.focus + delta) % len(results)
        self._notify()

    def autocomplete(self) -> bool:
        """Copy the focused candidate's name into the query."""
        focused = self.focused
        if focused is None or focused.name == self.query:
            return False
        self.set_query(focused.name)
        return True

    def cancel(self) -> None:
        self.timer.cancel_pending()

    async def flush(self) -> None:
        """Run a pending search now and wait for every fired search."""
        if self.timer.pending:
            self.timer.fire_now(functools.partial(self._run, self.query))
        await self.timer.drain()

    async def refresh(self) -> None:
        """Search the current query again, for example after new credentials."""
        if self.query.strip():
            self.timer.fire_now(functools.partial(self._run, self.query))
            await self.timer.drain()

    async def submit(self) -> SubmitResult:
        """Resolve the current query to a repository.

        One result is selected directly. With several results the focused
        one is selected if the user navigated; otherwise the caller must
        let the user pick from ``candidates``.
        """
        await self.flush()

        if not self.query.strip():
            return SubmitResult(SubmitOutcome.EMPTY_QUERY)
        if self.error is not None:
            return SubmitResult(SubmitOutcome.FAILED)

        if self.history is not None:
            self.history.record(InteractionType.INPUT, "Repository search", self.query)

        results = self.current_results
        if not results:
            return SubmitResult(SubmitOutcome.NOT_FOUND)
        if len(results) == 1:
            return SubmitResult(SubmitOutcome.SELECTED, repository=results[0])
        if self.focused is not None:
            return SubmitResult(SubmitOutcome.SELECTED, repository=self.focused)
        return SubmitResult(SubmitOutcome.CHOOSE, candidates=list(results))

    async def _run(self, query: str) -> None:
        self.calls += 1
        log.debug("repository_search_started", query=query)
        try:
            repositories = await self._search(query)
        except Exception as e:
            if query != self.query:
                return
            log.warning("repository_search_failed", query=query, error=str(e))
            self.error = e
            self._notify()
            return

        if query != self.query:
            log.debug("repository_search_stale", query=query, current=self.query)
            return

        self.results = dedupe_by_id(repositories)
        self.results_query = query
        self.error = None
        if self.focus is not None and self.focus >= len(self.results):
            self.focus = None
        log.debug("repository_search_finished", query=query, count=len(self.results))
        self._notify()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()
