from __future__ import annotations

from dataclasses import dataclass, field

from .aggregate import PullRequestAggregate
from .autocomplete import Autocomplete
from .bitbucket import PullRequest
from .config import AppConfig, PrStatus
from .navigation import SelectionState

LOG_TAIL = 6


@dataclass
class AppState:
    """Everything the event loop mutates, passed explicitly to every handler.

    Attributes:
        config: In-memory configuration, persisted after each change.
        status_filter: Status used for the next refresh.
        aggregate: All fetched PRs and the search-filtered view.
        selection: Highlighted PR within the filtered view.
        autocomplete: Suggestion selection for the command line.
        input: Command line buffer.
        logs: Every message shown in the log panel, oldest first.
        should_quit: Set when the event loop must stop.
    """

    config: AppConfig
    status_filter: PrStatus = PrStatus.OPEN
    aggregate: PullRequestAggregate = field(default_factory=PullRequestAggregate)
    selection: SelectionState = field(default_factory=SelectionState)
    autocomplete: Autocomplete = field(default_factory=Autocomplete)
    input: str = ""
    logs: list[str] = field(default_factory=list)
    should_quit: bool = False

    @staticmethod
    def from_config(cfg: AppConfig) -> AppState:
        return AppState(config=cfg, status_filter=cfg.default_status)

    @property
    def pull_requests(self) -> list[PullRequest]:
        """The filtered view used for display and selection."""
        return self.aggregate.filtered

    def log(self, message: str) -> None:
        self.logs.append(message)

    def recent_logs(self, count: int = LOG_TAIL) -> list[str]:
        return self.logs[-count:] if count > 0 else []

    def set_input(self, text: str) -> None:
        """Replace the input buffer; any edit resets the suggestion selection."""
        self.input = text
        self.autocomplete.reset()

    def set_search(self, query: str | None) -> None:
        """Apply a search and clamp the selection to the new view."""
        self.aggregate.set_search(query)
        self.selection.clamp(len(self.aggregate.filtered))
