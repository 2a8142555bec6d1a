from __future__ import annotations

import logging
import webbrowser
from collections.abc import Callable

from .aggregate import ClientFactory, RefreshReport, normalize_query
from .bitbucket import client_from_config
from .commands import (
    COMMAND_PREFIX,
    HELP_LINES,
    Command,
    HelpCommand,
    ListReposCommand,
    QuitCommand,
    RefreshCommand,
    RepoAddCommand,
    RepoRemoveCommand,
    SearchCommand,
    StatusCommand,
    UnknownCommand,
    parse_command,
    split_command,
)
from .config import AppConfig, save_config
from .errors import BrowserLaunchError, MyPRsError
from .state import AppState

logger = logging.getLogger(__name__)


class CommandInterpreter:
    """Parses submitted input and applies it to the application state."""

    def __init__(
        self,
        state: AppState,
        client_factory: ClientFactory = client_from_config,
        save: Callable[[AppConfig], None] = save_config,
        open_url: Callable[[str], bool] = webbrowser.open,
    ) -> None:
        """Initialize the interpreter.

        Args:
            state: Shared application state mutated by every command.
            client_factory: Builds the Bitbucket client for a refresh.
            save: Persists the configuration after each change.
            open_url: Opens a URL in the user's browser.
        """
        self.state = state
        self._client_factory = client_factory
        self._save = save
        self._open_url = open_url
        self._handlers: dict[type[Command], Callable[[Command], None]] = {
            HelpCommand: self._help,
            QuitCommand: self._quit,
            RepoAddCommand: self._repo_add,
            RepoRemoveCommand: self._repo_remove,
            ListReposCommand: self._list_repos,
            StatusCommand: self._status,
            RefreshCommand: lambda _cmd: self.refresh(),
            SearchCommand: self._search,
            UnknownCommand: lambda _cmd: self.state.log("Unknown command. Try /help."),
        }

    def submit(self) -> None:
        """Handle Enter on the command line.

        A partially typed command name is completed instead of submitted.
        Otherwise the buffer is consumed: blank input opens the highlighted
        PR, anything else is executed as a command.
        """
        completed = self.state.autocomplete.complete_if_partial(self.state.input)
        if completed is not None:
            self.state.input = completed
            return

        command = self.state.input.strip()
        self.state.set_input("")
        if command and split_command(command)[0] != "/search":
            self.clear_search_if_active()
        if not command:
            self.open_selected()
            return
        self.execute(command)

    def execute(self, raw: str) -> None:
        """Parse and run one command, logging any recoverable failure.

        Args:
            raw: The trimmed command line.
        """
        if not raw.startswith(COMMAND_PREFIX):
            self.state.log("Commands must start with '/'. Try /help.")
            return
        try:
            command = parse_command(raw)
            self._handlers[type(command)](command)
        except MyPRsError as e:
            self.state.log(f"Command failed: {e}")

    def open_selected(self) -> None:
        """Open the highlighted pull request in the browser."""
        pr = self.state.selection.current(self.state.pull_requests)
        if pr is None:
            self.state.log("No pull request selected.")
            return
        try:
            self._launch_browser(pr.url)
        except BrowserLaunchError as e:
            self.state.log(f"Command failed: {e}")
            return
        self.state.log(f"Opened {pr.workspace}/{pr.repo} PR #{pr.id} in browser.")

    def _launch_browser(self, url: str) -> None:
        try:
            opened = self._open_url(url)
        except webbrowser.Error as e:
            raise BrowserLaunchError(f"failed to open browser: {e}") from e
        if not opened:
            raise BrowserLaunchError(f"failed to open browser for {url}")

    def refresh(self) -> RefreshReport | None:
        """Reload every tracked repository and report the outcome in the log.

        Returns:
            The refresh report, or None if the refresh was skipped or aborted.
        """
        state = self.state
        try:
            report = state.aggregate.refresh(state.config, state.status_filter, self._client_factory)
        except MyPRsError as e:
            logger.info(f"Refresh skipped: {e}")
            state.log(str(e))
            return None
        state.selection.reset()
        for failure in report.failures:
            state.log(str(failure))
        for line in report.summary_lines():
            state.log(line)
        return report

    def clear_search_if_active(self) -> None:
        if self.state.aggregate.search_query is None:
            return
        self.state.set_search(None)
        self.state.log("Search cleared due to non-search command.")

    # ---------------- Command handlers ----------------

    def _help(self, _cmd: Command) -> None:
        for line in HELP_LINES:
            self.state.log(line)

    def _quit(self, _cmd: Command) -> None:
        self.state.should_quit = True

    def _repo_add(self, cmd: RepoAddCommand) -> None:
        cfg = self.state.config
        if cfg.add_repo(cmd.repo):
            self._save(cfg)
            self.state.log(f"Added repo {cmd.repo}")
        else:
            self.state.log(f"Repo {cmd.repo} already exists")

    def _repo_remove(self, cmd: RepoRemoveCommand) -> None:
        cfg = self.state.config
        if cfg.remove_repo(cmd.repo):
            self._save(cfg)
            self.state.log(f"Removed repo {cmd.repo}")
        else:
            self.state.log(f"Repo {cmd.repo} not found")

    def _list_repos(self, _cmd: Command) -> None:
        repos = self.state.config.repos
        if not repos:
            self.state.log("No repos configured. Add one with /repo add <workspace>/<repo>.")
            return
        self.state.log("Configured repos:")
        for repo in repos:
            self.state.log(f"- {repo}")

    def _status(self, cmd: StatusCommand) -> None:
        self.state.status_filter = cmd.status
        if self.state.config.set_status(cmd.status):
            self._save(self.state.config)
        self.state.log(f"Status filter set to {cmd.status}. Refreshing...")
        self.refresh()

    def _search(self, cmd: SearchCommand) -> None:
        query = normalize_query(cmd.query)
        self.state.set_search(query)
        if query is None:
            self.state.log("Search cleared.")
            return
        self.state.log(f"Search set to '{query}'. {len(self.state.pull_requests)} matching PR(s).")
