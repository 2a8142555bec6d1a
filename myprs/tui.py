from __future__ import annotations

import contextlib
import webbrowser
from collections.abc import Callable
from typing import ClassVar

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Footer, Header, Static

from .aggregate import ClientFactory
from .bitbucket import client_from_config
from .config import AppConfig, load_config, save_config
from .event_handler import EventHandler
from .interpreter import CommandInterpreter
from .state import AppState
from .ui import PRList, StatusManager, SuggestionPopup
from .view_model import build_view_model


class MyPRsApp(App):
    """Textual TUI for tracking the pull requests you authored on Bitbucket."""

    CSS = """
    #status { height: 2; padding: 0 1; }
    #pr-list { height: 1fr; border: round $accent; }
    #list-title { padding: 0 0 1 0; text-style: bold; }
    #pr-options { height: 1fr; border: none; }
    #suggestions { height: auto; max-height: 10; border: round $secondary; }
    #suggestion-options { height: auto; border: none; }
    #log { height: 8; border: round $panel; padding: 0 1; }
    #command { height: 3; border: round $primary; padding: 0 1; }
    """

    TITLE = "myprs"
    ENABLE_COMMAND_PALETTE = False

    BINDINGS: ClassVar[list[Binding]] = [
        Binding("ctrl+c", "quit", "Quit", priority=True),
    ]

    def __init__(
        self,
        cfg: AppConfig | None = None,
        client_factory: ClientFactory = client_from_config,
        save: Callable[[AppConfig], None] = save_config,
        open_url: Callable[[str], bool] = webbrowser.open,
    ) -> None:
        """Initialize application state and widgets.

        Args:
            cfg: Configuration to start from; loaded from disk when omitted.
            client_factory: Builds the Bitbucket client used by refreshes.
            save: Persists configuration changes.
            open_url: Opens a pull request URL in the browser.
        """
        super().__init__()
        self.cfg: AppConfig = cfg if cfg is not None else load_config()
        self.state = AppState.from_config(self.cfg)
        self._interpreter = CommandInterpreter(self.state, client_factory, save, open_url)
        self._event_handler = EventHandler(self.state, self._interpreter)
        self._header_panel = Static("", id="status")
        self._list = PRList("My Pull Requests")
        self._popup = SuggestionPopup()
        self._log_panel = Static("", id="log")
        self._command_line = Static("", id="command")
        self._status_manager = StatusManager(self)

    def compose(self) -> ComposeResult:
        """Compose header, PR list, suggestion popup, log and command line."""
        yield Header(show_clock=False)
        with Vertical():
            yield self._header_panel
            yield self._list
            yield self._log_panel
            yield self._popup
            yield self._command_line
        yield Footer()

    def on_mount(self) -> None:
        """Greet the user and load pull requests on startup."""
        self.state.log("Type /help for commands.")
        self._interpreter.refresh()
        self._redraw()

    def on_key(self, event) -> None:  # type: ignore[override]
        """Feed every key press to the state machine, then redraw or exit."""
        key = getattr(event, "key", None)
        if key is None:
            return
        if not self._event_handler.handle_key(key, getattr(event, "character", None)):
            return
        with contextlib.suppress(Exception):
            event.prevent_default()
        event.stop()
        if self.state.should_quit:
            self.exit()
            return
        self._redraw()

    def _redraw(self) -> None:
        view = build_view_model(self.state)
        self._status_manager.update(view)
        self._list.show(view)
        self._popup.show(view)
