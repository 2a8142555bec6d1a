from __future__ import annotations

from typing import TYPE_CHECKING

from rich.text import Text

from ..view_model import ViewModel

if TYPE_CHECKING:  # For type checking only, not used at runtime
    from ..tui import MyPRsApp

CURSOR = " "


def render_input(view: ViewModel) -> Text:
    """Render the command line with a block cursor at the cursor offset."""
    text = Text(view.input_text[: view.cursor])
    text.append(view.input_text[view.cursor : view.cursor + 1] or CURSOR, style="reverse")
    text.append(view.input_text[view.cursor + 1 :])
    return text


class StatusManager:
    """Updates the header, log panel and command line for the myprs TUI."""

    def __init__(self, app: MyPRsApp) -> None:
        """Initialize with reference to the main app."""
        self.app = app

    def update(self, view: ViewModel) -> None:
        self.app._header_panel.update("\n".join(view.header))
        self.app._log_panel.update("\n".join(view.logs))
        self.app._command_line.update(render_input(view))
