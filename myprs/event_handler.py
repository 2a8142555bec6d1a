from __future__ import annotations

from collections.abc import Callable

from .interpreter import CommandInterpreter
from .state import AppState

QUIT_KEYS = {"escape", "ctrl+c"}


class EventHandler:
    """Routes key presses to selection, autocomplete or the interpreter."""

    def __init__(self, state: AppState, interpreter: CommandInterpreter) -> None:
        """Initialize with the shared state and the command interpreter."""
        self.state = state
        self.interpreter = interpreter
        self._routes: dict[str, Callable[[], None]] = {
            "up": self._on_up,
            "down": self._on_down,
            "tab": self._on_tab,
            "enter": self.interpreter.submit,
            "backspace": self._on_backspace,
        }

    def handle_key(self, key: str, character: str | None = None) -> bool:
        """Apply one key press to the state.

        Args:
            key: Textual key name, e.g. "up", "enter", "a", "slash".
            character: The printable character for the key, if any.

        Returns:
            True if the key was consumed; False to let it propagate.
        """
        if key in QUIT_KEYS:
            self.state.should_quit = True
            return True
        route = self._routes.get(key)
        if route is not None:
            route()
            return True
        if character and character.isprintable():
            self.state.set_input(self.state.input + character)
            return True
        return False

    def has_suggestions(self) -> bool:
        return bool(self.state.autocomplete.suggestions(self.state.input))

    def _on_up(self) -> None:
        if self.has_suggestions():
            self.state.autocomplete.move(self.state.input, -1)
        else:
            self.state.selection.move_up()

    def _on_down(self) -> None:
        if self.has_suggestions():
            self.state.autocomplete.move(self.state.input, 1)
        else:
            self.state.selection.move_down(len(self.state.pull_requests))

    def _on_tab(self) -> None:
        completed = self.state.autocomplete.complete(self.state.input)
        if completed is not None:
            self.state.input = completed

    def _on_backspace(self) -> None:
        self.state.set_input(self.state.input[:-1])
