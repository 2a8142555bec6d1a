from __future__ import annotations

from .commands import COMMAND_PREFIX, COMMAND_SPECS, CommandSpec


def command_query(text: str) -> str | None:
    """Return the partial command token being typed, or None.

    Suggestions only apply while the user is still typing the command name:
    the input must start with the prefix, must not end in whitespace and
    must not contain an argument yet.
    """
    trimmed = text.lstrip()
    if not trimmed.startswith(COMMAND_PREFIX):
        return None
    if trimmed != trimmed.rstrip():
        return None
    parts = trimmed.split()
    if len(parts) != 1:
        return None
    return parts[0]


def suggestions(text: str, specs: tuple[CommandSpec, ...] = COMMAND_SPECS) -> list[CommandSpec]:
    """Return catalog entries whose name starts with the typed token, in catalog order."""
    query = command_query(text)
    if query is None:
        return []
    return [spec for spec in specs if spec.name.startswith(query)]


def completion_text(spec: CommandSpec) -> str:
    """Text that replaces the input buffer when `spec` is accepted."""
    return f"{spec.name} " if spec.accepts_args else spec.name


class Autocomplete:
    """Cyclable selection over the command suggestions for the current input."""

    def __init__(self, specs: tuple[CommandSpec, ...] = COMMAND_SPECS) -> None:
        self.specs = specs
        self.index: int = 0

    def suggestions(self, text: str) -> list[CommandSpec]:
        return suggestions(text, self.specs)

    def reset(self) -> None:
        """Reset the selection; called whenever the input text changes."""
        self.index = 0

    def move(self, text: str, delta: int) -> None:
        """Move the selection by `delta`, wrapping around the suggestion list."""
        items = self.suggestions(text)
        if not items:
            self.index = 0
            return
        self.index = (self.index + delta) % len(items)

    def selected(self, text: str) -> CommandSpec | None:
        items = self.suggestions(text)
        if not items:
            return None
        return items[min(self.index, len(items) - 1)]

    def complete(self, text: str) -> str | None:
        """Return the completed input for the selected suggestion, or None.

        Args:
            text: Current input buffer.

        Returns:
            The replacement input text, or None if nothing is suggested.
        """
        spec = self.selected(text)
        if spec is None:
            return None
        self.reset()
        return completion_text(spec)

    def complete_if_partial(self, text: str) -> str | None:
        """Complete only when the typed token is a strict prefix of the selection.

        Used on Enter: a fully typed command name is submitted instead.
        """
        query = command_query(text)
        spec = self.selected(text)
        if query is None or spec is None or query == spec.name:
            return None
        self.reset()
        return completion_text(spec)
