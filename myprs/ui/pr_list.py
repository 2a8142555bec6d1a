from __future__ import annotations

from rich.text import Text
from textual.widgets import Label, OptionList, Static
from textual.widgets.option_list import Option

from ..view_model import ViewModel


class PRList(Static):
    """Widget that renders grouped pull request rows with one highlighted row."""

    def __init__(self, title: str) -> None:
        super().__init__(id="pr-list")
        self.title = title
        self.title_label = Label(title, id="list-title")
        self.empty_label = Label("", id="list-empty")
        self.options = OptionList(id="pr-options")
        # Keys are handled by the app; the list only mirrors the selection.
        self.options.can_focus = False
        self.rows: list[str] = []

    def compose(self):  # type: ignore[override]
        yield self.title_label
        yield self.empty_label
        yield self.options

    def show(self, view: ViewModel) -> None:
        """Replace the rows with those of `view` and move the highlight."""
        self.title_label.update(view.list_title)
        if view.empty_text is not None:
            self.rows = []
            self.options.clear_options()
            self.empty_label.update(view.empty_text)
            self.empty_label.display = True
            self.options.display = False
            return
        self.empty_label.display = False
        self.options.display = True
        self.rows = [row.text for row in view.rows]
        self.options.clear_options()
        self.options.add_options(
            [Option(Text(row.text, style="bold" if row.is_header else ""), disabled=row.is_header) for row in view.rows]
        )
        self.options.highlighted = view.selected_row
