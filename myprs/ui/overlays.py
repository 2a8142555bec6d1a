from __future__ import annotations

from textual.containers import Vertical
from textual.widgets import Label, OptionList

from ..view_model import ViewModel

POPUP_TITLE = "Commands (Up/Down + Tab)"


class SuggestionPopup(Vertical):
    """Command suggestions shown above the command line while typing a name."""

    def __init__(self) -> None:
        super().__init__(id="suggestions")
        self.options = OptionList(id="suggestion-options")
        self.options.can_focus = False
        self.display = False

    def compose(self):  # type: ignore[override]
        yield Label(POPUP_TITLE)
        yield self.options

    def show(self, view: ViewModel) -> None:
        """Mirror the view model's popup rows; hide when there are none."""
        if not view.popup_rows:
            self.display = False
            self.options.clear_options()
            return
        self.options.clear_options()
        self.options.add_options(view.popup_rows)
        self.options.highlighted = view.popup_selected
        self.display = True
