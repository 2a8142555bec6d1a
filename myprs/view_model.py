from __future__ import annotations

from dataclasses import dataclass, field

from .navigation import Row, grouped_rows
from .state import AppState

APP_TITLE = "myprs - Bitbucket PR TUI"


@dataclass
class ViewModel:
    """Everything the frontend needs to draw one frame."""

    header: list[str]
    list_title: str
    rows: list[Row]
    selected_row: int | None
    empty_text: str | None
    input_text: str
    cursor: int
    logs: list[str]
    popup_rows: list[str] = field(default_factory=list)
    popup_selected: int | None = None


def build_view_model(state: AppState) -> ViewModel:
    """Compute the view model for the current state.

    Args:
        state: Application state to render.

    Returns:
        A `ViewModel`; `empty_text` is set only when there is nothing to list.
    """
    auth_status = "configured" if state.config.credentials is not None else "missing"
    header = [
        APP_TITLE,
        f"Repos: {len(state.config.repos)} | Status: {state.status_filter} | API token auth: {auth_status}",
    ]

    query = state.aggregate.search_query
    list_title = f"My Pull Requests ({state.status_filter})"
    if query is not None:
        list_title += f" | Search: {query}"

    rows, selected_row = grouped_rows(state.pull_requests, state.selection.index)
    empty_text = None
    if not rows:
        if query is not None:
            empty_text = f"No PRs match search '{query}'. Use /search clear to reset."
        else:
            empty_text = "No pull requests loaded. Configure credentials, add repos, then run /refresh."

    suggestions = state.autocomplete.suggestions(state.input)
    popup_rows = [f"{spec.name:<8} {spec.usage}" for spec in suggestions]
    popup_selected = min(state.autocomplete.index, len(suggestions) - 1) if suggestions else None

    return ViewModel(
        header=header,
        list_title=list_title,
        rows=rows,
        selected_row=selected_row,
        empty_text=empty_text,
        input_text=state.input,
        cursor=len(state.input),
        logs=state.recent_logs(),
        popup_rows=popup_rows,
        popup_selected=popup_selected,
    )
