from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

from .bitbucket import PullRequest


@dataclass(frozen=True)
class Row:
    """One display row: a bold repository header or a numbered PR line."""

    text: str
    is_header: bool = False


def format_header(repo_key: str, count: int) -> str:
    label = "PR" if count == 1 else "PRs"
    return f"{repo_key} ({count} {label}):"


def format_pr_row(position: int, pr: PullRequest) -> str:
    return f"  {position}. #{pr.id} [{pr.state}] {pr.title} ({pr.author})"


def grouped_rows(prs: Sequence[PullRequest], selected_index: int) -> tuple[list[Row], int | None]:
    """Group consecutive PRs of the same repository under header rows.

    Args:
        prs: PRs in display order (already sorted by repository).
        selected_index: Index into `prs` of the highlighted PR.

    Returns:
        The rows and the row offset of the highlighted PR (None if `prs`
        is empty). Header rows are never highlighted.
    """
    rows: list[Row] = []
    selected_row: int | None = None
    if not prs:
        return rows, selected_row
    selected_index = min(max(selected_index, 0), len(prs) - 1)
    counts = Counter(pr.repo_key for pr in prs)
    current_repo: str | None = None
    position = 0
    for i, pr in enumerate(prs):
        if pr.repo_key != current_repo:
            current_repo = pr.repo_key
            position = 0
            rows.append(Row(format_header(current_repo, counts[current_repo]), is_header=True))
        if i == selected_index:
            selected_row = len(rows)
        position += 1
        rows.append(Row(format_pr_row(position, pr)))
    return rows, selected_row


class SelectionState:
    """Tracks the highlighted PR within the filtered view."""

    def __init__(self) -> None:
        self.index: int = 0

    def reset(self) -> None:
        self.index = 0

    def clamp(self, length: int) -> None:
        """Keep the index inside a view of `length` items without resetting it."""
        self.index = min(self.index, max(length - 1, 0))

    def move_up(self) -> None:
        self.index = max(self.index - 1, 0)

    def move_down(self, length: int) -> None:
        if self.index + 1 < length:
            self.index += 1

    def current(self, prs: Sequence[PullRequest]) -> PullRequest | None:
        """Return the highlighted PR, or None if the view is empty."""
        if not prs:
            return None
        return prs[min(self.index, len(prs) - 1)]
