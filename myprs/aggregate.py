from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from .bitbucket import BitbucketClient, PullRequest
from .config import AppConfig, PrStatus, RepoRef
from .errors import (
    BitbucketAPIError,
    IdentityResolutionError,
    MissingCredentials,
    NoRepositoriesConfigured,
    PerRepositoryFetchError,
)

logger = logging.getLogger(__name__)

CLEAR_TOKEN = "clear"

ClientFactory = Callable[[AppConfig], BitbucketClient]


def normalize_query(query: str | None) -> str | None:
    """Return the trimmed query, or None when it means "show all".

    Blank text and the literal token "clear" (any case) both clear the search.
    """
    if query is None:
        return None
    query = query.strip()
    if not query or query.lower() == CLEAR_TOKEN:
        return None
    return query


def matches(pr: PullRequest, query: str) -> bool:
    """Return True if `pr` matches the search `query`.

    A PR matches when its id contains the query, or when its title and
    description (joined by a space) contain it, ignoring case.
    """
    q = query.strip().lower()
    if not q:
        return True
    if q in str(pr.id):
        return True
    return q in f"{pr.title} {pr.description}".lower()


def sort_key(pr: PullRequest) -> tuple[str, str]:
    return (pr.workspace, pr.repo)


def sort_pull_requests(prs: Iterable[PullRequest]) -> list[PullRequest]:
    """Order PRs by workspace, then repo, then most recently updated first."""
    # Two stable passes: newest first, then group by repository.
    ordered = sorted(prs, key=lambda p: p.updated_on, reverse=True)
    ordered.sort(key=sort_key)
    return ordered


@dataclass
class RefreshReport:
    """Outcome of one full refresh.

    Attributes:
        status: Status filter the PRs were requested with.
        repos: Repositories that were queried, in configuration order.
        total: Size of the new unfiltered collection.
        matched: Size of the filtered view after applying the search.
        search_query: Active search, if any.
        failures: One entry per repository that failed to load.
    """

    status: PrStatus
    repos: list[RepoRef]
    total: int = 0
    matched: int = 0
    search_query: str | None = None
    failures: list[PerRepositoryFetchError] = field(default_factory=list)

    @property
    def failed_count(self) -> int:
        return len(self.failures)

    @property
    def succeeded(self) -> list[RepoRef]:
        failed = {f.repo for f in self.failures}
        return [r for r in self.repos if r not in failed]

    def summary_lines(self) -> list[str]:
        """Return the log lines reported after a refresh."""
        if self.search_query is not None:
            line = (
                f"Loaded {self.matched} matching PR(s) out of {self.total} total with status "
                f"'{self.status}' across {len(self.repos)} repo(s) | search='{self.search_query}'"
            )
        else:
            line = f"Loaded {self.matched} PR(s) with status '{self.status}' across {len(self.repos)} repo(s)"
        lines = [line]
        if self.failures:
            lines.append(f"{self.failed_count} repo(s) failed during refresh")
        return lines


class PullRequestAggregate:
    """Owns every fetched PR plus the search-filtered view used for display."""

    def __init__(self) -> None:
        self.all_prs: list[PullRequest] = []
        self.filtered: list[PullRequest] = []
        self.search_query: str | None = None

    def __len__(self) -> int:
        return len(self.filtered)

    def replace(self, prs: Iterable[PullRequest]) -> None:
        """Swap in a new snapshot, sort it and recompute the filtered view."""
        self.all_prs = sort_pull_requests(prs)
        self.apply_search()

    def set_search(self, query: str | None) -> None:
        self.search_query = normalize_query(query)
        self.apply_search()

    def apply_search(self) -> None:
        """Recompute `filtered` from `all_prs` without reordering."""
        if self.search_query is None:
            self.filtered = list(self.all_prs)
            return
        self.filtered = [pr for pr in self.all_prs if matches(pr, self.search_query)]

    def refresh(self, cfg: AppConfig, status: PrStatus, client_factory: ClientFactory) -> RefreshReport:
        """Fetch the current user's PRs from every tracked repository.

        A failure for one repository is recorded in the report and does not
        stop the others; the new snapshot replaces the old one entirely.

        Args:
            cfg: Configuration providing credentials and tracked repositories.
            status: Status filter to request server-side.
            client_factory: Builds the API client from `cfg`.

        Returns:
            A `RefreshReport` describing the new snapshot.

        Raises:
            MissingCredentials: If email or API token is not configured.
            NoRepositoriesConfigured: If no repository is tracked.
            IdentityResolutionError: If the current user cannot be resolved;
                the previous snapshot is kept.
        """
        if cfg.credentials is None:
            raise MissingCredentials()
        repos = list(cfg.repos)
        if not repos:
            raise NoRepositoriesConfigured()

        client = client_factory(cfg)
        try:
            identity = client.resolve_current_identity()
        except BitbucketAPIError as e:
            raise IdentityResolutionError(e) from e

        report = RefreshReport(status=status, repos=repos)
        collected: list[PullRequest] = []
        for repo in repos:
            try:
                collected.extend(client.list_authored_pull_requests(repo, identity, status))
            except BitbucketAPIError as e:
                logger.warning(f"Failed loading {repo}: {e}")
                report.failures.append(PerRepositoryFetchError(repo, e))

        self.replace(collected)
        report.total = len(self.all_prs)
        report.matched = len(self.filtered)
        report.search_query = self.search_query
        return report
