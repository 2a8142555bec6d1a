from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from .config import AppConfig, PrStatus, RepoRef
from .errors import BitbucketAPIError, MissingCredentials

# Set up logging
logger = logging.getLogger(__name__)

PAGE_LENGTH = 50


@dataclass(frozen=True)
class PullRequest:
    """Lightweight representation of a Bitbucket pull request.

    Attributes:
        workspace: Workspace slug the repository lives in.
        repo: Repository slug.
        id: Pull request id, unique within the repository.
        title: PR title.
        description: Free-text PR description.
        author: Display name of the PR author.
        state: State tag as returned by the service ("OPEN", "MERGED", ...).
        updated_on: Last-updated timestamp; sortable ISO-8601 text.
        url: Web URL to the PR.
    """

    workspace: str
    repo: str
    id: int
    title: str
    description: str
    author: str
    state: str
    updated_on: str
    url: str

    @property
    def repo_ref(self) -> RepoRef:
        return RepoRef(self.workspace, self.repo)

    @property
    def repo_key(self) -> str:
        return f"{self.workspace}/{self.repo}"


def build_query(author_uuid: str, status: PrStatus) -> str:
    """Build the Bitbucket `q` filter for PRs authored by `author_uuid`.

    Args:
        author_uuid: UUID of the author, braces included.
        status: Status filter; `PrStatus.ALL` adds no state term.

    Returns:
        A BBQL expression such as `author.uuid="{u}" AND state="OPEN"`.
    """
    terms = [f'author.uuid="{author_uuid}"']
    if status.query_state is not None:
        terms.append(f'state="{status.query_state}"')
    return " AND ".join(terms)


def parse_pull_request(repo: RepoRef, value: dict[str, Any]) -> PullRequest:
    """Convert one entry of a pull request listing into a `PullRequest`.

    Raises:
        KeyError: If a required field is missing.
    """
    description = value.get("description")
    if description is None:
        description = (value.get("summary") or {}).get("raw") or ""
    author = value.get("author") or {}
    return PullRequest(
        workspace=repo.workspace,
        repo=repo.repo,
        id=int(value["id"]),
        title=value["title"],
        description=description,
        author=author.get("display_name") or author.get("nickname") or "unknown",
        state=value["state"],
        updated_on=value["updated_on"],
        url=value["links"]["html"]["href"],
    )


class BitbucketClient:
    """Synchronous Bitbucket Cloud API client for the current user's pull requests."""

    def __init__(self, base_url: str, email: str, api_token: str, timeout: float = 20) -> None:
        """Initialize the client.

        Args:
            base_url: API root, e.g. "https://api.bitbucket.org/2.0".
            email: Atlassian account email used for basic auth.
            api_token: API token paired with `email`.
            timeout: Per-request timeout in seconds.
        """
        self._base_url = base_url.rstrip("/")
        self._auth = (email, api_token)
        self._headers = {"Accept": "application/json", "User-Agent": "myprs"}
        self._timeout = timeout

    def _get(self, url: str, context: str, params: dict[str, Any] | None = None) -> Any:
        """Perform an authenticated GET request and return parsed JSON.

        Args:
            url: Absolute endpoint URL.
            context: Human-readable description used in error messages.
            params: Optional query parameters.

        Returns:
            The JSON-decoded response body.

        Raises:
            BitbucketAPIError: On HTTP error status, network errors or
                undecodable bodies.
        """
        try:
            with httpx.Client(timeout=self._timeout) as client:
                r = client.get(url, headers=self._headers, params=params, auth=self._auth)
                r.raise_for_status()
                return r.json()
        except httpx.HTTPStatusError as e:
            code_str = str(getattr(e.response, "status_code", "unknown"))
            logger.error(f"HTTP error {code_str} for URL {url}: {e}")
            raise BitbucketAPIError(f"{context} returned HTTP {code_str}") from e
        except httpx.RequestError as e:
            logger.error(f"Network error for URL {url}: {e}")
            raise BitbucketAPIError(f"failed to call {context}: {e}") from e
        except ValueError as e:
            logger.error(f"Invalid JSON from URL {url}: {e}")
            raise BitbucketAPIError(f"failed to decode {context} response") from e

    def resolve_current_identity(self) -> str:
        """Return the UUID of the authenticated user.

        Raises:
            BitbucketAPIError: If the request fails or the payload has no uuid.
        """
        data = self._get(f"{self._base_url}/user", "Bitbucket user API")
        try:
            return str(data["uuid"])
        except (KeyError, TypeError) as e:
            raise BitbucketAPIError("failed to deserialize Bitbucket user response") from e

    def list_authored_pull_requests(self, repo: RepoRef, author_uuid: str, status: PrStatus) -> list[PullRequest]:
        """List pull requests in `repo` authored by `author_uuid`.

        Only the first page (most recently updated first) is fetched.

        Args:
            repo: Repository to query.
            author_uuid: Identity returned by `resolve_current_identity`.
            status: Server-side status filter.

        Returns:
            Pull requests in the order the service returned them.

        Raises:
            BitbucketAPIError: If the request fails or the payload is malformed.
        """
        url = f"{self._base_url}/repositories/{repo.workspace}/{repo.repo}/pullrequests"
        params = {"sort": "-updated_on", "pagelen": PAGE_LENGTH, "q": build_query(author_uuid, status)}
        data = self._get(url, f"Bitbucket pull request API for {repo}", params=params)
        try:
            return [parse_pull_request(repo, value) for value in data["values"]]
        except (KeyError, TypeError, ValueError) as e:
            raise BitbucketAPIError("failed to deserialize Bitbucket pull request response") from e


def client_from_config(cfg: AppConfig) -> BitbucketClient:
    """Build a `BitbucketClient` from configured credentials.

    Raises:
        MissingCredentials: If email or API token is not configured.
    """
    credentials = cfg.credentials
    if credentials is None:
        raise MissingCredentials()
    email, api_token = credentials
    return BitbucketClient(cfg.base_url, email, api_token)
