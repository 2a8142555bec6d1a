from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # For type checking only, not used at runtime
    from .config import RepoRef


class MyPRsError(Exception):
    """Base class for every error the application recovers from."""


class UsageError(MyPRsError):
    """A command was submitted with missing or malformed arguments.

    Attributes:
        usage: The exact usage string for the offending command.
    """

    def __init__(self, usage: str) -> None:
        super().__init__(usage)
        self.usage = usage


class InvalidRepoFormat(MyPRsError):
    def __init__(self, value: str) -> None:
        super().__init__("repo must be in the form workspace/repo")
        self.value = value


class InvalidStatus(MyPRsError):
    def __init__(self, value: str) -> None:
        super().__init__(f"invalid status '{value}'. expected: open|merged|declined|all")
        self.value = value


class MissingCredentials(MyPRsError):
    def __init__(self) -> None:
        super().__init__("Missing credentials. Set BITBUCKET_EMAIL and BITBUCKET_API_TOKEN.")


class NoRepositoriesConfigured(MyPRsError):
    def __init__(self) -> None:
        super().__init__("No repos configured. Add repos via /repo add <workspace>/<repo>.")


class BitbucketAPIError(MyPRsError):
    """Raised by the Bitbucket client for HTTP, network or payload failures."""


class IdentityResolutionError(MyPRsError):
    def __init__(self, cause: Exception) -> None:
        super().__init__(f"Failed to fetch current user: {cause}")
        self.cause = cause


class PerRepositoryFetchError(MyPRsError):
    """A single tracked repository failed to load during a refresh.

    Attributes:
        repo: The repository that failed.
        cause: The underlying client error.
    """

    def __init__(self, repo: RepoRef, cause: Exception) -> None:
        super().__init__(f"Failed loading {repo}: {cause}")
        self.repo = repo
        self.cause = cause


class PersistenceError(MyPRsError):
    """Configuration could not be written to (or read from) disk."""


class BrowserLaunchError(MyPRsError):
    pass
