from __future__ import annotations

from dataclasses import dataclass

from .config import PrStatus, RepoRef
from .errors import UsageError

COMMAND_PREFIX = "/"


@dataclass(frozen=True)
class CommandSpec:
    """Catalog entry for one slash-command."""

    name: str
    usage: str
    accepts_args: bool


COMMAND_SPECS: tuple[CommandSpec, ...] = (
    CommandSpec("/help", "show available commands", False),
    CommandSpec("/repo", "add/rm repository entries", True),
    CommandSpec("/repos", "list configured repositories", False),
    CommandSpec("/status", "set status filter", True),
    CommandSpec("/refresh", "reload pull requests", False),
    CommandSpec("/search", "filter PRs by number or text", True),
    CommandSpec("/quit", "exit the app", False),
)

HELP_LINES: tuple[str, ...] = (
    "Commands: /repo add <w>/<r>, /repo rm <w>/<r>, /repos, /status <open|merged|declined|all>, "
    "/refresh, /search <text|pr-number>, /search clear, /quit",
    "Tip: type '/' to show command suggestions; use Up/Down + Tab to autocomplete.",
    "Tip: press Enter with empty command input to open selected PR.",
)

REPO_USAGE = "usage: /repo add <workspace>/<repo> | /repo rm <workspace>/<repo>"
REPO_ADD_USAGE = "usage: /repo add <workspace>/<repo>"
REPO_RM_USAGE = "usage: /repo rm <workspace>/<repo>"
STATUS_USAGE = "usage: /status <open|merged|declined|all>"


class Command:
    """Base class of the parsed command variants."""


@dataclass(frozen=True)
class HelpCommand(Command):
    pass


@dataclass(frozen=True)
class QuitCommand(Command):
    pass


@dataclass(frozen=True)
class RepoAddCommand(Command):
    repo: RepoRef


@dataclass(frozen=True)
class RepoRemoveCommand(Command):
    repo: RepoRef


@dataclass(frozen=True)
class ListReposCommand(Command):
    pass


@dataclass(frozen=True)
class StatusCommand(Command):
    status: PrStatus


@dataclass(frozen=True)
class RefreshCommand(Command):
    pass


@dataclass(frozen=True)
class SearchCommand(Command):
    query: str


@dataclass(frozen=True)
class UnknownCommand(Command):
    name: str


def split_command(raw: str) -> tuple[str, list[str]]:
    """Split submitted text into the command name and its arguments."""
    parts = raw.split()
    if not parts:
        return "", []
    return parts[0], parts[1:]


def _parse_repo(args: list[str]) -> Command:
    if not args:
        raise UsageError(REPO_USAGE)
    action = args[0]
    if action == "add":
        if len(args) < 2:
            raise UsageError(REPO_ADD_USAGE)
        return RepoAddCommand(RepoRef.parse(args[1]))
    if action in ("rm", "remove"):
        if len(args) < 2:
            raise UsageError(REPO_RM_USAGE)
        return RepoRemoveCommand(RepoRef.parse(args[1]))
    # Bare "/repo <workspace>/<repo>" is an implicit alias for "/repo add".
    return RepoAddCommand(RepoRef.parse(action))


def _parse_status(args: list[str]) -> Command:
    if not args:
        raise UsageError(STATUS_USAGE)
    return StatusCommand(PrStatus.parse(args[0]))


def parse_command(raw: str) -> Command:
    """Parse a submitted command line into one of the command variants.

    Args:
        raw: Trimmed input starting with the command prefix.

    Returns:
        The parsed command; unrecognized names yield `UnknownCommand`.

    Raises:
        UsageError: If a required argument is missing.
        InvalidRepoFormat: If a repository argument is malformed.
        InvalidStatus: If a status argument is not recognized.
    """
    name, args = split_command(raw)
    if name == "/help":
        return HelpCommand()
    if name == "/quit":
        return QuitCommand()
    if name == "/repo":
        return _parse_repo(args)
    if name == "/repos":
        return ListReposCommand()
    if name == "/status":
        return _parse_status(args)
    if name == "/refresh":
        return RefreshCommand()
    if name == "/search":
        return SearchCommand(" ".join(args))
    return UnknownCommand(name)
