from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from .errors import InvalidRepoFormat, InvalidStatus, PersistenceError

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "myprs"
CONFIG_PATH = CONFIG_DIR / "config.json"

DEFAULT_BITBUCKET_BASE_URL = "https://api.bitbucket.org/2.0"


@dataclass(frozen=True)
class RepoRef:
    """A tracked repository identified by its workspace and repository slug."""

    workspace: str
    repo: str

    @staticmethod
    def parse(value: str) -> RepoRef:
        """Parse a `workspace/repo` string.

        Args:
            value: Text of the form "workspace/repo".

        Returns:
            The parsed `RepoRef`.

        Raises:
            InvalidRepoFormat: If the text does not split into exactly two
                non-empty components.
        """
        parts = value.split("/")
        if len(parts) != 2:
            raise InvalidRepoFormat(value)
        workspace, repo = (p.strip() for p in parts)
        if not workspace or not repo:
            raise InvalidRepoFormat(value)
        return RepoRef(workspace, repo)

    def __str__(self) -> str:
        return f"{self.workspace}/{self.repo}"


class PrStatus(Enum):
    OPEN = "open"
    MERGED = "merged"
    DECLINED = "declined"
    ALL = "all"

    @staticmethod
    def parse(value: str) -> PrStatus:
        """Parse a status label case-insensitively.

        Raises:
            InvalidStatus: If the label is not one of open|merged|declined|all.
        """
        try:
            return PrStatus(value.strip().lower())
        except ValueError:
            raise InvalidStatus(value) from None

    @property
    def query_state(self) -> str | None:
        """Server-side state term, or None when no restriction applies."""
        if self is PrStatus.ALL:
            return None
        return self.value.upper()

    def __str__(self) -> str:
        return self.value


@dataclass
class AppConfig:
    base_url: str = DEFAULT_BITBUCKET_BASE_URL
    email: str | None = None
    api_token: str | None = None
    repos: list[RepoRef] = field(default_factory=list)
    default_status: PrStatus = PrStatus.OPEN

    @staticmethod
    def from_dict(data: dict[str, Any]) -> AppConfig:
        """Create an `AppConfig` instance from a plain dictionary.

        Args:
            data: A mapping parsed from JSON containing optional keys
                `base_url`, `email`, `api_token`, `repos`
                (list[{"workspace": str, "repo": str}]) and `default_status`.

        Returns:
            A populated `AppConfig` object.

        Raises:
            InvalidRepoFormat: If a stored repository entry is malformed.
            InvalidStatus: If the stored status label is unknown.
        """
        repos: list[RepoRef] = []
        for r in data.get("repos", []) or []:
            workspace = str(r.get("workspace") or "")
            name = str(r.get("repo") or "")
            ref = RepoRef.parse(f"{workspace}/{name}")
            if ref not in repos:
                repos.append(ref)
        return AppConfig(
            base_url=data.get("base_url") or DEFAULT_BITBUCKET_BASE_URL,
            email=data.get("email"),
            api_token=data.get("api_token"),
            repos=repos,
            default_status=PrStatus.parse(data.get("default_status") or PrStatus.OPEN.value),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize this configuration to a JSON-safe dictionary."""
        return {
            "base_url": self.base_url,
            "email": self.email,
            "api_token": self.api_token,
            "repos": [{"workspace": r.workspace, "repo": r.repo} for r in self.repos],
            "default_status": self.default_status.value,
        }

    @property
    def credentials(self) -> tuple[str, str] | None:
        """Return (email, api_token) when both are set, else None."""
        if self.email and self.api_token:
            return self.email, self.api_token
        return None

    def add_repo(self, repo: RepoRef) -> bool:
        """Append `repo` unless already tracked. Returns True if added."""
        if repo in self.repos:
            return False
        self.repos.append(repo)
        return True

    def remove_repo(self, repo: RepoRef) -> bool:
        """Drop `repo` if tracked. Returns True if removed."""
        before = len(self.repos)
        self.repos = [r for r in self.repos if r != repo]
        return len(self.repos) != before

    def set_status(self, status: PrStatus) -> bool:
        """Set the default status filter. Returns True if it changed."""
        if self.default_status is status:
            return False
        self.default_status = status
        return True


def ensure_config_dir() -> None:
    """Ensure the configuration directory exists.

    Raises:
        OSError: If the directory cannot be created.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)


def load_config() -> AppConfig:
    """Load configuration from `CONFIG_PATH`, creating a default if missing.

    Returns:
        The loaded or newly created `AppConfig` instance.

    Raises:
        PersistenceError: If the file cannot be read or is not valid JSON,
            or its contents do not describe a configuration.
        InvalidRepoFormat: If a stored repository entry is malformed.
    """
    if not CONFIG_PATH.exists():
        # Create an empty default config
        cfg = AppConfig()
        save_config(cfg)
        return cfg
    try:
        with CONFIG_PATH.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise PersistenceError(f"failed to read config at {CONFIG_PATH}: {e}") from e
    if not isinstance(data, dict):
        raise PersistenceError(f"failed to parse config at {CONFIG_PATH}: expected a JSON object")
    try:
        return AppConfig.from_dict(data)
    except (AttributeError, TypeError) as e:
        raise PersistenceError(f"failed to parse config at {CONFIG_PATH}: {e}") from e


def save_config(cfg: AppConfig) -> None:
    """Persist configuration to `CONFIG_PATH` as JSON.

    Args:
        cfg: The configuration to save.

    Raises:
        PersistenceError: If writing the file fails.
    """
    try:
        ensure_config_dir()
        with CONFIG_PATH.open("w", encoding="utf-8") as f:
            json.dump(cfg.to_dict(), f, indent=2)
    except OSError as e:
        logger.error(f"Failed to write config at {CONFIG_PATH}: {e}")
        raise PersistenceError(f"failed to write config at {CONFIG_PATH}: {e}") from e


def _read_env(key: str) -> str | None:
    value = os.environ.get(key, "").strip()
    return value or None


def parse_repo_list(value: str) -> list[RepoRef]:
    """Parse a comma-separated list of `workspace/repo` entries, skipping blanks."""
    return [RepoRef.parse(item.strip()) for item in value.split(",") if item.strip()]


def apply_overrides(
    cfg: AppConfig,
    repos: Iterable[str] = (),
    email: str | None = None,
    api_token: str | None = None,
    status: PrStatus | None = None,
    base_url: str | None = None,
) -> bool:
    """Layer environment variables, then command-line values, onto `cfg`.

    The configuration is saved once if anything changed.

    Args:
        cfg: Configuration loaded from disk; mutated in place.
        repos: Repositories given on the command line as "workspace/repo".
        email: Account email from the command line.
        api_token: API token from the command line.
        status: Default status filter from the command line.
        base_url: Service base URL from the command line.

    Returns:
        True if the configuration changed (and was saved).

    Raises:
        InvalidRepoFormat: If a repository override is malformed.
        InvalidStatus: If `BITBUCKET_PR_STATUS` is not a known status.
        PersistenceError: If saving the changed configuration fails.
    """
    changed = False

    if (value := _read_env("BITBUCKET_EMAIL")) is not None:
        cfg.email = value
        changed = True
    if (value := _read_env("BITBUCKET_API_TOKEN")) is not None:
        cfg.api_token = value
        changed = True
    if (value := _read_env("BITBUCKET_PR_STATUS")) is not None:
        cfg.default_status = PrStatus.parse(value)
        changed = True
    if (value := _read_env("BITBUCKET_BASE_URL")) is not None:
        cfg.base_url = value
        changed = True
    if (value := _read_env("BITBUCKET_REPOS")) is not None:
        for ref in parse_repo_list(value):
            changed |= cfg.add_repo(ref)
    workspace, repo = _read_env("BITBUCKET_WORKSPACE"), _read_env("BITBUCKET_REPO")
    if workspace and repo:
        changed |= cfg.add_repo(RepoRef(workspace, repo))

    if email is not None:
        cfg.email = email
        changed = True
    if api_token is not None:
        cfg.api_token = api_token
        changed = True
    if status is not None:
        changed |= cfg.set_status(status)
    if base_url is not None and cfg.base_url != base_url:
        cfg.base_url = base_url
        changed = True
    for raw in repos:
        changed |= cfg.add_repo(RepoRef.parse(raw))

    if changed:
        save_config(cfg)
    return changed
