from __future__ import annotations

from pathlib import Path

import pytest

import myprs.config as cfgmod

ENV_KEYS = (
    "BITBUCKET_EMAIL",
    "BITBUCKET_API_TOKEN",
    "BITBUCKET_PR_STATUS",
    "BITBUCKET_BASE_URL",
    "BITBUCKET_REPOS",
    "BITBUCKET_WORKSPACE",
    "BITBUCKET_REPO",
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the config file at a temp dir and clear Bitbucket env overrides."""
    conf_dir = tmp_path / ".config" / "myprs"
    conf_path = conf_dir / "config.json"
    monkeypatch.setattr(cfgmod, "CONFIG_DIR", conf_dir)
    monkeypatch.setattr(cfgmod, "CONFIG_PATH", conf_path)
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return conf_path
