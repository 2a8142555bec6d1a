from __future__ import annotations

import webbrowser

import pytest
from fakes import FakeClient, make_config, make_pr

from myprs.config import AppConfig, PrStatus, RepoRef
from myprs.errors import PersistenceError
from myprs.interpreter import CommandInterpreter
from myprs.state import AppState


class SaveSpy:
    def __init__(self, state: AppState | None = None, fail: bool = False) -> None:
        self.saved: list[list[str]] = []
        self.state = state
        self.fail = fail
        self.logs_at_save: list[int] = []

    def __call__(self, cfg: AppConfig) -> None:
        if self.state is not None:
            self.logs_at_save.append(len(self.state.logs))
        if self.fail:
            raise PersistenceError("failed to write config at /nowhere: denied")
        self.saved.append([str(r) for r in cfg.repos])


def _interp(
    cfg: AppConfig | None = None,
    client: FakeClient | None = None,
    fail_save: bool = False,
    open_url=lambda url: True,
) -> tuple[CommandInterpreter, AppState, SaveSpy, FakeClient]:
    state = AppState.from_config(cfg if cfg is not None else make_config())
    client = client or FakeClient()
    save = SaveSpy(state, fail=fail_save)
    return CommandInterpreter(state, client.factory, save, open_url), state, save, client


def test_non_command_input_logs_hint() -> None:
    interp, state, save, _ = _interp()
    interp.execute("hello")
    assert state.logs == ["Commands must start with '/'. Try /help."]
    assert save.saved == []


def test_help_and_unknown_and_quit() -> None:
    interp, state, _, _ = _interp()
    interp.execute("/help")
    assert len(state.logs) == 3
    assert state.logs[0].startswith("Commands: /repo add")
    interp.execute("/HELP")
    assert state.logs[-1] == "Unknown command. Try /help."
    assert state.should_quit is False
    interp.execute("/quit")
    assert state.should_quit is True


def test_repo_add_then_rm_restores_tracked_set() -> None:
    interp, state, save, _ = _interp()
    interp.execute("/repo add teamx/app1")
    interp.execute("/repo add teamx/app1")
    interp.execute("/repo rm teamx/app1")
    interp.execute("/repo remove teamx/app1")

    assert state.config.repos == []
    assert state.logs == [
        "Added repo teamx/app1",
        "Repo teamx/app1 already exists",
        "Removed repo teamx/app1",
        "Repo teamx/app1 not found",
    ]
    assert save.saved == [["teamx/app1"], []]


def test_bare_repo_argument_is_an_add_alias() -> None:
    interp, state, save, _ = _interp()
    interp.execute("/repo teamx/app2")
    assert state.config.repos == [RepoRef("teamx", "app2")]
    assert state.logs == ["Added repo teamx/app2"]


def test_persist_happens_before_success_log() -> None:
    interp, state, save, _ = _interp()
    interp.execute("/repo add teamx/app1")
    assert save.logs_at_save == [0]
    assert len(state.logs) == 1


@pytest.mark.parametrize(
    ("command", "message"),
    [
        ("/repo", "Command failed: usage: /repo add <workspace>/<repo> | /repo rm <workspace>/<repo>"),
        ("/repo add", "Command failed: usage: /repo add <workspace>/<repo>"),
        ("/repo rm", "Command failed: usage: /repo rm <workspace>/<repo>"),
        ("/status", "Command failed: usage: /status <open|merged|declined|all>"),
        ("/repo add nope", "Command failed: repo must be in the form workspace/repo"),
        ("/repo a/b/c", "Command failed: repo must be in the form workspace/repo"),
        ("/status closed", "Command failed: invalid status 'closed'. expected: open|merged|declined|all"),
    ],
)
def test_malformed_arguments_log_single_failure_line(command: str, message: str) -> None:
    interp, state, save, client = _interp()
    interp.execute(command)
    assert state.logs == [message]
    assert save.saved == []
    assert client.identity_calls == 0


def test_persistence_failure_keeps_in_memory_change() -> None:
    interp, state, _, _ = _interp(fail_save=True)
    interp.execute("/repo add teamx/app1")
    assert state.config.repos == [RepoRef("teamx", "app1")]
    assert state.logs == ["Command failed: failed to write config at /nowhere: denied"]


def test_list_repos_preserves_insertion_order() -> None:
    interp, state, _, _ = _interp()
    interp.execute("/repos")
    assert state.logs == ["No repos configured. Add one with /repo add <workspace>/<repo>."]
    state.logs.clear()
    state.config.repos = [RepoRef("z", "last"), RepoRef("a", "first")]
    interp.execute("/repos")
    assert state.logs == ["Configured repos:", "- z/last", "- a/first"]


def test_status_merged_persists_and_refreshes_with_merged_filter() -> None:
    cfg = make_config("team/a", "team/b", "team/c")
    client = FakeClient({"team/a": [make_pr("team/a", 1, state="MERGED")]})
    interp, state, save, _ = _interp(cfg, client)

    interp.execute("/status MERGED")

    assert state.status_filter is PrStatus.MERGED
    assert state.config.default_status is PrStatus.MERGED
    assert len(save.saved) == 1
    assert [c[2] for c in client.calls] == [PrStatus.MERGED] * 3
    assert state.logs == [
        "Status filter set to merged. Refreshing...",
        "Loaded 1 PR(s) with status 'merged' across 3 repo(s)",
    ]


def test_status_unchanged_does_not_persist() -> None:
    interp, state, save, _ = _interp(make_config("team/a"))
    interp.execute("/status open")
    assert save.saved == []
    assert state.logs[0] == "Status filter set to open. Refreshing..."


def test_refresh_preconditions_are_logged_not_raised() -> None:
    interp, state, _, client = _interp(make_config("team/a", credentials=False))
    assert interp.refresh() is None
    assert state.logs == ["Missing credentials. Set BITBUCKET_EMAIL and BITBUCKET_API_TOKEN."]

    interp, state, _, client = _interp(make_config())
    interp.execute("/refresh")
    assert state.logs == ["No repos configured. Add repos via /repo add <workspace>/<repo>."]
    assert client.identity_calls == 0


def test_refresh_logs_each_failed_repo_then_summary() -> None:
    client = FakeClient({"team/a": [make_pr("team/a", 1)]}, failing=("team/x",))
    interp, state, _, _ = _interp(make_config("team/a", "team/x"), client)
    state.selection.index = 5

    report = interp.refresh()

    assert report is not None and report.failed_count == 1
    assert state.selection.index == 0
    assert state.logs == [
        "Failed loading team/x: Bitbucket pull request API for team/x returned HTTP 404",
        "Loaded 1 PR(s) with status 'open' across 2 repo(s)",
        "1 repo(s) failed during refresh",
    ]


def test_search_by_id_then_clear_restores_view() -> None:
    prs = [make_pr("team/a", 101, title="alpha"), make_pr("team/a", 202, title="beta"), make_pr("team/a", 303)]
    interp, state, _, _ = _interp(make_config("team/a"), FakeClient({"team/a": prs}))
    interp.refresh()
    state.logs.clear()

    interp.execute("/search 202")
    assert [p.id for p in state.pull_requests] == [202]
    assert state.logs[-1] == "Search set to '202'. 1 matching PR(s)."

    interp.execute("/search CLEAR")
    assert len(state.pull_requests) == 3
    assert state.logs[-1] == "Search cleared."

    interp.execute("/search beta")
    interp.execute("/search")
    assert state.aggregate.search_query is None


def test_search_clamps_selection() -> None:
    prs = [make_pr("team/a", 1, title="x"), make_pr("team/a", 2, title="y"), make_pr("team/a", 3, title="target")]
    interp, state, _, _ = _interp(make_config("team/a"), FakeClient({"team/a": prs}))
    interp.refresh()
    state.selection.index = 2

    interp.execute("/search target")

    assert len(state.pull_requests) == 1
    assert state.selection.index == 0


def test_submit_clears_search_before_other_commands() -> None:
    prs = [make_pr("team/a", 1, title="login"), make_pr("team/a", 2, title="docs")]
    interp, state, _, _ = _interp(make_config("team/a"), FakeClient({"team/a": prs}))
    interp.refresh()
    state.set_input("/search login")
    interp.submit()
    assert len(state.pull_requests) == 1

    state.set_input("/repos")
    interp.submit()

    assert state.aggregate.search_query is None
    assert len(state.pull_requests) == 2
    assert state.logs[-3:] == ["Search cleared due to non-search command.", "Configured repos:", "- team/a"]
    assert state.input == ""


def test_submit_search_replaces_active_search_without_auto_clear() -> None:
    prs = [make_pr("team/a", 1, title="login"), make_pr("team/a", 2, title="docs")]
    interp, state, _, _ = _interp(make_config("team/a"), FakeClient({"team/a": prs}))
    interp.refresh()
    state.set_input("/search login")
    interp.submit()

    state.set_input("/search docs")
    interp.submit()

    assert "Search cleared due to non-search command." not in state.logs
    assert state.aggregate.search_query == "docs"
    assert [pr.id for pr in state.pull_requests] == [2]
    assert state.logs[-1] == "Search set to 'docs'. 1 matching PR(s)."


def test_submit_completes_partial_command_instead_of_running_it() -> None:
    interp, state, _, _ = _interp()
    state.set_input("/q")
    interp.submit()
    assert state.input == "/quit"
    assert state.should_quit is False
    interp.submit()
    assert state.should_quit is True


def test_submit_empty_opens_selected_pr() -> None:
    opened: list[str] = []
    prs = [make_pr("team/a", 1, "2024-01-01"), make_pr("team/a", 2, "2024-02-01")]
    interp, state, _, _ = _interp(
        make_config("team/a"), FakeClient({"team/a": prs}), open_url=lambda url: opened.append(url) or True
    )
    interp.submit()
    assert opened == []
    assert state.logs == ["No pull request selected."]

    interp.refresh()
    state.selection.move_down(len(state.pull_requests))
    state.set_input("   ")
    interp.submit()

    assert opened == ["https://bitbucket.org/team/a/pull-requests/1"]
    assert state.logs[-1] == "Opened team/a PR #1 in browser."


def test_open_selected_with_empty_view_logs_no_selection() -> None:
    opened: list[str] = []
    interp, state, _, _ = _interp(open_url=lambda url: opened.append(url) or True)
    interp.open_selected()
    assert opened == []
    assert state.logs == ["No pull request selected."]


def test_browser_failures_are_logged() -> None:
    def broken(url: str) -> bool:
        raise webbrowser.Error("no runnable browser")

    interp, state, _, _ = _interp(make_config("team/a"), FakeClient({"team/a": [make_pr("team/a", 1)]}), open_url=broken)
    interp.refresh()
    interp.open_selected()
    assert state.logs[-1] == "Command failed: failed to open browser: no runnable browser"

    interp._open_url = lambda url: False
    interp.open_selected()
    assert state.logs[-1].startswith("Command failed: failed to open browser for https://")
