from __future__ import annotations

import argparse
import sys

from . import __version__
from .config import PrStatus, apply_overrides, load_config
from .errors import InvalidStatus, MyPRsError
from .tui import MyPRsApp


def _status_arg(value: str) -> PrStatus:
    try:
        return PrStatus.parse(value)
    except InvalidStatus as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the `myprs` console script."""
    parser = argparse.ArgumentParser(prog="myprs", description="Bitbucket PR TUI for your authored PRs")
    parser.add_argument(
        "--repo",
        dest="repos",
        action="extend",
        nargs="+",
        default=[],
        metavar="WORKSPACE/REPO",
        help="Repository in workspace/repo format (repeatable)",
    )
    parser.add_argument("--email", help="Atlassian account email")
    parser.add_argument("--api-token", help="Bitbucket API token")
    parser.add_argument("--status", type=_status_arg, help="Default status: open, merged, declined or all")
    parser.add_argument("--base-url", help="Bitbucket API base URL")
    parser.add_argument("-v", "--version", action="version", version=f"myprs {__version__}")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the `myprs` console script.

    Loads the configuration, layers environment and command-line overrides
    on top of it, and launches the Textual TUI.

    Args:
        argv: Arguments to parse; defaults to `sys.argv[1:]`.

    Returns:
        None
    """
    args = build_parser().parse_args(argv)
    try:
        cfg = load_config()
        apply_overrides(
            cfg,
            repos=args.repos,
            email=args.email,
            api_token=args.api_token,
            status=args.status,
            base_url=args.base_url,
        )
    except MyPRsError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    MyPRsApp(cfg).run()
