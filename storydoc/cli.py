"""CLI entrypoints for storydoc commands."""

from __future__ import annotations

import argparse
import getpass
import sys
from pathlib import Path

from .config import ConfigError, Credentials, credentials_exist, load_credentials, save_credentials
from .errors import StorydocError
from .logging import configure_logging
from .workflow import document_github, document_local


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_run_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--file-limits",
        type=int,
        default=None,
        help="Maximum number of modules to document in this run (default: 1).",
    )
    parser.add_argument(
        "--build-tool",
        default=None,
        help="Build tool used by the project (e.g. webpack, vite).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storydoc",
        description="Document React components with JSDoc, propTypes and Storybook stories.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log records to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    github_parser = subparsers.add_parser(
        "github",
        help="Clone a GitHub branch, document it and open a pull request.",
    )
    _add_verbose_option(github_parser, suppress_default=True)
    github_parser.add_argument("--owner", required=True, help="Repository owner.")
    github_parser.add_argument("--repo-name", required=True, help="Repository name.")
    github_parser.add_argument("--branch-name", required=True, help="Branch to document.")
    _add_run_options(github_parser)

    local_parser = subparsers.add_parser(
        "local",
        help="Document a local project in place.",
    )
    _add_verbose_option(local_parser, suppress_default=True)
    local_parser.add_argument(
        "--path",
        default=".",
        help="Path to the project (defaults to current directory).",
    )
    _add_run_options(local_parser)

    setup_parser = subparsers.add_parser(
        "setup",
        help="Store the GitHub token and OpenAI API key (one-time setup).",
    )
    _add_verbose_option(setup_parser, suppress_default=True)

    return parser


def _run_setup() -> Path:
    print("Please enter the required information to create the credentials file.")
    github_token = getpass.getpass("GitHub token: ").strip()
    openai_api_key = getpass.getpass("OpenAI API key: ").strip()
    return save_credentials(
        Credentials(github_token=github_token or None, openai_api_key=openai_api_key or None)
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for storydoc commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    if args.command == "setup":
        path = _run_setup()
        print(f"Credentials stored at {path}")
        return

    if not credentials_exist() and sys.stdin.isatty():
        _run_setup()
    try:
        credentials = load_credentials()
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")
    overrides = {"file_limits": args.file_limits, "build_tool": args.build_tool}

    if args.command == "github":
        if not credentials.github_token:
            parser.exit(1, "A GitHub token is required. Run `storydoc setup` first.\n")
        try:
            pr_url = document_github(
                owner=args.owner,
                repo_name=args.repo_name,
                branch_name=args.branch_name,
                credentials=credentials,
                overrides=overrides,
            )
        except (StorydocError, ConfigError) as exc:
            parser.exit(1, f"storydoc github failed: {exc}\nRun with --verbose for more details.\n")
        print(pr_url or "No components needed documentation; no pull request opened.")
    elif args.command == "local":
        try:
            summary = document_local(args.path, credentials=credentials, overrides=overrides)
        except (StorydocError, ConfigError) as exc:
            parser.exit(1, f"storydoc local failed: {exc}\nRun with --verbose for more details.\n")
        print(
            f"Documented {len(summary.materialized)} modules "
            f"({len(summary.skipped)} up to date, {len(summary.failed)} failed)"
        )
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


if __name__ == "__main__":
    main(sys.argv[1:])
