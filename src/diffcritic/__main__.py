"""Command-line entry point.

Usage:
    python -m diffcritic [repo_path] [--base BRANCH] [--staged]
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

import structlog

from diffcritic.config import LOG_FORMATS, ReviewConfig
from diffcritic.logging_config import configure_logging
from diffcritic.review import GitDiffProvider, Orchestrator, ReviewError, default_critics

logger = structlog.get_logger(__name__)


def build_parser(defaults: ReviewConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="diffcritic",
        description="Review the changes on the current branch and print findings as JSON",
    )
    parser.add_argument(
        "repo_path",
        nargs="?",
        type=Path,
        default=defaults.repo_path,
        help="Path to the git working tree (default: current directory)",
    )
    parser.add_argument("--base", default=defaults.base_branch, help="Base branch to compare against")
    parser.add_argument("--staged", action="store_true", help="Review staged changes instead of the branch")
    parser.add_argument("--context", type=int, default=defaults.context_lines, help="Context lines per patch")
    parser.add_argument("--max-lines", type=int, default=defaults.max_changed_lines)
    parser.add_argument("--max-files", type=int, default=defaults.max_changed_files)
    parser.add_argument("--log-level", default=defaults.log_level)
    parser.add_argument("--log-format", choices=LOG_FORMATS, default=defaults.log_format)
    return parser


async def run_review(config: ReviewConfig, staged: bool = False) -> dict:
    orchestrator = Orchestrator(GitDiffProvider(), default_critics(config))
    result = await orchestrator.run(
        config.repo_path,
        config.base_branch,
        staged=staged,
        context_lines=config.context_lines,
    )
    return result.to_dict()


def main(argv: list[str] | None = None) -> int:
    try:
        defaults = ReviewConfig.from_env()
    except ValueError as e:
        print(f"diffcritic: {e}", file=sys.stderr)
        return 2

    args = build_parser(defaults).parse_args(argv)
    config = ReviewConfig(
        repo_path=args.repo_path,
        base_branch=args.base,
        context_lines=args.context,
        max_changed_lines=args.max_lines,
        max_changed_files=args.max_files,
        log_level=args.log_level,
        log_format=args.log_format,
    )
    try:
        configure_logging(config.log_level, config.log_format)
    except ValueError as e:
        print(f"diffcritic: {e}", file=sys.stderr)
        return 2

    try:
        output = asyncio.run(run_review(config, staged=args.staged))
    except (ReviewError, ValueError) as e:
        logger.error("review_failed", error=str(e))
        print(f"diffcritic: {e}", file=sys.stderr)
        return 1

    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
