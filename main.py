#!/usr/bin/env python3
"""scopefilter CLI.

Lists the commits in a range that touched one package of a monorepo.
Read only: never writes to the repository.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
import sys

from scopefilter.config import FileConfig, default_schema_path, load_config, load_settings
from scopefilter.errors import ScopeFilterError
from scopefilter.pipeline import CommitFilterPipeline
from scopefilter.repo import load_commit_history
from scopefilter.report import render_report


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scopefilter",
        description="Show only the commits that touched one package of a monorepo",
    )

    parser.add_argument(
        "--repo",
        required=True,
        help="Path to the git repository",
    )
    parser.add_argument(
        "--package-dir",
        default=None,
        help="Directory inside the package (defaults to --repo)",
    )
    parser.add_argument(
        "--rev-range",
        default=None,
        help="Revision range passed to git log, for example v1.2.0..HEAD",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to an optional YAML configuration file",
    )
    parser.add_argument(
        "--schema",
        default=str(default_schema_path()),
        help="Path to schema.json",
    )
    parser.add_argument(
        "--max-threads",
        type=int,
        default=None,
        help="Maximum concurrent changed-file queries (overrides SRM_MAX_THREADS)",
    )
    parser.add_argument(
        "--hash-len",
        type=int,
        default=12,
        help="Number of characters to show for commit hash",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log debug output to stderr",
    )

    return parser


async def _run(args: argparse.Namespace) -> str:
    repo_path = Path(args.repo).expanduser().resolve()
    package_dir = Path(args.package_dir).expanduser().resolve() if args.package_dir else repo_path

    file_config = FileConfig()
    if args.config:
        file_config = load_config(
            Path(args.config).expanduser().resolve(),
            Path(args.schema).expanduser().resolve(),
        )

    settings = load_settings(file_config=file_config, max_threads=args.max_threads)

    commits = await load_commit_history(repo_path, args.rev_range)
    pipeline = await CommitFilterPipeline.discover(package_dir, settings)
    selected = await pipeline.filter_to_package_commits(commits)

    return render_report(
        package_name=pipeline.package_name,
        package_paths=pipeline.package_paths,
        total_commits=len(commits),
        selected_commits=selected,
        hash_len=int(args.hash_len),
    )


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    if int(args.hash_len) <= 0:
        print("error: --hash-len must be a positive integer", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        report = asyncio.run(_run(args))
    except ScopeFilterError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    print(report)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
