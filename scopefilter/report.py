# scopefilter/report.py
"""
Filter result reporting.

Responsibilities:
- Render a deterministic, human readable summary of a filter run

This module does NOT:
- call git
- classify commits
"""

from __future__ import annotations

from typing import List, Sequence

from scopefilter.repo import Commit


def render_report(
    *,
    package_name: str,
    package_paths: Sequence[str],
    total_commits: int,
    selected_commits: Sequence[Commit],
    hash_len: int = 12,
) -> str:
    """
    Render a filter report as plain text.

    Raises:
        ValueError: if hash_len is invalid.
    """
    if hash_len <= 0:
        raise ValueError("hash_len must be a positive integer")

    lines: List[str] = []

    lines.append(f"Package: {package_name}")
    lines.append("Package paths: " + ", ".join(p if p else "<root>" for p in package_paths))
    lines.append(f"Total commits: {total_commits}")
    lines.append(f"Selected commits: {len(selected_commits)}")

    if not selected_commits:
        return "\n".join(lines)

    lines.append("")

    headers = ["idx", "hash", "files", "subject"]

    rows: List[List[str]] = []
    for c in selected_commits:
        rows.append(
            [
                str(c.index),
                c.hash[:hash_len],
                str(len(c.files or ())),
                c.subject,
            ]
        )

    lines.extend(_format_table(headers, rows))
    return "\n".join(lines)


def _format_table(headers: List[str], rows: List[List[str]]) -> List[str]:
    widths = [len(h) for h in headers]

    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def fmt_row(items: List[str]) -> str:
        return "  ".join(items[i].ljust(widths[i]) for i in range(len(items))).rstrip()

    lines: List[str] = []
    lines.append(fmt_row(headers))
    lines.append(fmt_row(["-" * w for w in widths]))

    for row in rows:
        lines.append(fmt_row(row))

    return lines
