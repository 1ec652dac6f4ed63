"""Markdown and key=value renderings of a finished lint run."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lintlens_core.diff import FilePatch
    from lintlens_core.tools.base import BaseReporter, ReviewComment

logger = logging.getLogger(__name__)

TITLE = "# The lintlens Result\n"
HINT_PASS = ":rocket: All checks on all file passed."
HINT_FAIL = ":warning: Some files didn't pass the lintlens checks\n"
PASS_BANNER = TITLE + HINT_PASS

ISSUE_COMMENT_HEADER = "# lintlens results:\n"
REVIEW_BODY = "lintlens suggestion"

# Every key is always written so downstream steps can rely on it.
_OUTPUT_KEYS = ("clang_tidy_failed_number", "clang_format_failed_number")


def all_passed(reporters: list[BaseReporter]) -> bool:
    return all(reporter.brief_result().passed for reporter in reporters)


def render_brief_result(reporters: list[BaseReporter]) -> str:
    """Pass banner, or fail banner followed by each failing tool's details."""
    if all_passed(reporters):
        return PASS_BANNER
    details = "".join(reporter.make_step_summary() for reporter in reporters)
    return TITLE + HINT_FAIL + details


def render_issue_comment(reporters: list[BaseReporter]) -> str:
    """Body of the single bot comment: per-tool counts table, then details."""
    lines = [
        ISSUE_COMMENT_HEADER,
        "| tool name | passed | failed | ignored |",
        "|-----------|--------|--------|---------|",
    ]
    for reporter in reporters:
        result = reporter.brief_result()
        lines.append(
            f"| {reporter.TOOL_NAME} | {result.passed_count} | {result.failed_count} | {result.ignored_count} |"
        )
    lines.append("")
    for reporter in reporters:
        lines.append(reporter.make_issue_comment())
    return "\n".join(lines)


def collect_review_comments(reporters: list[BaseReporter], patches: dict[str, FilePatch]) -> list[ReviewComment]:
    comments = []
    for reporter in reporters:
        comments.extend(reporter.make_review_comments(patches))
    logger.info("Prepared %d review comment(s).", len(comments))
    return comments


def render_action_output(reporters: list[BaseReporter]) -> str:
    """``key=value`` lines for $GITHUB_OUTPUT: total failed plus one count per tool."""
    counts = {key: 0 for key in _OUTPUT_KEYS}
    for reporter in reporters:
        counts.update(reporter.output_variables())
    lines = [f"total_failed={sum(counts.values())}"]
    lines.extend(f"{key}={value}" for key, value in counts.items())
    return "\n".join(lines) + "\n"


def append_to_file(path: str, content: str) -> None:
    """Append to a GitHub Actions file command target ($GITHUB_STEP_SUMMARY, $GITHUB_OUTPUT)."""
    with open(path, "a", encoding="utf-8") as f:
        f.write(content)
