"""Core lint run orchestration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from rich.console import Console
from rich.table import Table

from lintlens_core.config import RunContext
from lintlens_core.diff import FilePatch, load_patches
from lintlens_core.gh.pull_request import BotComment, get_pull, get_repo, post_review
from lintlens_core.report import (
    REVIEW_BODY,
    append_to_file,
    collect_review_comments,
    render_action_output,
    render_brief_result,
    render_issue_comment,
)
from lintlens_core.tools.base import BaseReporter, ReviewComment
from lintlens_core.tools.clang_format import ClangFormatReporter
from lintlens_core.tools.clang_tidy import ClangTidyReporter

console = Console()
logger = logging.getLogger(__name__)


@dataclass
class LintSummary:
    """Result returned by run_lint — what the CLI needs to report and exit."""

    passed: bool
    changed_files: list[str] = field(default_factory=list)
    reporters: list[BaseReporter] = field(default_factory=list)
    review_comments: list[ReviewComment] = field(default_factory=list)
    comment_id: int | None = None

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1


def build_reporters(config: dict, ctx: RunContext) -> list[BaseReporter]:
    """Enabled tools in scan order: clang-format first, then clang-tidy."""
    reporters: list[BaseReporter] = []
    if config["clang_format"].get("enabled", True):
        reporters.append(
            ClangFormatReporter(config["clang_format"], needs_formatted_source=ctx.enable_pull_request_review)
        )
    if config["clang_tidy"].get("enabled", True):
        reporters.append(ClangTidyReporter(config["clang_tidy"]))
    return reporters


def is_run_passed(reporters: list[BaseReporter]) -> bool:
    """Only clang-tidy failures fail the run; formatting issues are reported but not fatal."""
    return all(r.brief_result().passed for r in reporters if isinstance(r, ClangTidyReporter))


def print_total_result(reporters: list[BaseReporter], changed: int) -> None:
    table = Table(title=f"lintlens: {changed} changed file(s)", show_header=True)
    table.add_column("Tool", style="bold")
    table.add_column("Passed", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Ignored", justify="right")
    table.add_column("Fast exit")
    for reporter in reporters:
        result = reporter.brief_result()
        failed = f"[red]{result.failed_count}[/red]" if result.failed_count else "0"
        table.add_row(
            reporter.TOOL_NAME,
            str(result.passed_count),
            failed,
            str(result.ignored_count),
            "yes" if reporter.report.fast_exit_triggered else "",
        )
    console.print(table)


def run_lint(
    ctx: RunContext,
    config: dict,
    patches: dict[str, FilePatch] | None = None,
    pull=None,
) -> LintSummary:
    """Run the full lint pipeline and return a LintSummary.

    ``patches`` and ``pull`` are looked up from ``ctx`` when not supplied.
    """
    if patches is None:
        patches = load_patches(ctx.repo_path, ctx.target, ctx.source)
    changed_files = list(patches)

    reporters = build_reporters(config, ctx)
    for reporter in reporters:
        console.print(f"Running [bold]{reporter.binary}[/bold] on {len(changed_files)} file(s)")
        reporter.scan(changed_files, ctx.repo_path)
    print_total_result(reporters, len(changed_files))

    if ctx.enable_step_summary:
        append_to_file(ctx.step_summary_path, render_brief_result(reporters))

    if pull is None and (ctx.enable_comment_on_issue or ctx.enable_pull_request_review):
        pull = get_pull(get_repo(ctx.repo, token=ctx.token), ctx.pr_number)

    comment_id = None
    if ctx.enable_comment_on_issue:
        bot_comment = BotComment(pull, config.get("bot_login", ""))
        bot_comment.fetch()
        comment_id = bot_comment.upsert(render_issue_comment(reporters))

    review_comments: list[ReviewComment] = []
    if ctx.enable_pull_request_review:
        review_comments = collect_review_comments(reporters, patches)
        if not review_comments:
            console.print("[green]No inline comments to post.[/green]")
        else:
            batch_limit = config.get("batch_limit", 60)
            payloads = [c.as_payload() for c in review_comments]
            for i in range(0, len(payloads), batch_limit):
                post_review(pull, payloads[i : i + batch_limit], REVIEW_BODY)
            console.print(f"[green]Review posted with {len(payloads)} comment(s).[/green]")

    if not ctx.use_on_local:
        if ctx.output_path:
            append_to_file(ctx.output_path, render_action_output(reporters))
        else:
            logger.warning("GITHUB_OUTPUT is not set; skipping action output.")

    return LintSummary(
        passed=is_run_passed(reporters),
        changed_files=changed_files,
        reporters=reporters,
        review_comments=review_comments,
        comment_id=comment_id,
    )
