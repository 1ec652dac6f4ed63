"""run command — lint changed files and report the results."""

from __future__ import annotations

import click
import git
from github import GithubException
from rich.console import Console

from lintlens_core.config import ContextError, build_context, load_config, read_github_env
from lintlens_core.linter import run_lint

console = Console()


@click.command("run")
@click.option(
    "--log-level",
    type=click.Choice(["trace", "debug", "info", "error"], case_sensitive=False),
    default=None,
    help="Log verbosity. Defaults to info.",
)
@click.option("--target", default=None, help="Target (base) reference or commit to diff against.")
@click.option("--source", default=None, help="Source reference or commit. Local runs only.")
@click.option("--repo-path", default=None, help="Path to the git repository. Local runs only.")
@click.option("--repo", default=None, help="GitHub repository in owner/name format. Local runs only.")
@click.option("--token", default=None, help="GitHub token. Falls back to GITHUB_TOKEN, then the gh CLI.")
@click.option("--event-name", default=None, help="GitHub event name, e.g. pull_request. Local runs only.")
@click.option("--pr-number", type=int, default=None, help="Pull request number. Local runs only.")
@click.option(
    "--enable-step-summary/--disable-step-summary",
    default=None,
    help="Write the result to the GitHub Actions step summary. On by default in CI.",
)
@click.option(
    "--enable-comment-on-issue/--disable-comment-on-issue",
    default=None,
    help="Create or update the lintlens comment on the pull request.",
)
@click.option(
    "--enable-pull-request-review/--disable-pull-request-review",
    default=None,
    help="Post diagnostics as inline pull request review comments.",
)
@click.option("--clang-tidy/--no-clang-tidy", "clang_tidy", default=None, help="Enable clang-tidy.")
@click.option("--clang-format/--no-clang-format", "clang_format", default=None, help="Enable clang-format.")
@click.option("--clang-tidy-binary", default=None, help="clang-tidy executable.")
@click.option("--clang-format-binary", default=None, help="clang-format executable.")
@click.option(
    "--clang-tidy-fast-exit/--no-clang-tidy-fast-exit",
    default=None,
    help="Stop running clang-tidy at the first failing file.",
)
@click.option(
    "--clang-format-fast-exit/--no-clang-format-fast-exit",
    default=None,
    help="Stop running clang-format at the first failing file.",
)
@click.pass_context
def run_cmd(
    ctx,
    log_level: str | None,
    target: str | None,
    source: str | None,
    repo_path: str | None,
    repo: str | None,
    token: str | None,
    event_name: str | None,
    pr_number: int | None,
    enable_step_summary: bool | None,
    enable_comment_on_issue: bool | None,
    enable_pull_request_review: bool | None,
    clang_tidy: bool | None,
    clang_format: bool | None,
    clang_tidy_binary: str | None,
    clang_format_binary: str | None,
    clang_tidy_fast_exit: bool | None,
    clang_format_fast_exit: bool | None,
):
    """Lint the files changed between --target and the source revision.

    In GitHub Actions (GITHUB_ACTIONS=true) the repository, source commit,
    event and pull request number are read from the environment. Locally
    they must be passed with --repo-path, --source and --event-name.

    \b
    Exit status is 1 when clang-tidy fails on any file. clang-format
    failures are reported but do not change the exit status.
    """
    from lintlens_cli.auth import resolve_github_token
    from lintlens_cli.cli import configure_logging

    configure_logging(log_level or "info")

    config_path = (ctx.obj or {}).get("config_path", ".lintlens.yml")
    config = load_config(
        config_path,
        cli_overrides={
            "clang_tidy": {
                "enabled": clang_tidy,
                "binary": clang_tidy_binary,
                "fast_exit": clang_tidy_fast_exit,
            },
            "clang_format": {
                "enabled": clang_format,
                "binary": clang_format_binary,
                "fast_exit": clang_format_fast_exit,
            },
        },
    )

    if token is None and (enable_comment_on_issue or enable_pull_request_review):
        token = resolve_github_token()

    options = {
        "log_level": log_level,
        "target": target,
        "source": source,
        "repo_path": repo_path,
        "repo": repo,
        "token": token,
        "event_name": event_name,
        "pr_number": pr_number,
        "enable_step_summary": enable_step_summary,
        "enable_comment_on_issue": enable_comment_on_issue,
        "enable_pull_request_review": enable_pull_request_review,
    }
    try:
        run_context = build_context(options, read_github_env())
    except ContextError as e:
        raise click.UsageError(str(e))

    try:
        summary = run_lint(run_context, config)
    except GithubException as e:
        raise click.ClickException(f"GitHub API request failed: {e}")
    except git.GitCommandError as e:
        raise click.ClickException(f"Could not diff {run_context.target}..{run_context.source}: {e}")

    if summary.passed:
        console.print("[green]lintlens: all checks passed.[/green]")
    else:
        console.print("[red]lintlens: clang-tidy reported failures.[/red]")
    ctx.exit(summary.exit_code)
