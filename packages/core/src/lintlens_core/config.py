from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

import yaml

from lintlens_core.gh.pull_request import parse_pr_number

logger = logging.getLogger(__name__)

_CPP_SOURCE_IREGEX = r".*\.(c|cc|cpp|cxx|c\+\+|h|hh|hpp|hxx|h\+\+|inl|ipp|tpp|m|mm|cu|cuh)"

DEFAULT_CONFIG: dict = {
    "bot_login": "github-actions[bot]",  # author of the issue comment lintlens updates in place
    "batch_limit": 60,  # inline comments per posted review
    "clang_format": {
        "enabled": True,
        "binary": "clang-format",
        "fast_exit": False,
        "source_iregex": _CPP_SOURCE_IREGEX,
    },
    "clang_tidy": {
        "enabled": True,
        "binary": "clang-tidy",
        "fast_exit": False,
        "source_iregex": _CPP_SOURCE_IREGEX,
        "checks": "",
        "config": "",
        "config_file": "",
        "database": "",
        "header_filter": "",
        "line_filter": "",
        "allow_no_checks": False,
        "enable_check_profile": False,
    },
}

TOOL_SECTIONS = ("clang_format", "clang_tidy")

SUPPORTED_LOG_LEVELS = ("trace", "debug", "info", "error")

EVENT_PUSH = "push"
EVENT_PULL_REQUEST = "pull_request"
EVENT_PULL_REQUEST_TARGET = "pull_request_target"
ALL_EVENTS = (EVENT_PUSH, EVENT_PULL_REQUEST, EVENT_PULL_REQUEST_TARGET)
EVENTS_WITH_PR_NUMBER = (EVENT_PULL_REQUEST, EVENT_PULL_REQUEST_TARGET)


class ContextError(ValueError):
    """Invalid combination of run options."""


def load_config(config_path: str = ".lintlens.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .lintlens.yml in the current directory
      3. CLI argument overrides

    Tool sections are merged key by key, so a file that only sets
    ``clang_tidy.checks`` keeps every other clang-tidy default.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        _merge(config, file_config)

    if cli_overrides:
        _merge(config, cli_overrides)

    return config


def _merge(config: dict, overrides: dict) -> None:
    for key, value in overrides.items():
        if value is None:
            continue
        if key in TOOL_SECTIONS and isinstance(value, dict):
            _merge(config[key], value)
        else:
            config[key] = value


@dataclass(frozen=True)
class GithubEnv:
    """Snapshot of the GitHub Actions environment, read once at startup."""

    actions: bool = False
    repository: str = ""
    token: str = ""
    event_name: str = ""
    event_path: str = ""
    base_ref: str = ""
    head_ref: str = ""
    ref: str = ""
    sha: str = ""
    workspace: str = ""
    step_summary: str = ""
    output: str = ""


def read_github_env(environ: Optional[Mapping[str, str]] = None) -> GithubEnv:
    env = os.environ if environ is None else environ
    return GithubEnv(
        actions=env.get("GITHUB_ACTIONS") == "true",
        repository=env.get("GITHUB_REPOSITORY", ""),
        token=env.get("GITHUB_TOKEN", ""),
        event_name=env.get("GITHUB_EVENT_NAME", ""),
        event_path=env.get("GITHUB_EVENT_PATH", ""),
        base_ref=env.get("GITHUB_BASE_REF", ""),
        head_ref=env.get("GITHUB_HEAD_REF", ""),
        ref=env.get("GITHUB_REF", ""),
        sha=env.get("GITHUB_SHA", ""),
        workspace=env.get("GITHUB_WORKSPACE", ""),
        step_summary=env.get("GITHUB_STEP_SUMMARY", ""),
        output=env.get("GITHUB_OUTPUT", ""),
    )


@dataclass(frozen=True)
class RunContext:
    """Everything that identifies one lint run. Built once, passed everywhere."""

    use_on_local: bool
    target: str
    source: str
    repo_path: str
    event_name: str
    log_level: str = "info"
    repo: str = ""
    token: str = ""
    pr_number: int | None = None
    enable_step_summary: bool = False
    enable_comment_on_issue: bool = False
    enable_pull_request_review: bool = False
    step_summary_path: str = ""
    output_path: str = ""


def _must_specify(condition: str, options: dict, names: tuple[str, ...]) -> None:
    for name in names:
        if options.get(name) is None:
            raise ContextError(f"must specify {name} when {condition}")


def _must_not_specify(condition: str, options: dict, names: tuple[str, ...]) -> None:
    for name in names:
        if options.get(name) is not None:
            raise ContextError(f"must not specify {name} when {condition}")


def build_context(options: dict, env: GithubEnv) -> RunContext:
    """Validate CLI options against where lintlens runs and build the RunContext.

    On GitHub Actions the repository identity comes from the environment and
    must not be passed again; locally it must be passed explicitly.
    """
    log_level = (options.get("log_level") or "info").lower()
    if log_level not in SUPPORTED_LOG_LEVELS:
        raise ContextError(f"unsupported log level: {log_level}")

    _must_specify("use lintlens on local or CI", options, ("target",))

    comment = bool(options.get("enable_comment_on_issue"))
    review = bool(options.get("enable_pull_request_review"))

    if env.actions:
        _must_not_specify("use lintlens on CI", options, ("repo_path", "repo", "source", "event_name", "pr_number"))
        pr_number = None
        if env.event_name in EVENTS_WITH_PR_NUMBER:
            try:
                pr_number = parse_pr_number(env.ref)
            except ValueError as e:
                raise ContextError(str(e)) from e
        step_summary = options.get("enable_step_summary")
        ctx = RunContext(
            use_on_local=False,
            log_level=log_level,
            target=options["target"],
            source=env.sha,
            repo_path=env.workspace,
            event_name=env.event_name,
            repo=env.repository,
            token=options.get("token") or env.token,
            pr_number=pr_number,
            enable_step_summary=True if step_summary is None else bool(step_summary),
            enable_comment_on_issue=comment,
            enable_pull_request_review=review,
            step_summary_path=env.step_summary,
            output_path=env.output,
        )
    else:
        _must_specify("use lintlens on local", options, ("repo_path", "source", "event_name"))
        _must_not_specify("use lintlens on local", options, ("enable_step_summary",))

        event_name = options["event_name"]
        if event_name not in ALL_EVENTS:
            raise ContextError(f"unsupported event name: {event_name}")
        if comment or review:
            _must_specify("use lintlens on local and interact with GitHub", options, ("token", "repo"))
        if options.get("pr_number") is not None and event_name not in EVENTS_WITH_PR_NUMBER:
            raise ContextError(f"event: {event_name} doesn't support pull-request-number option")

        ctx = RunContext(
            use_on_local=True,
            log_level=log_level,
            target=options["target"],
            source=options["source"],
            repo_path=options["repo_path"],
            event_name=event_name,
            repo=options.get("repo") or "",
            token=options.get("token") or "",
            pr_number=options.get("pr_number"),
            enable_comment_on_issue=comment,
            enable_pull_request_review=review,
        )

    if (ctx.enable_comment_on_issue or ctx.enable_pull_request_review) and ctx.pr_number is None:
        raise ContextError("commenting on an issue or reviewing a pull request requires a pull request number")
    if ctx.enable_step_summary and not ctx.step_summary_path:
        raise ContextError("step summary is enabled but GITHUB_STEP_SUMMARY is not set")
    return ctx
