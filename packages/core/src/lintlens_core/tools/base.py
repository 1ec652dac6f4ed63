"""Shared reporting contract for the linters lintlens drives.

Every tool follows the same lifecycle:
    scan()  → apply_to_single_file() per selected file  ← differs per tool
            → ToolRunReport (passed / failed / ignored, fast exit)
and then renders that report four ways: brief result, detail block for
comments and summaries, inline review comments, and action output numbers.

Subclasses implement running the tool on one file and rendering its detail
block. Everything else lives here so both tools aggregate identically.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, NamedTuple

from lintlens_core.diff import get_review_position

if TYPE_CHECKING:
    from lintlens_core.diagnostics import Diagnostic, RunStatistics
    from lintlens_core.diff import FilePatch
    from lintlens_core.replacements import Replacement

logger = logging.getLogger(__name__)


class MissingPatchError(RuntimeError):
    """A file failed a check but has no patch: the scan and the diff disagree."""


@dataclass(frozen=True)
class PerFileResult:
    file_path: str
    passed: bool
    diagnostics: tuple[Diagnostic, ...] = ()
    raw_stdout: str = ""
    raw_stderr: str = ""
    # clang-format only
    replacements: tuple[Replacement, ...] = ()
    formatted_source: str | None = None
    # clang-tidy only
    statistics: RunStatistics | None = None


@dataclass
class ToolRunReport:
    passed_files: dict[str, PerFileResult] = field(default_factory=dict)
    failed_files: dict[str, PerFileResult] = field(default_factory=dict)
    ignored_files: list[str] = field(default_factory=list)
    fast_exit_triggered: bool = False


@dataclass(frozen=True)
class ReviewComment:
    path: str
    position: int
    body: str

    def as_payload(self) -> dict:
        return {"path": self.path, "position": self.position, "body": self.body}


class BriefResult(NamedTuple):
    passed: bool
    passed_count: int
    failed_count: int
    ignored_count: int


def _same_file(reported: str, file: str) -> bool:
    """clang-tidy may report absolute paths; ``file`` is relative to the repository."""
    reported = reported.replace("\\", "/")
    return reported == file or reported.endswith("/" + file)


class BaseReporter(ABC):
    TOOL_NAME: str = ""
    # Key written to $GITHUB_OUTPUT with this tool's failed-file count.
    OUTPUT_KEY: str = ""

    def __init__(self, options: dict):
        self.options = options
        self.report = ToolRunReport()

    @property
    def binary(self) -> str:
        return self.options.get("binary") or self.TOOL_NAME

    # ------------------------------------------------------------------ #
    # Abstract — implement in each tool                                    #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def apply_to_single_file(self, repo_path: str, file: str) -> PerFileResult:
        """Run the tool on one file and classify the outcome."""

    @abstractmethod
    def render_details(self) -> str:
        """Return the collapsible Markdown block describing failed files."""

    # ------------------------------------------------------------------ #
    # Scan                                                                 #
    # ------------------------------------------------------------------ #

    def is_file_selected(self, file: str) -> bool:
        """Return True if ``file`` fully matches the tool's case-insensitive source regex."""
        pattern = self.options.get("source_iregex") or ".*"
        return re.fullmatch(pattern, file, re.IGNORECASE) is not None

    def scan(self, files, repo_path: str) -> ToolRunReport:
        """Run the tool over ``files`` in order, filling ``self.report``.

        With ``fast_exit`` set, the loop stops at the first failing file and
        the remaining files are left unexamined.
        """
        report = self.report
        for file in files:
            if not self.is_file_selected(file):
                logger.debug("file %s is ignored by %s", file, self.TOOL_NAME)
                report.ignored_files.append(file)
                continue

            result = self.apply_to_single_file(repo_path, file)
            if result.passed:
                logger.info("file: %s passes %s check.", file, self.binary)
                report.passed_files[file] = result
                continue

            logger.error("file: %s doesn't pass %s check.", file, self.binary)
            report.failed_files[file] = result
            if self.options.get("fast_exit", False):
                logger.info("%s fast exit", self.TOOL_NAME)
                report.fast_exit_triggered = True
                break

        logger.info(
            "%s: %d file(s) ignored, %d passed, %d failed",
            self.TOOL_NAME,
            len(report.ignored_files),
            len(report.passed_files),
            len(report.failed_files),
        )
        return report

    # ------------------------------------------------------------------ #
    # Rendering                                                            #
    # ------------------------------------------------------------------ #

    def brief_result(self) -> BriefResult:
        return BriefResult(
            passed=not self.report.failed_files,
            passed_count=len(self.report.passed_files),
            failed_count=len(self.report.failed_files),
            ignored_count=len(self.report.ignored_files),
        )

    def make_issue_comment(self) -> str:
        return self.render_details()

    def make_step_summary(self) -> str:
        return self.render_details() if self.report.failed_files else ""

    def output_variables(self) -> dict[str, int]:
        return {self.OUTPUT_KEY: len(self.report.failed_files)}

    def review_body(self, diagnostic: Diagnostic) -> str:
        return f"{diagnostic.brief_message.strip()} {diagnostic.diagnostic_tag}"

    def make_review_comments(self, patches: dict[str, FilePatch]) -> list[ReviewComment]:
        """Turn every mappable diagnostic of a failed file into an inline comment."""
        comments = []
        for file, result in self.report.failed_files.items():
            patch = patches.get(file)
            if patch is None:
                raise MissingPatchError(f"{file} failed {self.TOOL_NAME} but is not part of the diff")

            for diagnostic in result.diagnostics:
                if not _same_file(diagnostic.file_name, file):
                    # e.g. a warning inside an included header
                    logger.debug("Skipping diagnostic in %s while reviewing %s", diagnostic.file_name, file)
                    continue
                position = get_review_position(patch.hunks, diagnostic.row, diagnostic.column)
                if position is None:
                    logger.debug("Skipping %s:%d (not in any hunk)", file, diagnostic.row)
                    continue
                comments.append(ReviewComment(path=file, position=position, body=self.review_body(diagnostic)))
        return comments
