from __future__ import annotations

import logging
from dataclasses import astuple, fields

from lintlens_core.diagnostics import RunStatistics, parse_diagnostics, parse_statistics
from lintlens_core.runner import run_command
from lintlens_core.tools.base import BaseReporter, PerFileResult

logger = logging.getLogger(__name__)

# (config key, flag) in command-line order. Keys in _SWITCHES are boolean flags; the rest render as ``flag=value``.
_OPTION_FLAGS = (
    ("database", "-p"),
    ("checks", "-checks"),
    ("allow_no_checks", "--allow-no-checks"),
    ("config", "--config"),
    ("config_file", "--config-file"),
    ("enable_check_profile", "--enable-check-profile"),
    ("header_filter", "--header-filter"),
    ("line_filter", "--line-filter"),
)
_SWITCHES = {"allow_no_checks", "enable_check_profile"}


class ClangTidyReporter(BaseReporter):
    TOOL_NAME = "clang-tidy"
    OUTPUT_KEY = "clang_tidy_failed_number"

    def build_args(self, file: str) -> list[str]:
        args = []
        for key, flag in _OPTION_FLAGS:
            value = self.options.get(key)
            if not value:
                continue
            args.append(flag if key in _SWITCHES else f"{flag}={value}")
        args.append(file)
        return args

    def apply_to_single_file(self, repo_path: str, file: str) -> PerFileResult:
        result = run_command(self.binary, self.build_args(file), cwd=repo_path)
        diagnostics = parse_diagnostics(result.stdout)
        statistics = parse_statistics(result.stderr)

        # A crash or a "warnings as errors" exit fails the file even without parsed diagnostics.
        passed = result.exit_code == 0 and not diagnostics
        if passed:
            logger.info("The final result of ran %s on %s is: PASS", self.binary, file)
        else:
            logger.error(
                "The final result of ran %s on %s is: FAIL, detailed information:\n%s",
                self.binary,
                file,
                result.stderr,
            )

        return PerFileResult(
            file_path=file,
            passed=passed,
            diagnostics=tuple(diagnostics),
            raw_stdout=result.stdout,
            raw_stderr=result.stderr,
            statistics=statistics,
        )

    def total_statistics(self) -> RunStatistics:
        """Sum the stderr counters over every file clang-tidy ran on."""
        total = RunStatistics()
        for result in [*self.report.passed_files.values(), *self.report.failed_files.values()]:
            if result.statistics is None:
                continue
            for f in fields(RunStatistics):
                setattr(total, f.name, getattr(total, f.name) + getattr(result.statistics, f.name))
        return total

    def render_details(self) -> str:
        failed = self.report.failed_files
        lines = [
            "<details>",
            f"<summary>{self.binary} reports: <strong>{len(failed)} fails</strong></summary>\n",
        ]
        stats = self.total_statistics()
        if any(astuple(stats)):
            lines.append(
                f"{stats.warnings} warning(s) and {stats.errors} error(s) generated, "
                f"{stats.warnings_treated_as_errors} treated as errors, "
                f"{stats.total_suppressed_warnings} suppressed "
                f"({stats.non_user_code_warnings} in non-user code, {stats.no_lint_warnings} NOLINT)\n"
            )
        for file, result in failed.items():
            if not result.diagnostics:
                lines.append(f"- **{file}:** failed without diagnostics")
                continue
            for diag in result.diagnostics:
                lines.append(f"- **{diag.file_name}:{diag.row}:{diag.column}:** {diag.severity}: {diag.diagnostic_tag}")
                lines.append(f"  > {diag.brief_message.strip()}")
        lines.append("\n</details>\n")
        return "\n".join(lines)
