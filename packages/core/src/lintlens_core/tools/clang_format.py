from __future__ import annotations

import difflib
import logging
from pathlib import Path

from lintlens_core.diagnostics import Diagnostic
from lintlens_core.replacements import ReplacementsParseError, line_lengths, offset_to_row_col, parse_replacements_xml
from lintlens_core.runner import run_command
from lintlens_core.tools.base import BaseReporter, PerFileResult

logger = logging.getLogger(__name__)

_BRIEF = "code should be clang-formatted"
_TAG = "[clang-format]"


def line_suggestions(original: str, formatted: str) -> dict[int, str]:
    """Map a 1-based original row to the formatted text that replaces it.

    Only changed blocks covering exactly one original line are kept, since a
    suggestion on a single-line review comment replaces that line and no more.
    """
    before = original.split("\n")
    after = formatted.split("\n")
    suggestions = {}
    matcher = difflib.SequenceMatcher(None, before, after, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "replace" and i2 - i1 == 1:
            suggestions[i1 + 1] = "\n".join(after[j1:j2])
    return suggestions


class ClangFormatReporter(BaseReporter):
    TOOL_NAME = "clang-format"
    OUTPUT_KEY = "clang_format_failed_number"

    def __init__(self, options: dict, needs_formatted_source: bool = False):
        super().__init__(options)
        # Set when review comments will carry suggestions built from the formatted body.
        self.needs_formatted_source = needs_formatted_source

    def apply_to_single_file(self, repo_path: str, file: str) -> PerFileResult:
        xml_res = run_command(self.binary, ["--output-replacements-xml", file], cwd=repo_path)
        if xml_res.exit_code != 0:
            return PerFileResult(file_path=file, passed=False, raw_stdout=xml_res.stdout, raw_stderr=xml_res.stderr)

        try:
            replacements = parse_replacements_xml(xml_res.stdout)
        except ReplacementsParseError as e:
            logger.error("%s produced unreadable output for %s: %s", self.binary, file, e)
            return PerFileResult(file_path=file, passed=False, raw_stdout=xml_res.stdout, raw_stderr=str(e))

        passed = not replacements
        stderr = xml_res.stderr
        formatted_source = None
        if self.needs_formatted_source:
            logger.debug("Execute %s again to get formatted source code.", self.binary)
            code_res = run_command(self.binary, [file], cwd=repo_path)
            if code_res.exit_code != 0:
                passed = False
                stderr = code_res.stderr
            else:
                formatted_source = code_res.stdout

        return PerFileResult(
            file_path=file,
            passed=passed,
            diagnostics=tuple(self._locate(repo_path, file, replacements, formatted_source)),
            raw_stdout=xml_res.stdout,
            raw_stderr=stderr,
            replacements=tuple(replacements),
            formatted_source=formatted_source,
        )

    def _locate(self, repo_path: str, file: str, replacements, formatted_source: str | None) -> list[Diagnostic]:
        """One diagnostic per row touched by a replacement, at the row's first replaced column.

        With a formatted body available, ``details`` holds the formatted text for that row.
        """
        if not replacements:
            return []
        try:
            content = (Path(repo_path) / file).read_bytes()
        except OSError as e:
            logger.warning("Could not read %s to locate replacements: %s", file, e)
            return []

        lengths = line_lengths(content)
        suggestions = {}
        if formatted_source is not None:
            suggestions = line_suggestions(content.decode("utf-8", "replace"), formatted_source)

        diagnostics = {}
        for replacement in replacements:
            location = offset_to_row_col(lengths, replacement.offset)
            if location is None:
                logger.debug("Replacement offset %d is past the end of %s", replacement.offset, file)
                continue
            row, column = location
            if row in diagnostics:
                continue
            diagnostics[row] = Diagnostic(
                file_name=file,
                row=row,
                column=column,
                severity="warning",
                brief_message=_BRIEF,
                diagnostic_tag=_TAG,
                details=suggestions.get(row, ""),
            )
        return sorted(diagnostics.values(), key=lambda d: d.row)

    def review_body(self, diagnostic: Diagnostic) -> str:
        body = super().review_body(diagnostic)
        if not diagnostic.details:
            return body
        return f"{body}\n```suggestion\n{diagnostic.details}\n```"

    def render_details(self) -> str:
        failed = self.report.failed_files
        lines = [
            "<details>",
            f"<summary>{self.binary} reports: <strong>{len(failed)} fails</strong></summary>\n",
        ]
        for file, result in failed.items():
            rows = sorted({d.row for d in result.diagnostics})
            if rows:
                lines.append(f"- {file} (lines {', '.join(str(r) for r in rows)})")
            else:
                lines.append(f"- {file}")
        lines.append("\n</details>\n")
        return "\n".join(lines)
