"""Parsers for clang-tidy output.

clang-tidy writes diagnostics to stdout and a handful of summary lines
("3 warnings generated.", "Suppressed 12 warnings ...") to stderr. The two
streams use different grammars, so each gets its own parser.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace

logger = logging.getLogger(__name__)

SUPPORTED_SEVERITIES = ("warning", "info", "error")

_DIGITS = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class Diagnostic:
    """One clang-tidy diagnostic, e.g. ``src/a.cpp:12:5: warning: use nullptr [modernize-use-nullptr]``."""

    file_name: str
    row: int
    column: int
    severity: str
    brief_message: str
    diagnostic_tag: str  # includes the surrounding brackets
    details: str = ""


@dataclass
class RunStatistics:
    warnings: int = 0
    errors: int = 0
    warnings_treated_as_errors: int = 0
    total_suppressed_warnings: int = 0
    non_user_code_warnings: int = 0
    no_lint_warnings: int = 0


def parse_diagnostic_header(line: str) -> Diagnostic | None:
    """Return a Diagnostic if ``line`` is a clang-tidy header line, else None.

    The header must split into exactly five ``:`` fields. Paths or messages
    containing a colon therefore never match and end up as detail lines.
    """
    parts = line.split(":")
    if len(parts) != 5:
        return None

    file_name, row, column, severity, message = parts
    severity = severity.lstrip()

    if not _DIGITS.fullmatch(row) or not _DIGITS.fullmatch(column):
        return None
    if severity not in SUPPORTED_SEVERITIES:
        return None

    bracket = message.find("[")
    if bracket == -1 or bracket == len(message) - 1 or len(message) < 3 or not message.endswith("]"):
        return None

    return Diagnostic(
        file_name=file_name,
        row=int(row),
        column=int(column),
        severity=severity,
        brief_message=message[:bracket],
        diagnostic_tag=message[bracket:],
    )


def parse_diagnostics(stdout: str) -> list[Diagnostic]:
    """Parse clang-tidy stdout into diagnostics, in output order.

    Lines that follow a header and are not headers themselves (the source
    excerpt, the caret line, notes) are collected into that diagnostic's
    ``details``. Anything before the first header is dropped.
    """
    diagnostics: list[Diagnostic] = []
    details: list[str] = []

    for line in stdout.splitlines():
        header = parse_diagnostic_header(line)
        if header is not None:
            if diagnostics:
                diagnostics[-1] = replace(diagnostics[-1], details="\n".join(details))
            diagnostics.append(header)
            details = []
            logger.debug(
                "Parsed diagnostic %s:%d:%d %s %s",
                header.file_name,
                header.row,
                header.column,
                header.severity,
                header.diagnostic_tag,
            )
            continue
        if diagnostics:
            details.append(line)

    if diagnostics:
        diagnostics[-1] = replace(diagnostics[-1], details="\n".join(details))

    logger.info("Parsed clang-tidy stdout, got %d diagnostic(s).", len(diagnostics))
    return diagnostics


# Each rule: (pattern, fields assigned from the capture groups in order, anchored).
_STATISTIC_RULES: list[tuple[re.Pattern[str], tuple[str, ...]]] = [
    (re.compile(r"^(\d+) warnings and (\d+) errors? generated\."), ("warnings", "errors")),
    (re.compile(r"^(\d+) warnings? generated\."), ("warnings",)),
    (re.compile(r"^(\d+) errors? generated\."), ("errors",)),
    (
        re.compile(r"Suppressed (\d+) warnings \((\d+) in non-user code\)\."),
        ("total_suppressed_warnings", "non_user_code_warnings"),
    ),
    (
        re.compile(r"Suppressed (\d+) warnings \((\d+) in non-user code, (\d+) NOLINT\)\."),
        ("total_suppressed_warnings", "non_user_code_warnings", "no_lint_warnings"),
    ),
    (re.compile(r"^(\d+) warnings treated as errors"), ("warnings_treated_as_errors",)),
]


def parse_statistics(stderr: str) -> RunStatistics:
    """Extract the summary counters clang-tidy prints on stderr.

    Every rule is tried on every line; a later match for the same counter
    overwrites an earlier one. No match at all is a valid, all-zero result.
    """
    stats = RunStatistics()
    for line in stderr.splitlines():
        for pattern, fields in _STATISTIC_RULES:
            match = pattern.search(line)
            if match is None:
                continue
            for name, value in zip(fields, match.groups()):
                setattr(stats, name, int(value))

    logger.debug(
        "clang-tidy statistics: %d warning(s), %d error(s), %d treated as errors, "
        "%d suppressed (%d non-user code, %d NOLINT)",
        stats.warnings,
        stats.errors,
        stats.warnings_treated_as_errors,
        stats.total_suppressed_warnings,
        stats.non_user_code_warnings,
        stats.no_lint_warnings,
    )
    return stats
