"""Tests for the lint run orchestration: run_lint and exit status policy."""

import copy
from unittest.mock import MagicMock

import pytest

from lintlens_core.config import DEFAULT_CONFIG, RunContext
from lintlens_core.diff import DiffHunk, FilePatch
from lintlens_core.linter import LintSummary, build_reporters, is_run_passed, run_lint
from lintlens_core.runner import CommandResult
from lintlens_core.tools.base import PerFileResult
from lintlens_core.tools.clang_format import ClangFormatReporter
from lintlens_core.tools.clang_tidy import ClangTidyReporter

EMPTY_XML = "<replacements xml:space='preserve' incomplete_format='false'></replacements>"
TIDY_FAIL = CommandResult(1, "src/a.cpp:2:1: warning: bad [bugprone-x]\n", "1 warning generated.\n")
TIDY_PASS = CommandResult(0, "", "")


def _patches():
    hunk = DiffHunk(header="@@ -1,3 +1,4 @@", old_start=1, old_lines=3, new_start=1, new_lines=4, num_lines=4)
    return {
        "src/a.cpp": FilePatch(path="src/a.cpp", hunks=(hunk,)),
        "docs/readme.md": FilePatch(path="docs/readme.md", hunks=(hunk,)),
    }


def _ctx(tmp_path, **overrides):
    values = dict(
        use_on_local=False,
        target="main",
        source="abc",
        repo_path=str(tmp_path),
        event_name="pull_request",
        repo="owner/repo",
        token="tok",
        pr_number=7,
        step_summary_path=str(tmp_path / "summary.md"),
        output_path=str(tmp_path / "output"),
    )
    values.update(overrides)
    return RunContext(**values)


def _config(**overrides):
    config = copy.deepcopy(DEFAULT_CONFIG)
    config.update(overrides)
    return config


@pytest.fixture
def tools(mocker):
    """Patch both tool runners: clang-format passes, clang-tidy fails by default."""
    fmt = mocker.patch("lintlens_core.tools.clang_format.run_command", return_value=CommandResult(0, EMPTY_XML, ""))
    tidy = mocker.patch("lintlens_core.tools.clang_tidy.run_command", return_value=TIDY_FAIL)
    return fmt, tidy


class TestBuildReporters:
    def test_format_runs_before_tidy(self, tmp_path):
        reporters = build_reporters(_config(), _ctx(tmp_path))
        assert [type(r) for r in reporters] == [ClangFormatReporter, ClangTidyReporter]

    def test_disabled_tool_is_skipped(self, tmp_path):
        config = _config()
        config["clang_format"]["enabled"] = False
        assert [r.TOOL_NAME for r in build_reporters(config, _ctx(tmp_path))] == ["clang-tidy"]

    def test_formatted_source_requested_only_for_reviews(self, tmp_path):
        plain = build_reporters(_config(), _ctx(tmp_path))[0]
        review = build_reporters(_config(), _ctx(tmp_path, enable_pull_request_review=True))[0]
        assert plain.needs_formatted_source is False
        assert review.needs_formatted_source is True


class TestIsRunPassed:
    def test_format_failure_does_not_fail_run(self):
        fmt = ClangFormatReporter({})
        fmt.report.failed_files["a.cpp"] = PerFileResult(file_path="a.cpp", passed=False)
        assert is_run_passed([fmt, ClangTidyReporter({})]) is True

    def test_tidy_failure_fails_run(self):
        tidy = ClangTidyReporter({})
        tidy.report.failed_files["a.cpp"] = PerFileResult(file_path="a.cpp", passed=False)
        assert is_run_passed([ClangFormatReporter({}), tidy]) is False

    def test_exit_code(self):
        assert LintSummary(passed=True).exit_code == 0
        assert LintSummary(passed=False).exit_code == 1


class TestRunLint:
    def test_ci_run_writes_summary_and_output(self, tmp_path, tools):
        ctx = _ctx(tmp_path, enable_step_summary=True)
        summary = run_lint(ctx, _config(), patches=_patches())

        assert summary.passed is False
        assert summary.exit_code == 1
        assert summary.changed_files == ["src/a.cpp", "docs/readme.md"]
        assert (tmp_path / "output").read_text() == (
            "total_failed=1\nclang_tidy_failed_number=1\nclang_format_failed_number=0\n"
        )
        step_summary = (tmp_path / "summary.md").read_text()
        assert step_summary.startswith("# The lintlens Result\n:warning:")
        assert "[bugprone-x]" in step_summary

    def test_non_source_files_are_ignored(self, tmp_path, tools):
        _, tidy = tools
        summary = run_lint(_ctx(tmp_path), _config(), patches=_patches())
        assert tidy.call_count == 1
        for reporter in summary.reporters:
            assert reporter.report.ignored_files == ["docs/readme.md"]

    def test_all_passing_run(self, tmp_path, tools):
        _, tidy = tools
        tidy.return_value = TIDY_PASS
        ctx = _ctx(tmp_path, enable_step_summary=True)

        summary = run_lint(ctx, _config(), patches=_patches())

        assert summary.exit_code == 0
        assert (tmp_path / "summary.md").read_text() == "# The lintlens Result\n:rocket: All checks on all file passed."

    def test_local_run_writes_no_action_output(self, tmp_path, tools):
        run_lint(_ctx(tmp_path, use_on_local=True), _config(), patches=_patches())
        assert not (tmp_path / "output").exists()

    def test_missing_output_path_is_not_fatal(self, tmp_path, tools):
        summary = run_lint(_ctx(tmp_path, output_path=""), _config(), patches=_patches())
        assert summary.exit_code == 1

    def test_issue_comment_created(self, tmp_path, tools):
        pull = MagicMock()
        pull.get_issue_comments.return_value = []
        pull.create_issue_comment.return_value = MagicMock(id=99)

        summary = run_lint(_ctx(tmp_path, enable_comment_on_issue=True), _config(), patches=_patches(), pull=pull)

        assert summary.comment_id == 99
        body = pull.create_issue_comment.call_args[0][0]
        assert body.startswith("# lintlens results:")
        assert "| clang-tidy | 0 | 1 | 1 |" in body

    def test_review_posted(self, tmp_path, tools):
        pull = MagicMock()
        summary = run_lint(_ctx(tmp_path, enable_pull_request_review=True), _config(), patches=_patches(), pull=pull)

        assert [c.as_payload() for c in summary.review_comments] == [
            {"path": "src/a.cpp", "position": 2, "body": "bad [bugprone-x]"}
        ]
        pull.create_review.assert_called_once_with(
            body="lintlens suggestion",
            event="COMMENT",
            comments=[{"path": "src/a.cpp", "position": 2, "body": "bad [bugprone-x]"}],
        )

    def test_review_batches(self, tmp_path, tools):
        _, tidy = tools
        tidy.return_value = CommandResult(
            1,
            "".join(f"src/a.cpp:{row}:1: warning: bad [bugprone-x]\n" for row in (1, 2, 3, 4)),
            "",
        )
        pull = MagicMock()
        run_lint(
            _ctx(tmp_path, enable_pull_request_review=True),
            _config(batch_limit=3),
            patches=_patches(),
            pull=pull,
        )

        batches = [c.kwargs["comments"] for c in pull.create_review.call_args_list]
        assert [len(b) for b in batches] == [3, 1]

    def test_empty_review_not_posted(self, tmp_path, tools):
        _, tidy = tools
        tidy.return_value = TIDY_PASS
        pull = MagicMock()
        run_lint(_ctx(tmp_path, enable_pull_request_review=True), _config(), patches=_patches(), pull=pull)
        pull.create_review.assert_not_called()

    def test_pull_looked_up_when_not_supplied(self, tmp_path, tools, mocker):
        get_repo = mocker.patch("lintlens_core.linter.get_repo")
        get_pull = mocker.patch("lintlens_core.linter.get_pull")
        get_pull.return_value.get_issue_comments.return_value = []

        run_lint(_ctx(tmp_path, enable_comment_on_issue=True), _config(), patches=_patches())

        get_repo.assert_called_once_with("owner/repo", token="tok")
        get_pull.assert_called_once_with(get_repo.return_value, 7)

    def test_patches_loaded_when_not_supplied(self, tmp_path, tools, mocker):
        load = mocker.patch("lintlens_core.linter.load_patches", return_value={})
        summary = run_lint(_ctx(tmp_path), _config())
        load.assert_called_once_with(str(tmp_path), "main", "abc")
        assert summary.exit_code == 0
