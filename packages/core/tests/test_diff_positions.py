"""Tests for review position mapping — critical for correct GitHub comment placement."""

import git
import pytest

from lintlens_core.diff import (
    DiffHunk,
    FilePatch,
    get_review_position,
    is_row_in_hunk,
    load_patches,
    patches_from_diff,
)


def make_hunk(new_start, new_lines, num_lines, old_start=None, old_lines=None):
    return DiffHunk(
        header=f"@@ -{old_start or new_start},{old_lines or new_lines} +{new_start},{new_lines} @@",
        old_start=old_start or new_start,
        old_lines=old_lines or new_lines,
        new_start=new_start,
        new_lines=new_lines,
        num_lines=num_lines,
    )


TWO_HUNKS = (make_hunk(10, 5, 5), make_hunk(30, 3, 3))


# ---------------------------------------------------------------------------
# get_review_position
# ---------------------------------------------------------------------------


class TestGetReviewPosition:
    def test_row_in_first_hunk(self):
        assert get_review_position(TWO_HUNKS, 12) == 3

    def test_position_is_cumulative_across_hunks(self):
        """Positions must NOT reset between hunks — the first hunk's 5 lines come first."""
        assert get_review_position(TWO_HUNKS, 31) == 7

    def test_row_between_hunks_is_unmappable(self):
        assert get_review_position(TWO_HUNKS, 20) is None

    def test_row_before_first_hunk_is_unmappable(self):
        assert get_review_position(TWO_HUNKS, 1) is None

    def test_first_row_of_hunk_is_position_one(self):
        assert get_review_position(TWO_HUNKS, 10) == 1

    def test_upper_boundary_is_inclusive(self):
        # new_start + new_lines is one past the hunk's last new line, yet still maps.
        assert is_row_in_hunk(TWO_HUNKS[0], 15)
        assert get_review_position(TWO_HUNKS, 15) == 6

    def test_one_past_upper_boundary_is_unmappable(self):
        assert get_review_position(TWO_HUNKS, 16) is None

    def test_removed_lines_advance_position(self):
        # A hunk with 2 new lines but 4 diff lines (2 removed) still shifts later hunks by 4.
        hunks = (make_hunk(1, 2, 4, old_lines=4), make_hunk(20, 1, 1))
        assert get_review_position(hunks, 20) == 5

    def test_column_is_ignored(self):
        assert get_review_position(TWO_HUNKS, 12, column=1) == get_review_position(TWO_HUNKS, 12, column=80)

    def test_no_hunks(self):
        assert get_review_position((), 1) is None


# ---------------------------------------------------------------------------
# patches_from_diff
# ---------------------------------------------------------------------------

DIFF = """\
diff --git a/src/a.cpp b/src/a.cpp
index 1111111..2222222 100644
--- a/src/a.cpp
+++ b/src/a.cpp
@@ -1,3 +1,4 @@
 int a;
+int b;
 int c;
 int d;
@@ -10,3 +11,2 @@ void f()
 x;
-y;
 z;
diff --git a/src/new.h b/src/new.h
new file mode 100644
index 0000000..3333333
--- /dev/null
+++ b/src/new.h
@@ -0,0 +1,2 @@
+#pragma once
+int g();
diff --git a/src/old.h b/src/old.h
deleted file mode 100644
index 4444444..0000000
--- a/src/old.h
+++ /dev/null
@@ -1,1 +0,0 @@
-int h();
diff --git a/src/before.cpp b/src/after.cpp
similarity index 88%
rename from src/before.cpp
rename to src/after.cpp
index 5555555..6666666 100644
--- a/src/before.cpp
+++ b/src/after.cpp
@@ -1,2 +1,2 @@
-int r;
+int s;
 int t;
"""


class TestPatchesFromDiff:
    def test_paths_in_diff_order_without_deleted_files(self):
        patches = patches_from_diff(DIFF)
        assert list(patches) == ["src/a.cpp", "src/new.h", "src/after.cpp"]

    def test_modified_file_hunks(self):
        patch = patches_from_diff(DIFF)["src/a.cpp"]
        assert patch.status == "modified"
        assert patch.previous_path is None
        assert [(h.new_start, h.new_lines, h.num_lines) for h in patch.hunks] == [(1, 4, 4), (11, 2, 3)]
        assert patch.hunks[1].old_start == 10
        assert patch.hunks[1].old_lines == 3
        assert patch.hunks[0].header == "@@ -1,3 +1,4 @@"
        assert patch.hunks[1].header == "@@ -10,3 +11,2 @@ void f()"

    def test_positions_from_parsed_hunks(self):
        patch = patches_from_diff(DIFF)["src/a.cpp"]
        assert get_review_position(patch.hunks, 2) == 2
        # first hunk contributes 4 diff lines
        assert get_review_position(patch.hunks, 12) == 6

    def test_added_file(self):
        patch = patches_from_diff(DIFF)["src/new.h"]
        assert patch.status == "added"
        assert get_review_position(patch.hunks, 2) == 2

    def test_renamed_file_keyed_by_new_path(self):
        patch = patches_from_diff(DIFF)["src/after.cpp"]
        assert patch.status == "renamed"
        assert patch.previous_path == "src/before.cpp"
        assert patch.hunks[0].num_lines == 3

    def test_c_quoted_paths_are_decoded(self):
        diff = (
            'diff --git "a/t\\303\\251st.cpp" "b/t\\303\\251st.cpp"\n'
            "index 1111111..2222222 100644\n"
            '--- "a/t\\303\\251st.cpp"\n'
            '+++ "b/t\\303\\251st.cpp"\n'
            "@@ -1 +1,2 @@\n"
            " int a;\n"
            "+int b;\n"
        )
        patch = patches_from_diff(diff)["t\u00e9st.cpp"]
        assert patch.status == "modified"
        assert patch.path == "t\u00e9st.cpp"

    def test_empty_diff(self):
        assert patches_from_diff("") == {}


# ---------------------------------------------------------------------------
# load_patches
# ---------------------------------------------------------------------------


class TestLoadPatches:
    def test_diffs_target_against_source(self, mocker):
        mock_repo = mocker.patch("lintlens_core.diff.git.Repo")
        mock_repo.return_value.git.execute.return_value = DIFF.rstrip("\n")

        patches = load_patches("/repo", "main", "feature")

        mock_repo.assert_called_once_with("/repo")
        command = mock_repo.return_value.git.execute.call_args[0][0]
        assert command[:3] == ["git", "-c", "core.quotePath=false"]
        assert command[-2:] == ["main", "feature"]
        assert list(patches) == ["src/a.cpp", "src/new.h", "src/after.cpp"]

    def test_no_changes(self, mocker):
        mock_repo = mocker.patch("lintlens_core.diff.git.Repo")
        mock_repo.return_value.git.execute.return_value = ""
        assert load_patches("/repo", "main", "main") == {}

    def test_real_repository(self, tmp_path):
        repo = git.Repo.init(tmp_path)
        with repo.config_writer() as cw:
            cw.set_value("user", "name", "lintlens")
            cw.set_value("user", "email", "lintlens@example.com")

        source = tmp_path / "main.cpp"
        source.write_text("int a;\nint b;\nint c;\n")
        repo.index.add(["main.cpp"])
        base = repo.index.commit("base").hexsha

        source.write_text("int a;\nint b;\nint x;\nint c;\n")
        repo.index.add(["main.cpp"])
        head = repo.index.commit("change").hexsha

        patches = load_patches(str(tmp_path), base, head)
        assert list(patches) == ["main.cpp"]
        patch = patches["main.cpp"]
        assert isinstance(patch, FilePatch)
        assert patch.status == "modified"
        assert get_review_position(patch.hunks, 3) == 3

    def test_non_ascii_path_is_not_quoted(self, tmp_path):
        repo = git.Repo.init(tmp_path)
        with repo.config_writer() as cw:
            cw.set_value("user", "name", "lintlens")
            cw.set_value("user", "email", "lintlens@example.com")

        source = tmp_path / "t\u00e9st.cpp"
        source.write_text("int a;\n", encoding="utf-8")
        repo.index.add(["t\u00e9st.cpp"])
        base = repo.index.commit("base").hexsha

        source.write_text("int a;\nint b;\n", encoding="utf-8")
        repo.index.add(["t\u00e9st.cpp"])
        head = repo.index.commit("change").hexsha

        assert list(load_patches(str(tmp_path), base, head)) == ["t\u00e9st.cpp"]

    def test_unknown_revision_raises(self, tmp_path):
        repo = git.Repo.init(tmp_path)
        with pytest.raises(git.GitCommandError):
            load_patches(str(repo.working_tree_dir), "does-not-exist", "HEAD")
