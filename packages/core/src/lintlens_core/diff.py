"""Changed-file patches and review-position mapping.

GitHub anchors an inline review comment with a ``position``: the number of
lines down from the first ``@@`` header of the file's diff, counted across
every hunk. A diagnostic only carries an absolute row in the new file, so it
has to be walked through the hunks to find that position.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import git
from unidiff import PatchSet

logger = logging.getLogger(__name__)

_DIFF_LINE_TYPES = (" ", "+", "-")


@dataclass(frozen=True)
class DiffHunk:
    header: str
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    num_lines: int  # context + added + removed lines in the hunk body


@dataclass(frozen=True)
class FilePatch:
    path: str  # new (post-change) path, relative to the repository root
    hunks: tuple[DiffHunk, ...] = ()
    status: str = "modified"  # "added" | "modified" | "renamed"
    previous_path: str | None = None


def is_row_in_hunk(hunk: DiffHunk, row: int, column: int | None = None) -> bool:
    """Return True if ``row`` falls in the new-file range of ``hunk``.

    The upper bound is inclusive (``new_start + new_lines``), one line past the
    last new line of the hunk. Existing comment placement depends on it.
    Column is not considered; review comments are line-based.
    """
    return hunk.new_start <= row <= hunk.new_start + hunk.new_lines


def get_review_position(hunks, row: int, column: int | None = None) -> int | None:
    """Map an absolute new-file row to its 1-based review position, or None.

    Positions are cumulative across hunks: every hunk that does not contain
    the row contributes all of its diff lines to the running offset.
    """
    pos = 0
    for hunk in hunks:
        if is_row_in_hunk(hunk, row, column):
            return pos + row - hunk.new_start + 1
        pos += hunk.num_lines
    return None


def _unquote(path: str) -> str:
    """Decode a C-quoted git path such as ``"b/t\\303\\251st.cpp"``."""
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path
    raw = path[1:-1].encode("ascii", "backslashreplace").decode("unicode_escape")
    return raw.encode("latin-1").decode("utf-8", "replace")


def _strip_prefix(path: str) -> str:
    path = _unquote(path)
    if path[:2] in ("a/", "b/"):
        return path[2:]
    return path


def _to_hunk(hunk) -> DiffHunk:
    header = f"@@ -{hunk.source_start},{hunk.source_length} +{hunk.target_start},{hunk.target_length} @@"
    if hunk.section_header:
        header += f" {hunk.section_header}"
    return DiffHunk(
        header=header,
        old_start=hunk.source_start,
        old_lines=hunk.source_length,
        new_start=hunk.target_start,
        new_lines=hunk.target_length,
        num_lines=sum(1 for line in hunk if line.line_type in _DIFF_LINE_TYPES),
    )


def patches_from_diff(diff_text: str) -> dict[str, FilePatch]:
    """Build FilePatches from unified diff text, keyed by new path in diff order.

    Deleted files are left out: there is nothing left to lint.
    """
    patches: dict[str, FilePatch] = {}
    for patched_file in PatchSet(diff_text):
        if patched_file.is_removed_file:
            logger.debug("Skipping deleted file %s", patched_file.source_file)
            continue

        # PatchedFile.path prefers the source name; reviews need the new one.
        path = _strip_prefix(patched_file.target_file)
        previous_path: str | None = None
        if patched_file.is_added_file:
            status = "added"
        elif _strip_prefix(patched_file.source_file) != path:
            status = "renamed"
            previous_path = _strip_prefix(patched_file.source_file)
        else:
            status = "modified"

        patches[path] = FilePatch(
            path=path,
            hunks=tuple(_to_hunk(h) for h in patched_file),
            status=status,
            previous_path=previous_path,
        )
    return patches


def load_patches(repo_path: str, target: str, source: str) -> dict[str, FilePatch]:
    """Diff ``target`` against ``source`` in the repository at ``repo_path``."""
    repo = git.Repo(repo_path)
    # Keep non-ASCII paths verbatim instead of C-quoted.
    diff_text = repo.git.execute(
        ["git", "-c", "core.quotePath=false", "diff", "--find-renames", "--no-color", "--no-ext-diff", target, source]
    )
    # GitPython strips the trailing newline; unidiff wants complete lines.
    patches = patches_from_diff(diff_text + "\n" if diff_text else "")
    logger.info("Got %d changed file(s) between %s and %s", len(patches), target, source)
    for idx, path in enumerate(patches):
        logger.info("File index: %d, file path: %s", idx, path)
    return patches
