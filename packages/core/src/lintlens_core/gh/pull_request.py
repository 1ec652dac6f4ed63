from __future__ import annotations

import logging
import re

from github import Github

logger = logging.getLogger(__name__)

_PR_MERGE_REF_RE = re.compile(r"^refs/pull/(\d+)/merge$")


def get_repo(repo_name: str, token: str):
    return Github(token).get_repo(repo_name)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def parse_pr_number(ref: str) -> int:
    """Extract the PR number from a merge ref such as ``refs/pull/42/merge``."""
    match = _PR_MERGE_REF_RE.match(ref or "")
    if not match:
        raise ValueError(f"source ref format error: {ref!r}")
    return int(match.group(1))


def post_review(pull, comments: list[dict], body: str) -> None:
    """Post one COMMENT review carrying the given inline comment payloads."""
    logger.info("Posting review with %d inline comment(s) on PR #%s", len(comments), pull.number)
    pull.create_review(body=body, event="COMMENT", comments=comments)


class BotComment:
    """The one issue comment lintlens keeps on a pull request.

    Starts without a known comment. fetch() adopts the first existing comment
    written by the bot; upsert() then edits it in place, or creates it when
    none was found and remembers the new id. Once an id is held it is never
    dropped, so reruns within a process always update.
    """

    def __init__(self, pull, bot_login: str):
        self._pull = pull
        self._bot_login = bot_login
        self.comment_id: int | None = None

    def is_ours(self, comment) -> bool:
        # A comment without author metadata may well be ours; updating it beats posting a duplicate.
        user = getattr(comment, "user", None)
        login = getattr(user, "login", None) if user is not None else None
        if not login:
            return True
        return login == self._bot_login

    def fetch(self) -> int | None:
        logger.info("Start to get issue comment id for pull request: %s.", self._pull.number)
        for comment in self._pull.get_issue_comments():
            if self.is_ours(comment):
                self.comment_id = comment.id
                logger.info("Got comment id %s in PR #%s", self.comment_id, self._pull.number)
                return self.comment_id
        logger.info("lintlens hasn't commented on PR #%s yet", self._pull.number)
        return None

    def upsert(self, body: str) -> int:
        if self.comment_id is None:
            comment = self._pull.create_issue_comment(body)
            self.comment_id = comment.id
            logger.info("The new added comment id is %s", self.comment_id)
        else:
            self._pull.get_issue_comment(self.comment_id).edit(body)
            logger.info("Successfully updated comment %s of PR #%s", self.comment_id, self._pull.number)
        return self.comment_id
