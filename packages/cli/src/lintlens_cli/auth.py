"""GitHub token for lintlens runs that post to a pull request.

The run command asks for a token only when --enable-comment-on-issue or
--enable-pull-request-review is set and --token was not given; linting alone
never touches GitHub. In Actions the workflow token arrives as GITHUB_TOKEN.
On a workstation, a `gh auth login` session saves creating a PAT just to try
a local review against a real pull request.
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)


def resolve_github_token() -> str | None:
    """Return GITHUB_TOKEN, else the gh CLI session token, else None.

    None is not an error here: build_context rejects a local comment or review
    run without a token, and the CLI shows that as a usage error.
    """
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            gh_token = result.stdout.strip()
            if gh_token:
                logger.debug("Resolved GitHub token via gh CLI session.")
                return gh_token
    except (FileNotFoundError, subprocess.TimeoutExpired):
        logger.debug("gh CLI unavailable; no token resolved.")

    return None
