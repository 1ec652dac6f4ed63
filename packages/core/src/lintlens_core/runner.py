from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Exit code reported when the binary itself could not be started, as a shell would.
LAUNCH_FAILURE_EXIT_CODE = 127


@dataclass(frozen=True)
class CommandResult:
    exit_code: int
    stdout: str
    stderr: str


def run_command(binary: str, args: list[str], cwd: str) -> CommandResult:
    """Run ``binary args...`` in ``cwd`` and capture its output.

    A missing or non-executable binary is reported as a failed result rather
    than raised, so the file it was run for is counted as failing.
    """
    logger.info("Running command: %s %s", binary, " ".join(args))
    try:
        completed = subprocess.run(
            [binary, *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            errors="replace",
        )
    except (FileNotFoundError, PermissionError) as e:
        logger.error("Could not launch %s: %s", binary, e)
        return CommandResult(exit_code=LAUNCH_FAILURE_EXIT_CODE, stdout="", stderr=str(e))

    logger.debug(
        "Result of %s:\nreturn code: %d\nstdout:\n%s\nstderr:\n%s",
        binary,
        completed.returncode,
        completed.stdout,
        completed.stderr,
    )
    return CommandResult(exit_code=completed.returncode, stdout=completed.stdout, stderr=completed.stderr)
