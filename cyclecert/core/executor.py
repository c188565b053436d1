"""Post-fetch command — lets operators reload consumers of the new files.

The command string is split with shell rules once at startup, then run
without a shell after every successful write.  Nothing is appended to
its arguments.
"""

from __future__ import annotations

import logging
import shlex
import subprocess

from cyclecert.core.errors import ExecutionError, StartupConfigError

logger = logging.getLogger(__name__)


class PostFetchCommand:
    """An operator-supplied command run after each successful persist.

    Parameters
    ----------
    command:
        The command line, e.g. ``"nginx -s reload"``.
    timeout:
        Seconds to wait before the command is killed and reported as
        failed.  ``None`` waits indefinitely.

    Raises
    ------
    StartupConfigError
        If *command* cannot be split or is empty.
    """

    def __init__(self, command: str, timeout: float | None = None) -> None:
        try:
            argv = shlex.split(command)
        except ValueError as exc:
            raise StartupConfigError(
                f"Unable to parse post-fetch command {command!r}: {exc}"
            ) from exc
        if not argv:
            raise StartupConfigError(
                "Unable to parse requested subcommand after certificate fetch."
            )
        self.command = command
        self.argv = argv
        self.timeout = timeout

    def run(self) -> None:
        """Run the command and wait for it.

        Raises
        ------
        ExecutionError
            If the command cannot be started, times out, or exits non-zero.
        """
        logger.info("Running post-fetch command: %s", self.command)
        try:
            result = subprocess.run(self.argv, timeout=self.timeout, check=False)
        except subprocess.TimeoutExpired as exc:
            raise ExecutionError(
                f"Post-fetch command timed out after {exc.timeout}s: {self.command}",
                command=self.command,
            ) from exc
        except OSError as exc:
            raise ExecutionError(
                f"Unable to start post-fetch command {self.argv[0]!r}: {exc}",
                command=self.command,
            ) from exc

        if result.returncode != 0:
            raise ExecutionError(
                f"Post-fetch command exited with status {result.returncode}: {self.command}",
                command=self.command,
                returncode=result.returncode,
            )
        logger.debug("Post-fetch command finished successfully")

    def __repr__(self) -> str:
        return f"PostFetchCommand({self.command!r})"
