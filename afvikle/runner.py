"""Dispatch of stored commands.

The working directory is picked by priority: a ``--dir`` override given at
run time, then the directory stored with the command, then the directory
`afv` was started from.
"""

import logging
import subprocess

from afvikle.resolve import current_directory, resolve_directory

logger = logging.getLogger(__name__)


class ExecutionError(Exception):
    """The command could not be started or exited with an error."""


def choose_working_dir(override: str, stored: str) -> str:
    """Return the directory a command should run in.

    A non-empty ``override`` goes through directory resolution and wins
    over the stored directory; a blank one resolves to the current
    directory. The stored directory is already absolute and is used as-is.
    """
    if override:
        return resolve_directory(override) or current_directory()
    if stored:
        return stored
    return current_directory()


def split_command(command: str) -> list[str]:
    """Split a command line on whitespace. No quoting rules apply."""
    parts = command.split()
    if not parts:
        raise ExecutionError("empty command")
    return parts


def run_command(command: str, cwd: str) -> None:
    """Run a command line in ``cwd`` with the terminal's stdin, stdout and stderr.

    Raises:
        ExecutionError: If the command is empty, cannot be launched, or
            exits with a non-zero status.
    """
    parts = split_command(command)

    logger.debug("Running %r in %s", parts, cwd)
    try:
        subprocess.run(parts, cwd=cwd or None, check=True)
    except subprocess.CalledProcessError as e:
        raise ExecutionError(f"exit status {e.returncode}") from e
    except OSError as e:
        raise ExecutionError(str(e)) from e
