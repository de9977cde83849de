"""Directory shortcut resolution.

Turns the value of a ``--dir`` option into an absolute path:

    ""        -> ""  (no directory given, the caller falls back elsewhere)
    "."       -> current working directory
    "~"       -> home directory of the invoking user
    "~/sub"   -> <home>/sub
    other     -> made absolute against the current working directory

Only a single leading ``~`` is expanded, so ``~/~/x`` is ``<home>/~/x``.
Nothing here checks that the directory exists.
"""

import os
from pathlib import Path

try:
    import pwd
except ImportError:  # Windows
    pwd = None


class ResolveError(Exception):
    """The current or home directory could not be determined."""


def current_directory() -> str:
    try:
        return os.getcwd()
    except OSError as e:
        raise ResolveError(f"failed to get current directory: {e}") from e


def _home_directory() -> str:
    """Return the home directory of the user running the process."""
    try:
        if pwd is not None:
            return pwd.getpwuid(os.getuid()).pw_dir
        return str(Path.home())
    except (KeyError, RuntimeError, OSError) as e:
        raise ResolveError(f"failed to get user home directory: {e}") from e


def resolve_directory(directory: str) -> str:
    """Resolve a directory specification to an absolute path.

    Args:
        directory: Raw directory string, possibly a shortcut.

    Returns:
        The absolute path, or an empty string if ``directory`` is blank.

    Raises:
        ResolveError: If the current or home directory cannot be read.
    """
    directory = (directory or "").strip()

    if not directory:
        return ""
    if directory == ".":
        return current_directory()
    if directory == "~":
        return _home_directory()
    if directory.startswith("~/"):
        return os.path.normpath(os.path.join(_home_directory(), directory[2:]))

    if os.path.isabs(directory):
        return os.path.normpath(directory)
    return os.path.normpath(os.path.join(current_directory(), directory))
