"""SQLite database operations for afvikle.

Commands are stored in a single afvikle.db file that lives next to the
running executable, so the bookmarks travel with the install rather than
with whatever directory `afv` is invoked from.

The file is used as a key-value store: the ``commands`` table maps a
command name to its JSON-encoded record. The connection holds an exclusive
lock on the file until it is closed, so a second process opening the same
database waits at most ``timeout`` seconds and then fails.
"""

import json
import logging
import sqlite3
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, Union

from afvikle.config import DEFAULT_DESCRIPTION

logger = logging.getLogger(__name__)

DB_FILENAME = "afvikle.db"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class StoreError(Exception):
    """Base class for all record store errors."""


class ValidationError(StoreError):
    """A required field is missing."""


class NotFoundError(StoreError):
    """No command is stored under the requested name."""


class AlreadyExistsError(StoreError):
    """A command with the same name is already stored."""


class DirectoryNotFoundError(StoreError):
    """The working directory to store does not exist."""


class StoreOpenError(StoreError):
    """The database file could not be opened or locked."""


@dataclass
class Command:
    """A stored command and its metadata."""

    name: str
    description: str
    command: str
    working_dir: str = ""
    created_at: str = ""
    id: int = 0

    def to_json(self) -> str:
        return json.dumps(
            {
                "id": self.id,
                "name": self.name,
                "description": self.description,
                "command": self.command,
                "working_dir": self.working_dir,
                "created_at": self.created_at,
            }
        )

    @classmethod
    def from_json(cls, data: str) -> "Command":
        raw = json.loads(data)
        return cls(
            id=raw.get("id", 0),
            name=raw["name"],
            description=raw.get("description", ""),
            command=raw["command"],
            working_dir=raw.get("working_dir", ""),
            created_at=raw.get("created_at", ""),
        )

    @property
    def added_at(self) -> Optional[datetime]:
        """``created_at`` parsed back into a datetime, or None if unreadable."""
        try:
            return datetime.strptime(self.created_at, TIMESTAMP_FORMAT)
        except ValueError:
            return None


def database_path() -> Path:
    """Return the path of afvikle.db in the directory of the running executable."""
    executable = sys.argv[0] if sys.argv else ""
    if not executable:
        raise StoreError("failed to get executable path: no program name in argv")
    try:
        exec_path = Path(executable).resolve()
    except OSError as e:
        raise StoreError(f"failed to get executable path: {e}") from e
    return exec_path.parent / DB_FILENAME


def _clean_fields(
    name: str, description: str, command: str, working_dir: str, default_description: str
) -> tuple[str, str, str, str]:
    """Trim and validate the fields of a command about to be written."""
    name = (name or "").strip()
    command = (command or "").strip()
    description = (description or "").strip()
    working_dir = (working_dir or "").strip()

    if not name:
        raise ValidationError("command name is required")
    if not command:
        raise ValidationError("command is required")

    if not description:
        description = default_description

    if working_dir and not Path(working_dir).is_dir():
        raise DirectoryNotFoundError(f"working directory '{working_dir}' does not exist")

    return name, description, command, working_dir


class Database:
    """Handle on the command store, open for the lifetime of one invocation."""

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        timeout: float = 1.0,
        default_description: str = DEFAULT_DESCRIPTION,
    ) -> None:
        self._path = Path(path).expanduser().resolve() if path else database_path()
        self.default_description = default_description
        self._conn: Optional[sqlite3.Connection] = None

        try:
            conn = sqlite3.connect(str(self._path), timeout=timeout, isolation_level=None)
        except sqlite3.Error as e:
            raise StoreOpenError(f"failed to open database: {e}") from e

        try:
            # Keep the file lock from the first transaction until close()
            conn.execute("PRAGMA locking_mode=EXCLUSIVE")
            conn.execute("BEGIN EXCLUSIVE")
            conn.execute(
                """CREATE TABLE IF NOT EXISTS commands (
                       name TEXT PRIMARY KEY,
                       data TEXT NOT NULL
                   )"""
            )
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            conn.close()
            raise StoreOpenError(f"failed to open database: {e}") from e

        self._conn = conn
        logger.debug("Opened database %s", self._path)

    @property
    def path(self) -> Path:
        """Absolute path of the backing database file."""
        return self._path

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Release the file lock. Calling it more than once is harmless."""
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        logger.debug("Closed database %s", self._path)

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        if self._conn is None:
            raise StoreError("database is closed")
        conn = self._conn
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")

    def _fetch(self, conn: sqlite3.Connection, name: str) -> Optional[str]:
        row = conn.execute("SELECT data FROM commands WHERE name = ?", (name,)).fetchone()
        return row[0] if row else None

    def add(self, name: str, description: str, command: str, working_dir: str = "") -> Command:
        """Store a new command. Fails if the name is already taken."""
        name, description, command, working_dir = _clean_fields(
            name, description, command, working_dir, self.default_description
        )

        with self._transaction() as conn:
            if self._fetch(conn, name) is not None:
                raise AlreadyExistsError(f"command '{name}' already exists")

            record = Command(
                name=name,
                description=description,
                command=command,
                working_dir=working_dir,
                created_at=datetime.now().strftime(TIMESTAMP_FORMAT),
            )
            conn.execute(
                "INSERT INTO commands (name, data) VALUES (?, ?)",
                (name, record.to_json()),
            )

        logger.debug("Added command %r", name)
        return record

    def get(self, name: str) -> Command:
        """Return the command stored under exactly ``name``."""
        with self._transaction() as conn:
            data = self._fetch(conn, name)
        if data is None:
            raise NotFoundError(f"command '{name}' not found")
        return Command.from_json(data)

    def get_all(self) -> list[Command]:
        """Return every stored command, ordered by name."""
        with self._transaction() as conn:
            rows = conn.execute("SELECT data FROM commands ORDER BY name").fetchall()
        return [Command.from_json(row[0]) for row in rows]

    def count(self) -> int:
        with self._transaction() as conn:
            return conn.execute("SELECT COUNT(*) FROM commands").fetchone()[0]

    def update(self, name: str, description: str, command: str, working_dir: str = "") -> Command:
        """Overwrite description, command and working directory of a stored command.

        The name and creation timestamp are left untouched.
        """
        name, description, command, working_dir = _clean_fields(
            name, description, command, working_dir, self.default_description
        )

        with self._transaction() as conn:
            data = self._fetch(conn, name)
            if data is None:
                raise NotFoundError(f"command '{name}' not found")

            record = Command.from_json(data)
            record.description = description
            record.command = command
            record.working_dir = working_dir
            conn.execute(
                "UPDATE commands SET data = ? WHERE name = ?",
                (record.to_json(), name),
            )

        logger.debug("Updated command %r", name)
        return record

    def delete(self, name: str) -> None:
        """Remove the command stored under ``name``."""
        with self._transaction() as conn:
            if self._fetch(conn, name) is None:
                raise NotFoundError(f"command '{name}' not found")
            conn.execute("DELETE FROM commands WHERE name = ?", (name,))

        logger.debug("Deleted command %r", name)
