"""SQLite key-value slot holding serialized state."""
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from price_monitor.config import STATE_DB
from price_monitor.errors import MalformedPersistedState, StateWriteFailed

logger = logging.getLogger(__name__)


class DurableSlot:
    """Named key-value storage backed by a single SQLite table.

    Writes always overwrite the whole value for a key. A connection is opened
    per call so the slot can be shared by the CLI and the API process.
    """

    def __init__(self, db_path: Path = STATE_DB):
        self.db_path = Path(db_path)
        self.initialize()

    def initialize(self) -> None:
        """Create the table if it doesn't exist.

        An unreadable database file is moved aside and a fresh one created.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._create_table()
        except sqlite3.DatabaseError as e:
            corrupt_path = self.db_path.with_name(
                f"{self.db_path.name}.corrupt-{datetime.now().strftime('%Y%m%d%H%M%S')}"
            )
            logger.warning(f"State database {self.db_path} is unreadable ({e}), moving it to {corrupt_path}")
            self.db_path.replace(corrupt_path)
            self._create_table()
        logger.debug(f"Durable slot initialized at {self.db_path}")

    def _create_table(self) -> None:
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_slot (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL,
                    updated_at TIMESTAMP
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def read(self, key: str) -> Optional[bytes]:
        """Return the stored value, or None when the key was never written.

        Raises MalformedPersistedState when the database can't be queried.
        """
        conn = sqlite3.connect(self.db_path)
        try:
            cursor = conn.execute("SELECT value FROM kv_slot WHERE key = ?", (key,))
            row = cursor.fetchone()
        except sqlite3.DatabaseError as e:
            raise MalformedPersistedState(f"Cannot read {self.db_path}: {e}") from e
        finally:
            conn.close()
        if row is None:
            return None
        value = row[0]
        return value.encode() if isinstance(value, str) else bytes(value)

    def write(self, key: str, value: bytes) -> None:
        """Overwrite the value stored under key.

        Raises StateWriteFailed if SQLite rejects the write (e.g. database locked).
        """
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute(
                """
                INSERT OR REPLACE INTO kv_slot (key, value, updated_at)
                VALUES (?, ?, datetime('now'))
                """,
                (key, value),
            )
            conn.commit()
        except sqlite3.DatabaseError as e:
            raise StateWriteFailed(f"Cannot write {key!r} to {self.db_path}: {e}") from e
        finally:
            conn.close()

    def clear(self, key: str) -> None:
        """Remove key from the slot."""
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute("DELETE FROM kv_slot WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()
