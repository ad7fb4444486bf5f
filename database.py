"""Preference storage for the Global News Curator.

The profile is stored as one JSON document in a small SQLite key/value
table, keyed under a fixed storage key. Saves overwrite the whole value in
a single transaction, so a reader never sees a partially written profile.

Database Schema:
    settings table:
        - key (TEXT, PK): Storage key ('userPrefs')
        - value (TEXT): Profile JSON with camelCase keys
        - updated_at (INTEGER): Last write timestamp (Unix epoch)

Features:
    - WAL mode for concurrent read/write access
    - Context manager support for auto-cleanup
    - Corrupt values fall back to the default profile (logged)
"""

import json
import logging
import sqlite3
import time
from pathlib import Path

from pydantic import ValidationError

from models.preferences import UserPreferences

logger = logging.getLogger(__name__)

PREFERENCES_KEY = "userPrefs"


class PreferenceStore:
    """SQLite-backed load/save of the user's preference profile.

    No validation beyond parsing is performed here; callers build valid
    profiles before saving.

    Example:
        >>> with PreferenceStore("curator.db") as store:
        ...     prefs = store.load()
        ...     store.save(prefs.model_copy(update={"webhook_url": "https://..."}))
    """

    SCHEMA = """
    CREATE TABLE IF NOT EXISTS settings (
        key TEXT PRIMARY KEY,            -- Fixed storage key
        value TEXT NOT NULL,             -- JSON document
        updated_at INTEGER NOT NULL      -- Last write (Unix epoch)
    );
    """

    path: Path
    conn: sqlite3.Connection

    def __init__(self, path: Path | str, key: str = PREFERENCES_KEY):
        """Open (or create) the preference database.

        Args:
            path: Path to SQLite database file
            key: Storage key for the profile document
        """
        self.path = Path(path)
        self.key = key
        if self.path.parent != Path("."):
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.path))
        self.conn.row_factory = sqlite3.Row

        self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.executescript(self.SCHEMA)
        self.conn.commit()
        logger.debug("Preference store initialized | path=%s", self.path)

    def load(self) -> UserPreferences:
        """Return the last saved profile, or the default profile if none."""
        row = self.conn.execute(
            "SELECT value FROM settings WHERE key = ?", (self.key,)
        ).fetchone()
        if row is None:
            logger.debug("No saved preferences | using defaults")
            return UserPreferences.default()

        try:
            return UserPreferences.model_validate(json.loads(row["value"]))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Stored preferences unreadable, using defaults | error=%s", e)
            return UserPreferences.default()

    def save(self, preferences: UserPreferences) -> None:
        """Persist the full profile, replacing any previous value."""
        with self.conn:
            self.conn.execute(
                """
                INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (self.key, preferences.to_json(), int(time.time())),
            )
        logger.info(
            "Preferences saved | keywords=%d liked=%d disliked=%d webhook=%s",
            len(preferences.keywords),
            len(preferences.liked_categories),
            len(preferences.disliked_categories),
            "yes" if preferences.webhook_url else "no",
        )

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "PreferenceStore":
        return self

    def __exit__(self, *args) -> None:
        self.close()
