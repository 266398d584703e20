from __future__ import annotations

import logging
import os
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

logger = logging.getLogger(__name__)

HIGH_SCORE_LIMIT = 10
DEFAULT_DB_PATH = os.path.join("data", "shiftshift.db")


@dataclass(frozen=True)
class HighScore:
    name: str
    score: int
    max_level: int
    achieved_at: str


@dataclass(frozen=True)
class PlayerRecord:
    name: str
    has_played: bool = False
    max_level: int = 0
    best_score: Optional[int] = None


def _ensure_db_dir(db_path: str) -> None:
    """Ensures the directory for the SQLite DB exists before connecting."""
    directory = os.path.dirname(db_path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory, exist_ok=True)


def _resolve_db_path(db_path: Optional[str]) -> str:
    """Falls back to SHIFTSHIFT_DB, then data/shiftshift.db, and makes sure the directory exists."""
    path = db_path or os.getenv("SHIFTSHIFT_DB") or DEFAULT_DB_PATH
    _ensure_db_dir(path)
    return path


def _ensure_db(conn: sqlite3.Connection) -> None:
    """Creates the high-score and player tables if they are missing."""
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS high_scores (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            score INTEGER NOT NULL,
            max_level INTEGER NOT NULL,
            achieved_at TEXT NOT NULL
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS players (
            name TEXT PRIMARY KEY,
            has_played INTEGER NOT NULL DEFAULT 0,
            max_level INTEGER NOT NULL DEFAULT 0,
            updated_at TEXT NOT NULL
        )
        """
    )
    conn.commit()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='seconds').replace('+00:00', 'Z')


def _connect(db_path: Optional[str]) -> sqlite3.Connection:
    conn = sqlite3.connect(_resolve_db_path(db_path))
    _ensure_db(conn)
    return conn


def db_record_score(db_path: Optional[str], name: str, score: int, max_level: int) -> bool:
    """Adds a finished session to the high-score table and keeps only the top ten.

    Zero scores are not recorded. Returns True if the entry survived the cut.
    """
    if score <= 0:
        return False
    conn = _connect(db_path)
    try:
        cur = conn.execute(
            "INSERT INTO high_scores (name, score, max_level, achieved_at) VALUES (?, ?, ?, ?)",
            (name, int(score), int(max_level), _now()),
        )
        new_id = cur.lastrowid
        # Ties keep the earlier entry ahead.
        conn.execute(
            """
            DELETE FROM high_scores WHERE id NOT IN (
                SELECT id FROM high_scores ORDER BY score DESC, id ASC LIMIT ?
            )
            """,
            (HIGH_SCORE_LIMIT,),
        )
        kept = conn.execute("SELECT 1 FROM high_scores WHERE id = ?", (new_id,)).fetchone() is not None
        conn.commit()
    finally:
        conn.close()
    logger.info("score %d for %s (level %d) %s", score, name, max_level,
                "recorded" if kept else "below the top %d" % HIGH_SCORE_LIMIT)
    return kept


def db_top_scores(db_path: Optional[str], limit: int = HIGH_SCORE_LIMIT) -> List[HighScore]:
    conn = _connect(db_path)
    try:
        cur = conn.execute(
            "SELECT name, score, max_level, achieved_at FROM high_scores ORDER BY score DESC, id ASC LIMIT ?",
            (int(limit),),
        )
        return [HighScore(name=n, score=int(s), max_level=int(m), achieved_at=a) for n, s, m, a in cur.fetchall()]
    finally:
        conn.close()


def db_load_player(db_path: Optional[str], name: str) -> PlayerRecord:
    """Returns the stored flags for `name`, or defaults for a player never seen before."""
    conn = _connect(db_path)
    try:
        row = conn.execute("SELECT has_played, max_level FROM players WHERE name = ?", (name,)).fetchone()
        best = conn.execute("SELECT MAX(score) FROM high_scores WHERE name = ?", (name,)).fetchone()
    finally:
        conn.close()
    best_score = int(best[0]) if best and best[0] is not None else None
    if not row:
        return PlayerRecord(name=name, best_score=best_score)
    return PlayerRecord(name=name, has_played=bool(row[0]), max_level=int(row[1]), best_score=best_score)


def db_mark_tutorial_played(db_path: Optional[str], name: str) -> None:
    conn = _connect(db_path)
    try:
        conn.execute(
            """
            INSERT INTO players (name, has_played, max_level, updated_at) VALUES (?, 1, 0, ?)
            ON CONFLICT(name) DO UPDATE SET has_played = 1, updated_at = excluded.updated_at
            """,
            (name, _now()),
        )
        conn.commit()
    finally:
        conn.close()


def db_update_max_level(db_path: Optional[str], name: str, level: int) -> int:
    """Raises the player's best level to `level` if it is higher. Returns the stored value."""
    conn = _connect(db_path)
    try:
        conn.execute(
            """
            INSERT INTO players (name, has_played, max_level, updated_at) VALUES (?, 0, ?, ?)
            ON CONFLICT(name) DO UPDATE SET
                max_level = MAX(players.max_level, excluded.max_level),
                updated_at = excluded.updated_at
            """,
            (name, int(level), _now()),
        )
        conn.commit()
        row = conn.execute("SELECT max_level FROM players WHERE name = ?", (name,)).fetchone()
        return int(row[0])
    finally:
        conn.close()
