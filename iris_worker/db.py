"""
db.py — SQLite helper functions for the IRIS worker

This module provides:
  - Connection helper with safe defaults
  - Initialization of required tables
  - Small CRUD helpers for conversation messages and project summaries

Used by the sqlite store backend; the default backend keeps everything in memory.
"""

import json
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional


def get_connection(db_path: Path) -> sqlite3.Connection:
    """
    Open a SQLite connection to our DB file.
    - One short-lived connection per call; callers run in FastAPI's threadpool.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def initialize_db(db_path: Path) -> None:
    """
    Create tables if they don't exist.
    This is idempotent and safe to call on startup.
    """
    with get_connection(db_path) as conn:
        cur = conn.cursor()

        # messages: one row per utterance, insertion order = seq
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS messages (
                seq             INTEGER PRIMARY KEY AUTOINCREMENT,
                id              TEXT NOT NULL UNIQUE,
                conversation_id TEXT NOT NULL,
                role            TEXT NOT NULL,   -- user | assistant | system
                content         TEXT NOT NULL,
                ts_iso          TEXT NOT NULL    -- ISO8601 timestamp (UTC)
            );
            """
        )
        cur.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_messages_conversation
            ON messages(conversation_id, seq);
            """
        )

        # project_summaries: exactly one row per conversation, replaced wholesale
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS project_summaries (
                conversation_id TEXT PRIMARY KEY,
                summary_json    TEXT NOT NULL,
                updated_at      TEXT DEFAULT (datetime('now'))
            );
            """
        )
        conn.commit()


def insert_message(db_path: Path, message: Dict[str, Any]) -> None:
    with get_connection(db_path) as conn:
        conn.execute(
            "INSERT INTO messages (id, conversation_id, role, content, ts_iso) VALUES (?, ?, ?, ?, ?)",
            (
                message["id"],
                message["conversation_id"],
                message["role"],
                message["content"],
                message["ts_iso"],
            ),
        )
        conn.commit()


def list_messages(db_path: Path, conversation_id: str) -> List[Dict[str, Any]]:
    with get_connection(db_path) as conn:
        cur = conn.cursor()
        cur.execute(
            """
            SELECT id, conversation_id, role, content, ts_iso
            FROM messages
            WHERE conversation_id = ?
            ORDER BY seq ASC
            """,
            (conversation_id,),
        )
        rows = cur.fetchall()
    return [
        {"id": r[0], "conversation_id": r[1], "role": r[2], "content": r[3], "ts_iso": r[4]}
        for r in rows
    ]


def list_conversation_ids(db_path: Path) -> List[str]:
    with get_connection(db_path) as conn:
        cur = conn.cursor()
        cur.execute("SELECT DISTINCT conversation_id FROM messages ORDER BY conversation_id")
        return [r[0] for r in cur.fetchall()]


def delete_messages(db_path: Path, conversation_id: str) -> int:
    with get_connection(db_path) as conn:
        cur = conn.cursor()
        cur.execute("DELETE FROM messages WHERE conversation_id = ?", (conversation_id,))
        conn.commit()
        return cur.rowcount


def upsert_summary(db_path: Path, conversation_id: str, summary: Dict[str, Any]) -> None:
    with get_connection(db_path) as conn:
        conn.execute(
            """
            INSERT INTO project_summaries (conversation_id, summary_json, updated_at)
            VALUES (?, ?, datetime('now'))
            ON CONFLICT(conversation_id) DO UPDATE SET
                summary_json = excluded.summary_json,
                updated_at = excluded.updated_at
            """,
            (conversation_id, json.dumps(summary, ensure_ascii=False)),
        )
        conn.commit()


def fetch_summary(db_path: Path, conversation_id: str) -> Optional[Dict[str, Any]]:
    with get_connection(db_path) as conn:
        cur = conn.cursor()
        cur.execute(
            "SELECT summary_json FROM project_summaries WHERE conversation_id = ?",
            (conversation_id,),
        )
        row = cur.fetchone()
    if row is None:
        return None
    return json.loads(row[0])


def delete_summary(db_path: Path, conversation_id: str) -> bool:
    with get_connection(db_path) as conn:
        cur = conn.cursor()
        cur.execute("DELETE FROM project_summaries WHERE conversation_id = ?", (conversation_id,))
        conn.commit()
        return cur.rowcount > 0
