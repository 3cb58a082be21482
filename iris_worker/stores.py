"""Transcript and project-summary stores.

Both stores are keyed by conversation id. The in-memory backend is the default
and is volatile; the sqlite backend persists through ``db.py``.
"""

from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from . import db
from .models.message import Message, Role
from .models.summary import ProjectSummary

log = logging.getLogger("app.store")


def _new_message(conversation_id: str, role: Role, content: str) -> Message:
    return Message(
        id=f"msg_{uuid.uuid4().hex[:16]}",
        conversation_id=conversation_id,
        role=role,
        content=content,
        timestamp=datetime.now(timezone.utc),
    )


def join_user_text(messages: List[Message], limit: Optional[int] = None) -> str:
    """Concatenate user-authored content in insertion order.

    `limit` keeps only the last N messages (any role) before filtering.
    """
    recent = messages[-limit:] if limit else messages
    return "\n\n".join(m.content for m in recent if m.role == "user")


class TranscriptStore:
    def append(self, conversation_id: str, role: Role, content: str) -> Message:
        raise NotImplementedError

    def messages(self, conversation_id: str) -> List[Message]:
        raise NotImplementedError

    def user_text(self, conversation_id: str, limit: Optional[int] = None) -> str:
        return join_user_text(self.messages(conversation_id), limit)

    def clear(self, conversation_id: str) -> None:
        raise NotImplementedError

    def conversations(self) -> List[str]:
        raise NotImplementedError

    def close(self) -> None:
        return None


class SummaryStore:
    def get(self, conversation_id: str) -> Optional[ProjectSummary]:
        raise NotImplementedError

    def set(self, conversation_id: str, summary: ProjectSummary) -> None:
        raise NotImplementedError

    def delete(self, conversation_id: str) -> bool:
        raise NotImplementedError

    def close(self) -> None:
        return None


class MemoryTranscriptStore(TranscriptStore):
    def __init__(self) -> None:
        self._items: Dict[str, List[Message]] = {}
        self._lock = threading.Lock()

    def append(self, conversation_id: str, role: Role, content: str) -> Message:
        message = _new_message(conversation_id, role, content)
        with self._lock:
            self._items.setdefault(conversation_id, []).append(message)
        log.debug(f"added {role} message to conversation {conversation_id}")
        return message

    def messages(self, conversation_id: str) -> List[Message]:
        with self._lock:
            return list(self._items.get(conversation_id, []))

    def clear(self, conversation_id: str) -> None:
        with self._lock:
            self._items.pop(conversation_id, None)
        log.info(f"cleared conversation {conversation_id}")

    def conversations(self) -> List[str]:
        with self._lock:
            return list(self._items.keys())

    def close(self) -> None:
        with self._lock:
            self._items.clear()


class MemorySummaryStore(SummaryStore):
    def __init__(self) -> None:
        self._items: Dict[str, ProjectSummary] = {}
        self._lock = threading.Lock()

    def get(self, conversation_id: str) -> Optional[ProjectSummary]:
        with self._lock:
            summary = self._items.get(conversation_id)
        return summary.model_copy() if summary is not None else None

    def set(self, conversation_id: str, summary: ProjectSummary) -> None:
        with self._lock:
            self._items[conversation_id] = summary.model_copy()
        log.debug(f"saved summary for conversation {conversation_id}")

    def delete(self, conversation_id: str) -> bool:
        with self._lock:
            return self._items.pop(conversation_id, None) is not None

    def close(self) -> None:
        with self._lock:
            self._items.clear()


class SqliteTranscriptStore(TranscriptStore):
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        db.initialize_db(db_path)

    def append(self, conversation_id: str, role: Role, content: str) -> Message:
        message = _new_message(conversation_id, role, content)
        db.insert_message(
            self.db_path,
            {
                "id": message.id,
                "conversation_id": conversation_id,
                "role": role,
                "content": content,
                "ts_iso": message.timestamp.isoformat(),
            },
        )
        return message

    def messages(self, conversation_id: str) -> List[Message]:
        return [
            Message(
                id=row["id"],
                conversation_id=row["conversation_id"],
                role=row["role"],
                content=row["content"],
                timestamp=datetime.fromisoformat(row["ts_iso"]),
            )
            for row in db.list_messages(self.db_path, conversation_id)
        ]

    def clear(self, conversation_id: str) -> None:
        deleted = db.delete_messages(self.db_path, conversation_id)
        log.info(f"cleared conversation {conversation_id} ({deleted} messages)")

    def conversations(self) -> List[str]:
        return db.list_conversation_ids(self.db_path)


class SqliteSummaryStore(SummaryStore):
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        db.initialize_db(db_path)

    def get(self, conversation_id: str) -> Optional[ProjectSummary]:
        data = db.fetch_summary(self.db_path, conversation_id)
        if data is None:
            return None
        return ProjectSummary.model_validate(data)

    def set(self, conversation_id: str, summary: ProjectSummary) -> None:
        db.upsert_summary(self.db_path, conversation_id, summary.model_dump())

    def delete(self, conversation_id: str) -> bool:
        return db.delete_summary(self.db_path, conversation_id)


class ConversationLocks:
    """One lock per conversation so a turn's read-modify-write is never interleaved.

    An entry lives only while some thread holds or waits for it, so the
    registry does not grow with every conversation id ever seen.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._holders: Dict[str, int] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def is_locked(self, conversation_id: str) -> bool:
        with self._guard:
            lock = self._locks.get(conversation_id)
        return lock is not None and lock.locked()

    @contextmanager
    def hold(self, conversation_id: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(conversation_id, threading.Lock())
            self._holders[conversation_id] = self._holders.get(conversation_id, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._holders[conversation_id] -= 1
                if not self._holders[conversation_id]:
                    del self._holders[conversation_id]
                    del self._locks[conversation_id]


def build_stores(backend: str, db_path: Optional[Path] = None) -> Tuple[TranscriptStore, SummaryStore]:
    backend = (backend or "memory").strip().lower()
    if backend == "memory":
        return MemoryTranscriptStore(), MemorySummaryStore()
    if backend == "sqlite":
        if db_path is None:
            raise ValueError("sqlite backend needs a db_path")
        return SqliteTranscriptStore(db_path), SqliteSummaryStore(db_path)
    raise ValueError(f"unknown store backend: {backend}")
