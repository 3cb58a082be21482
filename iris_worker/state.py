from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from fastapi import Request

from .config import Settings
from .stores import ConversationLocks, SummaryStore, TranscriptStore, build_stores


@dataclass
class State:
    """Application state shared across requests.

    Created once by the app factory, attached to FastAPI's app.state and
    closed by the app lifespan.
    """

    settings: Settings
    transcripts: TranscriptStore
    summaries: SummaryStore
    # Anything with generate(prompt) -> str and status() -> dict
    model_client: Any
    locks: ConversationLocks = field(default_factory=ConversationLocks)
    closed: bool = False

    @classmethod
    def create(cls, settings: Settings, model_client: Any, base_dir: Optional[Path] = None) -> "State":
        db_path = Path(settings.db_path)
        if not db_path.is_absolute() and base_dir is not None:
            db_path = base_dir / db_path
        transcripts, summaries = build_stores(settings.store_backend, db_path)
        return cls(settings=settings, transcripts=transcripts, summaries=summaries, model_client=model_client)

    def close(self) -> None:
        if self.closed:
            return
        self.transcripts.close()
        self.summaries.close()
        close = getattr(self.model_client, "close", None)
        if callable(close):
            close()
        self.closed = True
        logging.getLogger("app").info("state closed")


def get_state(request: Request) -> State:  # FastAPI dependency helper
    return request.app.state.state
