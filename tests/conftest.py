import json
import threading
import time
from typing import List, Optional

import pytest

from iris_worker.config import Settings
from iris_worker.state import State
from iris_worker.stores import MemorySummaryStore, MemoryTranscriptStore


class FakeModelClient:
    """Stands in for the model service: replays canned replies and records prompts."""

    def __init__(self, replies: Optional[List[str]] = None, error: Optional[Exception] = None, delay: float = 0.0):
        self.replies = list(replies or [])
        self.error = error
        self.delay = delay
        self.prompts: List[str] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def generate(self, prompt: str) -> str:
        with self._lock:
            self.prompts.append(prompt)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            if self.error is not None:
                raise self.error
            with self._lock:
                return self.replies.pop(0) if self.replies else "no idea"
        finally:
            with self._lock:
                self.active -= 1

    def status(self):
        return {"available": True, "model_loaded": True, "error": None}


def reply(title=None, start_date=None, end_date=None, budget=None) -> str:
    return json.dumps({"title": title, "start_date": start_date, "end_date": end_date, "budget": budget})


@pytest.fixture
def settings() -> Settings:
    return Settings(store_backend="memory", reference_year=2025, history_limit=None)


@pytest.fixture
def make_state(settings):
    def _make(client=None) -> State:
        return State(
            settings=settings,
            transcripts=MemoryTranscriptStore(),
            summaries=MemorySummaryStore(),
            model_client=client if client is not None else FakeModelClient(),
        )

    return _make
