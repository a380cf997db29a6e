"""Shared fixtures: a fake LLM client and a store in a temp directory."""
from __future__ import annotations

import json
import os
import tempfile
from types import SimpleNamespace

# Keep log files out of the checkout while testing.
os.environ.setdefault("JOBCOLLECTOR_LOG_DIR", tempfile.mkdtemp(prefix="jobcollector-logs-"))

import pytest

from jobcollector.config import DEFAULT_SETTINGS
from jobcollector.controller import ApplicationController
from jobcollector.gateway import ExtractionGateway
from jobcollector.store import KeyValueFile, RecordStore


class FakeCompletions:
    """Stands in for ``client.chat.completions``; replays queued replies."""

    def __init__(self) -> None:
        self.replies: list = []
        self.calls: list[dict] = []

    def queue(self, reply) -> None:
        """A dict is sent back as JSON, a str verbatim, an exception is raised."""
        self.replies.append(reply)

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0) if self.replies else {}
        if isinstance(reply, BaseException):
            raise reply
        content = json.dumps(reply, ensure_ascii=False) if isinstance(reply, dict) else reply
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeClient:
    def __init__(self) -> None:
        self.chat = SimpleNamespace(completions=FakeCompletions())

    @property
    def completions(self) -> FakeCompletions:
        return self.chat.completions


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def page_text():
    """Mutable page text returned by the fake fetcher; records fetched URLs."""
    state = {"text": "", "fetched": [], "error": None}

    def fetch(url, timeout=15, max_chars=6000):
        state["fetched"].append(url)
        if state["error"] is not None:
            raise state["error"]
        return state["text"]

    state["fetch"] = fetch
    return state


@pytest.fixture
def gateway(fake_client, page_text) -> ExtractionGateway:
    return ExtractionGateway(
        api_key="test-key",
        settings=json.loads(json.dumps(DEFAULT_SETTINGS)),
        client=fake_client,
        page_fetcher=page_text["fetch"],
    )


@pytest.fixture
def storage_file(tmp_path):
    return tmp_path / "storage.json"


@pytest.fixture
def store(storage_file) -> RecordStore:
    return RecordStore(KeyValueFile(storage_file))


@pytest.fixture
def controller(store, gateway) -> ApplicationController:
    return ApplicationController(store, gateway)
