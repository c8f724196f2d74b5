"""Shared test fixtures for chat-library."""

import json
from datetime import datetime, timezone

import pytest

from chat_library.core import Group, HistoryItem, Message, Thread
from chat_library.library import Library
from chat_library.store import EntityStore


@pytest.fixture
def travel_group():
    return Group(id="g1", name="Travel")


@pytest.fixture
def sample_threads():
    """Three threads, newest first: one filed, one orphaned, one loose."""
    return [
        Thread(
            id="a",
            title="Trip",
            messages=[Message(role="user", content="plan Kyoto")],
            created_at=datetime(2025, 3, 1, 9, 0, 0, tzinfo=timezone.utc),
            group_id="g1",
        ),
        Thread(
            id="b",
            title="Refactor auth module",
            messages=[
                Message(role="user", content="Split the token validation out"),
                Message(role="assistant", content="Here is the new `validate_token` helper."),
            ],
            created_at=datetime(2025, 2, 20, 14, 30, 0, tzinfo=timezone.utc),
            group_id="deleted-group",
        ),
        Thread(
            id="c",
            title="Dinner ideas",
            messages=[
                Message(role="user", content="Something with miso"),
                Message(role="assistant", content=""),
            ],
            created_at=datetime(2025, 2, 1, 18, 0, 0, tzinfo=timezone.utc),
        ),
    ]


@pytest.fixture
def store(sample_threads, travel_group):
    return EntityStore(threads=sample_threads, groups=[travel_group])


@pytest.fixture
def library(store):
    return Library(store=store)


@pytest.fixture
def history_items():
    return [
        HistoryItem(
            id="h2",
            title="Kyoto temples guide",
            url="https://example.com/kyoto",
            timestamp=datetime(2025, 3, 2, 8, 0, 0, tzinfo=timezone.utc),
            type="visit",
        ),
        HistoryItem(
            id="h1",
            title="python dataclasses",
            url="https://search.example.com/?q=python+dataclasses",
            timestamp=datetime(2025, 3, 1, 8, 0, 0, tzinfo=timezone.utc),
            type="search",
        ),
    ]


@pytest.fixture
def legacy_document():
    """A document written by an older client: epoch-ms timestamps, no group names."""
    return json.dumps([
        {
            "id": "tab-1",
            "title": "Old chat",
            "messages": [{"role": "user", "content": "hello"}, {"role": "assistant", "content": "hi"}],
            "createdAt": 1736935200000,
            "groupId": "g9",
        },
        {
            "id": "tab-2",
            "messages": [],
        },
    ])
