"""
Shared pytest fixtures for chatkeep tests.

Provides:
- In-memory durable and session media
- A StorageService wired to them
- Sample conversation data
"""

import pytest

from chatkeep.backends import MemoryStorage
from chatkeep.service import StorageService


@pytest.fixture
def durable():
    return MemoryStorage()


@pytest.fixture
def session_storage():
    return MemoryStorage()


@pytest.fixture
def service(durable, session_storage):
    return StorageService(durable, session_storage)


@pytest.fixture
def sample_history():
    return [
        {
            "id": 1,
            "title": "t",
            "messages": [{"text": "hi", "sender": "user"}],
            "timestamp": "2024-01-01T00:00:00.000Z",
        }
    ]
