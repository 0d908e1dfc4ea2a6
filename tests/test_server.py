"""
Tests for the MCP tools, called directly against an in-memory service.
"""

import pytest

from chatkeep import server
from chatkeep.backends import MemoryStorage
from chatkeep.service import StorageService


@pytest.fixture(autouse=True)
def mcp_service(monkeypatch, sample_history):
    service = StorageService(MemoryStorage(), MemoryStorage())
    service.archive.save_archive(
        sample_history + [{"id": 2, "title": "Taxes", "messages": [], "timestamp": "2024-03-01T00:00:00.000Z"}]
    )
    monkeypatch.setattr(server, "_service", service)
    return service


class TestTools:
    def test_list_conversations(self):
        text = server.list_conversations()
        assert "1. **t** (2024-01-01)" in text
        assert "ID: `2` | 0 msgs" in text

    def test_list_pagination(self):
        text = server.list_conversations(limit=1)
        assert "offset=1" in text

    def test_list_keyword(self):
        assert "Taxes" in server.list_conversations(keyword="tax")
        assert "No conversations found matching 'zzz'." == server.list_conversations(keyword="zzz")

    def test_get_conversation(self):
        text = server.get_conversation(1)
        assert text.startswith("# t")
        assert "**User**:\nhi" in text

    def test_get_missing_conversation(self):
        assert server.get_conversation(42) == "Conversation not found: 42"

    def test_delete_conversation(self, mcp_service):
        assert server.delete_conversation(2) == "Deleted conversation 2."
        assert [c.id for c in mcp_service.archive.get_archive()] == [1]

    def test_storage_status(self):
        text = server.get_storage_status()
        assert "**Utilization**" in text
        assert "**Backup**: none" not in text
