"""
Tests for the chatkeep CLI.
"""

import json

import pytest
from click.testing import CliRunner

from chatkeep import cli as cli_module
from chatkeep.cli import cli
from chatkeep.service import StorageService


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "data" / "storage.db"
    monkeypatch.setattr(cli_module, "DURABLE_PATH", path)
    monkeypatch.setattr(cli_module, "DATA_DIR", path.parent)
    return path


@pytest.fixture
def seeded(db_path, sample_history):
    service = StorageService.open(db_path)
    service.archive.save_archive(
        sample_history
        + [
            {
                "id": 2,
                "title": "Soup recipes...",
                "messages": [
                    {"text": "Soup recipes please", "sender": "user"},
                    {"text": "Try minestrone.", "sender": "assistant"},
                ],
                "timestamp": "2024-02-01T00:00:00.000Z",
            }
        ]
    )
    service.close()
    return db_path


@pytest.fixture
def runner():
    return CliRunner()


class TestHistory:
    def test_empty(self, runner, db_path):
        result = runner.invoke(cli, ["history"])
        assert result.exit_code == 0
        assert "No conversations found." in result.output

    def test_lists_and_filters(self, runner, seeded):
        result = runner.invoke(cli, ["history"])
        assert "Soup recipes..." in result.output
        assert "1  2024-01-01  t (1 msgs)" in result.output

        result = runner.invoke(cli, ["history", "--keyword", "minestrone"])
        assert "Soup recipes..." in result.output
        assert "2024-01-01" not in result.output


class TestShowAndDelete:
    def test_show(self, runner, seeded):
        result = runner.invoke(cli, ["show", "2"])
        assert result.exit_code == 0
        assert "Try minestrone." in result.output

    def test_show_missing(self, runner, seeded):
        result = runner.invoke(cli, ["show", "99"])
        assert result.exit_code != 0
        assert "Conversation not found: 99" in result.output

    def test_delete(self, runner, seeded):
        result = runner.invoke(cli, ["delete", "2"])
        assert result.exit_code == 0
        service = StorageService.open(seeded)
        assert [c.id for c in service.archive.get_archive()] == [1]
        service.close()


class TestMaintenance:
    def test_status(self, runner, seeded):
        result = runner.invoke(cli, ["status"])
        assert result.exit_code == 0
        assert "Conversations:  2" in result.output
        assert "Backup:         2 conversations" in result.output

    def test_restore_after_corruption(self, runner, seeded):
        service = StorageService.open(seeded)
        service.durable.set_item("chatHistory", "broken")
        service.close()

        result = runner.invoke(cli, ["restore"])
        assert result.exit_code == 0
        service = StorageService.open(seeded)
        assert len(service.archive.get_archive()) == 2
        service.close()

    def test_restore_without_backup(self, runner, db_path):
        result = runner.invoke(cli, ["restore"])
        assert result.exit_code != 0

    def test_backup(self, runner, seeded):
        assert runner.invoke(cli, ["backup"]).exit_code == 0

    def test_reset(self, runner, seeded):
        result = runner.invoke(cli, ["reset", "--yes"])
        assert result.exit_code == 0
        service = StorageService.open(seeded)
        assert service.archive.get_archive() == []
        assert service.durable.keys() == []
        service.close()


class TestSettings:
    def test_show_defaults(self, runner, db_path):
        result = runner.invoke(cli, ["settings"])
        assert json.loads(result.output) == {
            "theme": "light",
            "fontSize": "medium",
            "autoScroll": True,
        }

    def test_update(self, runner, db_path):
        runner.invoke(cli, ["settings", "--theme", "dark", "--no-auto-scroll"])
        result = runner.invoke(cli, ["settings"])
        assert json.loads(result.output)["theme"] == "dark"
        assert json.loads(result.output)["autoScroll"] is False


class TestExportImport:
    def test_export_then_import(self, runner, seeded, tmp_path):
        out = tmp_path / "archive.json"
        assert runner.invoke(cli, ["export", str(out)]).exit_code == 0
        exported = json.loads(out.read_text())
        assert [c["id"] for c in exported] == [1, 2]

        # Merge skips known ids
        result = runner.invoke(cli, ["import", str(out)])
        assert result.exit_code == 0
        assert "Imported 0 conversations (2 in archive)" in result.output

    def test_import_replace(self, runner, seeded, tmp_path):
        src = tmp_path / "new.json"
        src.write_text(json.dumps([{"id": 7, "title": "fresh", "messages": []}]))
        result = runner.invoke(cli, ["import", str(src), "--replace"])
        assert result.exit_code == 0
        service = StorageService.open(seeded)
        assert [c.id for c in service.archive.get_archive()] == [7]
        service.close()

    def test_import_rejects_non_list(self, runner, db_path, tmp_path):
        src = tmp_path / "bad.json"
        src.write_text(json.dumps({"id": 1}))
        result = runner.invoke(cli, ["import", str(src)])
        assert result.exit_code != 0
        assert "JSON array" in result.output

    def test_import_repairs_unusable_ids(self, runner, seeded, tmp_path):
        src = tmp_path / "odd.json"
        src.write_text(json.dumps([{"id": [1], "title": "x"}, {"id": {"a": 1}, "title": "y"}]))
        result = runner.invoke(cli, ["import", str(src)])
        assert result.exit_code == 0
        assert "Imported 2 conversations (4 in archive)" in result.output
