"""Tests for the HTTP API."""

import sys
import threading

import pytest
from fastapi.testclient import TestClient

from format_modifications.main import app
from format_modifications.services.buffers import BufferStore
from format_modifications.services.modification_formatter import ModificationFormatter


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def pyfmt(client, formatter_command):
    response = client.put("/api/config/formatters/pyfmt", json=formatter_command)
    assert response.status_code == 200
    return "pyfmt"


def open_buffer(client, buffer_id, path, content):
    response = client.put(f"/api/buffers/{buffer_id}", json={"path": str(path), "content": content})
    assert response.status_code == 200
    return response.json()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestConfigAPI:
    def test_defaults(self, client):
        data = client.get("/api/config").json()
        assert data["vcs"] == "git"
        assert data["format_on_save"] is False
        assert data["diff_options"]["algorithm"] == "patience"
        assert data["diff_options"]["ctxlen"] == 0
        assert data["formatters"] == {}

    def test_update_is_persisted(self, client, isolated_state):
        response = client.put(
            "/api/config",
            json={"format_on_save": True, "diff_options": {"algorithm": "difflib"}, "command_timeout_s": 2.5},
        )
        assert response.status_code == 200

        data = client.get("/api/config").json()
        assert data["format_on_save"] is True
        assert data["diff_options"]["algorithm"] == "difflib"
        assert data["diff_options"]["indent_heuristic"] is True
        assert data["command_timeout_s"] == 2.5
        assert (isolated_state / "config.json").exists()

    def test_invalid_diff_options(self, client):
        response = client.put("/api/config", json={"diff_options": {"ctxlen": -1}})
        assert response.status_code == 400

    def test_unsupported_vcs(self, client):
        response = client.put("/api/config", json={"vcs": "svn"})
        assert response.status_code == 400
        assert "isn't supported" in response.json()["detail"]

    def test_formatter_definitions(self, client, pyfmt):
        client.put("/api/config/formatters/whole", json={"command": ["cat"]})

        formatters = {f["name"]: f for f in client.get("/api/config/formatters").json()["formatters"]}
        assert formatters["pyfmt"]["supportsRangeFormatting"] is True
        assert formatters["whole"]["supportsRangeFormatting"] is False

        assert client.delete("/api/config/formatters/whole").status_code == 200
        assert client.delete("/api/config/formatters/whole").status_code == 404
        assert [f["name"] for f in client.get("/api/config/formatters").json()["formatters"]] == ["pyfmt"]

    def test_formatter_needs_a_command(self, client):
        response = client.put("/api/config/formatters/empty", json={"command": []})
        assert response.status_code == 400


class TestBufferAPI:
    def test_open_get_close(self, client, tmp_path):
        data = open_buffer(client, "1", tmp_path / "f.py", "a\nb\n")
        assert data == {
            "buffer_id": "1",
            "path": str(tmp_path / "f.py"),
            "content": "a\nb\n",
            "attached_clients": [],
        }

        open_buffer(client, "1", tmp_path / "f.py", "c\n")
        assert client.get("/api/buffers/1").json()["content"] == "c\n"

        response = client.delete("/api/buffers/1")
        assert response.status_code == 200
        assert response.json()["detached"] == 0
        assert client.get("/api/buffers/1").status_code == 404

    def test_unknown_buffer(self, client):
        response = client.get("/api/buffers/nope")
        assert response.status_code == 404
        assert response.json()["detail"] == "buffer nope is not open"
        assert client.delete("/api/buffers/nope").status_code == 404


class TestAttachAPI:
    def test_attach(self, client, pyfmt, tmp_path):
        open_buffer(client, "1", tmp_path / "f.py", "a\n")
        response = client.post(
            "/api/format/attach",
            json={"buffer_id": "1", "client_id": pyfmt, "config": {"format_on_save": True}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["client_id"] == "pyfmt"
        assert data["config"]["format_on_save"] is True
        assert data["config"]["vcs"] == "git"
        assert client.get("/api/buffers/1").json()["attached_clients"] == ["pyfmt"]

    def test_attach_to_unknown_buffer(self, client, pyfmt):
        response = client.post("/api/format/attach", json={"buffer_id": "9", "client_id": pyfmt})
        assert response.status_code == 404

    def test_attach_unknown_client(self, client, tmp_path):
        open_buffer(client, "1", tmp_path / "f.py", "a\n")
        response = client.post("/api/format/attach", json={"buffer_id": "1", "client_id": "ghost"})
        assert response.status_code == 404

    def test_client_without_range_formatting(self, client, tmp_path):
        client.put("/api/config/formatters/whole", json={"command": ["cat"]})
        open_buffer(client, "1", tmp_path / "f.py", "a\n")

        response = client.post("/api/format/attach", json={"buffer_id": "1", "client_id": "whole"})
        assert response.status_code == 400
        assert "range formatting provider" in response.json()["detail"]

    def test_unknown_config_key(self, client, pyfmt, tmp_path):
        open_buffer(client, "1", tmp_path / "f.py", "a\n")
        response = client.post(
            "/api/format/attach",
            json={"buffer_id": "1", "client_id": pyfmt, "config": {"colour": "blue"}},
        )
        assert response.status_code == 400
        assert response.json()["detail"].startswith("invalid configuration")

    def test_closing_buffer_detaches(self, client, pyfmt, tmp_path):
        open_buffer(client, "1", tmp_path / "f.py", "a\n")
        client.post("/api/format/attach", json={"buffer_id": "1", "client_id": pyfmt})
        assert client.delete("/api/buffers/1").json()["detached"] == 1


class TestFormatAPI:
    def test_nothing_attached(self, client, tmp_path):
        open_buffer(client, "1", tmp_path / "f.py", "a=1\n")
        response = client.post("/api/format/modifications", json={"buffer_id": "1"})

        assert response.status_code == 200
        data = response.json()
        assert data["changed"] is False
        assert data["outcomes"] == []
        assert data["notifications"][0]["level"] == "warning"
        assert data["diff"] is None

    def test_unknown_buffer(self, client):
        response = client.post("/api/format/modifications", json={"buffer_id": "9"})
        assert response.status_code == 404

    def test_modified_lines_are_formatted(self, client, pyfmt, git_repo):
        path = git_repo.commit("mod.py", "a=1\nb = 2\nc=3\n")
        open_buffer(client, "1", path, "a=1\nb = 2\nd=4;e=5\nc=3\n")
        client.post("/api/format/attach", json={"buffer_id": "1", "client_id": pyfmt})

        response = client.post("/api/format/modifications", json={"buffer_id": "1"})

        assert response.status_code == 200
        data = response.json()
        assert data["content"] == "a=1\nb = 2\nd = 4\ne = 5\nc=3\n"
        assert data["changed"] is True
        assert data["outcomes"][0]["status"] == "formatted_modifications"
        assert data["diff"]["hunks"] == [{"old_start": 3, "old_count": 1, "new_start": 3, "new_count": 2}]
        assert "+d = 4" in data["diff"]["unified_diff"]
        assert client.get("/api/buffers/1").json()["content"] == data["content"]

    def test_outside_repository_warns(self, client, pyfmt, tmp_path):
        path = tmp_path / "loose" / "f.py"
        open_buffer(client, "1", path, "a=1\n")
        client.post("/api/format/attach", json={"buffer_id": "1", "client_id": pyfmt})

        data = client.post("/api/format/modifications", json={"buffer_id": "1"}).json()
        if data["outcomes"][0]["status"] != "skipped_not_repository":
            pytest.skip("temporary directory is inside a repository")
        assert data["changed"] is False
        assert data["notifications"][0]["message"].endswith("doing nothing")

    def test_save_runs_only_format_on_save_clients(self, client, pyfmt, git_repo):
        git_repo.commit("mod.py", "a=1\n")
        path = git_repo.root / "new.py"
        open_buffer(client, "1", path, "x=1;y=2\n")
        client.post("/api/format/attach", json={"buffer_id": "1", "client_id": pyfmt})

        data = client.post("/api/format/save", json={"buffer_id": "1"}).json()
        assert data["outcomes"] == []
        assert data["content"] == "x=1;y=2\n"

        client.post(
            "/api/format/attach",
            json={"buffer_id": "1", "client_id": pyfmt, "config": {"format_on_save": True}},
        )
        data = client.post("/api/format/save", json={"buffer_id": "1"}).json()
        assert data["outcomes"][0]["status"] == "formatted_file"
        assert data["content"] == "x = 1\ny = 2\n"

    def test_failing_formatter_is_a_bad_gateway(self, client, git_repo):
        client.put(
            "/api/config/formatters/broken",
            json={
                "command": [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(2)"],
                "range_args": [],
            },
        )
        git_repo.commit("mod.py", "a=1\n")
        open_buffer(client, "1", git_repo.root / "new.py", "x=1\n")
        client.post("/api/format/attach", json={"buffer_id": "1", "client_id": "broken"})

        response = client.post("/api/format/modifications", json={"buffer_id": "1"})

        assert response.status_code == 502
        assert response.json()["detail"]["stderr"] == ["boom"]
        assert client.get("/api/buffers/1").json()["content"] == "x=1\n"
        assert not BufferStore.get_instance().get("1").lock.locked()

    def test_buffer_update_waits_for_formatting(self, client, tmp_path, monkeypatch):
        path = tmp_path / "f.py"
        open_buffer(client, "1", path, "a=1\n")
        writers = []

        def format_buffer(self, buffer, attachments, notifier, trigger="command"):
            writer = threading.Thread(
                target=BufferStore.get_instance().open, args=("1", str(path), "edited\n")
            )
            writer.start()
            writer.join(timeout=0.2)
            writers.append((writer, writer.is_alive()))
            return []

        monkeypatch.setattr(ModificationFormatter, "format_buffer", format_buffer)
        response = client.post("/api/format/modifications", json={"buffer_id": "1"})
        writer, blocked = writers[0]
        writer.join(timeout=5)

        assert blocked
        assert response.json()["content"] == "a=1\n"
        assert response.json()["changed"] is False
        assert response.json()["diff"] is None
        assert client.get("/api/buffers/1").json()["content"] == "edited\n"
