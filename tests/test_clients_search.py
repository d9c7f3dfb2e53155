"""Tests for the clients search runner."""

import csv
import logging
from unittest.mock import MagicMock, patch

import pytest

import clients_search
from lundimatin_client import AuthenticationError, LundimatinClient

CONTACTS = [
    {"id": 1, "nom": "Dupont", "ville": "Paris", "tags": ["vip"]},
    {"id": 2, "nom": "Martin", "ville": "Lyon"},
]


@pytest.fixture()
def runner(monkeypatch, tmp_path):
    monkeypatch.setattr(clients_search, "USERNAME", "alice")
    monkeypatch.setattr(clients_search, "PASSWORD", "secret")
    monkeypatch.setattr(clients_search, "SEARCH", "")
    monkeypatch.setattr(clients_search, "OUT_CSV", tmp_path / "reports" / "clients.csv")
    client = MagicMock(spec=LundimatinClient)
    with patch.object(clients_search, "LundimatinClient", return_value=client):
        yield client


def read_rows(path):
    with path.open(newline="", encoding="utf-8") as fh:
        return list(csv.DictReader(fh))


class TestWriteCsv:
    def test_flat_fields_and_dates(self, tmp_path):
        out = tmp_path / "nested" / "out.csv"
        clients_search.write_csv(CONTACTS, out)

        rows = read_rows(out)
        assert [r["nom"] for r in rows] == ["Dupont", "Martin"]
        assert "tags" not in rows[0]
        assert rows[0]["_date"]
        assert rows[0]["_timestamp_local"]


class TestMain:
    def test_missing_credentials_exit(self, monkeypatch):
        monkeypatch.setattr(clients_search, "USERNAME", "")
        with pytest.raises(SystemExit) as excinfo:
            clients_search.main()
        assert excinfo.value.code == 1

    def test_api_error_exits(self, runner):
        runner.get_clients.side_effect = AuthenticationError("Unauthorized", status_code=401)
        with pytest.raises(SystemExit) as excinfo:
            clients_search.main()
        assert excinfo.value.code == 1
        assert not clients_search.OUT_CSV.exists()

    def test_sends_search_params(self, runner):
        runner.get_clients.return_value = {"datas": []}
        clients_search.main()
        params = runner.get_clients.call_args.args[0]
        assert params["sort"] == "-nom"
        assert params["fields"].startswith("nom,")

    def test_filters_and_writes_matches(self, runner, monkeypatch):
        monkeypatch.setattr(clients_search, "SEARCH", "lyon")
        runner.get_clients.return_value = {"datas": CONTACTS}
        clients_search.main()
        rows = read_rows(clients_search.OUT_CSV)
        assert [r["nom"] for r in rows] == ["Martin"]

    def test_no_match_writes_nothing(self, runner, monkeypatch):
        monkeypatch.setattr(clients_search, "SEARCH", "zzz")
        runner.get_clients.return_value = {"datas": CONTACTS}
        clients_search.main()
        assert not clients_search.OUT_CSV.exists()

    def test_warnings_are_logged(self, runner, caplog):
        runner.get_clients.return_value = {"datas": [], "warnings": ["limit reached"]}
        with caplog.at_level(logging.WARNING):
            clients_search.main()
        assert "limit reached" in caplog.text

    def test_single_object_payload_is_written(self, runner):
        runner.get_clients.return_value = {"datas": {"id": 9, "nom": "Seul"}}
        clients_search.main()
        assert [r["nom"] for r in read_rows(clients_search.OUT_CSV)] == ["Seul"]

    def test_array_body_does_not_crash(self, runner):
        runner.get_clients.return_value = [{"nom": "x"}]
        clients_search.main()
        assert not clients_search.OUT_CSV.exists()
