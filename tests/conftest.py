"""Shared pytest fixtures for the Lundi Matin client tests."""

import json
from unittest.mock import patch

import pytest
import requests

BASE_URL = "https://api.example.test/v1/"


def make_response(status_code, payload=None, raw=None):
    """Build a real requests.Response carrying a JSON (or raw) body."""
    response = requests.Response()
    response.status_code = status_code
    response.encoding = "utf-8"
    if raw is not None:
        response._content = raw.encode("utf-8")
    else:
        response._content = json.dumps(payload if payload is not None else {}).encode("utf-8")
    return response


def auth_ok(token="T"):
    return make_response(200, {"datas": {"token": token}})


@pytest.fixture(autouse=True)
def base_url_env(monkeypatch):
    monkeypatch.setenv("LUNDI_MATIN_BASE_URL", BASE_URL)
    return BASE_URL


@pytest.fixture()
def mock_request():
    """Patch the transport so no test ever reaches the network."""
    with patch("lundimatin_client.requests.request") as mocked:
        yield mocked
