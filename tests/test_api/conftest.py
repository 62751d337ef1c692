"""Shared fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient

from push_bridge.api.app import create_app
from push_bridge.api.dependencies import (
    get_poller,
    get_processed_ledger,
    get_token_registry,
)
from push_bridge.storage.ledger import ProcessedLedger
from push_bridge.storage.tokens import TokenRegistry

FEED_URL = "https://ads.example.com/api/ads"


@pytest.fixture
def api_env(monkeypatch, tmp_path):
    """Environment for create_app(): poller off, state under tmp_path."""
    monkeypatch.setenv("ADS_API_URL", FEED_URL)
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv("POLLER_ENABLED", "false")
    monkeypatch.setenv("POLL_INTERVAL_SECONDS", "120")
    return tmp_path


@pytest.fixture
def registry(api_env):
    return TokenRegistry(path=api_env / "push_tokens.json")


@pytest.fixture
def ledger(api_env):
    return ProcessedLedger(path=api_env / "processed_ads.json")


@pytest.fixture
def client(api_env, registry, ledger):
    app = create_app()
    app.dependency_overrides[get_token_registry] = lambda: registry
    app.dependency_overrides[get_processed_ledger] = lambda: ledger
    app.dependency_overrides[get_poller] = lambda: None

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
