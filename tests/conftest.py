"""Shared test fixtures."""

from unittest.mock import AsyncMock

import pytest

from dashvault.config import settings
from dashvault.core.encryption import CredentialEnvelope
from dashvault.models.schemas import ConnectionCredentials

TEST_KEY_HEX = "00112233445566778899aabbccddeeff" * 2
OTHER_KEY_HEX = "ffeeddccbbaa99887766554433221100" * 2


@pytest.fixture
def encryption_key(monkeypatch):
    """Configure a known ENCRYPTION_KEY for module-level helpers."""
    monkeypatch.setattr(settings, "encryption_key", TEST_KEY_HEX)
    return TEST_KEY_HEX


@pytest.fixture
def envelope():
    return CredentialEnvelope.from_hex(TEST_KEY_HEX)


@pytest.fixture
def credentials():
    return ConnectionCredentials(
        uri="neo4j://graph.internal:7687",
        username="neo4j",
        password="s3cret:with:colons",
        database="movies",
    )


@pytest.fixture
def mock_executor():
    """Query executor with canned responses."""
    executor = AsyncMock()
    executor.execute = AsyncMock(
        return_value={"data": [{"title": "The Matrix"}], "fields": ["title"]}
    )
    executor.check = AsyncMock(return_value=True)
    return executor


@pytest.fixture
def legacy_layout():
    return {
        "widgets": [
            {
                "id": "w1",
                "chartType": "table",
                "connectionId": "c1",
                "query": "SELECT 1",
            }
        ],
        "gridLayout": [{"i": "w1", "x": 0, "y": 0, "w": 6, "h": 4}],
    }


@pytest.fixture
def v2_layout():
    return {
        "version": 2,
        "pages": [
            {
                "id": "p1",
                "title": "Overview",
                "widgets": [
                    {
                        "id": "w1",
                        "chartType": "bar",
                        "connectionId": "c1",
                        "query": "MATCH (n) RETURN n",
                    }
                ],
                "gridLayout": [{"i": "w1", "x": 0, "y": 0, "w": 4, "h": 3}],
            },
            {"id": "p2", "title": "Details", "widgets": [], "gridLayout": []},
        ],
    }
