"""
Tests for the root and health endpoints
"""
from unittest.mock import MagicMock, patch

import psycopg2


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "online"


@patch('comanda.main.get_db_connection_with_retry')
def test_health_connected(mock_get_conn, client):
    mock_get_conn.return_value = MagicMock()

    body = client.get("/health").json()

    assert body["status"] == "healthy"
    assert body["database"]["status"] == "connected"
    mock_get_conn.assert_called_once_with(max_retries=1, retry_delay=0.5)


@patch('comanda.main.get_db_connection_with_retry')
def test_health_degraded(mock_get_conn, client):
    mock_get_conn.side_effect = psycopg2.OperationalError("could not connect")

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert response.json()["database"]["status"] == "disconnected"
