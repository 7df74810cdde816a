"""Tests for the MCP server wiring."""

from typing import Any
from unittest.mock import patch

import pytest
from starlette.testclient import TestClient

from shellfleet.config import Settings
from shellfleet.dependencies import Dependencies
from shellfleet.registry import Inventory
from shellfleet.services import state


@pytest.fixture
def deps() -> Dependencies:
    return Dependencies.from_settings(Settings(), Inventory(hosts=[], accounts=[]))


@pytest.mark.asyncio
async def test_tools_registered():
    from shellfleet.server import create_server

    server = create_server()
    tools = await server.get_tools()

    for name in ("create_account", "run_limit_check", "configure_limit_check", "fleet_status"):
        assert name in tools


@pytest.mark.asyncio
async def test_lifespan_starts_and_stops_enforcer(deps):
    from shellfleet.server import app_lifespan, create_server

    server = create_server()

    with patch("shellfleet.server.Dependencies.create", return_value=deps):
        async with app_lifespan(server) as result:
            assert result == {"hosts": []}
            assert deps.enforcer.running
            assert state.get_deps() is deps

    assert not deps.enforcer.running
    state.reset_state()


class TestHealthCheck:
    """Tests for health check endpoint."""

    @pytest.fixture
    def client(self) -> TestClient:
        from shellfleet.server import create_server

        return TestClient(create_server().http_app())

    def test_health_returns_ok(self, client: Any) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.text == "OK"
        assert "text/plain" in response.headers["content-type"]
