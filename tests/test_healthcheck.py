"""Tests for the healthcheck HTTP handlers."""
import json
import pytest
from aiohttp.test_utils import make_mocked_request

from src.utils.healthcheck import HealthcheckServer


class TestHealthcheckHandlers:
    """Handler responses without binding a socket."""

    @pytest.mark.asyncio
    async def test_health(self):
        """/health returns ok."""
        server = HealthcheckServer()
        response = await server.health_handler(make_mocked_request('GET', '/health'))
        assert response.status == 200
        assert json.loads(response.text)['status'] == 'ok'

    @pytest.mark.asyncio
    async def test_status_reports_event_counts(self, registry):
        """/status reports total, executed and pending events."""
        first = registry.add("Binance", "PRICE", ">,1", "BTC", "USDT", "SMS,ALL")
        registry.add("Binance", "PRICE", ">,1", "ETH", "USDT", "SMS,ALL")
        registry.mark_executed(first)

        server = HealthcheckServer(registry=registry)
        response = await server.status_handler(make_mocked_request('GET', '/status'))
        body = json.loads(response.text)

        assert body['events_total'] == 2
        assert body['events_executed'] == 1
        assert body['events_pending'] == 1
        assert body['last_trigger'].endswith('s ago')

    @pytest.mark.asyncio
    async def test_status_without_registry(self):
        """/status works before any registry is attached."""
        server = HealthcheckServer()
        response = await server.status_handler(make_mocked_request('GET', '/status'))
        body = json.loads(response.text)
        assert body['events_total'] == 0
        assert body['last_trigger'] is None
