"""Tests for startup event registration and the startup sequence."""
from unittest.mock import AsyncMock, patch
import pytest

from src.main import register_configured_events, startup_sequence


class TestRegisterConfiguredEvents:
    """Events from config are validated like any other registration."""

    def test_registers_valid_rules(self, registry):
        """Valid entries are registered; item defaults to PRICE."""
        rules = [
            {'exchange': 'Binance', 'condition': '>,100', 'base': 'BTC', 'quote': 'USDT', 'action': 'SMS,ALL'},
            {'exchange': 'Binance', 'item': 'PRICE', 'condition': '<,2', 'base': 'ETH', 'quote': 'BTC',
             'action': 'CONSOLE_PRINT'},
        ]
        assert register_configured_events(registry, rules) == 2
        assert registry.counts() == (2, 0)

    def test_skips_invalid_rules(self, registry):
        """Invalid or incomplete entries are skipped without aborting."""
        rules = [
            {'exchange': 'Kraken', 'condition': '>,1', 'base': 'BTC', 'quote': 'USD', 'action': 'SMS,ALL'},
            {'exchange': 'Binance', 'condition': '~,1', 'base': 'BTC', 'quote': 'USDT', 'action': 'SMS,ALL'},
            {'exchange': 'Binance', 'condition': '>,1', 'base': 'BTC', 'quote': 'USDT', 'action': 'SMS,nobody'},
            {'exchange': 'Binance', 'condition': '>,1', 'action': 'SMS,ALL'},
            {'exchange': 'Binance', 'condition': '>,1', 'base': 'BTC', 'quote': 'USDT', 'action': 'SMS,alice'},
        ]
        assert register_configured_events(registry, rules) == 1
        assert registry.counts() == (1, 0)


class TestStartupSequence:
    """Startup runs inside the bot's event loop."""

    @pytest.mark.asyncio
    async def test_startup_message_awaited(self, test_env_vars, registry, exchange_directory):
        """The startup message is sent before startup reports success."""
        rules = [{'exchange': 'Binance', 'condition': '>,1', 'base': 'BTC', 'quote': 'USDT', 'action': 'SMS,ALL'}]
        with patch('src.main.get_exchange_directory', return_value=exchange_directory), \
             patch('src.main.get_event_registry', return_value=registry), \
             patch('src.main.get_events_config', return_value={'rules': rules}), \
             patch('src.main.should_send_startup_message', return_value=True), \
             patch('src.main.template_startup', return_value="started") as mock_template, \
             patch('src.main.send_message_async', new_callable=AsyncMock, return_value=True) as mock_send:
            assert await startup_sequence() is True

        mock_template.assert_called_once_with(['Binance'], 1)
        mock_send.assert_awaited_once_with("started", to_admin=True)
        assert registry.counts() == (1, 0)

    @pytest.mark.asyncio
    async def test_startup_failure_alerts_admin(self, test_env_vars):
        """A failing startup awaits the admin alert and reports False."""
        with patch('src.main.get_exchange_directory', side_effect=RuntimeError("bad config")), \
             patch('src.main.template_error_admin', return_value="failed") as mock_template, \
             patch('src.main.send_message_async', new_callable=AsyncMock, return_value=True) as mock_send:
            assert await startup_sequence() is False

        mock_template.assert_called_once_with("Startup", "bad config", "Bot failed to start")
        mock_send.assert_awaited_once_with("failed", to_admin=True)
