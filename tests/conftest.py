"""Shared test fixtures and configuration."""
from pathlib import Path
from unittest.mock import AsyncMock, Mock
import pytest
import yaml

from src.datafeeds.exchanges import ExchangeDirectory
from src.events.registry import EventRegistry
from src.notif.contacts import ContactDirectory

from tests.helpers.fake_feed import FakePriceFeed


@pytest.fixture
def exchange_directory() -> ExchangeDirectory:
    """Binance enabled, Kraken known but disabled."""
    return ExchangeDirectory([
        {'name': 'Binance', 'enabled': True, 'api_base': 'https://api.binance.com'},
        {'name': 'Kraken', 'enabled': False, 'api_base': 'https://api.kraken.example'},
    ])


@pytest.fixture
def contact_directory() -> ContactDirectory:
    return ContactDirectory({'alice': '1001', 'bob': '1002'})


@pytest.fixture
def registry(exchange_directory, contact_directory) -> EventRegistry:
    return EventRegistry(exchange_directory, contact_directory)


@pytest.fixture
def price_feed() -> FakePriceFeed:
    return FakePriceFeed()


@pytest.fixture
def dispatcher() -> Mock:
    """Dispatcher double that records triggered events."""
    mock = Mock()
    mock.dispatch = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def test_config_yaml(tmp_path: Path) -> Path:
    """Create a temporary test config YAML file."""
    config = {
        'bot': {
            'name': 'Price Event Bot Test',
            'version': '2.0.0',
            'timezone': 'UTC'
        },
        'telegram': {
            'startup_message': False
        },
        'exchanges': [
            {'name': 'Binance', 'enabled': True, 'api_base': 'https://api.binance.com'},
            {'name': 'Binance.US', 'enabled': False, 'api_base': 'https://api.binance.us'}
        ],
        'contacts': [
            {'name': 'ADMIN', 'chat_id': '${ADMIN_CHANNEL_ID}'},
            {'name': 'alice', 'chat_id': '1001'}
        ],
        'events': {
            'check_interval': 10,
            'lookup_timeout': 2,
            'rules': [
                {
                    'exchange': 'Binance',
                    'item': 'PRICE',
                    'condition': '>,100000',
                    'base': 'BTC',
                    'quote': 'USDT',
                    'action': 'SMS,ALL'
                }
            ]
        },
        'healthcheck': {
            'port': 9090
        }
    }

    config_file = tmp_path / 'test_config.yaml'
    with open(config_file, 'w', encoding='utf-8') as f:
        yaml.dump(config, f)

    return config_file


@pytest.fixture
def test_env_vars(monkeypatch, test_config_yaml: Path):
    """Set test environment variables."""
    monkeypatch.setenv('BOT_TOKEN', 'test_token_123456:ABC-DEF1234ghIkl-zyx57W2v1u123ew11')
    monkeypatch.setenv('ADMIN_CHANNEL_ID', '-1009876543210')
    monkeypatch.setenv('CONFIG_FILE', str(test_config_yaml))
    monkeypatch.setenv('LOG_LEVEL', 'DEBUG')
