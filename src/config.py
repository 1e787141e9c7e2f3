import os
import yaml
from pathlib import Path
from typing import Dict, List, Any, Optional
from dotenv import load_dotenv
from loguru import logger

# Load environment variables from .env
load_dotenv(dotenv_path=os.path.join(os.path.dirname(os.path.dirname(__file__)), ".env"))

# Environment variables (secrets)
BOT_TOKEN = os.getenv("BOT_TOKEN", "")
ADMIN_CHANNEL_ID = os.getenv("ADMIN_CHANNEL_ID", "")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
DEFAULT_CONFIG_FILE = "./configs/default.yaml"

REQUIRED_SECTIONS = ['bot', 'exchanges', 'contacts', 'events']


def _config_file() -> str:
    return os.getenv("CONFIG_FILE", DEFAULT_CONFIG_FILE)


def _substitute_env(value: Any, default: Any = None) -> Any:
    """Replace a "${VAR}" string with the environment value of VAR."""
    if isinstance(value, str) and value.startswith('${') and value.endswith('}'):
        return os.getenv(value[2:-1], default)
    return value


class ConfigLoader:
    """Loads and validates YAML configuration with environment variable substitution."""

    def __init__(self, config_path: str):
        self.config_path = Path(config_path)
        self._config: Optional[Dict[str, Any]] = None
        self._load()

    def _load(self):
        """Load YAML config file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, 'r', encoding='utf-8') as f:
            self._config = yaml.safe_load(f) or {}

        for section in REQUIRED_SECTIONS:
            if section not in self._config:
                raise ValueError(f"Missing required config section: {section}")

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get config value by dot-notation path.
        Example: config.get('events.check_interval') -> 5
        """
        keys = key_path.split('.')
        value = self._config

        for key in keys:
            if isinstance(value, dict):
                value = value.get(key)
                if value is None:
                    return default
            else:
                return default

        return _substitute_env(value, default)

    @property
    def raw(self) -> Dict[str, Any]:
        """Get raw config dict."""
        return self._config


# Global config instance (lazy-loaded)
_config_instance: Optional[ConfigLoader] = None


def get_config() -> ConfigLoader:
    """Get global config instance (singleton; reloads if CONFIG_FILE changes)."""
    global _config_instance
    path = _config_file()
    if _config_instance is None or str(_config_instance.config_path) != str(Path(path)):
        _config_instance = ConfigLoader(path)
    return _config_instance


def reload_config():
    """Reload config from file."""
    global _config_instance
    _config_instance = ConfigLoader(_config_file())


# Helper functions for common config access
def get_bot_version() -> str:
    return get_config().get('bot.version', '1.0.0')


def get_bot_name() -> str:
    return get_config().get('bot.name', 'Price Event Bot')


def get_timezone() -> str:
    return get_config().get('bot.timezone', 'UTC')


def get_exchanges_config() -> List[Dict[str, Any]]:
    """
    Exchange entries: [{name, enabled, api_base}].
    Entries without a name are dropped; `enabled` defaults to True.
    """
    exchanges = get_config().get('exchanges', [])
    if not isinstance(exchanges, list):
        return []

    result = []
    for entry in exchanges:
        if not isinstance(entry, dict) or not entry.get('name'):
            logger.warning(f"Ignoring invalid exchange config entry: {entry}")
            continue
        result.append({
            'name': str(entry['name']),
            'enabled': bool(entry.get('enabled', True)),
            'api_base': entry.get('api_base', 'https://api.binance.com'),
        })
    return result


def get_contacts_config() -> Dict[str, str]:
    """Contact name -> chat id. Values may use ${ENV_VAR} substitution."""
    contacts = get_config().get('contacts', [])
    if not isinstance(contacts, list):
        return {}

    result: Dict[str, str] = {}
    for entry in contacts:
        if not isinstance(entry, dict) or not entry.get('name'):
            logger.warning(f"Ignoring invalid contact config entry: {entry}")
            continue
        chat_id = _substitute_env(entry.get('chat_id'))
        if not chat_id:
            logger.warning(f"Contact {entry['name']} has no chat_id, skipping")
            continue
        result[str(entry['name'])] = str(chat_id)
    return result


def get_events_config() -> Dict[str, Any]:
    """Get event engine configuration with validation and safe defaults."""
    events_config = get_config().get('events', {})

    if not isinstance(events_config, dict):
        events_config = {}

    events_config.setdefault('check_interval', 5)
    events_config.setdefault('lookup_timeout', 3.0)
    events_config.setdefault('max_retries', 1)
    events_config.setdefault('rules', [])

    try:
        check_interval = float(events_config.get('check_interval', 5))
        events_config['check_interval'] = check_interval if check_interval > 0 else 5
    except (ValueError, TypeError):
        events_config['check_interval'] = 5

    try:
        lookup_timeout = float(events_config.get('lookup_timeout', 3.0))
        events_config['lookup_timeout'] = lookup_timeout if lookup_timeout > 0 else 3.0
    except (ValueError, TypeError):
        events_config['lookup_timeout'] = 3.0

    try:
        max_retries = int(events_config.get('max_retries', 1))
        events_config['max_retries'] = max_retries if max_retries >= 1 else 1
    except (ValueError, TypeError):
        events_config['max_retries'] = 1

    if not isinstance(events_config.get('rules'), list):
        events_config['rules'] = []

    return events_config


def get_healthcheck_config() -> Dict[str, Any]:
    healthcheck = get_config().get('healthcheck', {})
    if not isinstance(healthcheck, dict):
        healthcheck = {}
    healthcheck.setdefault('enabled', True)
    healthcheck.setdefault('host', '0.0.0.0')
    healthcheck.setdefault('port', 8080)
    return healthcheck


def should_send_startup_message() -> bool:
    return get_config().get('telegram.startup_message', True)


def should_send_shutdown_message() -> bool:
    return get_config().get('telegram.shutdown_message', True)


def get_logging_config() -> Dict[str, Any]:
    return get_config().get('logging', {})


# Validate critical env vars on import
if not BOT_TOKEN:
    logger.warning("BOT_TOKEN not set - running in dry-run mode, messages will be logged only")
