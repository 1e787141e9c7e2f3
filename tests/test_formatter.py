"""Tests for notification formatting and templates."""
from datetime import datetime, timezone
from decimal import Decimal
import pytz

from src.notif.formatter import format_datetime_local, format_price
from src.notif.templates import (
    template_error_admin,
    template_event_triggered,
    template_shutdown,
    template_startup
)


class TestPriceFormatting:
    """Tests for price display."""

    def test_format_price_thousands(self):
        """Format price with thousands separator."""
        assert format_price(Decimal("67420.5")) == "67,420.50"

    def test_format_price_float(self):
        """Floats are accepted."""
        assert format_price(100.5) == "100.50"

    def test_format_price_zero(self):
        """Format zero price."""
        assert format_price(0) == "0.00"

    def test_format_price_sub_unit(self):
        """Sub-unit prices keep their significant digits."""
        assert format_price(Decimal("0.00001234")) == "0.00001234"


class TestDatetimeFormatting:
    """Tests for timezone-aware timestamps."""

    def test_naive_assumed_utc(self):
        """Naive datetimes are treated as UTC."""
        dt = datetime(2025, 11, 11, 14, 30)
        assert format_datetime_local(dt, tz_name='UTC') == "2025-11-11 14:30 UTC"

    def test_converts_timezone(self):
        """Aware datetimes are converted to the target zone."""
        dt = datetime(2025, 11, 11, 14, 30, tzinfo=timezone.utc)
        assert format_datetime_local(dt, tz_name='America/New_York') == "2025-11-11 09:30 EST"

    def test_now_default(self):
        """Without a datetime the current time is used."""
        result = format_datetime_local(tz_name='UTC')
        assert result.endswith("UTC")
        assert result.startswith(str(datetime.now(pytz.UTC).year))


class TestTemplates:
    """Tests for message templates."""

    def test_event_triggered(self, registry):
        """Trigger message wraps the event description."""
        event_id = registry.add("Binance", "PRICE", "<,0.5", "ETH", "BTC", "SMS,alice")
        message = template_event_triggered(registry.get(event_id))
        assert message == "Event triggered: If the ETHBTC PRICE on Binance is < 0.5 then SMS,alice."

    def test_startup(self, test_env_vars):
        """Startup message lists exchanges and event count."""
        message = template_startup(['Binance'], 3)
        assert 'Price Event Bot Test started (v2.0.0)' in message
        assert 'Exchanges: Binance' in message
        assert 'Events registered: 3' in message

    def test_startup_no_exchanges(self, test_env_vars):
        """Startup message handles no enabled exchanges."""
        assert 'Exchanges: none' in template_startup([], 0)

    def test_shutdown(self, test_env_vars):
        """Shutdown message reports triggered/total."""
        assert 'Events: 1/3 triggered' in template_shutdown(3, 1)

    def test_error_admin(self, test_env_vars):
        """Admin error message includes type, error and context."""
        message = template_error_admin("PriceFeed", "timeout", "Binance")
        assert 'CRITICAL ERROR - PriceFeed' in message
        assert 'Error: timeout' in message
        assert 'Context: Binance' in message

    def test_error_admin_escapes_html(self, test_env_vars):
        """Error text is escaped for Telegram HTML."""
        message = template_error_admin("Runtime", "<class 'KeyError'> & more", "a < b")
        assert "Error: &lt;class 'KeyError'&gt; &amp; more" in message
        assert "Context: a &lt; b" in message
