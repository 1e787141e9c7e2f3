import argparse
import asyncio
import signal
from datetime import datetime, timezone
from typing import Dict, List
from loguru import logger

from src.config import (
    LOG_LEVEL,
    get_bot_name,
    get_bot_version,
    get_events_config,
    get_exchanges_config,
    get_healthcheck_config,
    get_logging_config,
    should_send_startup_message,
    should_send_shutdown_message
)
from src.utils.logging import setup_logging
from src.telegram_bot import send_message, send_message_async, send_error_to_admin, set_dry_run
from src.datafeeds.exchanges import get_exchange_directory, get_price_feed
from src.events.errors import EventError
from src.events.engine import get_event_engine
from src.events.registry import EventRegistry, get_event_registry
from src.notif.formatter import format_price
from src.notif.templates import template_error_admin, template_startup, template_shutdown
from src.utils.healthcheck import get_healthcheck


# Global shutdown event
shutdown_event = asyncio.Event()


def signal_handler(sig, frame):
    """Handle SIGTERM and SIGINT for graceful shutdown."""
    logger.info(f"Received signal {sig}, initiating graceful shutdown...")
    shutdown_event.set()


def register_configured_events(registry: EventRegistry, rules: List[Dict]) -> int:
    """
    Register events listed under `events.rules` in the config.
    Invalid entries are logged and skipped.

    Returns:
        Number of events registered
    """
    registered = 0
    for rule in rules:
        try:
            registry.add(
                exchange=rule["exchange"],
                item=rule.get("item", "PRICE"),
                condition=rule["condition"],
                base_currency=rule["base"],
                quote_currency=rule["quote"],
                action=rule["action"]
            )
            registered += 1
        except KeyError as e:
            logger.error(f"Event config entry missing field {e}: {rule}")
        except EventError as e:
            logger.error(f"Event config entry rejected ({type(e).__name__}: {e}): {rule}")
    return registered


async def startup_sequence() -> bool:
    """
    Execute bot startup sequence:
    1. Load configuration
    2. Register configured events
    3. Send startup message
    """
    logger.info("=" * 60)
    logger.info(f"Starting {get_bot_name()} v{get_bot_version()}")
    logger.info("=" * 60)

    try:
        directory = get_exchange_directory()
        enabled = [name for name in directory.names() if directory.is_known_and_enabled(name)]
        logger.info(f"Exchanges configured: {len(directory.names())} ({len(enabled)} enabled)")

        registry = get_event_registry()
        rules = get_events_config()['rules']
        registered = register_configured_events(registry, rules)
        logger.info(f"Registered {registered}/{len(rules)} configured events")

        if should_send_startup_message():
            await send_message_async(template_startup(enabled, registered), to_admin=True)

        logger.info("Startup sequence completed successfully")
        return True

    except Exception as e:
        logger.exception(f"Startup sequence failed: {e}")
        await send_message_async(template_error_admin("Startup", str(e), "Bot failed to start"), to_admin=True)
        return False


async def shutdown_sequence():
    """
    Execute bot shutdown sequence:
    1. Report event counts
    2. Send shutdown message
    """
    logger.info("Starting shutdown sequence...")

    try:
        total, executed = get_event_registry().counts()
        logger.info(f"Events at shutdown: {executed}/{total} executed")

        if should_send_shutdown_message():
            await send_message_async(template_shutdown(total, executed), to_admin=True)

        logger.info("Shutdown sequence completed")

    except Exception as e:
        logger.exception(f"Error during shutdown: {e}")


async def run_bot():
    """
    Main bot runtime - event engine plus healthcheck server.
    """
    if not await startup_sequence():
        logger.error("Startup failed, exiting...")
        return

    event_engine = get_event_engine()
    engine_task = asyncio.create_task(event_engine.run(), name="EventEngine")

    tasks = [asyncio.create_task(shutdown_event.wait(), name="ShutdownWatcher")]
    if get_healthcheck_config().get('enabled', True):
        tasks.append(asyncio.create_task(get_healthcheck().run(), name="Healthcheck"))

    logger.info(f"Starting main bot tasks: {', '.join(t.get_name() for t in [engine_task, *tasks])}")

    try:
        # Wait for shutdown signal (or an unexpected engine exit)
        done, pending = await asyncio.wait([engine_task, *tasks], return_when=asyncio.FIRST_COMPLETED)

        logger.info("Shutdown signal received, stopping tasks...")

        # Let the in-flight evaluation cycle finish
        await event_engine.stop()
        await asyncio.gather(engine_task, return_exceptions=True)

        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    except Exception as e:
        logger.exception(f"Error in main bot runtime: {e}")
        await send_message_async(template_error_admin("Runtime", str(e), "Critical error in main loop"), to_admin=True)

    finally:
        await shutdown_sequence()


async def _price_test(exchange: str, base: str, quote: str):
    price = await get_price_feed().last_price(exchange, base.upper(), quote.upper())
    if price:
        logger.info(f"{base.upper()}{quote.upper()} on {exchange}: {format_price(price)}")
    else:
        logger.warning(f"No price available for {base.upper()}{quote.upper()} on {exchange}")


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--dry-run", action="store_true", help="Dry-run mode (logs only, no Telegram)")
    parser.add_argument("--ping", action="store_true", help="Send test message to Telegram")
    parser.add_argument("--list-exchanges", action="store_true", help="List configured exchanges")
    parser.add_argument("--price-test", nargs=3, metavar=("EXCHANGE", "BASE", "QUOTE"),
                        help="Fetch one last price (e.g. Binance BTC USDT)")
    args = parser.parse_args()

    # Setup logging
    setup_logging(LOG_LEVEL, log_to_file=get_logging_config().get('file', True))
    ts = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")

    if args.dry_run:
        set_dry_run(True)

    if args.list_exchanges:
        for entry in get_exchanges_config():
            state = "enabled" if entry['enabled'] else "disabled"
            logger.info(f"{entry['name']}: {state} ({entry['api_base']})")
        return

    if args.price_test:
        asyncio.run(_price_test(*args.price_test))
        return

    if args.ping:
        msg = f"{get_bot_name().upper()}: online ({ts})"
        ok = send_message(msg, to_admin=True)
        logger.info(f"Ping sent? {ok}")
        return

    # Register signal handlers for graceful shutdown
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    logger.info(f"Bot starting in {'dry-run' if args.dry_run else 'live'} mode")

    try:
        asyncio.run(run_bot())
    except KeyboardInterrupt:
        logger.info("Received KeyboardInterrupt, shutting down...")
    except Exception as e:
        logger.exception(f"Unhandled exception in main: {e}")
        send_error_to_admin("Fatal", str(e), "Bot crashed")
    finally:
        logger.info("Bot stopped")


if __name__ == "__main__":
    main()
