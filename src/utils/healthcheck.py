# -*- coding: utf-8 -*-
"""
Simple HTTP healthcheck endpoint for monitoring.
Returns bot status, uptime, and event counts.
"""
import asyncio
from datetime import datetime, timezone
from typing import Optional
from aiohttp import web
from loguru import logger


class HealthcheckServer:
    """Simple HTTP server for healthcheck endpoint."""

    def __init__(self, registry=None, host: str = "0.0.0.0", port: int = 8080):
        self.registry = registry
        self.host = host
        self.port = port
        self.app = web.Application()
        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.TCPSite] = None

        self.start_time = datetime.now(timezone.utc)

        # Setup routes
        self.app.router.add_get('/health', self.health_handler)
        self.app.router.add_get('/status', self.status_handler)

    async def health_handler(self, request: web.Request) -> web.Response:
        """
        Simple health check endpoint.
        Returns 200 OK if bot is running.
        """
        return web.json_response({
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat()
        })

    async def status_handler(self, request: web.Request) -> web.Response:
        """
        Detailed status endpoint with event counts.
        """
        now = datetime.now(timezone.utc)
        uptime_seconds = (now - self.start_time).total_seconds()

        # Format uptime
        days = int(uptime_seconds // 86400)
        hours = int((uptime_seconds % 86400) // 3600)
        minutes = int((uptime_seconds % 3600) // 60)
        uptime_str = f"{days}d {hours}h {minutes}m"

        total, executed = self.registry.counts() if self.registry else (0, 0)
        last_trigger = self.registry.last_executed_at() if self.registry else None

        # Last trigger time
        last_trigger_str = None
        if last_trigger:
            seconds_ago = (now - last_trigger).total_seconds()
            if seconds_ago < 60:
                last_trigger_str = f"{int(seconds_ago)}s ago"
            elif seconds_ago < 3600:
                last_trigger_str = f"{int(seconds_ago / 60)}m ago"
            else:
                last_trigger_str = f"{int(seconds_ago / 3600)}h ago"

        return web.json_response({
            "status": "running",
            "uptime": uptime_str,
            "uptime_seconds": int(uptime_seconds),
            "start_time": self.start_time.isoformat(),
            "events_total": total,
            "events_executed": executed,
            "events_pending": total - executed,
            "last_trigger": last_trigger_str,
            "timestamp": now.isoformat()
        })

    async def start(self):
        """Start the healthcheck server."""
        try:
            self.runner = web.AppRunner(self.app)
            await self.runner.setup()
            self.site = web.TCPSite(self.runner, self.host, self.port)
            await self.site.start()
            logger.info(f"Healthcheck server started on http://{self.host}:{self.port}")
        except Exception as e:
            logger.error(f"Failed to start healthcheck server: {e}")

    async def stop(self):
        """Stop the healthcheck server."""
        if self.site:
            await self.site.stop()
        if self.runner:
            await self.runner.cleanup()
        logger.info("Healthcheck server stopped")

    async def run(self):
        """Run healthcheck server (keeps running until cancelled)."""
        await self.start()
        try:
            # Keep running until cancelled
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            await self.stop()
            raise


# Global instance
_healthcheck_instance: Optional[HealthcheckServer] = None


def get_healthcheck() -> HealthcheckServer:
    """Get global healthcheck server instance (singleton)."""
    global _healthcheck_instance
    if _healthcheck_instance is None:
        from src.config import get_healthcheck_config
        from src.events.registry import get_event_registry

        cfg = get_healthcheck_config()
        _healthcheck_instance = HealthcheckServer(
            registry=get_event_registry(),
            host=cfg['host'],
            port=int(cfg['port'])
        )
    return _healthcheck_instance
