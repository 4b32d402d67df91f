"""
Anomaly detection service entry point.

This service is responsible for:
- Loading and validating configuration
- Configuring structured logging
- Running the periodic detection sweep
- Shutting down gracefully on SIGINT/SIGTERM

Usage:
    python -m anomaly_engine
    anomaly-engine

Environment Variables:
    CONFIG_PATH: Path to config directory (default: config)
    LOG_LEVEL: Logging level (default: from config, else INFO)
    LOG_FORMAT: Log output format, json or console (default: json)
"""

import asyncio
import logging
import os
import signal
import sys
from typing import Optional

import structlog

from anomaly_engine import __version__
from anomaly_engine.config import ConfigLoadError, LogFormat, LoggingConfig, load_config
from anomaly_engine.detection.engine import AnomalyDetectionEngine

logger = structlog.get_logger(__name__)


def setup_logging(logging_config: Optional[LoggingConfig] = None) -> None:
    """
    Configure structured logging for the service.

    Args:
        logging_config: Format and level (defaults to LoggingConfig()).
    """
    logging_config = logging_config or LoggingConfig()

    if logging_config.format == LogFormat.CONSOLE:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Configure standard logging
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, logging_config.level.value),
    )


async def main() -> None:
    """Main entry point."""
    config_path = os.getenv("CONFIG_PATH", "config")

    try:
        config = load_config(config_path)
    except ConfigLoadError as e:
        setup_logging()
        logger.error(
            "config_load_failed",
            config_path=config_path,
            file_path=str(e.file_path) if e.file_path else None,
            error=e.message,
        )
        sys.exit(1)

    setup_logging(config.logging)

    logger.info(
        "anomaly_engine_service_starting",
        version=__version__,
        config_path=config_path,
    )

    engine = AnomalyDetectionEngine(config)
    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown_event.set)
        except NotImplementedError:
            # add_signal_handler is unavailable on Windows event loops
            signal.signal(sig, lambda signum, frame: loop.call_soon_threadsafe(shutdown_event.set))

    try:
        await engine.start()
        logger.info("anomaly_engine_service_started")
        await shutdown_event.wait()
        logger.info("shutdown_signal_received")
    except Exception as e:
        logger.error("service_failed", error=str(e))
        await engine.stop()
        sys.exit(1)

    await engine.stop()
    logger.info("anomaly_engine_service_stopped", **engine.get_service_stats())


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
