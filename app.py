#!/usr/bin/env python3
"""
Main entry point for the go links service.

Startup order: recover the store from the snapshot file (abort on failure),
start the persistence worker, then accept traffic. On shutdown the worker
stops accepting writes, drains what it already accepted and writes one final
snapshot.

Usage:
    python app.py

Environment variables:
    DB_PATH - Snapshot file path (created if absent)
    SYNC_INTERVAL_SECONDS - Minimum seconds between snapshot writes
    QUEUE_SIZE - Write submission queue bound (0 = unbounded)
    FSYNC - fsync snapshot writes (default true)
    BASE_URL - Base URL for go link URLs
    PATH_PREFIX - Redirect path prefix (default /v)
    HOST / PORT - Listener address
    LOG_LEVEL - Logging level
"""

import signal
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from config import load_config
from golinks.common.logging_config import setup_logging
from golinks.exceptions import RecoveryError
from golinks.service import GoLinksService
from web_app import create_app


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    service = app.state.service
    logger = app.state.logger

    service.start()
    logger.info("Service started successfully")

    yield

    logger.info("Shutting down go links service...")
    await service.close()
    logger.info("Service stopped")


def main():
    """Main entry point."""
    config = load_config()

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    logger.info("Go Links Service")
    logger.info(f"Configuration: {config.model_dump()}")

    # Recovery happens before the listener exists so a bad snapshot never serves traffic
    try:
        service = GoLinksService.open(
            db_path=config.db_path,
            sync_interval=config.sync_interval_seconds,
            queue_size=config.queue_size,
            fsync=config.fsync,
            logger=logger,
        )
    except RecoveryError as e:
        logger.critical(f"Recovery failed, refusing to start: {e}")
        sys.exit(1)

    app = create_app(service_instance=service, config=config)
    app.state.logger = logger
    app.router.lifespan_context = lifespan

    # Single process: the store lives in memory and the worker owns the file
    uvicorn_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        workers=1,
        log_level=config.log_level.lower(),
        access_log=False,
    )

    server = uvicorn.Server(uvicorn_config)

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        server.should_exit = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        logger.info(f"Starting server on {config.host}:{config.port}")
        server.run()
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
