"""Entry point for the BlockScore API service."""

import asyncio
import contextlib
import signal

from loguru import logger

from blockscore.api.server import run_api_server
from blockscore.utils.logger import setup_logger


async def main() -> None:
    setup_logger(level="INFO")
    logger.info("Starting BlockScore...")

    # Graceful shutdown on SIGINT/SIGTERM
    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("Shutdown signal received")
        shutdown_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _signal_handler)

    api_task = asyncio.create_task(run_api_server())

    # Wait for either the server to exit or a shutdown signal
    done, pending = await asyncio.wait(
        [api_task, asyncio.create_task(shutdown_event.wait())],
        return_when=asyncio.FIRST_COMPLETED,
    )

    for task in pending:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    # Surface a crashed server instead of exiting quietly
    if api_task in done and api_task.exception() is not None:
        raise api_task.exception()  # type: ignore[misc]

    logger.info("Shutdown complete")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
