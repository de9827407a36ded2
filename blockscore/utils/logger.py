import os
import sys

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
    "<level>{message}</level>"
)


def setup_logger(*, json_logs: bool = False, level: str = "INFO", log_dir: str = "logs") -> None:
    """Route scoring logs to stdout and a daily file under ``log_dir``.

    stdout follows LOG_LEVEL (falls back to ``level``). The file sink always
    records DEBUG, which is where degraded snapshot sub-queries and RPC
    retries show up; enable ``json_logs`` when a collector parses the output.
    """
    console_level = os.getenv("LOG_LEVEL", level).upper()
    logger.remove()

    if json_logs:
        logger.add(sys.stdout, serialize=True, level=console_level)
    else:
        logger.add(sys.stdout, format=CONSOLE_FORMAT, level=console_level, colorize=True)

    logger.add(
        os.path.join(log_dir, "blockscore_{time:YYYY-MM-DD}.log"),
        rotation="20 MB",
        retention="7 days",
        compression="gz",
        level="DEBUG",
        serialize=json_logs,
    )
