import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    quiet_loggers: Iterable[str] = ("httpx", "httpcore"),
    console_format: str = CONSOLE_FORMAT,
):
    """
    Configure application logging

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Path to the log file (optional)
        quiet_loggers: Third-party loggers held at WARNING, e.g. the outbound
            Telegram/Ship24 HTTP clients and the SQL engine echo
        console_format: Format of the stdout handler
    """
    handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(fmt=console_format, datefmt=DATE_FORMAT))
    handlers.append(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers
    )

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured: level={log_level}, quiet={', '.join(quiet_loggers) or '-'}")
    if log_file:
        logger.info(f"Logs are written to: {log_file}")
