"""
Logging setup: structlog key/value events rendered through stdlib handlers
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import structlog
from structlog.stdlib import BoundLogger, ProcessorFormatter

QUIET_LIBRARIES = ("google_genai", "google.genai", "httpx", "urllib3", "uvicorn.access", "mcstatus")

# Applied to both structlog events and plain stdlib records (uvicorn, minecraft-data)
PRE_CHAIN = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
]


def _handler(stream_or_path, level: int, renderer) -> logging.Handler:
    if isinstance(stream_or_path, Path):
        handler: logging.Handler = logging.FileHandler(stream_or_path, encoding="utf-8")
    else:
        handler = logging.StreamHandler(stream_or_path)
    handler.setLevel(level)
    handler.setFormatter(ProcessorFormatter(processor=renderer, foreign_pre_chain=PRE_CHAIN))
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    log_dir: str = "logs",
    console_output: bool = True,
    json_format: bool = False,
    library_log_level: str = "WARNING",
) -> Path:
    """
    Route all logging to the console and a JSON lines file

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: File name under log_dir; a timestamped name when None
        log_dir: Directory for log files
        console_output: Whether to also log to stdout
        json_format: Render console output as JSON instead of colored text
        library_log_level: Level for chatty third-party libraries

    Returns:
        Path of the log file
    """
    level = getattr(logging, log_level.upper())
    log_path = Path(log_dir)
    log_path.mkdir(exist_ok=True)
    full_log_path = log_path / (log_file or f"companion_bot_{datetime.now():%Y%m%d_%H%M%S}.log")

    handlers: List[logging.Handler] = [_handler(full_log_path, level, structlog.processors.JSONRenderer())]
    if console_output:
        renderer = (
            structlog.processors.JSONRenderer() if json_format else structlog.dev.ConsoleRenderer(colors=True)
        )
        handlers.append(_handler(sys.stdout, level, renderer))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)
    for handler in handlers:
        root_logger.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *PRE_CHAIN,
            structlog.processors.format_exc_info,
            ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=BoundLogger,
        cache_logger_on_first_use=True,
    )

    library_level = getattr(logging, library_log_level.upper())
    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(library_level)

    get_logger(__name__).debug("Logging initialized", log_level=log_level, log_file=str(full_log_path))
    return full_log_path


def get_logger(name: str) -> BoundLogger:
    """Structlog logger for a module, usually called with __name__"""
    return structlog.get_logger(name)
