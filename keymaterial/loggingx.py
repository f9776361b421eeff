"""
Structured Logging Setup

Configures structured logging with proper formatting and output handling.
"""

import sys
import logging
import structlog
from typing import Optional, Iterable, List
from pathlib import Path


def setup_logging(level: str = "INFO", verbose: bool = False,
                 log_file: Optional[str] = None) -> None:
    """
    Setup structured logging for key material handling.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        verbose: Enable verbose output with more details
        log_file: Optional file path for logging output
    """
    # stderr keeps stdout clean for `keymaterial env` output
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(format="%(message)s", handlers=handlers,
                        level=getattr(logging, level.upper()))

    renderer = (structlog.dev.ConsoleRenderer(colors=True) if verbose
                else structlog.processors.JSONRenderer())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structured logger
    """
    return structlog.get_logger(name)


def log_material_created(material: str, env_keys: Iterable[str],
                         path: Optional[str] = None,
                         logger: Optional[structlog.BoundLogger] = None) -> None:
    """
    Log creation of key material. Only variable names are logged, never values.

    Args:
        material: Material class name
        env_keys: Names of the environment variables it binds
        path: Directory holding the material, if any
        logger: Optional logger instance
    """
    if logger is None:
        logger = get_logger(__name__)

    log_data = {
        "material": material,
        "env_keys": sorted(env_keys)
    }

    if path:
        log_data["path"] = path

    logger.debug("Key material created", **log_data)


def log_material_released(material: str, path: Optional[str] = None,
                          logger: Optional[structlog.BoundLogger] = None) -> None:
    """
    Log release of key material.

    Args:
        material: Material class name
        path: Directory that was removed, if any
        logger: Optional logger instance
    """
    if logger is None:
        logger = get_logger(__name__)

    if path:
        logger.debug("Key material released", material=material, path=path)
    else:
        logger.debug("Key material released", material=material)
