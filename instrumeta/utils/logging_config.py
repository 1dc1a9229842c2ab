import logging
import logging.handlers
import sys
from typing import Optional, Union

LOGGER_NAME = "instrumeta"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def _resolve_level(log_level: Union[int, str]) -> int:
    if isinstance(log_level, int):
        return log_level
    level = logging.getLevelName(str(log_level).upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level!r}")
    return level


def setup_logging(
    log_level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    fmt: str = DEFAULT_FORMAT,
    propagate: bool = True,
) -> logging.Logger:
    """
    Configure the package logger used by every extractor and validator.

    Args:
        log_level: Level as an int or a name such as ``"debug"``
        log_file: Optional path of a rotating log file; stdout only when None
        fmt: Record format shared by all handlers
        propagate: Whether records also reach the root logger's handlers.
            Embedding applications that configure root logging usually want
            this off to avoid printing each record twice.

    Returns:
        The configured ``instrumeta`` logger
    """
    level = _resolve_level(log_level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = propagate

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt)
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(
            logging.handlers.RotatingFileHandler(
                log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS
            )
        )
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug(
        f"Logging configured at {logging.getLevelName(level)}"
        + (f", writing to {log_file}" if log_file else "")
    )
    return logger
