import logging
import os
import sys
from datetime import datetime

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _log_file_path(log_dir: str, logger_name: str, add_timestamp: bool) -> str:
    if not add_timestamp:
        return os.path.join(log_dir, f"{logger_name}.log")
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return os.path.join(log_dir, f"{logger_name}_{stamp}.log")


def setup_logging(
    logger_name: str,
    console_handler_level: int | str = logging.ERROR,
    file_handler_level: int | str = logging.DEBUG,
    log_dir: str | None = "logs",
    add_timestamp_to_log_file: bool = True,
    force_reconfig: bool = False,
) -> logging.Logger:
    """
    Set up the client logger.

    Records go to a log file and to stderr, which is the client's
    diagnostic stream. Chat traffic itself is printed on stdout by the
    renderer and never passes through here.

    Args:
        logger_name: Name of the logger.
        console_handler_level: Level for the stderr handler.
        file_handler_level: Level for the file handler.
        log_dir: Directory for the log file. None disables the file handler.
        add_timestamp_to_log_file: Whether to add a timestamp to the file name.
        force_reconfig: If True, remove existing handlers and reconfigure.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG)

    if force_reconfig:
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            handler.close()

    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if log_dir is not None:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(
            _log_file_path(log_dir, logger_name, add_timestamp_to_log_file),
            mode="a",
            encoding="utf-8",
        )
        file_handler.setLevel(file_handler_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_handler_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger
