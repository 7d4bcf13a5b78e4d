import logging
import sys


def setup_logger(name: str = "mermaid_check", level=logging.INFO, log_file: str = None, console_output=True):
    """
    Sets up a logger with specified name, level, optional file and console output.

    Args:
    - name (str): Name of the logger. Child module loggers propagate to it.
    - level (int | str): Logging level, e.g. logging.DEBUG or "DEBUG". Defaults to logging.INFO.
    - log_file (str, optional): File to log messages to. No file handler when omitted.
    - console_output (bool): Whether to log messages to stderr. Defaults to True.

    Returns:
    - logger (logging.Logger): Configured logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.hasHandlers():
        logger.handlers.clear()

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console_output:
        # stderr keeps stdout free for CLI reports
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger
