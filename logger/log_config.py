# logger/log_config.py

import atexit
import datetime
import logging
import os
import sys

from constants import LOGGER_NAME, LOG_FILE_TEMPLATE, LOG_TIMESTAMP_FORMAT

FORMAT = '%(asctime)s - %(name)s [%(levelname)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Sub-loggers that must propagate to the top-level logger.
SUB_LOGGERS = [
    'vswitchtool.commands', 'vswitchtool.vcenter', 'vswitchtool.replicator',
    'vswitchtool.vlan',
]


def log_file_name(start_time=None, directory=None):
    """Name of the log file for a run started at start_time."""
    start_time = start_time or datetime.datetime.now()
    name = LOG_FILE_TEMPLATE.format(timestamp=start_time.strftime(LOG_TIMESTAMP_FORMAT))
    return os.path.join(directory, name) if directory else name


def _close_handlers():
    """Closes the handlers attached to the top-level logger on exit."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

atexit.register(_close_handlers)


def setup_logger(log_file=None, verbose=False):
    """
    Configures the main 'vswitchtool' logger.

    Should be called ONCE per run. Other modules use
    `logging.getLogger('vswitchtool.<area>')`.

    :param log_file: Path of a log file to append to, or None for console only.
    :param verbose: Log DEBUG messages to the console.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    formatter = logging.Formatter(FORMAT, datefmt=DATE_FORMAT)

    # Prevents duplicates if called more than once in a process.
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    # 1. Stream Handler (Console) - Always add
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    # 2. File Handler - append-only, one line per event
    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False

    for name in SUB_LOGGERS:
        sub_logger = logging.getLogger(name)
        sub_logger.setLevel(logging.NOTSET)
        sub_logger.propagate = True
        for h in list(sub_logger.handlers):
            sub_logger.removeHandler(h)

    return logger
