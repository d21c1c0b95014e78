# utils/logger.py
import logging
import sys
from pathlib import Path

DEFAULT_LOG_DIR = Path(__file__).parent.parent / 'logs'

# Transport libraries log every packet at INFO/DEBUG
NOISY_LOGGERS = ['paramiko', 'sshtunnel']


def setup_logger(level_name, log_file=None, log_dir=DEFAULT_LOG_DIR):
    """
    Configure the root logger for a pipeline run

    Args:
        level_name (str): Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file (str, optional): Log file name inside log_dir. Defaults to None.
        log_dir (Path, optional): Directory for log files

    Returns:
        logging.Logger: Configured root logger
    """
    level = getattr(logging, level_name)

    logger = logging.getLogger()
    logger.setLevel(level)

    # Repeated runs in one process must not stack handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return logger
