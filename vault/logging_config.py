# vault/logging_config.py
import logging
import sys

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level="INFO"):
    """Installs the console handler on the ``vault`` logger. Safe to call twice."""
    logger = logging.getLogger("vault")
    logger.setLevel(level.upper() if isinstance(level, str) else level)

    if not any(getattr(h, "_vault_console", False) for h in logger.handlers):
        ch = logging.StreamHandler(sys.stdout)
        ch._vault_console = True
        ch.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(ch)
    return logger
