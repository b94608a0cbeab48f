import logging
import sys

LOGGER_NAME = "newsroom"

def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    One-level logger setup for the ``newsroom`` logger tree.

    Modules log through ``logging.getLogger(__name__)`` and inherit the
    console handler installed here. Calling it again replaces the handler.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(console_handler)
    logger.propagate = False

    return logger
