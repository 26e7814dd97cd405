import logging
import sys

from memory_curation.config import Settings

def setup_logging(settings=Settings):
    logger = logging.getLogger("memory_curation")
    logger.setLevel(settings.LOG_LEVEL.upper())

    # Console Handler
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter('%(levelname)s: %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger

logger = setup_logging()
