import logging
import os
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(module)s:%(lineno)d | %(message)s"

logger = logging.getLogger("kiosk_inventory")

if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())
    logger.propagate = False
