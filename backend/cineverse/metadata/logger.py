import logging
import sys

logger = logging.getLogger("movie_metadata")
logger.setLevel(logging.DEBUG)

if not logger.handlers:  # Prevent adding handlers multiple times
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.INFO)

    formatter = logging.Formatter(
        "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s", "%Y-%m-%d %H:%M:%S"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

logger.propagate = False
