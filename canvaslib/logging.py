import logging
from .config import settings

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'

# Log every request at INFO
QUIET_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: str = settings.log_level) -> logging.Logger:
    """Configure root logging and return the application logger."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return logging.getLogger(settings.app_name)


logger = configure_logging()
