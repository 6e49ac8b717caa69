import logging, sys
from app.settings import settings

QUIET_LOGGERS = ("httpx", "httpcore", "pdfminer", "multipart")


def configure_logging(level: str | None = None):
    level_name = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger(__name__).info("Logging at %s for %s environment", level_name, settings.ENV)
