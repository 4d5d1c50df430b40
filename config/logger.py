import logging
import os
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler


def setup_logging(log_dir=None):
    """
    Daily rotating file log plus console output.

    LOG_DIR, LOG_LEVEL and LOG_BACKUP_DAYS come from the environment. aiohttp's
    own loggers are capped at WARNING so per-request noise stays out of the log.
    """
    log_dir = log_dir or os.getenv("LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)

    log_file = os.path.join(log_dir, f"finder_{datetime.now().strftime('%Y%m%d')}.log")
    backup_days = int(os.getenv("LOG_BACKUP_DAYS", "7"))

    file_handler = TimedRotatingFileHandler(
        log_file, when="midnight", interval=1, backupCount=backup_days, encoding="utf-8"
    )

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[file_handler, logging.StreamHandler()],
    )
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    return logging.getLogger("DealsFinder")


logger = setup_logging()
