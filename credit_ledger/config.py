# credit_ledger/config.py

import logging
import os
from typing import List

DEFAULT_DB_URL = "sqlite:///ventas_credito.db"  # file in project root
DEFAULT_PORT = 3001

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def database_url() -> str:
    return os.environ.get("CREDIT_LEDGER_DB_URL", DEFAULT_DB_URL)


def log_level() -> str:
    return os.environ.get("CREDIT_LEDGER_LOG_LEVEL", "INFO").upper()


def timezone_name() -> str:
    # "today" for delivery dates and default layaway creation dates
    return os.environ.get("CREDIT_LEDGER_TIMEZONE", "UTC")


def server_host() -> str:
    return os.environ.get("CREDIT_LEDGER_HOST", "127.0.0.1")


def server_port() -> int:
    return int(os.environ.get("CREDIT_LEDGER_PORT", DEFAULT_PORT))


def cors_origins() -> List[str]:
    raw = os.environ.get("CREDIT_LEDGER_CORS_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def configure_logging() -> None:
    logging.basicConfig(level=log_level(), format=LOG_FORMAT)
