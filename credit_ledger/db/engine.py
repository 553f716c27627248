# credit_ledger/db/engine.py

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from credit_ledger.config import database_url
from credit_ledger.errors import LedgerError, StorageFailure

logger = logging.getLogger(__name__)

_engines: Dict[str, Engine] = {}
_engines_lock = threading.Lock()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # cascades from clients -> sales/layaways -> payments depend on this
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine() -> Engine:
    url = database_url()
    with _engines_lock:
        engine = _engines.get(url)
        if engine is None:
            # echo=True if you want to see SQL printed in the terminal
            connect_args = {}
            if url.startswith("sqlite"):
                # FastAPI serves sync endpoints from a thread pool
                connect_args["check_same_thread"] = False
            engine = create_engine(url, future=True, connect_args=connect_args)
            if engine.dialect.name == "sqlite":
                event.listen(engine, "connect", _enable_sqlite_foreign_keys)
            _engines[url] = engine
    return engine


def dispose_engines() -> None:
    with _engines_lock:
        for engine in _engines.values():
            engine.dispose()
        _engines.clear()


@contextmanager
def connection(action: str) -> Iterator[Connection]:
    """Read-only connection; database errors surface as StorageFailure."""
    try:
        with get_engine().connect() as conn:
            yield conn
    except LedgerError:
        raise
    except SQLAlchemyError as exc:
        logger.error("Database error while %s: %s", action, exc)
        raise StorageFailure(f"Error {action}: {exc}") from exc


@contextmanager
def transaction(action: str) -> Iterator[Connection]:
    """
    Connection inside BEGIN/COMMIT. Any exception rolls the whole unit back;
    database errors surface as StorageFailure with the driver's message.
    """
    try:
        with get_engine().begin() as conn:
            yield conn
    except LedgerError:
        raise
    except SQLAlchemyError as exc:
        logger.error("Database error while %s: %s", action, exc)
        raise StorageFailure(f"Error {action}: {exc}") from exc
