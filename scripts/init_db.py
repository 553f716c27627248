import argparse
import logging

from credit_ledger.config import configure_logging, database_url
from credit_ledger.db.engine import get_engine
from credit_ledger.db.schema import create_schema, drop_schema

logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create the ledger tables.")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="drop every ledger table first (destroys data)",
    )
    args = parser.parse_args(argv)

    configure_logging()
    engine = get_engine()
    if args.reset:
        drop_schema(engine)
        logger.warning("Dropped existing tables in %s", database_url())
    create_schema(engine)
    logger.info("DB schema created in %s", database_url())


if __name__ == "__main__":
    main()
