# credit_ledger/db/schema.py

from sqlalchemy import (
    MetaData, Table, Column, Integer, String,
    Numeric, Date, ForeignKey, CheckConstraint, Text
)
from sqlalchemy.engine import Engine

metadata = MetaData()

# four decimal places so sub-epsilon amounts (e.g. 100.0005) survive storage
MONEY = Numeric(18, 4)

clients = Table(
    "clients",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String, nullable=False),
    Column("identifier", String, nullable=True, unique=True),
    Column("phone", String, nullable=True),
    Column("email", String, nullable=True),
)

sales = Table(
    "sales",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "client_id",
        Integer,
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("product", Text, nullable=False),
    Column("total_amount", MONEY, nullable=False),
    Column("sale_date", Date, nullable=False),
    Column("status", String, nullable=False, server_default="Pending"),
    CheckConstraint("total_amount > 0", name="ck_sales_total_amount_positive"),
    CheckConstraint("status IN ('Pending', 'Paid')", name="ck_sales_status"),
)

layaways = Table(
    "layaways",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "client_id",
        Integer,
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("product", Text, nullable=False),
    Column("total_amount", MONEY, nullable=False),
    Column("created_on", Date, nullable=False),
    Column("status", String, nullable=False, server_default="Reserved"),
    Column("delivered_on", Date, nullable=True),
    CheckConstraint("total_amount > 0", name="ck_layaways_total_amount_positive"),
    CheckConstraint(
        "status IN ('Reserved', 'Paid', 'Delivered', 'Cancelled')",
        name="ck_layaways_status",
    ),
)

payments = Table(
    "payments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "sale_id",
        Integer,
        ForeignKey("sales.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    ),
    Column(
        "layaway_id",
        Integer,
        ForeignKey("layaways.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    ),
    Column("amount", MONEY, nullable=False),
    Column("payment_date", Date, nullable=False),
    Column("comment", Text, nullable=True),
    CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
    CheckConstraint(
        "(sale_id IS NOT NULL AND layaway_id IS NULL) OR "
        "(sale_id IS NULL AND layaway_id IS NOT NULL)",
        name="ck_payments_single_parent",
    ),
)


def create_schema(engine: Engine) -> None:
    metadata.create_all(engine)


def drop_schema(engine: Engine) -> None:
    metadata.drop_all(engine)
