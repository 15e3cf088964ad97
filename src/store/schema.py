"""Relational schema of the projected ledger state.

Identifiers and references are stored in their base58 string form so the
read API can serve them without decoding.
"""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    Integer,
    LargeBinary,
    MetaData,
    String,
    Table,
)
from sqlalchemy.engine import Engine

METADATA = MetaData()

PULSES = Table(
    "pulses",
    METADATA,
    Column("pulse_number", BigInteger, primary_key=True, autoincrement=False),
    Column("entropy", LargeBinary, nullable=False),
    Column("timestamp", BigInteger, nullable=False),
)

RECORDS = Table(
    "records",
    METADATA,
    Column("record_id", String(64), primary_key=True),
    Column("pulse_number", BigInteger, nullable=False, index=True),
    Column("sequence", Integer, nullable=False),
    Column("kind", String(16), nullable=False),
)

MEMBERS = Table(
    "members",
    METADATA,
    Column("member_ref", String(128), primary_key=True),
    Column("balance", String(64), nullable=False),
    Column("migration_address", String(128), nullable=False, default=""),
    Column("account_state", String(64), nullable=False, index=True),
    Column("status", String(16), nullable=False),
)

DEPOSITS = Table(
    "deposits",
    METADATA,
    Column("deposit_ref", String(128), primary_key=True),
    Column("member_ref", String(128), nullable=False, index=True),
    Column("eth_hash", String(128), nullable=False),
    Column("transfer_date", BigInteger, nullable=False),
    Column("hold_release_date", BigInteger, nullable=False),
    Column("amount", String(64), nullable=False),
    Column("balance", String(64), nullable=False),
    Column("deposit_state", String(64), nullable=False, index=True),
    Column("vesting", BigInteger, nullable=False),
    Column("vesting_step", BigInteger, nullable=False),
)

TRANSFERS = Table(
    "transfers",
    METADATA,
    Column("tx_id", String(64), primary_key=True),
    Column("amount", String(64), nullable=False),
    Column("fee", String(64), nullable=False),
    Column("member_from_ref", String(128), nullable=False, index=True),
    Column("member_to_ref", String(128), nullable=False, index=True),
    Column("pulse_number", BigInteger, nullable=False),
    Column("timestamp", BigInteger, nullable=False),
    Column("eth_hash", String(128), nullable=False, default=""),
    Column("kind", String(16), nullable=False, default="standard"),
)

GROUPS = Table(
    "groups",
    METADATA,
    Column("group_ref", String(128), primary_key=True),
    Column("title", String(256), nullable=False),
    Column("goal", String(1024), nullable=False),
    Column("purpose", String(1024), nullable=False),
    Column("chairman", String(128), nullable=False),
    Column("membership", JSON, nullable=False),
    Column("status", String(16), nullable=False),
)

MIGRATION_ADDRESSES = Table(
    "migration_addresses",
    METADATA,
    Column("addr", String(128), primary_key=True),
    Column("pulse_number", BigInteger, nullable=False),
    Column("wasted", Boolean, nullable=False, default=False),
)


def create_schema(engine: Engine) -> None:
    """Create missing tables; existing tables are left untouched."""
    METADATA.create_all(engine)
