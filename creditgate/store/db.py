"""Relational schema and async engine construction."""

from __future__ import annotations

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    delete,
)
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from config.settings import Settings
from creditgate.core.logging import get_logger

log = get_logger(__name__)

metadata = MetaData()

# ── Tables ───────────────────────────────────────────────────────

api_users = Table(
    "api_users",
    metadata,
    Column("user_id", String, primary_key=True),
    Column("name", String, nullable=False),
    Column("email", String, nullable=False, unique=True, index=True),
    Column("password", String, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

api_keys = Table(
    "api_keys",
    metadata,
    Column("api_key_id", String, primary_key=True),
    Column("api_key_val", String, nullable=False, unique=True, index=True),
    Column(
        "owner_id",
        String,
        ForeignKey("api_users.user_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    ),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("rotated_at", DateTime(timezone=True), nullable=True),
)

api_plans = Table(
    "api_plans",
    metadata,
    Column("plan_id", String, primary_key=True),
    Column(
        "plan_key_id",
        String,
        ForeignKey("api_keys.api_key_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    ),
    Column("plan_name", String, nullable=False),
    Column("plan_limit", Integer, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

api_logs = Table(
    "api_logs",
    metadata,
    Column("log_id", String, primary_key=True),
    Column(
        "log_key_id",
        String,
        ForeignKey("api_keys.api_key_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("credit_cost", Integer, nullable=False, default=1),
    Column("used_date", DateTime(timezone=True), nullable=False, index=True),
    Column("endpoint", String, nullable=False, default=""),
)


# ── Engine ───────────────────────────────────────────────────────


def create_engine(settings: Settings) -> AsyncEngine:
    """Build the async engine described by ``settings.database_url``."""
    db_url = settings.database_url.get_secret_value()
    kwargs: dict[str, object] = {"echo": False}
    if not db_url.startswith("sqlite"):
        kwargs.update(pool_size=10, max_overflow=20, pool_pre_ping=True)

    engine = create_async_engine(db_url, **kwargs)
    log.info("database_engine_created", host=db_url.split("@")[-1].split("?")[0])
    return engine


async def init_schema(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    log.info("schema_initialized", tables=sorted(metadata.tables))


async def truncate_all(engine: AsyncEngine) -> int:
    """Delete every row from every application table, children first.

    Returns the number of tables cleared.
    """
    tables = list(reversed(metadata.sorted_tables))
    async with engine.begin() as conn:
        for table in tables:
            await conn.execute(delete(table))
            log.info("table_cleared", table=table.name)
    return len(tables)
