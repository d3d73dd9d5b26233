"""Database connection and storage utilities."""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from talentflow.core.config import settings


def configure_sqlite_transactions(bind: AsyncEngine) -> AsyncEngine:
    """Make SQLite transactions explicit and write-locking.

    The sqlite3 driver defers BEGIN until the first DML statement, which
    breaks SAVEPOINT and lets two transactions read before either writes.
    Taking the write lock at BEGIN serializes writers the same way
    row locks do on PostgreSQL.
    """
    if bind.dialect.name != "sqlite":
        return bind

    @event.listens_for(bind.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(bind.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return bind


engine: AsyncEngine = configure_sqlite_transactions(
    create_async_engine(
        str(settings.database_url),
        echo=settings.database_echo,
        pool_pre_ping=True,
    )
)

async_session = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


async def init_models(bind: AsyncEngine | None = None) -> None:
    """Create all tables that do not exist yet."""
    # Every model must be registered on Base.metadata before create_all.
    import talentflow.models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
