import os
import typing
import asyncio
import logging
import sqlalchemy.ext.asyncio
from alembic import command
from alembic.config import Config
import ninebooks.config

logger = logging.getLogger(__name__)

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

engine: typing.Optional[sqlalchemy.ext.asyncio.AsyncEngine] = None
async_session_maker: typing.Optional[sqlalchemy.ext.asyncio.async_sessionmaker] = None


def alembic_config() -> typing.Optional[Config]:
    """Alembic config for the shelves schema, or None when running from an installed wheel."""
    ini_path = os.path.join(PROJECT_ROOT, "alembic.ini")
    if not os.path.exists(ini_path):
        return None

    cfg = Config(ini_path)
    cfg.set_main_option("script_location", os.path.join(PROJECT_ROOT, "alembic"))
    cfg.set_main_option("sqlalchemy.url", ninebooks.config.settings.database_url)
    return cfg


async def upgrade_schema() -> None:
    cfg = alembic_config()
    if cfg is None:
        logger.debug("alembic.ini not found next to the package, schema left as is")
        return

    # env.py drives its own event loop, so keep it off ours
    try:
        await asyncio.to_thread(command.upgrade, cfg, "head")
    except Exception as e:
        logger.warning(f"Schema upgrade failed, starting with the existing schema: {str(e)}")
        return
    logger.info("Shelf schema is at head")


async def init_db() -> None:
    global engine, async_session_maker
    settings = ninebooks.config.settings

    if settings.db_run_migrations:
        await upgrade_schema()

    engine = sqlalchemy.ext.asyncio.create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        echo=settings.debug
    )
    async_session_maker = sqlalchemy.ext.asyncio.async_sessionmaker(
        engine,
        class_=sqlalchemy.ext.asyncio.AsyncSession,
        expire_on_commit=False
    )
    logger.info(f"Connected to {settings.db_host}:{settings.db_port}/{settings.db_name}")


async def close_db() -> None:
    global engine, async_session_maker
    if engine is not None:
        await engine.dispose()
    engine = None
    async_session_maker = None


async def get_session() -> typing.AsyncIterator[sqlalchemy.ext.asyncio.AsyncSession]:
    if async_session_maker is None:
        raise RuntimeError("database not initialised, call init_db() first")
    async with async_session_maker() as session:
        yield session
