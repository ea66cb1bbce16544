# app/database.py
import logging

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import DATABASE_URL, SQL_ECHO
from .exceptions import StoreError

logger = logging.getLogger(__name__)

engine = create_async_engine(DATABASE_URL, echo=SQL_ECHO)

# expire_on_commit=False: ORM objects stay usable after commit, the async
# session cannot lazily reload expired attributes.
AsyncSessionFactory = sessionmaker(
    autoflush=False, bind=engine, class_=AsyncSession, expire_on_commit=False
)

Base = declarative_base()


async def get_db_session() -> AsyncSession:
    async with AsyncSessionFactory() as session:
        try:
            yield session
            await session.commit()  # Commit at the end if everything went fine
        except Exception:
            await session.rollback()  # Rollback on any error
            raise
        finally:
            await session.close()


async def create_db_and_tables():
    """
    Schema creation is handled by Alembic. Only used for local development
    databases that were never migrated.
    """
    if DATABASE_URL.startswith("sqlite"):
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("SQLite schema ensured via metadata.create_all")


async def commit_session(session: AsyncSession):
    """Commit, turning driver/ORM failures into the retryable StoreError."""
    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("Commit failed: %s", e)
        raise StoreError() from e
