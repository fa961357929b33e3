# backend/mcaptracker/db/session.py

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from mcaptracker.config.settings import settings
from mcaptracker.db.models import Base

engine = create_async_engine(settings.database_url, echo=False)
AsyncSessionLocal = async_sessionmaker(autoflush=False, bind=engine)


async def init_models() -> None:
    """Create the ``mcap`` table if it does not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
