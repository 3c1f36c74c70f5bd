from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.db import engine as default_engine
from app.models import Base


async def init_db(engine: AsyncEngine = default_engine) -> None:
    """
    Create the `stations` table if it does not already exist.

    Called from the application lifespan. Schema changes beyond the
    initial table should go through a migration tool instead.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
