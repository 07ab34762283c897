from typing import AsyncIterator

from sqlmodel import SQLModel
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

import config
import models  # noqa: F401  registers the tables on SQLModel.metadata


def build_engine(url: str, **kwargs) -> AsyncEngine:
    return create_async_engine(url, echo=config.SQL_ECHO, future=True, **kwargs)


def build_sessionmaker(bind: AsyncEngine) -> sessionmaker:
    return sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


# Create the Async Engine
engine = build_engine(config.DATABASE_URL)
async_session = build_sessionmaker(engine)


async def init_db(bind: AsyncEngine = engine):
    async with bind.begin() as conn:
        # This creates the tables if they don't exist
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session
