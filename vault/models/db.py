# vault/models/db.py

import os
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base

script_dir = os.path.dirname(os.path.abspath(__file__))
parent_dir = os.path.abspath(os.path.join(script_dir, os.pardir))
db_path = os.path.join(parent_dir, "sqlite.db")
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")

Base = declarative_base()


def create_engine_and_session(database_url=None):
    """
    Returns (engine, session_factory) for ``database_url`` (defaults to
    DATABASE_URL). Sessions do not expire on commit so records can be read
    after the session closes. Statement parameters are kept out of error
    messages: inserts carry private keys.
    """
    engine = create_async_engine(database_url or DATABASE_URL, echo=False, hide_parameters=True)
    session_factory = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    return engine, session_factory


async def init_db(engine):
    """
    Creates tables. Called once at startup or in tests.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
