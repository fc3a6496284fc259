import pytest
import pytest_asyncio

from vault.crypto.keys import PrivKey, PubKey
from vault.keymanager import InMemoryKeyManager, Record, SqlKeyManager
from vault.models import create_engine_and_session, init_db
from vault.tests.data import ALICE_ADDRESS, ALICE_PRIV, ALICE_PUB


@pytest.fixture
def alice_record():
    return Record(
        user_id="alice",
        address=ALICE_ADDRESS,
        pub_key=PubKey.from_bytes(bytes.fromhex(ALICE_PUB)),
        priv_key=PrivKey.from_bytes(bytes.fromhex(ALICE_PRIV)),
    )


@pytest_asyncio.fixture
async def sql_engine(tmp_path):
    """
    A fresh sqlite file per test. A file (rather than :memory:) lets every
    session see the same database, as in production.
    """
    engine, session_factory = create_engine_and_session(
        f"sqlite+aiosqlite:///{tmp_path / 'vault.db'}"
    )
    await init_db(engine)
    yield engine, session_factory
    await engine.dispose()


@pytest_asyncio.fixture
async def sql_key_manager(sql_engine):
    _, session_factory = sql_engine
    return SqlKeyManager(session_factory)


@pytest.fixture
def memory_key_manager():
    return InMemoryKeyManager()
