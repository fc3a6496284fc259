# vault/keymanager/sql.py

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..crypto.keys import PrivKey, PubKey
from ..errors import DuplicateUserError, StorageError
from ..models import WalletKey
from .base import KeyManager, OnCreate, Record

logger = logging.getLogger(__name__)


def _row_from_record(record: Record) -> WalletKey:
    return WalletKey(
        userid=record.user_id,
        pubkey=record.pub_key.to_bytes().hex(),
        privkey=record.priv_key.to_bytes().hex(),
        address=record.address,
        key_type=record.type,
    )


def _record_from_row(row: WalletKey) -> Record:
    try:
        pub_key = PubKey.from_bytes(bytes.fromhex(row.pubkey))
        priv_key = PrivKey.from_bytes(bytes.fromhex(row.privkey))
    except ValueError as e:
        raise StorageError(f"Corrupt key material for user ID {row.userid}") from e
    return Record(
        user_id=row.userid,
        address=row.address,
        pub_key=pub_key,
        priv_key=priv_key,
        type=row.key_type,
    )


class SqlKeyManager(KeyManager):
    """
    Key vault backed by the ``user_theta_native_wallet`` table. Uniqueness of
    ``userid`` is enforced by the database, never by an in-process lock, so
    any number of gateway instances can share one store.
    """

    def __init__(self, session_factory, engine=None, on_create: Optional[OnCreate] = None):
        super().__init__(on_create)
        self._session_factory = session_factory
        self._engine = engine

    async def find_by_user_id(self, user_id: str) -> Optional[Record]:
        try:
            async with self._session_factory() as session:
                stmt = select(WalletKey).where(WalletKey.userid == user_id)
                result = await session.execute(stmt)
                row = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"[find_by_user_id] user={user_id} lookup failed: {e}")
            raise StorageError(f"Failed to look up user ID {user_id}") from e

        if row is None:
            return None
        return _record_from_row(row)

    async def create(self, record: Record) -> None:
        try:
            async with self._session_factory() as session:
                session.add(_row_from_record(record))
                try:
                    await session.commit()
                except IntegrityError as e:
                    await session.rollback()
                    raise DuplicateUserError(record.user_id) from e
        except SQLAlchemyError as e:
            logger.error(f"[create] user={record.user_id} insert failed: {e}")
            raise StorageError(f"Failed to create record for user ID {record.user_id}") from e

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
