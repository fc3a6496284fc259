# vault/keymanager/base.py

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from ..crypto.keys import KEY_TYPE_ED25519, PrivKey, PubKey, generate_key
from ..errors import DuplicateUserError, StorageError

logger = logging.getLogger(__name__)

OnCreate = Callable[[str, str], Awaitable[None]]


@dataclass(frozen=True)
class Record:
    user_id: str
    address: str
    pub_key: PubKey
    priv_key: PrivKey = field(repr=False)
    type: str = KEY_TYPE_ED25519

    @classmethod
    def generate(cls, user_id: str) -> "Record":
        address, pub_key, priv_key = generate_key()
        return cls(user_id=user_id, address=address, pub_key=pub_key, priv_key=priv_key)


class KeyManager(ABC):
    """
    Owns Record persistence. Implementations provide lookup and a create that
    rejects a second record for the same user (DuplicateUserError); the
    get-or-create flow on top of them is shared.

    ``on_create(user_id, address)`` runs once for every record this manager
    persists, e.g. to ask the faucet to fund the new address.
    """

    def __init__(self, on_create: Optional[OnCreate] = None):
        self._on_create = on_create

    @abstractmethod
    async def find_by_user_id(self, user_id: str) -> Optional[Record]:
        ...

    @abstractmethod
    async def create(self, record: Record) -> None:
        ...

    async def close(self) -> None:
        pass

    async def get_or_create(self, user_id: str) -> Record:
        """
        Returns the user's record, creating it on first access.

        Concurrent first accesses (from this or another gateway instance)
        converge on the single row the store accepted: a caller whose insert
        loses discards its freshly generated keypair and re-reads the winner's.
        """
        record = await self.find_by_user_id(user_id)
        if record is not None:
            return record

        logger.info(f"No record with user ID: {user_id}. Creating keys.")
        candidate = Record.generate(user_id)
        # Once started, the insert and its on_create notification finish even if
        # the caller is cancelled (e.g. by a request deadline).
        return await asyncio.shield(self._insert(candidate))

    async def _insert(self, candidate: Record) -> Record:
        user_id = candidate.user_id
        try:
            await self.create(candidate)
        except DuplicateUserError:
            logger.info(f"[get_or_create] user={user_id} was created concurrently, re-reading")
            record = await self.find_by_user_id(user_id)
            if record is None:
                raise StorageError(f"Record for user ID {user_id} missing after duplicate insert")
            return record
        except StorageError:
            logger.error(f"[get_or_create] user={user_id} failed to create address")
            raise

        logger.info(f"[get_or_create] user={user_id} created address {candidate.address}")
        await self._notify_created(candidate)
        return candidate

    async def _notify_created(self, record: Record) -> None:
        if self._on_create is None:
            return
        try:
            await self._on_create(record.user_id, record.address)
        except Exception as e:
            # The record is already durable; a failed notification must not fail the call.
            logger.error(f"[get_or_create] user={record.user_id} on_create hook failed: {e}")
