# vault/keymanager/memory.py

from typing import Dict, Optional

from ..errors import DuplicateUserError
from .base import KeyManager, OnCreate, Record


class InMemoryKeyManager(KeyManager):
    """Dict-backed key vault for tests and local development. Nothing is persisted."""

    def __init__(self, on_create: Optional[OnCreate] = None):
        super().__init__(on_create)
        self._records: Dict[str, Record] = {}

    def __len__(self):
        return len(self._records)

    async def find_by_user_id(self, user_id: str) -> Optional[Record]:
        return self._records.get(user_id)

    async def create(self, record: Record) -> None:
        # check-and-insert without an await in between, so it is atomic on the loop
        if record.user_id in self._records:
            raise DuplicateUserError(record.user_id)
        self._records[record.user_id] = record
