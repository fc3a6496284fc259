from .base import KeyManager, Record
from .memory import InMemoryKeyManager
from .sql import SqlKeyManager
