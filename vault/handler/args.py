# vault/handler/args.py

"""
Caller-supplied arguments of each gateway operation. Addresses and transaction
bytes travel hex-encoded in JSON; optional fee, gas and sequence fall back to
server-side defaults (the sequence to the upstream account state).
"""

from dataclasses import dataclass
from typing import List, Optional

from ..tx.types import Coin, TxOutput
from ..tx.wire import MAX_UINT64

ADDRESS_SIZE = 20


def _check_coins(name: str, coins: List[Coin]) -> None:
    for coin in coins:
        if not coin.denom:
            raise ValueError(f"{name}: coin denomination is required")
        if coin.amount < 0:
            raise ValueError(f"{name}: negative amount {coin.amount} {coin.denom}")
        if coin.amount > MAX_UINT64:
            raise ValueError(f"{name}: amount {coin.amount} {coin.denom} exceeds 64 bits")


def _check_address(name: str, address: bytes) -> None:
    if len(address) != ADDRESS_SIZE:
        raise ValueError(f"{name}: address must be {ADDRESS_SIZE} bytes, got {len(address)}")


def _check_uint(name: str, value: Optional[int]) -> None:
    if value is None:
        return
    if value < 0:
        raise ValueError(f"{name}: must not be negative")
    if value > MAX_UINT64:
        raise ValueError(f"{name}: exceeds 64 bits")


@dataclass
class _TxOptions:
    def _check_options(self):
        if self.fee is not None:
            _check_coins("fee", [self.fee])
        _check_uint("gas", self.gas)
        _check_uint("sequence", self.sequence)


@dataclass
class GetAccountArgs:
    pass


@dataclass
class SendArgs(_TxOptions):
    to: List[TxOutput]
    fee: Optional[Coin] = None
    gas: Optional[int] = None
    sequence: Optional[int] = None

    def __post_init__(self):
        if not self.to:
            raise ValueError("to: at least one output is required")
        for output in self.to:
            _check_address("to", output.address)
            _check_coins("to", output.coins)
        self._check_options()


@dataclass
class ReserveFundArgs(_TxOptions):
    collateral: List[Coin]
    fund: List[Coin]
    resource_ids: List[str]
    duration: int
    fee: Optional[Coin] = None
    gas: Optional[int] = None
    sequence: Optional[int] = None

    def __post_init__(self):
        _check_coins("collateral", self.collateral)
        _check_coins("fund", self.fund)
        if not self.resource_ids:
            raise ValueError("resource_ids: at least one resource ID is required")
        _check_uint("duration", self.duration)
        self._check_options()


@dataclass
class CreatePaymentArgs:
    to: bytes
    amount: List[Coin]
    reserve_sequence: int
    payment_sequence: int
    resource_id: str

    def __post_init__(self):
        _check_address("to", self.to)
        _check_coins("amount", self.amount)
        _check_uint("reserve_sequence", self.reserve_sequence)
        _check_uint("payment_sequence", self.payment_sequence)


@dataclass
class SubmitPaymentArgs(_TxOptions):
    payment: bytes
    fee: Optional[Coin] = None
    gas: Optional[int] = None
    sequence: Optional[int] = None

    def __post_init__(self):
        if not self.payment:
            raise ValueError("payment: transaction bytes are required")
        self._check_options()
