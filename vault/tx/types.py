# vault/tx/types.py

"""
Transaction types understood by the upstream node, with their canonical
encoding. Broadcast bytes are the ``Tx`` envelope: the concrete transaction is
written as the envelope field matching its type.
"""

import copy
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..crypto.keys import PubKey, Signature
from .wire import (
    bytes_field, iter_typed_fields, message_field, string_field, uint_field
)


@dataclass
class Coin:
    denom: str
    amount: int

    def encode(self) -> bytes:
        return string_field(1, self.denom) + uint_field(2, self.amount)

    @classmethod
    def decode(cls, data: bytes) -> "Coin":
        denom, amount = "", 0
        for num, value in iter_typed_fields(data, varints=(2,)):
            if num == 1:
                denom = value.decode("utf-8")
            elif num == 2:
                amount = value
        return cls(denom=denom, amount=amount)

    def to_dict(self) -> Dict:
        return {"denom": self.denom, "amount": self.amount}


def _encode_coins(field_number: int, coins: List[Coin]) -> bytes:
    return b"".join(message_field(field_number, c.encode()) for c in coins)


def sum_coins(coins: List[Coin]) -> List[Coin]:
    """Per-denomination totals, in order of first appearance."""
    totals: Dict[str, int] = {}
    for c in coins:
        totals[c.denom] = totals.get(c.denom, 0) + c.amount
    return [Coin(denom=d, amount=a) for d, a in totals.items()]


@dataclass
class TxInput:
    address: bytes = b""
    coins: List[Coin] = field(default_factory=list)
    sequence: int = 0
    signature: Signature = field(default_factory=Signature)
    pub_key: PubKey = field(default_factory=PubKey)

    def encode(self) -> bytes:
        return (
            bytes_field(1, self.address)
            + _encode_coins(2, self.coins)
            + uint_field(3, self.sequence)
            + message_field(4, self.signature.to_bytes())
            + message_field(5, self.pub_key.to_bytes())
        )

    @classmethod
    def decode(cls, data: bytes) -> "TxInput":
        tx_input = cls()
        for num, value in iter_typed_fields(data, varints=(3,)):
            if num == 1:
                tx_input.address = value
            elif num == 2:
                tx_input.coins.append(Coin.decode(value))
            elif num == 3:
                tx_input.sequence = value
            elif num == 4:
                tx_input.signature = Signature.from_bytes(value)
            elif num == 5:
                tx_input.pub_key = PubKey.from_bytes(value)
        return tx_input


@dataclass
class TxOutput:
    address: bytes
    coins: List[Coin] = field(default_factory=list)

    def encode(self) -> bytes:
        return bytes_field(1, self.address) + _encode_coins(2, self.coins)

    @classmethod
    def decode(cls, data: bytes) -> "TxOutput":
        tx_output = cls(address=b"")
        for num, value in iter_typed_fields(data):
            if num == 1:
                tx_output.address = value
            elif num == 2:
                tx_output.coins.append(Coin.decode(value))
        return tx_output


@dataclass
class SendTx:
    gas: int = 0
    fee: Coin = field(default_factory=lambda: Coin("", 0))
    inputs: List[TxInput] = field(default_factory=list)
    outputs: List[TxOutput] = field(default_factory=list)

    def encode(self) -> bytes:
        return (
            uint_field(1, self.gas)
            + message_field(2, self.fee.encode())
            + b"".join(message_field(3, i.encode()) for i in self.inputs)
            + b"".join(message_field(4, o.encode()) for o in self.outputs)
        )

    @classmethod
    def decode(cls, data: bytes) -> "SendTx":
        tx = cls()
        for num, value in iter_typed_fields(data, varints=(1,)):
            if num == 1:
                tx.gas = value
            elif num == 2:
                tx.fee = Coin.decode(value)
            elif num == 3:
                tx.inputs.append(TxInput.decode(value))
            elif num == 4:
                tx.outputs.append(TxOutput.decode(value))
        return tx

    def signer_inputs(self) -> List[TxInput]:
        return self.inputs


@dataclass
class ReserveFundTx:
    gas: int = 0
    fee: Coin = field(default_factory=lambda: Coin("", 0))
    source: TxInput = field(default_factory=TxInput)
    collateral: List[Coin] = field(default_factory=list)
    resource_ids: List[str] = field(default_factory=list)
    duration: int = 0

    def encode(self) -> bytes:
        return (
            uint_field(1, self.gas)
            + message_field(2, self.fee.encode())
            + message_field(3, self.source.encode())
            + _encode_coins(4, self.collateral)
            + b"".join(string_field(5, r) for r in self.resource_ids)
            + uint_field(6, self.duration)
        )

    @classmethod
    def decode(cls, data: bytes) -> "ReserveFundTx":
        tx = cls()
        for num, value in iter_typed_fields(data, varints=(1, 6)):
            if num == 1:
                tx.gas = value
            elif num == 2:
                tx.fee = Coin.decode(value)
            elif num == 3:
                tx.source = TxInput.decode(value)
            elif num == 4:
                tx.collateral.append(Coin.decode(value))
            elif num == 5:
                tx.resource_ids.append(value.decode("utf-8"))
            elif num == 6:
                tx.duration = value
        return tx

    def signer_inputs(self) -> List[TxInput]:
        return [self.source]


@dataclass
class ServicePaymentTx:
    gas: int = 0
    fee: Coin = field(default_factory=lambda: Coin("", 0))
    source: TxInput = field(default_factory=TxInput)
    target: TxInput = field(default_factory=TxInput)
    payment_sequence: int = 0
    reserve_sequence: int = 0
    resource_id: str = ""

    def encode(self) -> bytes:
        return (
            uint_field(1, self.gas)
            + message_field(2, self.fee.encode())
            + message_field(3, self.source.encode())
            + message_field(4, self.target.encode())
            + uint_field(5, self.payment_sequence)
            + uint_field(6, self.reserve_sequence)
            + string_field(7, self.resource_id)
        )

    @classmethod
    def decode(cls, data: bytes) -> "ServicePaymentTx":
        tx = cls()
        for num, value in iter_typed_fields(data, varints=(1, 5, 6)):
            if num == 1:
                tx.gas = value
            elif num == 2:
                tx.fee = Coin.decode(value)
            elif num == 3:
                tx.source = TxInput.decode(value)
            elif num == 4:
                tx.target = TxInput.decode(value)
            elif num == 5:
                tx.payment_sequence = value
            elif num == 6:
                tx.reserve_sequence = value
            elif num == 7:
                tx.resource_id = value.decode("utf-8")
        return tx

    def signer_inputs(self) -> List[TxInput]:
        return [self.source, self.target]


# Envelope field numbers. Field 1 (coinbase) is only produced by validators.
_TX_FIELDS = {
    SendTx: 2,
    ReserveFundTx: 3,
    ServicePaymentTx: 4,
}
_TX_TYPES = {num: tx_type for tx_type, num in _TX_FIELDS.items()}


def encode_tx(tx) -> bytes:
    try:
        field_number = _TX_FIELDS[type(tx)]
    except KeyError:
        raise ValueError(f"Unsupported transaction type: {type(tx).__name__}")
    return message_field(field_number, tx.encode())


def decode_tx(data: bytes):
    tx: Optional[object] = None
    for num, value in iter_typed_fields(data):
        tx_type = _TX_TYPES.get(num)
        if tx_type is None:
            raise ValueError(f"Unsupported transaction envelope field: {num}")
        try:
            tx = tx_type.decode(value)
        except (AttributeError, TypeError, UnicodeDecodeError) as e:
            raise ValueError(f"Malformed {tx_type.__name__}: {e}") from e
    if tx is None:
        raise ValueError("Empty transaction")
    return tx


def clear_signatures(tx, inputs=None):
    """
    Returns a deep copy of ``tx`` whose signer inputs (or the given subset,
    selected by position) carry empty signatures.
    """
    cleared = copy.deepcopy(tx)
    slots = cleared.signer_inputs()
    indexes = range(len(slots)) if inputs is None else inputs
    for i in indexes:
        slots[i].signature = Signature()
    return cleared
