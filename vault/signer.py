# vault/signer.py

"""
Signing protocol: (public key, private key, unsigned transaction) -> broadcast bytes.

A Signable wraps one unsigned transaction and knows three things about it: the
canonical bytes a signer signs, which input slot a given public key may sign,
and the final wire bytes once signatures are attached. ``sign`` is pure: the
same keypair and transaction always produce the same output bytes.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from .crypto.keys import PrivKey, PubKey, Signature
from .errors import SigningError
from .tx.types import (
    Coin, ServicePaymentTx, TxInput, clear_signatures, encode_tx
)

logger = logging.getLogger(__name__)

SOURCE = 0
TARGET = 1


class Signable(ABC):
    def __init__(self, tx):
        self.tx = tx
        self.signers = []

    @abstractmethod
    def sign_bytes(self) -> bytes:
        ...

    @abstractmethod
    def _slots(self):
        """Inputs this signable lets a signer attach a signature to."""

    def add_signer(self, pub_key: PubKey) -> None:
        """
        Marks ``pub_key`` as the signer of the first slot: its address goes on
        the input, and the key itself is attached when the input carries the
        account's first sequence (the node has not seen the key yet).
        """
        tx_input = self._slots()[0]
        tx_input.address = pub_key.address()
        if tx_input.sequence == 1:
            tx_input.pub_key = pub_key

    def sign(self, pub_key: PubKey, signature: Signature) -> None:
        address = pub_key.address()
        for tx_input in self._slots():
            if tx_input.address == address:
                tx_input.signature = signature
                self.signers.append(pub_key)
                return
        raise SigningError(f"Cannot add signature for address {address.hex().upper()}")

    def tx_bytes(self) -> bytes:
        return encode_tx(self.tx)


class SendTxSignable(Signable):
    def _slots(self):
        return self.tx.inputs

    def sign_bytes(self) -> bytes:
        return encode_tx(clear_signatures(self.tx))


class ReserveFundTxSignable(Signable):
    def _slots(self):
        return [self.tx.source]

    def sign_bytes(self) -> bytes:
        return encode_tx(clear_signatures(self.tx))


class ServicePaymentSignable(Signable):
    """
    A service payment is signed twice. The source signs first, over a view of
    the payment without the target's fee, gas and sequence, so the target can
    still choose them. The target then countersigns the full payment, including
    the source's signature, and broadcasts it.
    """

    def __init__(self, tx: ServicePaymentTx, slot: int = SOURCE):
        super().__init__(tx)
        if slot not in (SOURCE, TARGET):
            raise ValueError(f"Unknown service payment slot: {slot}")
        self.slot = slot

    def _slots(self):
        return [self.tx.signer_inputs()[self.slot]]

    def sign_bytes(self) -> bytes:
        if self.slot == SOURCE:
            view = clear_signatures(self.tx)
            view.gas = 0
            view.fee = Coin("", 0)
            view.target = TxInput(address=view.target.address)
        else:
            view = clear_signatures(self.tx, inputs=[TARGET])
        return encode_tx(view)


def sign(pub_key: PubKey, priv_key: PrivKey, tx: Signable) -> bytes:
    """
    Signs ``tx`` with ``priv_key`` and returns the signed transaction bytes.

    Raises:
        SigningError: the signature could not be attached to any input, or the
            transaction could not be serialized.
    """
    try:
        signature = priv_key.sign(tx.sign_bytes())
        tx.sign(pub_key, signature)
        tx_bytes = tx.tx_bytes()
    except SigningError:
        raise
    except (TypeError, ValueError) as e:
        raise SigningError(f"Failed to serialize transaction: {e}") from e
    logger.debug(f"[sign] signed {type(tx.tx).__name__} for address {pub_key.address().hex()}")
    return tx_bytes


def _checks(tx):
    if isinstance(tx, ServicePaymentTx):
        return [
            (tx.source, ServicePaymentSignable(tx, SOURCE).sign_bytes()),
            (tx.target, ServicePaymentSignable(tx, TARGET).sign_bytes()),
        ]
    message = encode_tx(clear_signatures(tx))
    return [(tx_input, message) for tx_input in tx.signer_inputs()]


def verify(tx, pub_keys: Optional[Dict[bytes, PubKey]] = None) -> bool:
    """
    True when ``tx`` carries at least one signature and every signature present
    verifies against its input's public key. Inputs without an attached key are
    looked up in ``pub_keys`` (address bytes -> PubKey), as the node does with
    keys it has already seen.
    """
    pub_keys = pub_keys or {}
    signed = [(i, m) for i, m in _checks(tx) if not i.signature.empty()]
    if not signed:
        return False
    for tx_input, message in signed:
        pub_key = tx_input.pub_key if not tx_input.pub_key.empty() else pub_keys.get(tx_input.address)
        if pub_key is None or pub_key.address() != tx_input.address:
            return False
        if not pub_key.verify(message, tx_input.signature):
            return False
    return True
