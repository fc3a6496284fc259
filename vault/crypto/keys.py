# vault/crypto/keys.py

"""
Ed25519 key material for custodial wallets.

Keys and signatures are carried in their typed wire encoding (field 2 of the
key "oneof" is Ed25519), which is also the form persisted by the key vault:

    public key   12 20 <32-byte public key>
    private key  12 40 <32-byte seed><32-byte public key>
    signature    12 40 <64-byte signature>

Addresses are RIPEMD-160 over the legacy binary encoding of the public key.
Never log or print a PrivKey; its repr is redacted.
"""

import logging
from dataclasses import dataclass, field

from Crypto.Hash import RIPEMD160
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey, Ed25519PublicKey
)
from mnemonic import Mnemonic

from ..errors import KeyGenerationError
from ..tx.wire import bytes_field, iter_typed_fields

logger = logging.getLogger(__name__)

KEY_TYPE_ED25519 = "ed25519"

_ED25519_FIELD = 2
PUBKEY_SIZE = 32
PRIVKEY_SIZE = 64
SIGNATURE_SIZE = 64

# type byte 0x01 (ed25519) followed by the length-prefixed key bytes
_ADDRESS_PREFIX = b"\x01\x01\x20"

_WORDLIST = "english"


def _decode_tagged(raw: bytes, expected_size: int, what: str) -> bytes:
    payload = b""
    for field_number, value in iter_typed_fields(raw):
        if field_number != _ED25519_FIELD:
            raise ValueError(f"Unsupported {what} type tag: {field_number}")
        payload = value
    if payload and len(payload) != expected_size:
        raise ValueError(f"Invalid {what} length: {len(payload)}")
    return payload


@dataclass(frozen=True)
class Signature:
    data: bytes = b""

    def empty(self) -> bool:
        return not self.data

    def to_bytes(self) -> bytes:
        return bytes_field(_ED25519_FIELD, self.data)

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Signature":
        return cls(_decode_tagged(raw, SIGNATURE_SIZE, "signature"))


@dataclass(frozen=True)
class PubKey:
    data: bytes = b""
    type: str = KEY_TYPE_ED25519

    def empty(self) -> bool:
        return not self.data

    def to_bytes(self) -> bytes:
        return bytes_field(_ED25519_FIELD, self.data)

    @classmethod
    def from_bytes(cls, raw: bytes) -> "PubKey":
        return cls(_decode_tagged(raw, PUBKEY_SIZE, "public key"))

    def address(self) -> bytes:
        if self.empty():
            raise ValueError("Cannot derive an address from an empty public key")
        return RIPEMD160.new(_ADDRESS_PREFIX + self.data).digest()

    def verify(self, message: bytes, signature: Signature) -> bool:
        if self.empty() or signature.empty():
            return False
        try:
            Ed25519PublicKey.from_public_bytes(self.data).verify(signature.data, message)
        except InvalidSignature:
            return False
        return True


@dataclass(frozen=True)
class PrivKey:
    data: bytes = field(default=b"", repr=False)
    type: str = KEY_TYPE_ED25519

    @classmethod
    def from_seed(cls, seed: bytes) -> "PrivKey":
        if len(seed) != 32:
            raise ValueError(f"Invalid seed length: {len(seed)}")
        public = Ed25519PrivateKey.from_private_bytes(seed).public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        return cls(bytes(seed) + public)

    @classmethod
    def from_bytes(cls, raw: bytes) -> "PrivKey":
        return cls(_decode_tagged(raw, PRIVKEY_SIZE, "private key"))

    def to_bytes(self) -> bytes:
        return bytes_field(_ED25519_FIELD, self.data)

    @property
    def seed(self) -> bytes:
        return self.data[:32]

    def pub_key(self) -> PubKey:
        return PubKey(self.data[32:])

    def sign(self, message: bytes) -> Signature:
        key = Ed25519PrivateKey.from_private_bytes(self.seed)
        return Signature(key.sign(message))


def derive_address(pub_key: PubKey) -> str:
    """Hex-encoded 20-byte address of ``pub_key``."""
    return pub_key.address().hex()


def generate_key():
    """
    Generates a fresh Ed25519 keypair.

    Returns:
        (address, pub_key, priv_key)

    Raises:
        KeyGenerationError: the crypto backend failed to produce a key.
    """
    try:
        seed = Ed25519PrivateKey.generate().private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        priv_key = PrivKey.from_seed(seed)
    except Exception as e:
        logger.error(f"Ed25519 key generation failed: {type(e).__name__}")
        raise KeyGenerationError("Ed25519 key generation failed") from e
    pub_key = priv_key.pub_key()
    return derive_address(pub_key), pub_key, priv_key


def recovery_phrase(priv_key: PrivKey) -> str:
    """24-word BIP-39 phrase of the key's seed, for operator-side backup only."""
    return Mnemonic(_WORDLIST).to_mnemonic(priv_key.seed)


def private_key_from_phrase(phrase: str) -> PrivKey:
    codec = Mnemonic(_WORDLIST)
    if not codec.check(phrase):
        raise ValueError("Invalid recovery phrase")
    return PrivKey.from_seed(bytes(codec.to_entropy(phrase)))
