from unittest.mock import MagicMock

import pytest

from vault.crypto.keys import (
    PrivKey, PubKey, Signature, derive_address, generate_key,
    private_key_from_phrase, recovery_phrase
)
from vault.errors import KeyGenerationError

from vault.tests.data import ALICE_ADDRESS, ALICE_PRIV, ALICE_PUB


def test_fixture_address_matches_public_key(alice_record):
    assert derive_address(alice_record.pub_key) == ALICE_ADDRESS
    assert alice_record.priv_key.pub_key() == alice_record.pub_key


def test_derive_address_is_deterministic():
    pub_key = PubKey.from_bytes(bytes.fromhex(ALICE_PUB))
    addresses = {derive_address(pub_key) for _ in range(5)}
    assert addresses == {ALICE_ADDRESS}
    assert len(bytes.fromhex(ALICE_ADDRESS)) == 20


def test_key_encodings_round_trip():
    priv_key = PrivKey.from_bytes(bytes.fromhex(ALICE_PRIV))
    assert priv_key.to_bytes().hex() == ALICE_PRIV
    assert priv_key.pub_key().to_bytes().hex() == ALICE_PUB
    assert Signature().to_bytes() == b""


def test_private_key_repr_is_redacted(alice_record):
    seed_hex = alice_record.priv_key.seed.hex()
    assert seed_hex not in repr(alice_record.priv_key)
    assert seed_hex not in repr(alice_record)


def test_decode_rejects_wrong_length():
    with pytest.raises(ValueError):
        PubKey.from_bytes(bytes.fromhex("1203aabbcc"))
    with pytest.raises(ValueError):
        PrivKey.from_bytes(bytes.fromhex("0a20" + "00" * 32))


def test_generate_key_produces_consistent_keypair():
    address, pub_key, priv_key = generate_key()
    assert priv_key.pub_key() == pub_key
    assert derive_address(pub_key) == address

    signature = priv_key.sign(b"message")
    assert pub_key.verify(b"message", signature)
    assert not pub_key.verify(b"other message", signature)


def test_generate_key_wraps_backend_failure(monkeypatch):
    backend = MagicMock()
    backend.generate.side_effect = RuntimeError("no entropy")
    monkeypatch.setattr("vault.crypto.keys.Ed25519PrivateKey", backend)
    with pytest.raises(KeyGenerationError):
        generate_key()


def test_recovery_phrase_round_trip(alice_record):
    phrase = recovery_phrase(alice_record.priv_key)
    assert len(phrase.split()) == 24
    assert private_key_from_phrase(phrase) == alice_record.priv_key


def test_invalid_recovery_phrase():
    with pytest.raises(ValueError):
        private_key_from_phrase("abandon " * 23 + "zoo")
