from __future__ import annotations

import base64
import json

import pytest

from esbkit.crypto import generate_keypair
from esbkit.crypto.encryption import SealedBox, decrypt_with, encrypt_for
from relay.config import CONSUMER_TEST_PUBLIC_KEY


def test_encrypt_for_recipient_and_decrypt(client_keys):
    priv, pub = client_keys
    envelope = encrypt_for(pub, '{"nin":"19850704"}')

    parsed = json.loads(envelope)
    assert set(parsed) == {"ephemeralKey", "iv", "encryptedData"}
    assert len(base64.b64decode(parsed["iv"])) == 12
    assert decrypt_with(priv, envelope) == b'{"nin":"19850704"}'
    # parsed dict is accepted too
    assert SealedBox(private_key_b64=priv).decrypt_text(parsed) == '{"nin":"19850704"}'


def test_each_encryption_is_fresh(client_keys):
    _, pub = client_keys
    assert encrypt_for(pub, "same") != encrypt_for(pub, "same")


def test_wrong_private_key_fails(client_keys, esb_keys):
    _, pub = client_keys
    other_priv, _ = esb_keys
    envelope = encrypt_for(pub, "secret")
    with pytest.raises(ValueError, match="Decryption failed"):
        decrypt_with(other_priv, envelope)


def test_tampered_ciphertext_fails(client_keys):
    priv, pub = client_keys
    parsed = json.loads(encrypt_for(pub, "secret"))
    raw = bytearray(base64.b64decode(parsed["encryptedData"]))
    raw[0] ^= 0x01
    parsed["encryptedData"] = base64.b64encode(bytes(raw)).decode()
    with pytest.raises(ValueError):
        decrypt_with(priv, parsed)


def test_curve_mismatch_is_reported(client_keys):
    priv, _ = client_keys
    _, k1_pub = generate_keypair("secp256k1")
    with pytest.raises(ValueError, match="curve"):
        decrypt_with(priv, encrypt_for(k1_pub, "x"))


def test_secp256k1_round_trip():
    priv, pub = generate_keypair("secp256k1")
    assert decrypt_with(priv, encrypt_for(pub, {"a": 1})) == b'{"a":1}'


def test_consumer_test_key_is_usable():
    parsed = json.loads(encrypt_for(CONSUMER_TEST_PUBLIC_KEY, "hello"))
    assert parsed["encryptedData"]


@pytest.mark.parametrize("bad", ["not json", "{}", '{"iv": "AA==", "encryptedData": "AA=="}', "[]"])
def test_malformed_envelopes(client_keys, bad):
    priv, _ = client_keys
    with pytest.raises(ValueError):
        decrypt_with(priv, bad)


def test_missing_keys():
    with pytest.raises(ValueError):
        SealedBox().encrypt("x")
    with pytest.raises(ValueError):
        SealedBox().decrypt("{}")
