"""
EC Sealed Encryption Module for GovESB

Used for encrypting esbBody payloads for a recipient's EC public key.

Scheme (ECIES style):
- Generate an ephemeral keypair on the recipient's curve
- ECDH(ephemeral private, recipient public) -> shared secret
- HKDF-SHA256(shared secret) -> 256-bit AES key
- AES-256-GCM with a random 96-bit nonce

The output is a JSON envelope so it can be embedded directly as an esbBody:
    {"ephemeralKey": <b64 SPKI>, "iv": <b64>, "encryptedData": <b64 ct||tag>}
"""

import base64
import binascii
import json
import os
from typing import Optional, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from .keys import export_public_key, load_private_key, load_public_key


HKDF_INFO = b'govesb-sealed-box-v1'
KEY_SIZE = 32
IV_SIZE = 12

ENVELOPE_FIELDS = ('ephemeralKey', 'iv', 'encryptedData')


def _derive_key(private_key: ec.EllipticCurvePrivateKey,
                peer_public_key: ec.EllipticCurvePublicKey) -> bytes:
    shared = private_key.exchange(ec.ECDH(), peer_public_key)
    return HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=None,
        info=HKDF_INFO,
    ).derive(shared)


class SealedBox:
    """
    Public-key encryption for esbBody payloads.

    Encryption: provide the recipient's public key.
    Decryption: provide our own private key.
    """

    def __init__(self, public_key_b64: Optional[str] = None,
                 private_key_b64: Optional[str] = None):
        self._public_key = None
        self._private_key = None

        if public_key_b64:
            self._public_key = load_public_key(public_key_b64)

        if private_key_b64:
            self._private_key = load_private_key(private_key_b64)
            # Also derive public key
            if self._public_key is None:
                self._public_key = self._private_key.public_key()

    @property
    def public_key_b64(self) -> Optional[str]:
        """Get public key as Base64."""
        if self._public_key is not None:
            return export_public_key(self._public_key)
        return None

    def encrypt(self, plaintext: Union[str, bytes, dict]) -> str:
        """
        Encrypt data for the recipient public key.

        Args:
            plaintext: Data to encrypt (str, bytes, or dict -> JSON)

        Returns:
            str: JSON envelope with ephemeralKey, iv and encryptedData
        """
        if self._public_key is None:
            raise ValueError("No public key provided for encryption")

        if isinstance(plaintext, dict):
            plaintext = json.dumps(plaintext, separators=(',', ':'), ensure_ascii=False)
        if isinstance(plaintext, str):
            plaintext = plaintext.encode('utf-8')

        ephemeral = ec.generate_private_key(self._public_key.curve)
        key = _derive_key(ephemeral, self._public_key)
        iv = os.urandom(IV_SIZE)
        ciphertext = AESGCM(key).encrypt(iv, plaintext, None)

        return json.dumps({
            'ephemeralKey': export_public_key(ephemeral.public_key()),
            'iv': base64.b64encode(iv).decode('utf-8'),
            'encryptedData': base64.b64encode(ciphertext).decode('utf-8'),
        })

    def decrypt(self, envelope: Union[str, dict]) -> bytes:
        """
        Decrypt an envelope produced by encrypt().

        Args:
            envelope: JSON envelope string or already-parsed dict

        Returns:
            bytes: Decrypted plaintext
        """
        if self._private_key is None:
            raise ValueError("No private key provided for decryption")

        if isinstance(envelope, str):
            try:
                envelope = json.loads(envelope)
            except json.JSONDecodeError:
                raise ValueError("Encrypted payload is not a JSON envelope")
        if not isinstance(envelope, dict) or any(f not in envelope for f in ENVELOPE_FIELDS):
            raise ValueError(f"Encrypted payload must contain {', '.join(ENVELOPE_FIELDS)}")

        try:
            ephemeral_public = load_public_key(envelope['ephemeralKey'])
            iv = base64.b64decode(envelope['iv'])
            ciphertext = base64.b64decode(envelope['encryptedData'])
        except (binascii.Error, TypeError) as e:
            raise ValueError(f"Malformed encrypted payload: {e}")

        if ephemeral_public.curve.name != self._private_key.curve.name:
            raise ValueError(
                f"Ephemeral key curve {ephemeral_public.curve.name} does not match "
                f"private key curve {self._private_key.curve.name}"
            )

        key = _derive_key(self._private_key, ephemeral_public)
        try:
            return AESGCM(key).decrypt(iv, ciphertext, None)
        except InvalidTag:
            raise ValueError("Decryption failed: payload was not encrypted for this key or was altered")

    def decrypt_text(self, envelope: Union[str, dict]) -> str:
        """Decrypt and decode as UTF-8."""
        return self.decrypt(envelope).decode('utf-8')


# Convenience functions
def encrypt_for(public_key_b64: str, data: Union[str, bytes, dict]) -> str:
    """Quick encrypt without creating SealedBox object."""
    return SealedBox(public_key_b64=public_key_b64).encrypt(data)


def decrypt_with(private_key_b64: str, envelope: Union[str, dict]) -> bytes:
    """Quick decrypt without creating SealedBox object."""
    return SealedBox(private_key_b64=private_key_b64).decrypt(envelope)
