"""
ECDSA Digital Signature Module for GovESB

Used for signing envelopes sent to the ESB and verifying envelopes the ESB
sends back. The signature primitive is govesb's ECC (SHA256withECDSA, DER
signature, Base64). This module fixes what gets signed and adapts our
Base64 DER keys to the key encodings ECC expects.
"""

import base64
import json
from dataclasses import asdict
from typing import Any, Union

from cryptography.hazmat.primitives import serialization
from govesb import ECC, CryptoData

from .keys import export_public_key, load_private_key, load_public_key


Payload = Union[str, bytes, dict, list]


def canonical_text(payload: Payload) -> str:
    """
    Serialize a payload to the exact text that gets signed.

    Strings are signed as given; dicts and lists as compact JSON with
    sorted keys so both sides agree after a JSON round trip.
    """
    if isinstance(payload, (dict, list)):
        return json.dumps(payload, separators=(',', ':'), sort_keys=True, ensure_ascii=False)
    if isinstance(payload, bytes):
        return payload.decode('utf-8')
    if isinstance(payload, str):
        return payload
    raise TypeError(f"Cannot sign payload of type {type(payload).__name__}")


class EcdsaSigner:
    """
    Signs payloads with the client private key.
    """

    def __init__(self, private_key_b64: str):
        """
        Initialize signer with private key.

        Args:
            private_key_b64: Base64-encoded PKCS#8 DER EC private key
        """
        self._private_key = load_private_key(private_key_b64)
        # ECC.sign_payload takes Base64 of the PEM text, not of the DER
        pem = self._private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        self._pem_b64 = base64.b64encode(pem).decode('utf-8')

    @property
    def public_key_b64(self) -> str:
        """Get the corresponding public key as Base64 SPKI DER."""
        return export_public_key(self._private_key.public_key())

    def sign(self, payload: Payload) -> str:
        """
        Sign a payload and return Base64-encoded signature.

        Args:
            payload: Data to sign (str, bytes, or dict/list -> JSON)

        Returns:
            str: Base64-encoded DER signature
        """
        return ECC.sign_payload(canonical_text(payload), self._pem_b64)

    def sign_envelope(self, data: Any) -> dict:
        """Wrap data as {"data": ..., "signature": ...}."""
        return asdict(CryptoData(data=data, signature=self.sign(data)))


class EcdsaVerifier:
    """
    Verifies ECDSA signatures against a known public key.
    """

    def __init__(self, public_key_b64: str):
        # Fails early on non-EC or undecodable keys
        load_public_key(public_key_b64)
        self._public_key_b64 = public_key_b64

    def verify(self, payload: Payload, signature_b64: str) -> bool:
        """
        Verify a signature against a payload.

        Returns:
            bool: True if valid, False if invalid or malformed
        """
        if not isinstance(signature_b64, str) or not signature_b64:
            return False
        try:
            text = canonical_text(payload)
        except (TypeError, UnicodeDecodeError):
            return False
        return ECC.verify_payload(text, signature_b64, self._public_key_b64)

    def verify_envelope(self, envelope: Any) -> bool:
        """Verify a {"data": ..., "signature": ...} envelope."""
        if not isinstance(envelope, dict) or 'data' not in envelope:
            return False
        signature = envelope.get('signature')
        if not isinstance(signature, str):
            return False
        return self.verify(envelope['data'], signature)


# Convenience functions
def sign_data(private_key_b64: str, data: Payload) -> str:
    """Quick sign without creating Signer object."""
    return EcdsaSigner(private_key_b64).sign(data)


def verify_data(public_key_b64: str, data: Payload, signature_b64: str) -> bool:
    """Quick verify without creating Verifier object."""
    return EcdsaVerifier(public_key_b64).verify(data, signature_b64)
