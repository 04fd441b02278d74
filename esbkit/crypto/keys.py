"""
EC Key Material Module for GovESB

Generates keypairs and normalizes key material handed to the connector.
Keys travel as Base64 DER strings: PKCS#8 for private keys and
SubjectPublicKeyInfo for public keys.

Configuration may supply a key as:
- a path to a PEM file
- PEM content pasted into an environment variable
- a Base64 DER string
"""

import base64
import os
from typing import Optional, Tuple

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec


CURVES = {
    'prime256v1': ec.SECP256R1,
    'secp256r1': ec.SECP256R1,
    'p-256': ec.SECP256R1,
    'secp256k1': ec.SECP256K1,
    'secp384r1': ec.SECP384R1,
    'p-384': ec.SECP384R1,
}

PEM_MARKER = '-----BEGIN'


def curve_for(name: str) -> ec.EllipticCurve:
    """Map a curve name (OpenSSL or NIST spelling) to a curve instance."""
    try:
        return CURVES[name.lower()]()
    except KeyError:
        raise ValueError(f"Unsupported curve: {name}")


def generate_keypair(curve: str = 'prime256v1') -> Tuple[str, str]:
    """
    Generate a new EC keypair.

    Args:
        curve: Curve name, defaults to prime256v1

    Returns:
        Tuple[str, str]: (private_der_b64, public_der_b64)
    """
    private_key = ec.generate_private_key(curve_for(curve))
    return export_private_key(private_key), export_public_key(private_key.public_key())


def export_private_key(private_key: ec.EllipticCurvePrivateKey) -> str:
    der = private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return base64.b64encode(der).decode('utf-8')


def export_public_key(public_key: ec.EllipticCurvePublicKey) -> str:
    der = public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return base64.b64encode(der).decode('utf-8')


def load_private_key(private_key_b64: str) -> ec.EllipticCurvePrivateKey:
    """Decode a Base64 PKCS#8 DER private key."""
    key = serialization.load_der_private_key(base64.b64decode(private_key_b64), password=None)
    if not isinstance(key, ec.EllipticCurvePrivateKey):
        raise ValueError("Private key is not an elliptic-curve key")
    return key


def load_public_key(public_key_b64: str) -> ec.EllipticCurvePublicKey:
    """Decode a Base64 SPKI DER public key."""
    key = serialization.load_der_public_key(base64.b64decode(public_key_b64))
    if not isinstance(key, ec.EllipticCurvePublicKey):
        raise ValueError("Public key is not an elliptic-curve key")
    return key


def _read_pem(value: str) -> Optional[str]:
    """Return PEM text if value is a PEM path or PEM content, else None."""
    if value.endswith('.pem') or os.path.exists(value):
        with open(value, 'r', encoding='utf-8') as f:
            return f.read()
    if PEM_MARKER in value:
        return value
    return None


def resolve_private_key_b64(value: Optional[str]) -> Optional[str]:
    """
    Normalize configured private key material to Base64 PKCS#8 DER.

    Anything that is neither a PEM path nor PEM content is assumed to be
    Base64 DER already and returned unchanged.
    """
    if not value:
        return None
    value = str(value)
    pem = _read_pem(value)
    if pem is None:
        return value
    key = serialization.load_pem_private_key(pem.encode('utf-8'), password=None)
    return export_private_key(key)


def resolve_public_key_b64(value: Optional[str]) -> Optional[str]:
    """Normalize configured public key material to Base64 SPKI DER."""
    if not value:
        return None
    value = str(value)
    pem = _read_pem(value)
    if pem is None:
        return value
    key = serialization.load_pem_public_key(pem.encode('utf-8'))
    return export_public_key(key)
