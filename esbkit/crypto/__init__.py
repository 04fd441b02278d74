"""
GovESB Connector - Crypto Module

Provides cryptographic primitives for the ESB connector:
- EC key generation and PEM / DER key resolution
- ECDSA-SHA256 signing through govesb.ECC (client -> ESB envelopes)
- ECDH + AES-256-GCM sealed encryption (esbBody payloads)
"""

from .keys import generate_keypair, resolve_private_key_b64, resolve_public_key_b64
from .signing import EcdsaSigner, EcdsaVerifier
from .encryption import SealedBox

__all__ = [
    'generate_keypair',
    'resolve_private_key_b64',
    'resolve_public_key_b64',
    'EcdsaSigner',
    'EcdsaVerifier',
    'SealedBox'
]
