"""
GovESB Connector - Protocol Module

Provides the helper object the demo and the relay are built on:
- Signed success / failure envelopes
- Envelope verification against the ESB public key
- Token-authenticated request, push and async calls to the ESB engine

Signing and token exchange come from the govesb package.
"""

from .errors import (
    EsbConfigurationError,
    EsbError,
    EsbSignatureError,
    EsbTransportError,
    UnsupportedFormatError,
)
from .helper import GovEsbHelper

__all__ = [
    'GovEsbHelper',
    'EsbError',
    'EsbConfigurationError',
    'EsbSignatureError',
    'EsbTransportError',
    'UnsupportedFormatError'
]
