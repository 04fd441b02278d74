"""
GovESB Connector Kit

Keys, signatures, sealed encryption and the ESB helper used by the demo
script and the relay server.
"""

from .connector import GovEsbHelper
from .crypto import generate_keypair

__all__ = [
    'GovEsbHelper',
    'generate_keypair'
]

__version__ = '0.1.0'
