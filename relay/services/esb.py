"""
ESB helper initialization for the relay.

Prefers keys from configuration; without both keys the relay runs offline
on an ephemeral keypair so the local routes can still be exercised.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from esbkit.connector import GovEsbHelper
from esbkit.crypto import generate_keypair, resolve_private_key_b64, resolve_public_key_b64

from ..config import RelayConfig


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EsbRuntime:
    """Process-wide helper plus the ESB public key routes fall back to."""
    helper: GovEsbHelper
    esb_public_key: Optional[str]
    live: bool


def initialize_helper(config: RelayConfig,
                      http_client: Optional[httpx.AsyncClient] = None) -> EsbRuntime:
    resolved_private = resolve_private_key_b64(config.client_private_key)
    resolved_public = resolve_public_key_b64(config.esb_public_key)

    if resolved_private and resolved_public:
        engine_url = config.esb_engine_url
        init_missing = {
            "clientPrivateKey": not resolved_private,
            "esbPublicKey": not resolved_public,
            "clientId": not config.client_id,
            "clientSecret": not config.client_secret,
            "esbTokenUrl": not config.access_token_url,
            "esbEngineUrl": not engine_url,
        }
        logger.info("GovESB init missing fields: %s", init_missing)
        helper = GovEsbHelper(
            client_private_key=resolved_private,
            esb_public_key=resolved_public,
            client_id=config.client_id,
            client_secret=config.client_secret,
            esb_token_url=config.access_token_url,
            esb_engine_url=engine_url or None,
            http_client=http_client,
            timeout=config.http_timeout,
        )
        return EsbRuntime(helper=helper, esb_public_key=resolved_public, live=True)

    logger.warning("Client private key or ESB public key not configured; using an ephemeral keypair (offline mode)")
    private_b64, public_b64 = generate_keypair('prime256v1')
    helper = GovEsbHelper(
        client_private_key=private_b64,
        esb_public_key=public_b64,
        http_client=http_client,
        timeout=config.http_timeout,
    )
    return EsbRuntime(helper=helper, esb_public_key=resolved_public or public_b64, live=False)
