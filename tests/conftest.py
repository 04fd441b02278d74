from __future__ import annotations

from typing import List, Tuple

import pytest
from govesb import GovESBTokenService, TokenResponse

from esbkit.crypto import generate_keypair


@pytest.fixture
def client_keys():
    """(private_b64, public_b64) for the client side."""
    return generate_keypair("prime256v1")


@pytest.fixture
def esb_keys():
    """(private_b64, public_b64) standing in for the ESB."""
    return generate_keypair("prime256v1")


class FakeTokenService:
    """Replaces GovESBTokenService.get_esb_access_token, which posts with requests."""

    def __init__(self) -> None:
        self.requests: List[Tuple[str, str, str]] = []
        self.fail = False

    def __call__(self, client_id: str, client_secret: str, token_uri: str) -> TokenResponse:
        self.requests.append((client_id, client_secret, token_uri))
        if self.fail:
            return TokenResponse(success=False)
        return TokenResponse(success=True, access_token=f"tok-{len(self.requests)}", token_type="bearer")


@pytest.fixture
def esb_tokens(monkeypatch):
    fake = FakeTokenService()
    monkeypatch.setattr(GovESBTokenService, "get_esb_access_token", staticmethod(fake))
    return fake
