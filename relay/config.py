"""Configuration model for the relay server."""

import os
import re
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


# Fixed secp256k1 recipient used by the consumer sync test route
CONSUMER_TEST_PUBLIC_KEY = (
    "MFYwEAYHKoZIzj0CAQYFK4EEAAoDQgAEs/Z4JNkbDChNm9KW4wwHquwoByLBc0iFZVTaYixH7nvmCxcF"
    "LQUnP0R4B0If8vYovvay6aSlxero2mA5au4N0Q=="
)

ENGINE_SUFFIXES = (
    re.compile(r'/push-request/?$', re.IGNORECASE),
    re.compile(r'/request/?$', re.IGNORECASE),
    re.compile(r'/async/?$', re.IGNORECASE),
)


def derive_engine_url(push_request: Optional[str],
                      response_request: Optional[str],
                      async_request: Optional[str]) -> str:
    """Strip the endpoint suffix off the first configured endpoint URL."""
    url = push_request or response_request or async_request or ''
    for suffix in ENGINE_SUFFIXES:
        url = suffix.sub('', url)
    return url


class RelayConfig(BaseModel):
    """Relay configuration settings."""

    # Server settings
    host: str = Field(default="0.0.0.0", description="Host to bind to")
    port: int = Field(default=7777, description="Port to bind to")
    log_level: str = Field(default="INFO", description="Root log level")
    cors_origins: List[str] = Field(default=["*"], description="CORS allowed origins")
    max_body_bytes: int = Field(default=2 * 1024 * 1024, description="Largest accepted request body")
    http_timeout: float = Field(default=30.0, description="Outbound HTTP timeout in seconds")

    # Keys: PEM path, PEM content or Base64 DER
    client_private_key: Optional[str] = Field(default=None, description="Client EC private key")
    esb_public_key: Optional[str] = Field(default=None, description="ESB EC public key")

    # ESB credentials and endpoints
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    access_token_url: Optional[str] = None
    push_request_url: Optional[str] = None
    response_request_url: Optional[str] = None
    async_request_url: Optional[str] = None

    # Route defaults
    api_code: str = Field(default="H0RiaUnK", description="Default api code for the producer route")
    push_api_code: str = Field(default="MOXEV", description="Default push code for the push route")
    consumer_api_code: str = Field(default="MOXEV", description="Api code for the consumer route")
    consumer_recipient_public_key: str = Field(default=CONSUMER_TEST_PUBLIC_KEY,
                                               description="Recipient key for the consumer route")
    default_recipient_public_key: Optional[str] = Field(default=None,
                                                        description="Fallback recipient for producer replies")
    dummy_route_url: str = Field(default="http://0.0.0.0:7777/esb/dummy-route",
                                 description="Target of the dummy proxy route")

    @property
    def esb_engine_url(self) -> str:
        return derive_engine_url(self.push_request_url, self.response_request_url, self.async_request_url)

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "RelayConfig":
        """Create config from environment variables (after loading .env)."""
        load_dotenv(dotenv_path)
        return cls(
            host=os.getenv("HOST") or "0.0.0.0",
            port=int(os.getenv("PORT") or "7777"),
            log_level=os.getenv("LOG_LEVEL") or "INFO",
            cors_origins=(os.getenv("CORS_ORIGINS") or "*").split(","),
            max_body_bytes=int(os.getenv("MAX_BODY_BYTES") or str(2 * 1024 * 1024)),
            http_timeout=float(os.getenv("HTTP_TIMEOUT_SECONDS") or "30"),
            client_private_key=os.getenv("CLIENT_PRIVATE_KEY") or os.getenv("GOVESB_CLIENT_PRIVATE_KEY"),
            esb_public_key=os.getenv("GOVESB_PUBLIC_KEY"),
            client_id=os.getenv("CLIENT_ID"),
            client_secret=os.getenv("CLIENT_SECRET"),
            access_token_url=os.getenv("ACCESS_TOKEN_URL"),
            push_request_url=os.getenv("PUSH_REQUEST"),
            response_request_url=os.getenv("RESPONSE_REQUEST"),
            async_request_url=os.getenv("ASYNC_REQUEST"),
            api_code=os.getenv("GOVESB_API_CODE") or "H0RiaUnK",
            push_api_code=os.getenv("GOVESB_PUSH_API_CODE") or "MOXEV",
            consumer_api_code=os.getenv("GOVESB_CONSUMER_API_CODE") or "MOXEV",
            consumer_recipient_public_key=os.getenv("CONSUMER_RECIPIENT_PUBLIC_KEY") or CONSUMER_TEST_PUBLIC_KEY,
            default_recipient_public_key=os.getenv("DEFAULT_RECIPIENT_PUBLIC_KEY") or None,
            dummy_route_url=os.getenv("DUMMY_ROUTE_URL") or "http://0.0.0.0:7777/esb/dummy-route",
        )
