"""
GovESB Helper

Single entry point the demo and the relay talk to. Built on the govesb
package:
- ECC signing / verification of {"data", "signature"} envelopes
- GovESBTokenService client-credentials tokens (run off the event loop)
- DataFormatEnum for the json / xml format switch

What govesb does not offer in a usable form stays here: sealed
encryption of esbBody payloads and the async POST to the ESB engine.

Usage:
    helper = GovEsbHelper(
        client_private_key=private_der_b64,
        esb_public_key=esb_public_der_b64,
        client_id="...", client_secret="...",
        esb_token_url="https://esb/oauth/token",
        esb_engine_url="https://esb/engine/esb",
    )
    signed = helper.success_response('{"ok": true}')
    data = await helper.request_data("API_CODE", '{"q": 1}')
"""

import asyncio
import json
import logging
from typing import Any, Optional, Union

import httpx
from govesb import DataFormatEnum, GovESBTokenService

from ..crypto.encryption import SealedBox
from ..crypto.signing import EcdsaSigner, EcdsaVerifier, Payload
from .errors import EsbConfigurationError, EsbSignatureError, EsbTransportError, UnsupportedFormatError


logger = logging.getLogger(__name__)

REQUEST_PATH = '/request'
PUSH_PATH = '/push-request'
ASYNC_PATH = '/async'

DataFormat = Union[str, DataFormatEnum]


def check_format(fmt: DataFormat) -> DataFormatEnum:
    """Map a format name to DataFormatEnum; only JSON envelopes are handled."""
    try:
        value = fmt if isinstance(fmt, DataFormatEnum) else DataFormatEnum(str(fmt).lower())
    except ValueError:
        value = None
    if value is not DataFormatEnum.JSON:
        raise UnsupportedFormatError(f"Unsupported data format: {fmt!r} (only 'json' is supported)")
    return value


def to_compact_json(value: Any) -> str:
    return json.dumps(value, separators=(',', ':'), ensure_ascii=False)


def as_json_value(text: Any) -> Any:
    """Parse text as JSON when it is JSON; otherwise hand it back unchanged."""
    if not isinstance(text, str):
        return text
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def parse_envelope(raw: Union[str, bytes, dict]) -> Optional[dict]:
    """Return raw as a dict with 'data' and a string 'signature', else None."""
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None
    if not isinstance(raw, dict):
        return None
    if 'data' not in raw or not isinstance(raw.get('signature'), str):
        return None
    return raw


class GovEsbHelper:
    """
    Client-side ESB connector.

    Only the two keys are required. Without credentials and URLs the helper
    still signs, verifies, encrypts and decrypts, but engine calls raise
    EsbConfigurationError.
    """

    def __init__(self,
                 client_private_key: str,
                 esb_public_key: str,
                 client_id: Optional[str] = None,
                 client_secret: Optional[str] = None,
                 esb_token_url: Optional[str] = None,
                 esb_engine_url: Optional[str] = None,
                 http_client: Optional[httpx.AsyncClient] = None,
                 timeout: float = 30.0):
        if not client_private_key:
            raise ValueError("client_private_key is required")
        if not esb_public_key:
            raise ValueError("esb_public_key is required")

        self._signer = EcdsaSigner(client_private_key)
        self._esb_verifier = EcdsaVerifier(esb_public_key)
        self._box = SealedBox(private_key_b64=client_private_key)
        self._esb_public_key = esb_public_key

        self._engine_url = esb_engine_url.rstrip('/') if esb_engine_url else None
        self._client_id = client_id
        self._client_secret = client_secret
        self._token_url = esb_token_url
        self._timeout = timeout
        self._owns_client = http_client is None
        self._http = http_client

    @property
    def client_public_key(self) -> str:
        return self._signer.public_key_b64

    @property
    def esb_public_key(self) -> str:
        return self._esb_public_key

    @property
    def engine_configured(self) -> bool:
        return all((self._engine_url, self._client_id, self._client_secret, self._token_url))

    async def aclose(self) -> None:
        if self._owns_client and self._http is not None:
            await self._http.aclose()
            self._http = None

    # ------------------------------------------------------------------
    # Envelopes
    # ------------------------------------------------------------------

    def success_response(self, data: Any, fmt: DataFormat = 'json') -> str:
        """
        Build a signed success envelope around data.

        A JSON string is embedded as the parsed object; anything else as is.
        """
        check_format(fmt)
        body = {'success': True, 'esbBody': as_json_value(data)}
        return to_compact_json(self._signer.sign_envelope(body))

    def failure_response(self, data: Any, message: str, fmt: DataFormat = 'json') -> str:
        """Build a signed failure envelope carrying message."""
        check_format(fmt)
        body = {'success': False, 'message': message}
        if data is not None:
            body['esbBody'] = as_json_value(data)
        return to_compact_json(self._signer.sign_envelope(body))

    def verify_then_return_data(self, esb_response: Union[str, bytes, dict],
                                fmt: DataFormat = 'json') -> Optional[str]:
        """
        Verify an ESB-signed envelope.

        Returns:
            Compact JSON of the envelope's data, or None if the input is not
            an envelope or its signature does not verify against the ESB key
        """
        check_format(fmt)
        envelope = parse_envelope(esb_response)
        if envelope is None:
            logger.debug("verify_then_return_data: input is not a signed envelope")
            return None
        if not self._esb_verifier.verify_envelope(envelope):
            logger.debug("verify_then_return_data: signature did not verify")
            return None
        return to_compact_json(envelope['data'])

    # ------------------------------------------------------------------
    # Raw signatures
    # ------------------------------------------------------------------

    def sign_payload(self, payload: Payload) -> str:
        return self._signer.sign(payload)

    def verify_signature(self, payload: Payload, signature: str,
                         public_key: Optional[str] = None) -> bool:
        """Verify against public_key, defaulting to the ESB public key."""
        verifier = EcdsaVerifier(public_key) if public_key else self._esb_verifier
        return verifier.verify(payload, signature)

    verify_payload = verify_signature

    # ------------------------------------------------------------------
    # Encryption
    # ------------------------------------------------------------------

    def encrypt(self, payload: Union[str, bytes, dict], recipient_public_key: str) -> str:
        return SealedBox(public_key_b64=recipient_public_key).encrypt(payload)

    def decrypt(self, encrypted: Union[str, dict]) -> str:
        return self._box.decrypt_text(encrypted)

    # ------------------------------------------------------------------
    # Engine calls
    # ------------------------------------------------------------------

    async def request_data(self, api_code: str, request_body: Any,
                           fmt: DataFormat = 'json') -> str:
        """Synchronous-style ESB request: returns the verified response data."""
        return await self._call(REQUEST_PATH, {'apiCode': api_code}, request_body, fmt)

    async def push_data(self, push_code: str, request_body: Any,
                        fmt: DataFormat = 'json') -> str:
        return await self._call(PUSH_PATH, {'pushCode': push_code}, request_body, fmt)

    async def async_request_data(self, api_code: str, request_body: Any,
                                 fmt: DataFormat = 'json') -> str:
        return await self._call(ASYNC_PATH, {'apiCode': api_code}, request_body, fmt)

    async def _access_token(self) -> str:
        # GovESBTokenService is blocking (requests); keep it off the loop
        token = await asyncio.to_thread(
            GovESBTokenService.get_esb_access_token,
            self._client_id, self._client_secret, self._token_url,
        )
        if not token.success or not token.access_token:
            raise EsbTransportError("Could not get access token from GovESB")
        return token.access_token

    async def _call(self, path: str, header: dict, request_body: Any, fmt: DataFormat) -> str:
        check_format(fmt)
        if not self.engine_configured:
            raise EsbConfigurationError(
                "ESB engine is not configured: clientId, clientSecret, esbTokenUrl and esbEngineUrl are required"
            )

        data = dict(header)
        data['esbBody'] = as_json_value(request_body)
        payload = to_compact_json(self._signer.sign_envelope(data))
        url = f"{self._engine_url}{path}"

        token = await self._access_token()
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self._timeout)
        try:
            resp = await self._http.post(
                url,
                content=payload.encode('utf-8'),
                headers={
                    'Authorization': f'Bearer {token}',
                    'Content-Type': 'application/json',
                },
            )
        except httpx.HTTPError as e:
            raise EsbTransportError(f"ESB request to {url} failed: {e}") from e

        if resp.status_code >= 400:
            raise EsbTransportError(
                f"ESB engine returned HTTP {resp.status_code} for {path}: {resp.text[:200]}",
                status_code=resp.status_code,
            )

        verified = self.verify_then_return_data(resp.text, fmt)
        if verified is None:
            raise EsbSignatureError(f"ESB response from {path} failed signature verification")
        return verified
