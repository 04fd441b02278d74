from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List

import httpx
import pytest
from govesb import DataFormatEnum

from esbkit.connector import (
    EsbConfigurationError,
    EsbError,
    EsbSignatureError,
    EsbTransportError,
    GovEsbHelper,
    UnsupportedFormatError,
)
from esbkit.connector.helper import as_json_value, check_format, parse_envelope, to_compact_json
from esbkit.crypto.signing import EcdsaSigner, EcdsaVerifier


ENGINE = "https://esb.test/engine/esb"
TOKEN_URL = "https://esb.test/oauth/token"


class _FakeEngine:
    """MockTransport handler playing the ESB engine."""

    def __init__(self, esb_private: str) -> None:
        self._signer = EcdsaSigner(esb_private)
        self.calls: List[Dict[str, Any]] = []
        self.engine_status = 200
        self.sign_responses = True

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.calls.append({
            "path": request.url.path,
            "auth": request.headers.get("Authorization"),
            "body": body,
        })
        if self.engine_status != 200:
            return httpx.Response(self.engine_status, text="engine down")

        data = {"success": True, "esbBody": {"received": body["data"]["esbBody"]}}
        if self.sign_responses:
            return httpx.Response(200, json=self._signer.sign_envelope(data))
        return httpx.Response(200, json={"data": data, "signature": "AAAA"})


def _live_helper(client_keys, esb_keys):
    fake = _FakeEngine(esb_keys[0])
    http = httpx.AsyncClient(transport=httpx.MockTransport(fake))
    helper = GovEsbHelper(
        client_private_key=client_keys[0],
        esb_public_key=esb_keys[1],
        client_id="client",
        client_secret="secret",
        esb_token_url=TOKEN_URL,
        esb_engine_url=ENGINE + "/",
        http_client=http,
    )
    return helper, fake, http


def test_check_format_accepts_json_only():
    assert check_format("json") is DataFormatEnum.JSON
    assert check_format("JSON") is DataFormatEnum.JSON
    assert check_format(DataFormatEnum.JSON) is DataFormatEnum.JSON
    for fmt in ("xml", DataFormatEnum.XML, "yaml"):
        with pytest.raises(UnsupportedFormatError) as exc:
            check_format(fmt)
        # usable as both a connector error and a plain ValueError
        assert isinstance(exc.value, EsbError)
        assert isinstance(exc.value, ValueError)


def test_json_helpers():
    assert as_json_value('{"a": 1}') == {"a": 1}
    assert as_json_value("plain text") == "plain text"
    assert as_json_value(None) is None
    assert to_compact_json({"b": 1, "a": "ü"}) == '{"b":1,"a":"ü"}'


@pytest.mark.parametrize(
    "raw",
    ["not json", "[1, 2]", '{"data": {}}', '{"signature": "abc"}', '{"data": {}, "signature": 5}', b"\xff\xfe", 42],
)
def test_parse_envelope_rejects(raw):
    assert parse_envelope(raw) is None


def test_success_response_is_signed_envelope(client_keys):
    priv, pub = client_keys
    helper = GovEsbHelper(client_private_key=priv, esb_public_key=pub)

    envelope = json.loads(helper.success_response('{"nin": "1"}', "json"))

    assert envelope["data"] == {"success": True, "esbBody": {"nin": "1"}}
    assert EcdsaVerifier(pub).verify_envelope(envelope)


def test_success_response_keeps_non_json_string(client_keys):
    helper = GovEsbHelper(client_private_key=client_keys[0], esb_public_key=client_keys[1])
    envelope = json.loads(helper.success_response("plain text"))
    assert envelope["data"]["esbBody"] == "plain text"


def test_failure_response(client_keys):
    helper = GovEsbHelper(client_private_key=client_keys[0], esb_public_key=client_keys[1])

    without_data = json.loads(helper.failure_response(None, "Missing payload", "json"))
    assert without_data["data"] == {"success": False, "message": "Missing payload"}

    with_data = json.loads(helper.failure_response('{"id": 7}', "Rejected"))
    assert with_data["data"]["esbBody"] == {"id": 7}


def test_verify_then_return_data(client_keys, esb_keys):
    esb_signer = EcdsaSigner(esb_keys[0])
    helper = GovEsbHelper(client_private_key=client_keys[0], esb_public_key=esb_keys[1])

    signed = json.dumps(esb_signer.sign_envelope({"esbBody": {"q": "x"}, "apiCode": "A1"}))
    assert json.loads(helper.verify_then_return_data(signed, "json")) == {"esbBody": {"q": "x"}, "apiCode": "A1"}

    # signed by the client key, not the ESB key
    assert helper.verify_then_return_data(helper.success_response("{}")) is None
    assert helper.verify_then_return_data("not json") is None
    assert helper.verify_then_return_data('{"foo": 1}') is None


def test_unsupported_format(client_keys):
    helper = GovEsbHelper(client_private_key=client_keys[0], esb_public_key=client_keys[1])
    with pytest.raises(UnsupportedFormatError):
        helper.success_response("{}", "xml")


def test_sign_and_verify_payload(client_keys, esb_keys):
    helper = GovEsbHelper(client_private_key=client_keys[0], esb_public_key=esb_keys[1])
    sig = helper.sign_payload({"a": 1})

    # default verifier is the ESB key, which did not sign this
    assert not helper.verify_signature({"a": 1}, sig)
    assert helper.verify_signature({"a": 1}, sig, public_key=client_keys[1])
    assert helper.verify_payload({"a": 1}, sig, client_keys[1])
    assert helper.client_public_key == client_keys[1]


def test_encrypt_decrypt(client_keys, esb_keys):
    helper = GovEsbHelper(client_private_key=client_keys[0], esb_public_key=esb_keys[1])
    encrypted = helper.encrypt('{"nin":"1"}', client_keys[1])
    assert helper.decrypt(encrypted) == '{"nin":"1"}'
    assert helper.decrypt(json.loads(encrypted)) == '{"nin":"1"}'


def test_engine_calls_need_configuration(client_keys):
    helper = GovEsbHelper(client_private_key=client_keys[0], esb_public_key=client_keys[1])
    assert not helper.engine_configured
    with pytest.raises(EsbConfigurationError):
        asyncio.run(helper.request_data("CODE", "{}"))


def test_constructor_requires_keys(client_keys):
    with pytest.raises(ValueError):
        GovEsbHelper(client_private_key="", esb_public_key=client_keys[1])
    with pytest.raises(ValueError):
        GovEsbHelper(client_private_key=client_keys[0], esb_public_key=None)


def test_request_data_round_trip(client_keys, esb_keys, esb_tokens):
    helper, fake, http = _live_helper(client_keys, esb_keys)

    async def scenario():
        first = await helper.request_data("H0RiaUnK", '{"nin": "1"}', "json")
        second = await helper.request_data("H0RiaUnK", "raw string")
        await http.aclose()
        return first, second

    first, second = asyncio.run(scenario())

    assert json.loads(first) == {"success": True, "esbBody": {"received": {"nin": "1"}}}
    assert json.loads(second)["esbBody"]["received"] == "raw string"
    # one client-credentials exchange per engine call
    assert esb_tokens.requests == [("client", "secret", TOKEN_URL)] * 2
    call = fake.calls[0]
    assert call["path"] == "/engine/esb/request"
    assert call["auth"] == "Bearer tok-1"
    assert fake.calls[1]["auth"] == "Bearer tok-2"
    assert call["body"]["data"] == {"apiCode": "H0RiaUnK", "esbBody": {"nin": "1"}}
    # request envelope is signed with the client key
    assert EcdsaVerifier(client_keys[1]).verify_envelope(call["body"])


def test_push_and_async_paths(client_keys, esb_keys, esb_tokens):
    helper, fake, http = _live_helper(client_keys, esb_keys)

    async def scenario():
        await helper.push_data("MOXEV", "{}")
        await helper.async_request_data("ASYNC1", "{}")
        await http.aclose()

    asyncio.run(scenario())
    assert [c["path"] for c in fake.calls] == ["/engine/esb/push-request", "/engine/esb/async"]
    assert fake.calls[0]["body"]["data"]["pushCode"] == "MOXEV"
    assert fake.calls[1]["body"]["data"]["apiCode"] == "ASYNC1"


def test_token_failure_stops_before_engine(client_keys, esb_keys, esb_tokens):
    helper, fake, _ = _live_helper(client_keys, esb_keys)
    esb_tokens.fail = True

    with pytest.raises(EsbTransportError, match="access token"):
        asyncio.run(helper.request_data("X", "{}"))
    assert fake.calls == []


def test_engine_error_status(client_keys, esb_keys, esb_tokens):
    helper, fake, _ = _live_helper(client_keys, esb_keys)
    fake.engine_status = 503
    with pytest.raises(EsbTransportError) as exc:
        asyncio.run(helper.request_data("X", "{}"))
    assert exc.value.status_code == 503


def test_unsigned_engine_response_rejected(client_keys, esb_keys, esb_tokens):
    helper, fake, _ = _live_helper(client_keys, esb_keys)
    fake.sign_responses = False
    with pytest.raises(EsbSignatureError):
        asyncio.run(helper.request_data("X", "{}"))
