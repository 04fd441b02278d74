"""
GovESB offline demo.

Generates a throwaway prime256v1 keypair and walks through what a client
does with the helper before talking to the ESB:

1. Sign a success response and verify it
2. Encrypt and decrypt the sample payload
3. Build the encrypted esbBody and sign it
4. Write the request bodies you would pass to request_data

No live ESB calls are made. Artifacts land in ./out by default.

Usage:
    govesb-demo [--payload nida_sample.json] [--out-dir out]
"""

import argparse
import json
import sys
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from govesb import ECC, CryptoData

from .connector import GovEsbHelper
from .crypto import generate_keypair


SAMPLE_PAYLOAD = Path(__file__).parent / 'samples' / 'nida_sample.json'


@dataclass
class DemoResult:
    """Verification flags and artifact paths produced by run_demo()."""
    response_verified: bool
    decrypted_matches: bool
    payload_signature_ok: bool
    esb_body_signature_ok: bool
    signed_request_ok: bool
    files: Dict[str, Path] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return all((self.response_verified, self.decrypted_matches, self.payload_signature_ok,
                    self.esb_body_signature_ok, self.signed_request_ok))


def _truncate(text: str, limit: int = 160) -> str:
    return text[:limit] + '...'


def run_demo(payload_path: Optional[Path] = None, out_dir: Optional[Path] = None) -> DemoResult:
    payload_path = Path(payload_path) if payload_path else SAMPLE_PAYLOAD
    out_dir = Path(out_dir) if out_dir else Path.cwd() / 'out'

    payload = payload_path.read_text(encoding='utf-8')

    # Same keypair plays both sides, so everything verifies locally.
    private_b64, public_b64 = generate_keypair('prime256v1')
    helper = GovEsbHelper(client_private_key=private_b64, esb_public_key=public_b64)

    files: Dict[str, Path] = {}
    out_dir.mkdir(parents=True, exist_ok=True)

    def write(name: str, content: str) -> None:
        path = out_dir / name
        path.write_text(content, encoding='utf-8')
        files[name] = path

    # 1) Sign + verify a response with the payload embedded
    response = helper.success_response(payload, 'json')
    print(f"Signed response (truncated): {_truncate(response)}")

    verified = helper.verify_then_return_data(response, 'json')
    response_verified = bool(verified)
    print(f"Verified data present: {response_verified}")

    # 2) Encrypt + decrypt
    encrypted = helper.encrypt(payload, public_b64)
    print(f"Encrypted blob (truncated): {_truncate(encrypted)}")

    decrypted = helper.decrypt(encrypted)
    decrypted_matches = decrypted == payload
    print(f"Decrypted equals original: {decrypted_matches}")

    write('encrypted.json', encrypted)
    write('decrypted.json', decrypted)
    print(f"Wrote {files['encrypted.json']} and {files['decrypted.json']}")

    # 3) The encrypted envelope is the esbBody you would send
    esb_body = json.loads(encrypted)
    write('esbBody.encrypted.json', json.dumps(esb_body, indent=2))
    print(f"Wrote {files['esbBody.encrypted.json']} (this is the esbBody).")

    payload_signature = helper.sign_payload(payload)
    payload_signature_ok = helper.verify_signature(payload, payload_signature)
    write('payload.signature.b64.txt', payload_signature)
    print(f"Signed raw payload. Verified: {payload_signature_ok}")

    esb_body_signature = helper.sign_payload(esb_body)
    esb_body_signature_ok = helper.verify_signature(esb_body, esb_body_signature)
    write('esbBody.signature.b64.txt', esb_body_signature)
    print(f"Signed esbBody payload. Verified: {esb_body_signature_ok}")

    # 4) requestBody for request_data(api_code, body, 'json') in live mode
    write('request.payload.json', json.dumps(esb_body, indent=2))
    print(f"Wrote {files['request.payload.json']} (requestBody to pass to request_data in JSON mode).")

    # ESB-style signed wrapper, checked with govesb's verifier before sending
    request_data_string = json.dumps(esb_body, separators=(',', ':'))
    signature_b64 = helper.sign_payload(request_data_string)
    signed_request = asdict(CryptoData(data=esb_body, signature=signature_b64))
    signed_request_ok = ECC.verify_payload(request_data_string, signature_b64, public_b64)
    print(f"Signed request verifies: {signed_request_ok}")

    write('request.signed.json', json.dumps(signed_request, indent=2))
    print(f"Wrote {files['request.signed.json']} (ESB-style signed wrapper).")

    return DemoResult(
        response_verified=response_verified,
        decrypted_matches=decrypted_matches,
        payload_signature_ok=payload_signature_ok,
        esb_body_signature_ok=esb_body_signature_ok,
        signed_request_ok=signed_request_ok,
        files=files,
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Offline GovESB sign / verify / encrypt / decrypt demo")
    parser.add_argument('--payload', type=Path, default=SAMPLE_PAYLOAD,
                        help="JSON payload file (default: bundled NIDA sample)")
    parser.add_argument('--out-dir', type=Path, default=Path('out'),
                        help="Directory for written artifacts (default: ./out)")
    args = parser.parse_args(argv)

    try:
        result = run_demo(args.payload, args.out_dir)
    except Exception as e:
        print(f"Demo failed: {e!r}", file=sys.stderr)
        return 1
    return 0 if result.ok else 1


if __name__ == '__main__':
    sys.exit(main())
