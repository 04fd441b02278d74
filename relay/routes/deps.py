"""Shared request dependencies for relay routes."""

import json
from typing import Any

import httpx
from fastapi import HTTPException, Request

from ..config import RelayConfig
from ..services.esb import EsbRuntime


def get_config(request: Request) -> RelayConfig:
    return request.app.state.config


def get_runtime(request: Request) -> EsbRuntime:
    return request.app.state.esb


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


async def read_json_body(request: Request) -> Any:
    """
    Parse the request body as JSON; an empty body reads as {}.

    Only objects and arrays are accepted at the top level.
    """
    max_bytes = request.app.state.config.max_body_bytes
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise HTTPException(status_code=413, detail=f"Request body exceeds {max_bytes} bytes")

    raw = await request.body()
    if len(raw) > max_bytes:
        raise HTTPException(status_code=413, detail=f"Request body exceeds {max_bytes} bytes")
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(status_code=400, detail="Request body must be valid JSON")
    if not isinstance(body, (dict, list)):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object or array")
    return body


def as_string_body(body: Any) -> str:
    """JSON strings pass through; everything else becomes compact JSON."""
    if isinstance(body, str):
        return body
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False)
