"""
Relay System Routes
Health check and the local echo target of the dummy proxy route
"""
from typing import Any

from fastapi import APIRouter, Depends

from .deps import read_json_body

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"ok": True}


@router.post("/esb/dummy-route")
async def dummy_route(body: Any = Depends(read_json_body)):
    """Echo the body back so the dummy proxy route has something to call"""
    return {"success": True, "echoed": body}
