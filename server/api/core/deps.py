"""
FastAPI dependencies (authentication, service clients)
"""
from typing import Optional
from fastapi import Depends, Header, Request
from core.config import API_SECRET_KEY
from core.errors import Unauthorized


async def verify_api_key(x_api_key: Optional[str] = Header(None)):
    """Verify API key if authentication is enabled."""
    if API_SECRET_KEY and API_SECRET_KEY != "change-me-in-production":
        if not x_api_key or x_api_key != API_SECRET_KEY:
            raise Unauthorized("Invalid or missing API key")


async def get_owner_id(
    x_user_id: Optional[str] = Header(None),
    _: None = Depends(verify_api_key)
) -> str:
    """Owner identifier supplied by the authenticating gateway."""
    owner_id = (x_user_id or "").strip()
    if not owner_id:
        raise Unauthorized()
    return owner_id


def get_embedder(request: Request):
    """Embedding client built at startup, or None when not configured."""
    return getattr(request.app.state, "embedder", None)


def get_generator(request: Request):
    """Text generator built at startup, or None when not configured."""
    return getattr(request.app.state, "generator", None)
