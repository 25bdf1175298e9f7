"""
Authentication for inbound review calls.

The review framework sends the list's secret key verbatim in the
Authorization header.
"""

import hmac

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader

from metro_adapter.config import get_settings

secret_key_header = APIKeyHeader(name="Authorization", auto_error=False)


async def verify_secret_key(key: str = Security(secret_key_header)) -> bool:
    """Reject requests whose Authorization header is not the list secret."""
    secret = get_settings().listing.SECRET_KEY
    if not secret or not key or not hmac.compare_digest(key.encode(), secret.encode()):
        raise HTTPException(status_code=401, detail="Invalid secret key")
    return True
