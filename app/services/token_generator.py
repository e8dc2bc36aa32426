import secrets
from typing import Optional

from app.core.config import settings


def generate_refresh_token(nbytes: Optional[int] = None) -> str:
    """Return an opaque refresh token drawn from the OS CSPRNG.

    The value is URL-safe base64 text of ``nbytes`` random bytes. It is only
    ever used as a lookup key and is never decoded.
    """
    return secrets.token_urlsafe(nbytes or settings.REFRESH_TOKEN_BYTES)
