"""Login session tokens.

A token is an HS256 JWT issued by the login endpoint and checked by the
auth dependency on every request. Claims: ``sub`` (user id), ``role``,
``iat``, ``exp`` and ``iss``. The role claim is informational; the stored
role of the user is what authorizes.
"""

import base64
import hashlib
import hmac
import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

ISSUER = "proctrack"
SUPPORTED_ALGORITHM = "HS256"
_HEADER = {"alg": SUPPORTED_ALGORITHM, "typ": "JWT"}


@dataclass(frozen=True)
class TokenPayload:
    sub: str
    role: str
    exp: datetime


def _b64(data: bytes) -> bytes:
    return base64.urlsafe_b64encode(data).rstrip(b"=")


def _unb64(data: bytes) -> bytes:
    return base64.urlsafe_b64decode(data + b"=" * (-len(data) % 4))


def _signature(secret: str, signing_input: bytes) -> bytes:
    return hmac.new(secret.encode(), signing_input, hashlib.sha256).digest()


def create_token(
    subject: str,
    role: str,
    secret: str,
    algorithm: str = SUPPORTED_ALGORITHM,
    expires_hours: int = 12,
    now: Optional[datetime] = None,
) -> str:
    """Issue a session token for *subject* valid for *expires_hours*.

    Raises ValueError for any algorithm other than HS256.
    """
    if algorithm != SUPPORTED_ALGORITHM:
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    issued = now or datetime.now(timezone.utc)
    claims = {
        "sub": subject,
        "role": role,
        "iat": int(issued.timestamp()),
        "exp": int((issued + timedelta(hours=expires_hours)).timestamp()),
        "iss": ISSUER,
    }
    signing_input = _b64(json.dumps(_HEADER).encode()) + b"." + _b64(json.dumps(claims).encode())
    return (signing_input + b"." + _b64(_signature(secret, signing_input))).decode()


def decode_token(
    token: str,
    secret: str,
    algorithm: str = SUPPORTED_ALGORITHM,
    now: Optional[datetime] = None,
) -> Optional[TokenPayload]:
    """Verify *token* and return its payload, or None if it cannot be trusted.

    A token is rejected when it is malformed, signed with another secret,
    issued by someone else, or past its expiry.
    """
    if algorithm != SUPPORTED_ALGORITHM or token.count(".") != 2:
        return None

    header, body, signature = token.encode().split(b".")
    try:
        if not hmac.compare_digest(_signature(secret, header + b"." + body), _unb64(signature)):
            return None
        claims = json.loads(_unb64(body))
        expires = datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc)
    except (ValueError, KeyError, TypeError):
        return None

    if claims.get("iss") != ISSUER:
        return None
    if (now or datetime.now(timezone.utc)) >= expires:
        return None
    return TokenPayload(sub=str(claims.get("sub", "")), role=str(claims.get("role", "")), exp=expires)
