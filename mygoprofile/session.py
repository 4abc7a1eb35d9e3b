"""Signed session cookie and OAuth state helpers.

The session is a base64url blob of ``payload + b"." + hmac_sha256(payload)``,
the same construction used for the OAuth ``state`` parameter.
"""

import base64
import hashlib
import hmac
import json
import logging
import time
from dataclasses import dataclass

from fastapi import Depends, Request

from mygoprofile.config import Settings
from mygoprofile.deps import get_app_settings
from mygoprofile.errors import ApiError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    name: str | None
    email: str
    access_token: str
    expires_at: int

    def is_expired(self, now: float | None = None) -> bool:
        return self.expires_at <= int(now if now is not None else time.time())


@dataclass(frozen=True)
class Credential:
    """A validated session, handed to handlers that call Google on the user's behalf."""

    email: str
    name: str | None
    access_token: str


def _sign(secret: str, payload: bytes) -> str:
    sig = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).digest()
    return base64.urlsafe_b64encode(payload + b"." + sig).decode("ascii")


def _unsign(secret: str, value: str) -> dict:
    raw = base64.urlsafe_b64decode(value.encode("ascii"))
    payload, sig = raw.rsplit(b".", 1)
    expected = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).digest()
    if not hmac.compare_digest(sig, expected):
        raise ValueError("invalid signature")
    data = json.loads(payload.decode("utf-8"))
    if not isinstance(data, dict):
        raise ValueError("invalid payload")
    return data


def sign_state(secret: str, nonce: str, ttl_sec: int = 600) -> str:
    exp = int(time.time()) + ttl_sec
    payload = json.dumps({"nonce": nonce, "exp": exp}).encode("utf-8")
    return _sign(secret, payload)


def verify_state(secret: str, state: str) -> str:
    """Return the nonce carried by ``state``; raise ValueError if invalid or expired."""
    try:
        data = _unsign(secret, state)
    except (ValueError, TypeError) as e:
        raise ValueError(f"invalid state: {e}") from e
    if int(data.get("exp", 0)) < int(time.time()):
        raise ValueError("expired")
    nonce = data.get("nonce") or ""
    if not nonce:
        raise ValueError("missing nonce")
    return nonce


def encode_session(secret: str, session: Session) -> str:
    payload = json.dumps(
        {
            "name": session.name,
            "email": session.email,
            "access_token": session.access_token,
            "exp": session.expires_at,
        }
    ).encode("utf-8")
    return _sign(secret, payload)


def decode_session(secret: str, value: str | None) -> Session | None:
    """Return the session in ``value`` or None when absent, tampered or expired."""
    if not value:
        return None
    try:
        data = _unsign(secret, value)
        session = Session(
            name=data.get("name"),
            email=str(data["email"]),
            access_token=str(data.get("access_token") or ""),
            expires_at=int(data["exp"]),
        )
    except (ValueError, TypeError, KeyError) as e:
        logger.info("Ignoring unreadable session cookie: %s", e)
        return None
    if session.is_expired():
        return None
    return session


def get_session(request: Request, settings: Settings = Depends(get_app_settings)) -> Session | None:
    return decode_session(settings.secret_key, request.cookies.get(settings.session_cookie_name))


def require_credential(session: Session | None = Depends(get_session)) -> Credential:
    if session is None or not session.access_token.strip():
        raise ApiError(401, "Unauthorized")
    return Credential(email=session.email, name=session.name, access_token=session.access_token.strip())
