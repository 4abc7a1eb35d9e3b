import logging
import secrets
import time
from urllib.parse import urlencode

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from mygoprofile.config import Settings
from mygoprofile.deps import get_app_settings, get_http_client
from mygoprofile.errors import ApiError
from mygoprofile.session import Session, encode_session, sign_state, verify_state

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth-google"])

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"

STATE_TTL_SEC = 600


def _require(value: str, name: str) -> str:
    v = (value or "").strip()
    if not v:
        raise ApiError(500, f"Missing configuration: {name}")
    return v


def _state_cookie(settings: Settings) -> str:
    return f"{settings.session_cookie_name}_state"


def get_google_auth_url(settings: Settings, state: str) -> str:
    client_id = _require(settings.google_client_id, "GOOGLE_CLIENT_ID")
    redirect_uri = _require(settings.google_redirect_uri, "GOOGLE_REDIRECT_URI")

    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": " ".join(settings.google_oauth_scopes.split()),
        "access_type": "online",
        "prompt": "consent",
        "include_granted_scopes": "true",
        "state": state,
    }
    return GOOGLE_AUTH_URL + "?" + urlencode(params)


def _signin_error(message: str) -> RedirectResponse:
    return RedirectResponse("/?" + urlencode({"error": message}), status_code=302)


@router.get("/google/login")
async def google_login(settings: Settings = Depends(get_app_settings)):
    nonce = secrets.token_urlsafe(16)
    url = get_google_auth_url(settings, sign_state(settings.secret_key, nonce, ttl_sec=STATE_TTL_SEC))
    resp = RedirectResponse(url, status_code=302)
    resp.set_cookie(
        _state_cookie(settings),
        nonce,
        max_age=STATE_TTL_SEC,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )
    return resp


@router.get("/google/callback")
async def google_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    settings: Settings = Depends(get_app_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    if error:
        logger.info("Google sign-in was not completed: %s", error)
        return _signin_error("Google sign-in was cancelled or denied.")

    if not code or not state:
        raise ApiError(400, "Missing code/state")

    try:
        nonce = verify_state(settings.secret_key, state)
    except ValueError as e:
        raise ApiError(400, f"Invalid state: {e}") from e
    if not secrets.compare_digest(nonce, request.cookies.get(_state_cookie(settings), "")):
        raise ApiError(400, "Invalid state: not issued to this browser")

    # 1) code -> tokens
    data = {
        "code": code,
        "client_id": _require(settings.google_client_id, "GOOGLE_CLIENT_ID"),
        "client_secret": _require(settings.google_client_secret, "GOOGLE_CLIENT_SECRET"),
        "redirect_uri": _require(settings.google_redirect_uri, "GOOGLE_REDIRECT_URI"),
        "grant_type": "authorization_code",
    }
    try:
        token_resp = await client.post(GOOGLE_TOKEN_URL, data=data, timeout=20)
    except httpx.TransportError as e:
        logger.warning("Token exchange failed: %r", e)
        return _signin_error("Could not reach Google. Please try again.")

    if token_resp.status_code != 200:
        logger.warning("Token exchange failed: %s %s", token_resp.status_code, token_resp.text[:300])
        return _signin_error("Google sign-in failed. Please try again.")

    try:
        tokens = token_resp.json()
    except ValueError:
        tokens = None
    if not isinstance(tokens, dict):
        logger.warning("Token exchange returned an unreadable body (%s)", token_resp.headers.get("content-type"))
        return _signin_error("Google sign-in failed. Please try again.")
    access_token = tokens.get("access_token")
    if not access_token:
        return _signin_error("Google did not return an access token.")
    expires_in = int(tokens.get("expires_in") or 3600)

    # 2) userinfo
    try:
        userinfo_resp = await client.get(
            GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=20,
        )
    except httpx.TransportError as e:
        logger.warning("Userinfo request failed: %r", e)
        return _signin_error("Could not reach Google. Please try again.")

    if userinfo_resp.status_code != 200:
        logger.warning("Userinfo failed: %s %s", userinfo_resp.status_code, userinfo_resp.text[:300])
        return _signin_error("Could not read your Google profile.")

    try:
        userinfo = userinfo_resp.json()
    except ValueError:
        userinfo = None
    if not isinstance(userinfo, dict):
        logger.warning("Userinfo returned an unreadable body: %s", userinfo_resp.text[:300])
        return _signin_error("Could not read your Google profile.")
    email = (userinfo.get("email") or "").lower().strip()
    if not email:
        return _signin_error("Your Google account did not share an email address.")

    # 3) session cookie -> dashboard
    session = Session(
        name=userinfo.get("name") or None,
        email=email,
        access_token=access_token,
        expires_at=int(time.time()) + expires_in,
    )
    logger.info("Signed in %s", email)

    resp = RedirectResponse("/", status_code=302)
    resp.delete_cookie(_state_cookie(settings))
    resp.set_cookie(
        settings.session_cookie_name,
        encode_session(settings.secret_key, session),
        max_age=expires_in,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )
    return resp


@router.api_route("/signout", methods=["GET", "POST"])
async def signout(settings: Settings = Depends(get_app_settings)):
    resp = RedirectResponse("/", status_code=302)
    resp.delete_cookie(settings.session_cookie_name)
    return resp
