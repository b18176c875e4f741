"""
Spotify login routes.

``/auth/login`` starts the authorization code flow, ``/auth/callback``
finishes it, and ``/auth/refreshToken`` is where player routes are sent when
Spotify reports that the access token expired. After refreshing, the browser
is redirected back to the route that failed so it runs again with the new
token.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from .spotify_oauth import (
    TokenExchangeError,
    build_authorize_url,
    exchange_code,
    refresh_access_token,
)
from .token_store import TokenStore, get_token_store
from ..shared.config import SPOTIFY_CONFIG, uses_pkce
from ..shared.crypto_utils import PKCEGenerator, constant_time_compare
from ..shared.logging_utils import ComponentType, MessageType, PlayerLogger
from ..shared.security import InputValidator
from ..shared.templating import templates

router = APIRouter(prefix="/auth")
logger = PlayerLogger("AUTH")

STATE_SESSION_KEY = "oauth_state"
VERIFIER_SESSION_KEY = "pkce_verifier"


@router.get("/login")
async def login(request: Request):
    """
    Redirect the browser to the Spotify authorize page.

    A fresh state value (and PKCE verifier for public clients) is stored in
    the session for the callback to check.
    """
    state = PKCEGenerator.generate_state_parameter()
    request.session[STATE_SESSION_KEY] = state

    challenge = None
    if uses_pkce():
        verifier, challenge = PKCEGenerator.generate_challenge()
        request.session[VERIFIER_SESSION_KEY] = verifier
    else:
        request.session.pop(VERIFIER_SESSION_KEY, None)

    authorize_url = build_authorize_url(state, challenge)

    logger.log_message(
        ComponentType.AUTH.value, ComponentType.BROWSER.value,
        MessageType.REDIRECT.value,
        {
            "client_id": SPOTIFY_CONFIG["client_id"],
            "redirect_uri": SPOTIFY_CONFIG["redirect_uri"],
            "scope": SPOTIFY_CONFIG["scope"],
            "state": state,
            "code_challenge": challenge,
        }
    )

    return RedirectResponse(authorize_url, status_code=303)


@router.get("/callback", response_class=HTMLResponse)
async def callback(request: Request,
                   code: Optional[str] = None,
                   state: Optional[str] = None,
                   error: Optional[str] = None,
                   store: TokenStore = Depends(get_token_store)):
    """
    Handle the redirect back from Spotify.

    Validates the state parameter, exchanges the code for tokens, stores them
    and starts playback on the first available device.
    """
    logger.log_message(
        "SPOTIFY-ACCOUNTS", "AUTH",
        "Authorization Callback Received",
        {"code": code, "state": state, "error": error}
    )

    if error:
        return templates.TemplateResponse(request, "error.html", {
            "error": error,
            "error_description": request.query_params.get(
                "error_description", "Spotify did not authorize the app."
            ),
        }, status_code=400)

    if not code:
        raise HTTPException(400, "Missing authorization code")

    if not state:
        raise HTTPException(400, "Missing state parameter")

    expected_state = request.session.pop(STATE_SESSION_KEY, None)
    if (not expected_state
            or not InputValidator.validate_state(state)
            or not constant_time_compare(expected_state, state)):
        logger.log_error(
            "invalid_state",
            "State validation failed, possible CSRF attempt",
            {"received_state": state, "expected_state": expected_state}
        )
        return templates.TemplateResponse(request, "error.html", {
            "error": "invalid_state",
            "error_description": "State parameter validation failed. Please log in again.",
        }, status_code=400)

    verifier = request.session.pop(VERIFIER_SESSION_KEY, None)
    token_response = await exchange_code(code, verifier)
    store.save(token_response)

    return RedirectResponse("/initialPlay", status_code=303)


@router.api_route("/refreshToken", methods=["GET", "POST"])
async def refresh_token(request: Request,
                        routeTokenExpiredOn: Optional[str] = None,
                        store: TokenStore = Depends(get_token_store)):
    """
    Refresh the access token and re-run the route whose call expired.

    The redirect uses 307 so a POST from a player control is replayed as a
    POST. Targets outside this server are replaced with ``/player``.
    """
    target = InputValidator.safe_local_path(routeTokenExpiredOn)

    if not store.refresh_token:
        logger.log_info("No refresh token stored, starting a new login")
        return RedirectResponse("/auth/login", status_code=303)

    try:
        token_response = await refresh_access_token(store.refresh_token)
    except TokenExchangeError as e:
        if not e.rejected:
            # Spotify unreachable or failing; the stored refresh token is still good
            raise
        # Revoked or invalid refresh token: only a new login can recover
        logger.log_error("refresh_failed", e.description, {"error": e.error})
        store.clear()
        return RedirectResponse("/auth/login", status_code=303)

    store.save(token_response)

    logger.log_message(
        ComponentType.AUTH.value, ComponentType.PLAYER.value,
        MessageType.REDIRECT.value,
        {"route_token_expired_on": routeTokenExpiredOn, "redirect_to": target}
    )

    return RedirectResponse(target, status_code=307)


@router.post("/logout")
async def logout(request: Request, store: TokenStore = Depends(get_token_store)):
    """Forget the stored tokens and the session."""
    store.clear()
    request.session.clear()
    return RedirectResponse("/", status_code=303)
