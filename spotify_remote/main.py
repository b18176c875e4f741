"""
Spotify Remote

A small FastAPI application that logs in to Spotify on the user's behalf,
shows the currently playing track and queue, and offers play/pause and skip
controls that call the Spotify Web API.

Routes:
- ``/`` landing page, ``/auth/*`` login, callback and token refresh
- ``/initialPlay``, ``/player`` playback pages
- ``/togglePlayback``, ``/previous``, ``/next`` player controls
- ``/health`` health check
"""

from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from fastapi.responses import RedirectResponse
from starlette.middleware.sessions import SessionMiddleware
import httpx

from .auth.routes import router as auth_router
from .auth.spotify_oauth import TokenExchangeError
from .auth.token_store import NotAuthenticatedError, TokenStore
from .player.routes import router as player_router, spotify_api_error_handler
from .player.spotify_client import SpotifyAPIError
from .shared.config import SPOTIFY_CONFIG, uses_pkce
from .shared.logging_utils import create_logger
from .shared.security import SecurityHeaders
from .shared.templating import static_dir, templates

logger = create_logger("SYSTEM")

app = FastAPI(
    title="Spotify Remote",
    description="Personal Spotify playback remote backed by the Spotify Web API",
    version="1.0.0"
)

app.state.token_store = TokenStore()

app.add_middleware(
    SessionMiddleware,
    secret_key=SPOTIFY_CONFIG["session_secret"],
    same_site="lax"
)

app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add standard security headers to every response."""
    response = await call_next(request)
    for header_name, header_value in SecurityHeaders.get_security_headers().items():
        response.headers[header_name] = header_value
    return response


app.include_router(auth_router)
app.include_router(player_router)

app.add_exception_handler(SpotifyAPIError, spotify_api_error_handler)


@app.exception_handler(NotAuthenticatedError)
async def not_authenticated_handler(request: Request, exc: NotAuthenticatedError):
    """Send users without a stored token to the Spotify login."""
    logger.log_info("No access token, redirecting to login", {"path": request.url.path})
    return RedirectResponse("/auth/login", status_code=303)


@app.exception_handler(TokenExchangeError)
async def token_exchange_error_handler(request: Request, exc: TokenExchangeError):
    """Render a failed token grant (callback or refresh) as an error page."""
    logger.log_error(exc.error, exc.description, {"status_code": exc.status_code, "path": request.url.path})
    return templates.TemplateResponse(request, "error.html", {
        "error": exc.error,
        "error_description": exc.description,
    }, status_code=502)


@app.exception_handler(httpx.RequestError)
async def network_error_handler(request: Request, exc: httpx.RequestError):
    """Render transport failures talking to Spotify."""
    logger.log_error("network_error", str(exc), {"path": request.url.path})
    return templates.TemplateResponse(request, "error.html", {
        "error": "network_error",
        "error_description": f"Failed to connect to Spotify: {exc}",
    }, status_code=502)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "spotify-remote"}


def run():
    """Start the server with uvicorn using the configured host and port."""
    import uvicorn

    logger.log_startup(SPOTIFY_CONFIG["host"], SPOTIFY_CONFIG["port"], {
        "client_id": SPOTIFY_CONFIG["client_id"] or "(unset)",
        "redirect_uri": SPOTIFY_CONFIG["redirect_uri"],
        "flow": "pkce" if uses_pkce() else "client_secret",
    })
    uvicorn.run(app, host=SPOTIFY_CONFIG["host"], port=SPOTIFY_CONFIG["port"])


if __name__ == "__main__":
    run()
