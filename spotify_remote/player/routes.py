"""
Player routes.

Each handler makes one or two calls through ``SpotifyPlayerClient`` and
either renders a page or redirects back to ``/player``. Failures are raised
as ``SpotifyAPIError`` and turned into responses by
``spotify_api_error_handler``.
"""

from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from .spotify_client import SpotifyAPIError, SpotifyPlayerClient
from ..auth.token_store import TokenStore, get_token_store
from ..shared.logging_utils import ComponentType, MessageType, PlayerLogger
from ..shared.models import EXPIRED_TOKEN_MESSAGE, PlayerView
from ..shared.templating import templates

router = APIRouter()
logger = PlayerLogger("PLAYER")

# Logged when a route's Spotify call fails for any reason other than expiry
ROUTE_ERROR_MESSAGES = {
    "/initialPlay": "Error playing initial playlist",
    "/player": "Error starting the music player",
    "/togglePlayback": "Error playing/pausing the music",
    "/previous": "Error skipping to previous song",
    "/next": "Error skipping to next song",
}


def get_spotify_client(store: TokenStore = Depends(get_token_store)) -> SpotifyPlayerClient:
    """
    Build a player client for the logged-in user.

    A token already known to be expired is reported the same way Spotify
    reports it, so the refresh flow runs before any API call is made.
    """
    auth_header = store.authorization_header()
    if store.refresh_token and store.is_expired():
        raise SpotifyAPIError(401, EXPIRED_TOKEN_MESSAGE)
    return SpotifyPlayerClient(auth_header)


async def spotify_api_error_handler(request: Request, exc: SpotifyAPIError):
    """
    Turn a failed Spotify call into a response.

    An expired token sends the browser to ``/auth/refreshToken`` with the
    failed route in ``routeTokenExpiredOn``. Anything else is logged with
    the route's message and rendered as a 500 error page.
    """
    path = request.url.path

    if exc.token_expired:
        original_route = path
        if request.url.query:
            original_route = f"{path}?{request.url.query}"
        query = urlencode({"routeTokenExpiredOn": original_route})

        logger.log_message(
            ComponentType.SPOTIFY_API.value, ComponentType.PLAYER.value,
            MessageType.REDIRECT.value,
            {"reason": exc.message, "route": original_route, "redirect_to": "/auth/refreshToken"}
        )
        return RedirectResponse(f"/auth/refreshToken?{query}", status_code=307)

    internal_message = ROUTE_ERROR_MESSAGES.get(path)
    if internal_message:
        logger.log_error("route_error", f"Internal Error Message: {internal_message}")
    logger.log_error(
        "spotify_api_error",
        f"HTTP error message: {exc.message}",
        {"status_code": exc.status_code, "method": exc.method, "url": exc.url}
    )

    return templates.TemplateResponse(request, "error.html", {
        "error": internal_message or "spotify_api_error",
        "error_description": exc.message,
    }, status_code=500)


@router.get("/", response_class=HTMLResponse)
async def landing(request: Request, store: TokenStore = Depends(get_token_store)):
    """Landing page with the Spotify login link."""
    return templates.TemplateResponse(request, "landing.html", {
        "authenticated": store.is_authenticated,
    })


@router.get("/initialPlay")
async def initial_play(request: Request, spotify: SpotifyPlayerClient = Depends(get_spotify_client)):
    """
    Get something playing.

    Playback is transferred to the first device Spotify lists. With no
    devices the player page is rendered empty, prompting the user to open a
    Spotify app somewhere and try again.
    """
    devices = await spotify.get_devices()

    if devices and devices[0].id:
        await spotify.transfer_playback(devices[0].id, play=True)
        logger.log_info("Playback transferred", {"device": devices[0].name, "device_type": devices[0].type})
        return RedirectResponse("/player", status_code=303)

    logger.log_info("No Spotify devices available")
    return templates.TemplateResponse(request, "player.html", {
        "view": PlayerView(no_device=True),
    })


@router.get("/player", response_class=HTMLResponse)
async def player(request: Request, spotify: SpotifyPlayerClient = Depends(get_spotify_client)):
    """Current track, artists, album art and the next ten queued tracks."""
    currently_playing = await spotify.get_currently_playing()
    queue = await spotify.get_queue()

    return templates.TemplateResponse(request, "player.html", {
        "view": PlayerView.from_api(currently_playing, queue),
    })


@router.post("/togglePlayback")
async def toggle_playback(spotify: SpotifyPlayerClient = Depends(get_spotify_client)):
    """Pause if something is playing, otherwise resume."""
    state = await spotify.get_playback_state()

    if state and state.get("is_playing"):
        await spotify.pause()
    else:
        await spotify.play()

    return RedirectResponse("/player", status_code=303)


@router.post("/previous")
async def previous(spotify: SpotifyPlayerClient = Depends(get_spotify_client)):
    await spotify.previous()
    return RedirectResponse("/player", status_code=303)


@router.post("/next")
async def next_track(spotify: SpotifyPlayerClient = Depends(get_spotify_client)):
    await spotify.next_track()
    return RedirectResponse("/player", status_code=303)
