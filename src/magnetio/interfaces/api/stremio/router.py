"""Stremio addon endpoints (manifest, configure, stream, playback redirect)."""

from __future__ import annotations

from typing import Any, cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from magnetio.domain.entities.stremio import PlayableStream
from magnetio.domain.exceptions import AllProvidersFailedError
from magnetio.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["stremio"])

_ADDON_ID = "org.Magnetio"
_ADDON_VERSION = "1.0.0"

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
}

_CONFIGURE_HTML = """<!doctype html>
<html>
<head><meta charset="utf-8"><title>Magnetio</title></head>
<body>
<h1>Magnetio</h1>
<form id="cfg">
  <label>DebridLink API key <input id="dl"></label><br>
  <label>Premiumize API key <input id="pr"></label><br>
  <button type="submit">Install</button>
</form>
<script>
document.getElementById("cfg").addEventListener("submit", function (e) {
  e.preventDefault();
  var keys = [];
  var dl = document.getElementById("dl").value.trim();
  var pr = document.getElementById("pr").value.trim();
  if (dl) keys.push("dl=" + dl);
  if (pr) keys.push("pr=" + pr);
  if (!keys.length) return;
  var url = window.location.host + "/" + keys.join(",") + "/manifest.json";
  window.location.href = "stremio://" + url;
});
</script>
</body>
</html>
"""


def _base_url(request: Request) -> str:
    state = cast(AppState, request.app.state)
    public_url = state.config.public_url
    if public_url:
        return public_url
    return str(request.base_url).rstrip("/")


def _build_manifest(
    base_url: str, *, configured: bool, description: str | None = None
) -> dict[str, Any]:
    """Build the Stremio addon manifest.

    Without valid keys the manifest exposes no resources and points the
    client at the configure page.
    """
    if configured:
        return {
            "id": _ADDON_ID,
            "version": _ADDON_VERSION,
            "name": "Magnetio",
            "description": "Stream movies via Debrid services",
            "resources": ["stream"],
            "types": ["movie"],
            "catalogs": [],
            "idPrefixes": ["tt"],
            "behaviorHints": {"configurable": True},
        }
    return {
        "id": _ADDON_ID,
        "version": _ADDON_VERSION,
        "name": "Magnetio",
        "description": description
        or "Stream movies via Debrid services - Configuration Required",
        "resources": [],
        "types": [],
        "catalogs": [],
        "behaviorHints": {
            "configurable": True,
            "configurationRequired": True,
            "configurationURL": f"{base_url}/configure",
        },
    }


def _format_stremio_stream(
    stream: PlayableStream, base_url: str, api_keys: str
) -> dict[str, str]:
    """Convert a PlayableStream to Stremio JSON format."""
    return {
        "name": stream.display_name,
        "title": stream.title,
        "url": f"{base_url}/{api_keys}/{stream.playback_ref}",
        "service": stream.provider_name,
    }


@router.get("/manifest.json")
async def manifest(request: Request) -> JSONResponse:
    """Serve the unconfigured manifest."""
    return JSONResponse(
        content=_build_manifest(_base_url(request), configured=False),
        headers=_CORS_HEADERS,
    )


@router.get("/configure", response_class=HTMLResponse)
async def configure() -> HTMLResponse:
    return HTMLResponse(_CONFIGURE_HTML)


@router.get("/{api_keys}/manifest.json")
async def configured_manifest(request: Request, api_keys: str) -> JSONResponse:
    """Serve the full manifest when the key string yields a provider."""
    state = cast(AppState, request.app.state)
    configured = bool(state.provider_factory(api_keys))
    content = _build_manifest(
        _base_url(request),
        configured=configured,
        description=None
        if configured
        else "Invalid API keys provided - Please check your configuration",
    )
    return JSONResponse(content=content, headers=_CORS_HEADERS)


@router.get("/{api_keys}/stream/{content_type}/{stream_id}.json")
async def stream(
    request: Request,
    api_keys: str,
    content_type: str,
    stream_id: str,
) -> JSONResponse:
    """Resolve playable streams for a movie. Never fails with 5xx."""
    state = cast(AppState, request.app.state)

    if content_type != "movie" or not stream_id.startswith("tt"):
        return JSONResponse(content={"streams": []}, headers=_CORS_HEADERS)

    imdb_id = stream_id.split(":")[0]
    log.info("stremio_stream_request", imdb_id=imdb_id)

    streams = await state.stream_uc.resolve(imdb_id, api_keys)
    base_url = _base_url(request)
    payload = [_format_stremio_stream(s, base_url, api_keys) for s in streams]

    return JSONResponse(content={"streams": payload}, headers=_CORS_HEADERS)


@router.get("/{api_keys}/{playback_ref}")
async def playback(request: Request, api_keys: str, playback_ref: str):
    """Redirect to a direct video URL from the first working provider."""
    state = cast(AppState, request.app.state)
    try:
        url = await state.stream_uc.get_playback_url(api_keys, playback_ref)
    except ValueError as exc:
        log.warning("playback_ref_invalid", error=str(exc))
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid stream reference", "details": str(exc)},
            headers=_CORS_HEADERS,
        )
    except AllProvidersFailedError as exc:
        log.error("playback_failed", error=str(exc))
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to process magnet", "details": str(exc)},
            headers=_CORS_HEADERS,
        )
    return RedirectResponse(url=url, status_code=302, headers=_CORS_HEADERS)
