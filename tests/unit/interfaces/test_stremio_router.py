"""Tests for Stremio addon router endpoints."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from magnetio.domain.entities.stremio import PlayableStream
from magnetio.domain.exceptions import AllProvidersFailedError
from magnetio.infrastructure.config import AppConfig
from magnetio.interfaces.api.stremio.router import router
from tests.factories import FakeProvider

_STREAM = PlayableStream(
    display_name="🧲 | 1080p | 💾 2.1 GB | ⚡️ DebridLink",
    title="The.Matrix.1999.1080p.BluRay.x264",
    playback_ref="bWFnbmV0Oj94dD11cm46YnRpaDphYWE",
    provider_name="DebridLink",
)


def _make_app(
    *,
    stream_uc: MagicMock | None = None,
    public_url: str | None = None,
) -> FastAPI:
    """Minimal FastAPI app with the stremio router."""
    app = FastAPI()
    app.include_router(router)

    app.state.config = AppConfig(public_url=public_url)
    app.state.provider_factory = lambda keys: (
        [FakeProvider("DebridLink")] if keys.startswith("dl=") else []
    )
    if stream_uc is None:
        stream_uc = MagicMock()
        stream_uc.resolve = AsyncMock(return_value=[])
    app.state.stream_uc = stream_uc
    return app


class TestManifest:
    def test_unconfigured_manifest(self) -> None:
        client = TestClient(_make_app())

        resp = client.get("/manifest.json")

        assert resp.status_code == 200
        body = resp.json()
        assert body["resources"] == []
        assert body["behaviorHints"]["configurationRequired"] is True
        assert body["behaviorHints"]["configurationURL"] == (
            "http://testserver/configure"
        )
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_public_url_used_for_configure_link(self) -> None:
        client = TestClient(_make_app(public_url="https://addon.example"))

        body = client.get("/manifest.json").json()

        assert body["behaviorHints"]["configurationURL"] == (
            "https://addon.example/configure"
        )

    def test_configured_manifest(self) -> None:
        client = TestClient(_make_app())

        body = client.get("/dl=key/manifest.json").json()

        assert body["resources"] == ["stream"]
        assert body["types"] == ["movie"]
        assert body["idPrefixes"] == ["tt"]
        assert "configurationRequired" not in body["behaviorHints"]

    def test_invalid_keys_get_unconfigured_manifest(self) -> None:
        client = TestClient(_make_app())

        body = client.get("/rd=key/manifest.json").json()

        assert body["resources"] == []
        assert body["description"].startswith("Invalid API keys")

    def test_configure_page(self) -> None:
        resp = TestClient(_make_app()).get("/configure")

        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]
        assert "stremio://" in resp.text


class TestStream:
    def test_returns_formatted_streams(self) -> None:
        uc = MagicMock()
        uc.resolve = AsyncMock(return_value=[_STREAM])
        client = TestClient(_make_app(stream_uc=uc))

        resp = client.get("/dl=key/stream/movie/tt0133093.json")

        assert resp.status_code == 200
        assert resp.json() == {
            "streams": [
                {
                    "name": _STREAM.display_name,
                    "title": _STREAM.title,
                    "url": f"http://testserver/dl=key/{_STREAM.playback_ref}",
                    "service": "DebridLink",
                }
            ]
        }
        uc.resolve.assert_awaited_once_with("tt0133093", "dl=key")

    def test_series_requests_get_empty_list(self) -> None:
        uc = MagicMock()
        uc.resolve = AsyncMock()
        client = TestClient(_make_app(stream_uc=uc))

        resp = client.get("/dl=key/stream/series/tt0944947:1:1.json")

        assert resp.json() == {"streams": []}
        uc.resolve.assert_not_awaited()

    def test_non_imdb_ids_get_empty_list(self) -> None:
        resp = TestClient(_make_app()).get("/dl=key/stream/movie/kitsu:1.json")
        assert resp.json() == {"streams": []}

    def test_empty_resolution(self) -> None:
        resp = TestClient(_make_app()).get("/dl=key/stream/movie/tt0133093.json")

        assert resp.status_code == 200
        assert resp.json() == {"streams": []}


class TestPlayback:
    def test_redirects_to_direct_url(self) -> None:
        uc = MagicMock()
        uc.get_playback_url = AsyncMock(return_value="https://cdn.example/m.mkv")
        client = TestClient(_make_app(stream_uc=uc))

        resp = client.get("/dl=key/someref", follow_redirects=False)

        assert resp.status_code == 302
        assert resp.headers["location"] == "https://cdn.example/m.mkv"
        uc.get_playback_url.assert_awaited_once_with("dl=key", "someref")

    def test_all_providers_failed(self) -> None:
        uc = MagicMock()
        uc.get_playback_url = AsyncMock(
            side_effect=AllProvidersFailedError([RuntimeError("quota")])
        )
        client = TestClient(_make_app(stream_uc=uc))

        resp = client.get("/dl=key/someref", follow_redirects=False)

        assert resp.status_code == 500
        assert resp.json() == {
            "error": "Failed to process magnet",
            "details": "All debrid services failed: quota",
        }

    def test_invalid_reference(self) -> None:
        uc = MagicMock()
        uc.get_playback_url = AsyncMock(side_effect=ValueError("bad ref"))
        client = TestClient(_make_app(stream_uc=uc))

        resp = client.get("/dl=key/a", follow_redirects=False)

        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid stream reference"
