"""Tests for HttpxCinemetaClient."""

from __future__ import annotations

import httpx
import pytest
import respx

from magnetio.infrastructure.cinemeta.client import HttpxCinemetaClient, _extract_year

_BASE = "https://cinemeta.test"
_URL = f"{_BASE}/meta/movie/tt0133093.json"


@pytest.mark.parametrize(
    ("meta", "expected"),
    [
        ({"released": "1999-03-31T00:00:00.000Z", "year": "2000"}, 1999),
        ({"year": "1999"}, 1999),
        ({"releaseInfo": "1999–2003"}, 1999),
        ({"year": 1999}, 1999),
        ({}, None),
        ({"releaseInfo": "TBA"}, None),
    ],
)
def test_extract_year(meta: dict, expected: int | None) -> None:
    assert _extract_year(meta) == expected


class TestLookup:
    @respx.mock
    async def test_returns_title_and_year(self) -> None:
        respx.get(_URL).respond(
            200,
            json={
                "meta": {
                    "id": "tt0133093",
                    "name": "The Matrix",
                    "released": "1999-03-31T00:00:00.000Z",
                }
            },
        )

        async with httpx.AsyncClient() as client:
            meta = await HttpxCinemetaClient(
                http_client=client, base_url=_BASE
            ).lookup("tt0133093")

        assert meta is not None
        assert meta.title == "The Matrix"
        assert meta.year == 1999

    @respx.mock
    async def test_not_found(self) -> None:
        respx.get(_URL).respond(404)

        async with httpx.AsyncClient() as client:
            meta = await HttpxCinemetaClient(
                http_client=client, base_url=_BASE
            ).lookup("tt0133093")

        assert meta is None

    @respx.mock
    async def test_server_error(self) -> None:
        respx.get(_URL).respond(502)

        async with httpx.AsyncClient() as client:
            meta = await HttpxCinemetaClient(
                http_client=client, base_url=_BASE
            ).lookup("tt0133093")

        assert meta is None

    @respx.mock
    async def test_network_error(self) -> None:
        respx.get(_URL).mock(side_effect=httpx.ConnectError("refused"))

        async with httpx.AsyncClient() as client:
            meta = await HttpxCinemetaClient(
                http_client=client, base_url=_BASE
            ).lookup("tt0133093")

        assert meta is None

    @respx.mock
    async def test_missing_year(self) -> None:
        respx.get(_URL).respond(200, json={"meta": {"name": "The Matrix"}})

        async with httpx.AsyncClient() as client:
            meta = await HttpxCinemetaClient(
                http_client=client, base_url=_BASE
            ).lookup("tt0133093")

        assert meta is None

    @respx.mock
    async def test_empty_meta(self) -> None:
        respx.get(_URL).respond(200, json={})

        async with httpx.AsyncClient() as client:
            meta = await HttpxCinemetaClient(
                http_client=client, base_url=_BASE
            ).lookup("tt0133093")

        assert meta is None
