"""Metrics snapshot endpoint."""

from __future__ import annotations

from typing import cast

from fastapi import APIRouter, Request

from magnetio.interfaces.app_state import AppState

router = APIRouter(tags=["stats"])


@router.get("/stats")
async def stats(request: Request) -> dict[str, object]:
    state = cast(AppState, request.app.state)
    return state.metrics.snapshot()
