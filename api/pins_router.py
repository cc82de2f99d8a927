"""
Community pins REST router — CRUD over hazard pins shown on the health map.

Mounted under /api by the main FastAPI app. Storage is the in-memory
PinRepository; swap its KeyValueStore for a database in production.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Query, Request, status

from api.schemas import PinCreate, PinEnvelope, PinListResponse, PinResponse
from carenexa.errors import ValidationError
from carenexa.health.quests import get_quest_boards
from carenexa.pins import HazardPin, get_pin_repository
from carenexa.ratelimit import client_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["community-pins"])


def _pin_to_response(pin: HazardPin) -> PinResponse:
    return PinResponse(**pin.model_dump())


@router.get("/community-pins", response_model=PinListResponse)
def list_pins() -> PinListResponse:
    """Return every stored pin, oldest first."""
    pins = get_pin_repository().list()
    return PinListResponse(pins=[_pin_to_response(p) for p in pins], count=len(pins))


@router.post("/community-pins", response_model=PinEnvelope, status_code=status.HTTP_201_CREATED)
def create_pin(body: PinCreate, request: Request) -> PinEnvelope:
    """Create a pin. lat, lng, type and description are required."""
    key = client_key(request.headers)
    pin = get_pin_repository().create(
        lat=body.lat,
        lng=body.lng,
        type=body.type,
        description=body.description,
        category=body.category,
    )

    board = get_quest_boards().get(key)
    board.reward_action("hazard_report")
    board.complete_next_task("q2")

    return PinEnvelope(pin=_pin_to_response(pin))


@router.delete("/community-pins")
def delete_pin(id: Optional[str] = Query(None)):
    """Delete a pin by ?id=..."""
    if not id:
        raise ValidationError("Pin ID required")
    get_pin_repository().delete(id)
    return {"success": True}


@router.post("/community-pins/{pin_id}/upvote", response_model=PinEnvelope)
def upvote_pin(pin_id: str) -> PinEnvelope:
    """Add one upvote to a pin."""
    return PinEnvelope(pin=_pin_to_response(get_pin_repository().upvote(pin_id)))
