"""Safe-route API Router — danger-avoiding hospital selection for emergencies."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List

from fastapi import APIRouter, Request, status

from api.common import enforce_rate_limit
from api.schemas import SafeRouteRequest, SafeRouteResponse, ScoredHospital
from carenexa.errors import ValidationError
from carenexa.pins import get_pin_repository
from carenexa.routing.engine import plan_safe_route, route_to_dicts
from carenexa.routing.scorer import ScoredFacility
from carenexa.tools.geocoding import LatLng

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["routing"])


def _to_hospital(facility: ScoredFacility) -> ScoredHospital:
    return ScoredHospital(
        name=facility.name,
        lat=facility.lat,
        lng=facility.lng,
        distance_km=facility.distance_km,
        estimated_minutes=facility.estimated_minutes,
        specialty=facility.specialty,
        hasCapability=facility.has_capability,
        dangerCount=facility.danger_count,
        score=facility.score,
        route=route_to_dicts(facility.route),
    )


@router.post("/safe-route", response_model=SafeRouteResponse, status_code=status.HTTP_200_OK)
async def safe_route(req: SafeRouteRequest, request: Request) -> SafeRouteResponse:
    """
    Rank nearby hospitals by ETA, capability and danger-zone exposure.

    Pins come from the request when given, otherwise from the stored community
    pins. Candidates come from the request when given, otherwise from the LLM.
    """
    enforce_rate_limit(request)

    if req.userLocation is None:
        raise ValidationError("userLocation is required")

    user = LatLng(req.userLocation.lat, req.userLocation.lng)
    pins: List[Any] = (
        list(req.communityPins)
        if req.communityPins is not None
        else get_pin_repository().danger_pins()
    )

    plan = await asyncio.to_thread(
        plan_safe_route,
        user,
        req.emergencyType or "general",
        pins,
        req.candidates,
    )

    hospital = _to_hospital(plan.hospital)
    return SafeRouteResponse(
        hospital=hospital,
        route=hospital.route,
        safetyNote=plan.safety_note,
        allHospitals=[_to_hospital(f) for f in plan.ranked],
        timestamp=plan.timestamp,
    )
