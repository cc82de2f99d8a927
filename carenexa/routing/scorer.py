"""
Route-safety scorer — rank candidate facilities by ETA, capability and hazard exposure.

For every candidate the straight route from the user is sampled into
ROUTE_STEPS + 1 points. A point is "exposed" when it lies within
DANGER_RADIUS_METERS of any danger pin. Then:

    score = estimated_minutes + DANGER_WEIGHT * danger_count
            - (CAPABILITY_BONUS if has_capability else 0)

Lower is better. Ranking is a stable ascending sort, so equal scores keep the
order the candidates came in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from carenexa.config import (
    CAPABILITY_BONUS,
    DANGER_RADIUS_METERS,
    DANGER_WEIGHT,
    ROUTE_STEPS,
)
from carenexa.tools.geocoding import LatLng, distance_meters, interpolate

logger = logging.getLogger(__name__)


class FacilityCandidate(BaseModel):
    """A hospital the patient could be routed to. JSON uses the dashboard's camelCase."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    distance_km: Optional[float] = None
    estimated_minutes: float = Field(ge=0)
    specialty: str = "General"
    has_capability: bool = Field(default=False, alias="hasCapability")

    @property
    def location(self) -> LatLng:
        return LatLng(self.lat, self.lng)


class ScoredFacility(FacilityCandidate):
    route: List[LatLng] = Field(default_factory=list)
    danger_count: int = Field(default=0, alias="dangerCount")
    score: float = 0.0


@dataclass
class RouteRanking:
    ranked: List[ScoredFacility] = field(default_factory=list)

    @property
    def best(self) -> Optional[ScoredFacility]:
        return self.ranked[0] if self.ranked else None

    @property
    def is_empty(self) -> bool:
        return not self.ranked


def count_exposed_points(
    route: Sequence[LatLng],
    danger_points: Sequence[LatLng],
    radius_m: float = DANGER_RADIUS_METERS,
) -> int:
    """Number of route points strictly closer than ``radius_m`` to any danger point."""
    if not danger_points:
        return 0
    return sum(
        1
        for pt in route
        if any(distance_meters(pt, dp) < radius_m for dp in danger_points)
    )


def score_candidate(
    user: LatLng,
    candidate: FacilityCandidate,
    danger_points: Sequence[LatLng],
) -> ScoredFacility:
    route = interpolate(user, candidate.location, steps=ROUTE_STEPS)
    danger_count = count_exposed_points(route, danger_points)
    penalty = danger_count * DANGER_WEIGHT
    bonus = CAPABILITY_BONUS if candidate.has_capability else 0
    score = candidate.estimated_minutes + penalty - bonus
    return ScoredFacility(
        **candidate.model_dump(),
        route=route,
        danger_count=danger_count,
        score=score,
    )


def rank_facilities(
    user: LatLng,
    candidates: Iterable[FacilityCandidate],
    hazard_pins: Iterable[object] = (),
) -> RouteRanking:
    """Score and rank candidates. Only pins whose ``type`` is "danger" are used.

    ``hazard_pins`` may be HazardPin models or plain dicts with lat/lng/type.
    """
    danger_points: List[LatLng] = []
    for pin in hazard_pins:
        data = pin if isinstance(pin, dict) else pin.model_dump()
        if data.get("type") == "danger":
            danger_points.append(LatLng(float(data["lat"]), float(data["lng"])))

    scored = [score_candidate(user, c, danger_points) for c in candidates]
    scored.sort(key=lambda s: s.score)  # list.sort is stable

    if scored:
        best = scored[0]
        logger.info(
            f"Ranked {len(scored)} facilities against {len(danger_points)} danger pins | "
            f"best={best.name} score={best.score} dangerCount={best.danger_count}"
        )
    return RouteRanking(ranked=scored)
