"""
Safe-route engine — pick the hospital that is fast, capable and avoids danger zones.

Architecture:
    1. candidates             — from the request, else 1 LLM call      (0-1 LLM calls)
    2. rank_facilities()      — danger-adjusted scoring                 (pure Python)
    3. safety note            — 1 LLM call, static default on failure   (0-1 LLM calls)

Missing credentials: scoring still runs when the client supplied candidates
(the safety note falls back to the default text). Without candidates there is
nothing to rank, so the ConfigurationError propagates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from carenexa.audit import utc_now_iso
from carenexa.errors import ConfigurationError, NotFound, UpstreamUnavailable
from carenexa.llm import ProviderChain, get_provider_chain
from carenexa.parsing import parse_json_object
from carenexa.routing.prompts import HOSPITAL_DISCOVERY_PROMPT, SAFETY_NOTE_PROMPT
from carenexa.routing.scorer import FacilityCandidate, ScoredFacility, rank_facilities
from carenexa.tools.geocoding import LatLng

logger = logging.getLogger(__name__)

DEFAULT_SAFETY_NOTE = "Proceed to hospital immediately. Call 911 if condition worsens."


@dataclass
class SafeRoutePlan:
    hospital: ScoredFacility
    ranked: List[ScoredFacility]
    safety_note: str
    timestamp: str = field(default_factory=utc_now_iso)

    @property
    def route(self) -> List[LatLng]:
        return self.hospital.route


def default_candidate(user: LatLng) -> FacilityCandidate:
    """Placeholder used when the model's hospital list cannot be parsed."""
    return FacilityCandidate(
        name="Nearest Hospital",
        lat=user.lat + 0.01,
        lng=user.lng + 0.01,
        distance_km=1.5,
        estimated_minutes=6,
        specialty="General",
        has_capability=True,
    )


def _parse_candidates(raw: Any) -> List[FacilityCandidate]:
    candidates: List[FacilityCandidate] = []
    if not isinstance(raw, list):
        return candidates
    for item in raw:
        try:
            candidates.append(FacilityCandidate.model_validate(item))
        except PydanticValidationError as e:
            logger.warning(f"Skipping malformed hospital entry ({e.error_count()} errors): {item!r}")
    return candidates


def discover_candidates(
    user: LatLng, emergency_type: str, chain: ProviderChain
) -> List[FacilityCandidate]:
    """Ask the model for the nearest hospitals. (1 LLM call)

    Unparseable output yields the single default candidate; a provider outage
    raises UpstreamUnavailable.
    """
    prompt = HOSPITAL_DISCOVERY_PROMPT.format(
        lat=user.lat, lng=user.lng, emergency_type=emergency_type
    )
    result = chain.generate(prompt)
    data = parse_json_object(result.text)
    candidates = _parse_candidates(data.get("hospitals"))
    if not candidates:
        logger.warning("Hospital discovery returned nothing usable, using default candidate")
        return [default_candidate(user)]
    logger.info(f"Discovered {len(candidates)} hospitals via {result.model}")
    return candidates


def generate_safety_note(
    user: LatLng, best: ScoredFacility, emergency_type: str, chain: Optional[ProviderChain]
) -> str:
    """One-line transport advice. Never raises; returns the default note on any failure."""
    if chain is None:
        return DEFAULT_SAFETY_NOTE
    prompt = SAFETY_NOTE_PROMPT.format(
        lat=user.lat,
        lng=user.lng,
        hospital=best.name,
        emergency_type=emergency_type,
        minutes=best.estimated_minutes,
        danger_count=best.danger_count,
    )
    try:
        result = chain.generate(prompt)
    except UpstreamUnavailable:
        return DEFAULT_SAFETY_NOTE
    note = parse_json_object(result.text).get("safetyNote")
    return str(note).strip() if note else DEFAULT_SAFETY_NOTE


def plan_safe_route(
    user: LatLng,
    emergency_type: str = "general",
    hazard_pins: Iterable[Any] = (),
    candidates: Optional[Sequence[FacilityCandidate]] = None,
    chain: Optional[ProviderChain] = None,
) -> SafeRoutePlan:
    """
    Rank facilities for an emergency transport and return the best one.

    ``chain`` defaults to the configured provider chain; pass one explicitly to
    inject a test double.
    """
    if chain is None:
        try:
            chain = get_provider_chain()
        except ConfigurationError:
            if not candidates:
                raise
            logger.info("No LLM credential; scoring client-supplied candidates only")

    if not candidates:
        candidates = discover_candidates(user, emergency_type, chain)

    ranking = rank_facilities(user, candidates, hazard_pins)
    if ranking.is_empty:
        raise NotFound("No facility found")

    best = ranking.best
    note = generate_safety_note(user, best, emergency_type, chain)
    return SafeRoutePlan(hospital=best, ranked=ranking.ranked, safety_note=note)


def route_to_dicts(route: Sequence[LatLng]) -> List[Dict[str, float]]:
    """Serialize a route the way the map widget expects: [{lat, lng}, ...]."""
    return [{"lat": p.lat, "lng": p.lng} for p in route]
