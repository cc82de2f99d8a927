"""
Health vector — 8-axis wellness snapshot scored by L2 distance to the ideal.

Each axis is a float in [0, 1] (1.0 = best). The score is the Euclidean
distance from the all-ones vector, normalised by the largest possible distance
sqrt(8) and flipped so that 100 means "ideal":

    score = round(100 * (1 - ||1 - v|| / sqrt(8)))

The score is an L2 distance, not a weighted average.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Mapping, Optional

from carenexa.config import CRITICAL_SCORE_THRESHOLD, NEUTRAL_AXIS_PRIOR

logger = logging.getLogger(__name__)

AXES = (
    "cardiovascular",
    "metabolic",
    "respiratory",
    "mental_health",
    "sleep",
    "activity",
    "nutrition",
    "stress",
)

_MAX_DISTANCE = math.sqrt(len(AXES))

HealthVector = Dict[str, float]

DEFAULT_VECTOR: HealthVector = {
    "cardiovascular": 0.7,
    "metabolic": 0.7,
    "respiratory": 0.8,
    "mental_health": 0.7,
    "sleep": 0.65,
    "activity": 0.6,
    "nutrition": 0.65,
    "stress": 0.7,
}


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def round_half_up(value: float) -> int:
    """Round .5 up like the dashboard does (Python's round() is banker's rounding)."""
    return int(math.floor(value + 0.5))


def normalize_vector(values: Optional[Mapping[str, object]] = None) -> HealthVector:
    """Return a complete vector: every axis present, numeric and clamped to [0, 1].

    Missing or non-numeric axes take the neutral prior; unknown keys are dropped.
    """
    values = values or {}
    vector: HealthVector = {}
    for axis in AXES:
        raw = values.get(axis)
        try:
            value = float(raw) if raw is not None else NEUTRAL_AXIS_PRIOR
        except (TypeError, ValueError):
            value = NEUTRAL_AXIS_PRIOR
        if math.isnan(value):
            value = NEUTRAL_AXIS_PRIOR
        if not 0.0 <= value <= 1.0:
            logger.debug(f"Clamping {axis}={value} into [0, 1]")
            value = _clamp(value, 0.0, 1.0)
        vector[axis] = value
    return vector


def merge_vector(current: Mapping[str, float], update: Mapping[str, object]) -> HealthVector:
    """Apply a partial update (new vitals/insights) on top of an existing vector."""
    merged = dict(normalize_vector(current))
    merged.update({k: v for k, v in update.items() if k in AXES})
    return normalize_vector(merged)


def compute_score(vector: Mapping[str, object]) -> int:
    """0-100 score from L2 distance to the all-ones ideal."""
    v = normalize_vector(vector)
    distance = math.sqrt(sum((1.0 - v[axis]) ** 2 for axis in AXES))
    score = round_half_up(100 * (1 - distance / _MAX_DISTANCE))
    return int(_clamp(score, 0, 100))


def overall_status(score: int, critical_threshold: int = CRITICAL_SCORE_THRESHOLD) -> str:
    """Band a 0-100 score: excellent / good / fair / poor / critical."""
    if score >= 80:
        return "excellent"
    if score >= 65:
        return "good"
    if score >= 50:
        return "fair"
    if score >= critical_threshold:
        return "poor"
    return "critical"
