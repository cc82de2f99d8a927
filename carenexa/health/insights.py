"""
Health insights — vitals in, scored wellness summary out.

The model is asked for a JSON analysis; its health vector is merged over a
baseline derived from the vitals and re-scored locally. Whenever the model
cannot be used (no credential, every candidate failed, unparseable output) the
deterministic local analysis below is returned with ``fallback = True``
instead of an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from carenexa.errors import ConfigurationError, UpstreamUnavailable
from carenexa.health.vector import (
    DEFAULT_VECTOR,
    compute_score,
    merge_vector,
    overall_status,
    round_half_up,
)
from carenexa.llm import ProviderChain, get_provider_chain
from carenexa.parsing import parse_json_object

logger = logging.getLogger(__name__)

STATUSES = ("excellent", "good", "fair", "poor", "critical")

FALLBACK_RECOMMENDATIONS = [
    "Stay hydrated with 8+ glasses of water daily.",
    "Aim for 7–9 hours of quality sleep.",
    "Engage in at least 30 minutes of moderate activity daily.",
]

INSIGHTS_PROMPT = """You are a medical AI analyst. Analyze these health vitals and return ONLY valid JSON.

VITALS:
- Heart Rate: {heart_rate} bpm
- Blood Oxygen (SpO2): {oxygen_level}%
- Age: {age}
- Gender: {gender}
- Activity Level: {activity_level}
- Sleep Hours: {sleep_hours} hours/night
- Current Medications: {medications}
- Known Conditions: {conditions}

Return this EXACT JSON structure (no markdown, no explanation):
{{
  "insights": ["insight1", "insight2", "insight3"],
  "recommendations": ["rec1", "rec2", "rec3"],
  "riskFactors": ["risk1"],
  "score": 75,
  "healthVector": {{
    "cardiovascular": 0.8,
    "metabolic": 0.7,
    "respiratory": 0.85,
    "mental_health": 0.7,
    "sleep": 0.65,
    "activity": 0.6,
    "nutrition": 0.65,
    "stress": 0.7
  }},
  "overallStatus": "good"
}}

All healthVector values are 0.0 (worst) to 1.0 (best). Score is 0-100."""


@dataclass
class VitalsInput:
    heart_rate: float
    oxygen_level: float
    age: Optional[int] = None
    gender: Optional[str] = None
    activity_level: Optional[str] = None
    sleep_hours: Optional[float] = None
    medications: List[str] = field(default_factory=list)
    conditions: List[str] = field(default_factory=list)


@dataclass
class HealthInsights:
    insights: List[str]
    recommendations: List[str]
    risk_factors: List[str]
    score: int
    health_vector: Dict[str, float]
    overall_status: str
    vector_score: int
    fallback: bool


def heart_rate_normal(heart_rate: float) -> bool:
    return 60 <= heart_rate <= 100


def oxygen_normal(oxygen_level: float) -> bool:
    return oxygen_level >= 95


def _fmt(value: float) -> str:
    return f"{value:g}"


def baseline_vector(heart_rate: float, oxygen_level: float) -> Dict[str, float]:
    """Default vector with the cardiovascular and respiratory axes set from the vitals."""
    return merge_vector(
        DEFAULT_VECTOR,
        {
            "cardiovascular": 0.8 if heart_rate_normal(heart_rate) else 0.4,
            "respiratory": 0.85 if oxygen_normal(oxygen_level) else 0.5,
        },
    )


def fallback_insights(heart_rate: float, oxygen_level: float) -> HealthInsights:
    """Deterministic local analysis of heart rate and SpO2."""
    hr_ok = heart_rate_normal(heart_rate)
    spo2_ok = oxygen_normal(oxygen_level)

    if hr_ok and spo2_ok:
        score = 75
    elif hr_ok or spo2_ok:
        score = 60
    else:
        score = 40

    if not hr_ok:
        risk_factors = ["Abnormal heart rate detected"]
    elif not spo2_ok:
        risk_factors = ["Low blood oxygen"]
    else:
        risk_factors = []

    vector = baseline_vector(heart_rate, oxygen_level)

    return HealthInsights(
        insights=[
            "Heart rate is within normal range."
            if hr_ok
            else f"Heart rate of {_fmt(heart_rate)} bpm is outside normal range (60–100 bpm).",
            "Blood oxygen level is healthy."
            if spo2_ok
            else f"SpO2 of {_fmt(oxygen_level)}% is below recommended levels (≥95%).",
        ],
        recommendations=list(FALLBACK_RECOMMENDATIONS),
        risk_factors=risk_factors,
        score=score,
        health_vector=vector,
        overall_status=overall_status(score),
        vector_score=compute_score(vector),
        fallback=True,
    )


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None and str(v).strip()]


def _from_model_output(data: Dict[str, Any], baseline: Dict[str, float]) -> HealthInsights:
    """Merge the model's JSON over the vitals baseline; raises ValueError when required parts are missing."""
    if not isinstance(data.get("healthVector"), dict):
        raise ValueError("healthVector missing from model output")

    vector = merge_vector(baseline, data["healthVector"])
    vector_score = compute_score(vector)

    try:
        score = round_half_up(float(data.get("score")))
    except (TypeError, ValueError, OverflowError):
        score = vector_score
    score = max(0, min(100, score))

    status = str(data.get("overallStatus") or "").lower()
    if status not in STATUSES:
        status = overall_status(score)

    return HealthInsights(
        insights=_str_list(data.get("insights")),
        recommendations=_str_list(data.get("recommendations")),
        risk_factors=_str_list(data.get("riskFactors")),
        score=score,
        health_vector=vector,
        overall_status=status,
        vector_score=vector_score,
        fallback=False,
    )


def build_insights_prompt(vitals: VitalsInput) -> str:
    return INSIGHTS_PROMPT.format(
        heart_rate=_fmt(vitals.heart_rate),
        oxygen_level=_fmt(vitals.oxygen_level),
        age=vitals.age or "unknown",
        gender=vitals.gender or "unknown",
        activity_level=vitals.activity_level or "moderate",
        sleep_hours=_fmt(vitals.sleep_hours) if vitals.sleep_hours else "unknown",
        medications=", ".join(vitals.medications) or "none",
        conditions=", ".join(vitals.conditions) or "none",
    )


def generate_insights(vitals: VitalsInput, chain: Optional[ProviderChain] = None) -> HealthInsights:
    """Model-backed insights, degrading to fallback_insights() instead of failing."""
    try:
        chain = chain or get_provider_chain()
    except ConfigurationError:
        logger.info("No LLM credential configured, returning local health insights")
        return fallback_insights(vitals.heart_rate, vitals.oxygen_level)

    try:
        result = chain.generate(build_insights_prompt(vitals))
        baseline = baseline_vector(vitals.heart_rate, vitals.oxygen_level)
        return _from_model_output(parse_json_object(result.text), baseline)
    except (UpstreamUnavailable, ValueError) as e:
        logger.warning(f"Health insights degraded to local fallback: {e}")
        return fallback_insights(vitals.heart_rate, vitals.oxygen_level)
