"""Health-insights API Router — vitals analysis with a local fallback."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Request, status

from api.common import enforce_rate_limit
from api.schemas import HealthInsightsRequest, HealthInsightsResponse
from carenexa.errors import ValidationError
from carenexa.health.insights import VitalsInput, generate_insights
from carenexa.health.quests import get_quest_boards

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


@router.post("/health-insights", response_model=HealthInsightsResponse, status_code=status.HTTP_200_OK)
async def health_insights(req: HealthInsightsRequest, request: Request) -> HealthInsightsResponse:
    """Score the caller's vitals. Never fails on provider problems: ``fallback`` says
    whether the answer came from the deterministic local analysis."""
    key = enforce_rate_limit(request)

    if not req.heartRate or not req.oxygenLevel:
        raise ValidationError("heartRate and oxygenLevel are required")

    vitals = VitalsInput(
        heart_rate=req.heartRate,
        oxygen_level=req.oxygenLevel,
        age=req.age,
        gender=req.gender,
        activity_level=req.activityLevel,
        sleep_hours=req.sleepHours,
        medications=req.medications,
        conditions=req.conditions,
    )
    result = await asyncio.to_thread(generate_insights, vitals)

    board = get_quest_boards().get(key)
    board.reward_action("health_analysis")
    board.complete_task("q3", "Get health score analysis", award=False)

    logger.info(
        f"Health insights | score={result.score} | status={result.overall_status} | "
        f"fallback={result.fallback}"
    )
    return HealthInsightsResponse(
        insights=result.insights,
        recommendations=result.recommendations,
        riskFactors=result.risk_factors,
        score=result.score,
        healthVector=result.health_vector,
        overallStatus=result.overall_status,
        vectorScore=result.vector_score,
        fallback=result.fallback,
    )
