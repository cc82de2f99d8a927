"""Helpers shared by the routers: rate-limit guard and model → schema conversion."""

from __future__ import annotations

from fastapi import Request

from api.schemas import QuestBoardResponse, QuestResponse, QuestTaskResponse, ReceiptResponse
from carenexa.audit import ConsultationReceipt
from carenexa.errors import RateLimitExceeded
from carenexa.health.quests import QuestBoard, level_for
from carenexa.ratelimit import client_key, get_rate_limiter


def enforce_rate_limit(request: Request) -> str:
    """Admit the request or raise RateLimitExceeded. Returns the client key."""
    key = client_key(request.headers)
    if not get_rate_limiter().allow(key):
        raise RateLimitExceeded()
    return key


def receipt_to_response(receipt: ConsultationReceipt) -> ReceiptResponse:
    return ReceiptResponse(
        id=receipt.id,
        timestamp=receipt.timestamp,
        agentType=receipt.agent_type,
        promptSummary=receipt.prompt_summary,
        promptLength=receipt.prompt_length,
        contentHash=receipt.content_hash,
        modelId=receipt.model_id,
        disclaimer=receipt.disclaimer,
    )


def board_to_response(board: QuestBoard) -> QuestBoardResponse:
    quests, points = board.snapshot()
    return QuestBoardResponse(
        quests=[
            QuestResponse(
                id=q.id,
                title=q.title,
                description=q.description,
                progress=q.progress,
                reward=q.reward,
                deadline=q.deadline,
                category=q.category,
                tasks=[QuestTaskResponse(name=t.name, complete=t.complete) for t in q.tasks],
            )
            for q in quests
        ],
        vitaPoints=points,
        level=level_for(points),
    )
