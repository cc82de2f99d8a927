"""Health quests — per-client quest board and vita points."""

from __future__ import annotations

from fastapi import APIRouter, Request

from api.common import board_to_response
from api.schemas import CompleteTaskRequest, QuestBoardResponse
from carenexa.errors import NotFound, ValidationError
from carenexa.health.quests import get_quest_boards
from carenexa.ratelimit import client_key

router = APIRouter(prefix="/api", tags=["quests"])


@router.get("/quests", response_model=QuestBoardResponse)
def get_board(request: Request) -> QuestBoardResponse:
    return board_to_response(get_quest_boards().get(client_key(request.headers)))


@router.post("/quests/{quest_id}/tasks", response_model=QuestBoardResponse)
def complete_task(quest_id: str, body: CompleteTaskRequest, request: Request) -> QuestBoardResponse:
    """Mark a task done. Completing the last task pays the quest reward."""
    board = get_quest_boards().get(client_key(request.headers))
    quest = board.find(quest_id)
    if quest is None:
        raise NotFound("Quest not found")
    if not any(t.name == body.taskName for t in quest.tasks):
        raise ValidationError(f"Unknown task for quest {quest_id}: {body.taskName}")
    board.complete_task(quest_id, body.taskName)
    return board_to_response(board)
