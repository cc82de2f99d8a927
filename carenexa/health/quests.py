"""Health quests and vita points — the dashboard's gamification rules."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from carenexa.health.vector import round_half_up
from carenexa.storage import InMemoryStore, KeyValueStore

logger = logging.getLogger(__name__)

POINTS_PER_LEVEL = 1000

# Points awarded per action
ACTION_POINTS: Dict[str, int] = {
    "lab_upload": 150,
    "hazard_report": 100,
    "health_analysis": 50,
    "area_scan": 25,
}


@dataclass(frozen=True)
class QuestTask:
    name: str
    complete: bool = False


@dataclass(frozen=True)
class HealthQuest:
    id: str
    title: str
    description: str
    reward: int
    deadline: str
    category: str
    tasks: Tuple[QuestTask, ...] = ()
    progress: int = 0

    @property
    def is_complete(self) -> bool:
        return bool(self.tasks) and all(t.complete for t in self.tasks)


def _deadline(days: int, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return (now + timedelta(days=days)).isoformat()


def default_quests(now: Optional[datetime] = None) -> List[HealthQuest]:
    def tasks(*names: str) -> Tuple[QuestTask, ...]:
        return tuple(QuestTask(n) for n in names)

    return [
        HealthQuest(
            id="q1",
            title="Vital Tracker",
            description="Log your vitals for 7 consecutive days",
            reward=500,
            deadline=_deadline(7, now),
            category="vitals",
            tasks=tasks(
                "Log heart rate today",
                "Log SpO2 today",
                "Log 3 days in a row",
                "Log 7 days in a row",
            ),
        ),
        HealthQuest(
            id="q2",
            title="Community Guardian",
            description="Report 3 health hazards in your community",
            reward=750,
            deadline=_deadline(14, now),
            category="community",
            tasks=tasks("Report first hazard", "Report second hazard", "Report third hazard"),
        ),
        HealthQuest(
            id="q3",
            title="AI Health Explorer",
            description="Complete 5 AI Doctor consultations",
            reward=600,
            deadline=_deadline(30, now),
            category="vitals",
            tasks=tasks(
                "First consultation",
                "Upload a lab report",
                "Get health score analysis",
                "Share health radar chart",
                "5 total consultations",
            ),
        ),
        HealthQuest(
            id="q4",
            title="Move & Groove",
            description="Log 10,000 steps for 5 days this week",
            reward=400,
            deadline=_deadline(7, now),
            category="activity",
            tasks=tasks(*(f"Log steps Day {i}" for i in range(1, 6))),
        ),
    ]


def level_for(points: int) -> int:
    return points // POINTS_PER_LEVEL + 1


@dataclass
class QuestBoard:
    """Per-user quest progress and point balance."""

    quests: List[HealthQuest] = field(default_factory=default_quests)
    vita_points: int = 0
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    @property
    def level(self) -> int:
        return level_for(self.vita_points)

    def find(self, quest_id: str) -> Optional[HealthQuest]:
        return next((q for q in self.quests if q.id == quest_id), None)

    def complete_task(self, quest_id: str, task_name: str, award: bool = True) -> Optional[HealthQuest]:
        """Mark one task done and recompute progress.

        With ``award``, finishing the last task pays the full quest reward and any
        other task pays reward // number_of_tasks. Already-complete tasks pay
        nothing. Unknown quest ids or task names leave the board unchanged.
        """
        with self.lock:
            return self._complete_task(quest_id, task_name, award)

    def _complete_task(self, quest_id: str, task_name: str, award: bool) -> Optional[HealthQuest]:
        for i, quest in enumerate(self.quests):
            if quest.id != quest_id:
                continue
            target = next((t for t in quest.tasks if t.name == task_name), None)
            if target is None or target.complete:
                return quest

            tasks = tuple(
                replace(t, complete=True) if t.name == task_name else t for t in quest.tasks
            )
            done = sum(1 for t in tasks if t.complete)
            updated = replace(quest, tasks=tasks, progress=round_half_up(done / len(tasks) * 100))
            self.quests[i] = updated

            if award:
                if updated.is_complete:
                    self.add_points(quest.reward)
                    logger.info(f"Quest {quest_id} complete, +{quest.reward} vita points")
                else:
                    self.add_points(quest.reward // len(tasks))
            return updated

        logger.debug(f"Unknown quest {quest_id!r}")
        return None

    def complete_next_task(self, quest_id: str, award: bool = False) -> Optional[HealthQuest]:
        """Complete the first open task of a quest, e.g. one hazard report."""
        with self.lock:
            quest = self.find(quest_id)
            if quest is None:
                return None
            pending = next((t for t in quest.tasks if not t.complete), None)
            if pending is None:
                return quest
            return self._complete_task(quest_id, pending.name, award)

    def add_points(self, points: int) -> int:
        """Add points and return the new level."""
        with self.lock:
            self.vita_points += points
            return self.level

    def snapshot(self) -> Tuple[List[HealthQuest], int]:
        """Consistent copy of (quests, vita_points) for rendering."""
        with self.lock:
            return list(self.quests), self.vita_points

    def reward_action(self, action: str) -> int:
        return self.add_points(ACTION_POINTS.get(action, 0))


class QuestBoardRepository:
    """One QuestBoard per client key, kept in a KeyValueStore."""

    def __init__(self, store: Optional[KeyValueStore] = None) -> None:
        self.store = store if store is not None else InMemoryStore()
        self._lock = threading.Lock()

    def get(self, key: str) -> QuestBoard:
        """Return the board for a client key, creating it on first use."""
        with self._lock:
            board = self.store.get("quests:" + key)
            if board is None:
                board = QuestBoard()
                self.store.put("quests:" + key, board)
            return board


_boards: Optional[QuestBoardRepository] = None


def get_quest_boards() -> QuestBoardRepository:
    global _boards
    if _boards is None:
        _boards = QuestBoardRepository()
    return _boards


def reset_quest_boards(repository: Optional[QuestBoardRepository] = None) -> None:
    global _boards
    _boards = repository
