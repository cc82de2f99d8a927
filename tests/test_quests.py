import threading
import time

from carenexa.health.quests import QuestBoard, QuestBoardRepository, level_for
from carenexa.storage import InMemoryStore


def test_partial_task_awards_share_of_reward():
    board = QuestBoard()
    quest = board.complete_task("q2", "Report first hazard")
    assert quest.progress == 33
    assert board.vita_points == 750 // 3


def test_completing_quest_pays_full_reward():
    board = QuestBoard()
    for name in ("Report first hazard", "Report second hazard"):
        board.complete_task("q2", name, award=False)
    quest = board.complete_task("q2", "Report third hazard")
    assert quest.is_complete
    assert quest.progress == 100
    assert board.vita_points == 750


def test_repeat_and_unknown_tasks_do_nothing():
    board = QuestBoard()
    board.complete_task("q4", "Log steps Day 1")
    points = board.vita_points
    board.complete_task("q4", "Log steps Day 1")
    board.complete_task("q4", "Log steps Day 9")
    assert board.vita_points == points
    assert board.complete_task("nope", "anything") is None


def test_complete_next_task_walks_tasks_in_order():
    board = QuestBoard()
    board.complete_next_task("q2")
    board.complete_next_task("q2")
    quest = board.find("q2")
    assert [t.complete for t in quest.tasks] == [True, True, False]
    assert board.vita_points == 0


def test_levels_and_action_points():
    assert level_for(0) == 1
    assert level_for(999) == 1
    assert level_for(1000) == 2
    board = QuestBoard()
    assert board.reward_action("lab_upload") == 1
    assert board.vita_points == 150
    board.reward_action("unknown")
    assert board.vita_points == 150


def test_repository_keeps_one_board_per_key():
    repo = QuestBoardRepository(InMemoryStore())
    repo.get("a").add_points(10)
    assert repo.get("a").vita_points == 10
    assert repo.get("b").vita_points == 0


class SlowReadStore(InMemoryStore):
    def get(self, key, default=None):
        value = super().get(key, default)
        time.sleep(0.05)
        return value


def test_concurrent_first_requests_share_one_board():
    repo = QuestBoardRepository(SlowReadStore())

    def earn():
        repo.get("k").add_points(100)

    workers = [threading.Thread(target=earn) for _ in range(2)]
    for w in workers:
        w.start()
    for w in workers:
        w.join(timeout=2)

    assert repo.get("k").vita_points == 200


def test_concurrent_hazard_reports_each_complete_a_task():
    board = QuestBoard()
    workers = [threading.Thread(target=board.complete_next_task, args=("q2",)) for _ in range(3)]
    for w in workers:
        w.start()
    for w in workers:
        w.join(timeout=2)

    quest = board.find("q2")
    assert quest.is_complete
    assert quest.progress == 100


def test_snapshot_matches_board():
    board = QuestBoard()
    board.reward_action("hazard_report")
    quests, points = board.snapshot()
    assert points == 100
    assert [q.id for q in quests] == ["q1", "q2", "q3", "q4"]
