import threading
import time

import pytest

from carenexa.errors import NotFound, ValidationError
from carenexa.pins import PinRepository
from carenexa.storage import InMemoryStore


@pytest.fixture
def repo():
    return PinRepository(InMemoryStore())


def test_create_and_list(repo):
    pin = repo.create(lat=6.5, lng=3.4, type="danger", description="Flooded road", category="water")
    assert pin.id.startswith("pin_")
    assert pin.upvotes == 0
    assert pin.category == "water"
    assert repo.list() == [pin]


def test_required_fields(repo):
    with pytest.raises(ValidationError, match="lat, lng, type, and description are required"):
        repo.create(lat=None, lng=3.4, type="danger", description="x")
    with pytest.raises(ValidationError):
        repo.create(lat=1, lng=2, type="danger", description="")


def test_bad_type_and_coordinates(repo):
    with pytest.raises(ValidationError, match="type must be safe, caution, or danger"):
        repo.create(lat=1, lng=2, type="scary", description="x")
    with pytest.raises(ValidationError, match="Invalid coordinates"):
        repo.create(lat=95, lng=2, type="safe", description="x")


def test_description_truncated_and_category_defaulted(repo):
    pin = repo.create(lat=1, lng=2, type="caution", description="y" * 600, category="volcano")
    assert len(pin.description) == 500
    assert pin.category == "general"


def test_upvote_and_delete(repo):
    pin = repo.create(lat=1, lng=2, type="safe", description="Open pharmacy")
    assert repo.upvote(pin.id).upvotes == 1
    assert repo.upvote(pin.id).upvotes == 2
    repo.delete(pin.id)
    assert repo.list() == []
    with pytest.raises(NotFound):
        repo.delete(pin.id)
    with pytest.raises(NotFound):
        repo.upvote(pin.id)


def test_danger_pins(repo):
    repo.create(lat=1, lng=2, type="safe", description="a")
    danger = repo.create(lat=1, lng=2, type="danger", description="b")
    assert repo.danger_pins() == [danger]


class SlowReadStore(InMemoryStore):
    """Signals on every read, then stalls so a writer can try to interleave."""

    def __init__(self):
        super().__init__()
        self.read_started = threading.Event()

    def get(self, key, default=None):
        value = super().get(key, default)
        self.read_started.set()
        time.sleep(0.05)
        return value


def test_delete_during_upvote_stays_deleted():
    store = SlowReadStore()
    repo = PinRepository(store)
    pin = repo.create(lat=1, lng=2, type="danger", description="Broken bridge")

    upvoter = threading.Thread(target=repo.upvote, args=(pin.id,))
    upvoter.start()
    assert store.read_started.wait(timeout=2)
    repo.delete(pin.id)
    upvoter.join(timeout=2)

    assert repo.list() == []
