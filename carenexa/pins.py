"""Community hazard pins — user-submitted safe/caution/danger annotations on the map."""

from __future__ import annotations

import json
import logging
import secrets
import string
import threading
import time
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from carenexa.audit import utc_now_iso
from carenexa.config import PIN_DESCRIPTION_MAX_CHARS
from carenexa.errors import NotFound, ValidationError
from carenexa.storage import InMemoryStore, KeyValueStore
from carenexa.tools.geocoding import validate_coordinate

logger = logging.getLogger(__name__)

PIN_TYPES = ("safe", "caution", "danger")
PIN_CATEGORIES = ("outbreak", "pollution", "water", "clinic", "pharmacy", "general")

_KEY_PREFIX = "pin:"
_ID_ALPHABET = string.ascii_lowercase + string.digits


class HazardPin(BaseModel):
    id: str
    lat: float
    lng: float
    type: str
    category: str = "general"
    description: str
    timestamp: str
    upvotes: int = Field(default=0, ge=0)


def _new_pin_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"pin_{int(time.time() * 1000)}_{suffix}"


class PinRepository:
    """CRUD over hazard pins. Pins only change by upvote; otherwise create/delete."""

    def __init__(self, store: Optional[KeyValueStore] = None) -> None:
        self.store = store if store is not None else InMemoryStore()
        self._lock = threading.Lock()

    def list(self) -> List[HazardPin]:
        return [pin for _, pin in self.store.scan(_KEY_PREFIX)]

    def get(self, pin_id: str) -> HazardPin:
        pin = self.store.get(_KEY_PREFIX + pin_id)
        if pin is None:
            raise NotFound("Pin not found")
        return pin

    def create(
        self,
        lat: Any,
        lng: Any,
        type: Optional[str],
        description: Optional[str],
        category: Optional[str] = None,
    ) -> HazardPin:
        if lat is None or lng is None or not type or not description:
            raise ValidationError("lat, lng, type, and description are required")
        if type not in PIN_TYPES:
            raise ValidationError("type must be safe, caution, or danger")
        try:
            point = validate_coordinate(lat, lng)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid coordinates: {e}")

        pin = HazardPin(
            id=_new_pin_id(),
            lat=point.lat,
            lng=point.lng,
            type=type,
            category=category if category in PIN_CATEGORIES else "general",
            description=str(description)[:PIN_DESCRIPTION_MAX_CHARS],
            timestamp=utc_now_iso(),
        )
        with self._lock:
            self.store.put(_KEY_PREFIX + pin.id, pin)

        logger.info(
            "[AUDIT/PIN_CREATED] "
            + json.dumps({"id": pin.id, "type": pin.type, "timestamp": pin.timestamp})
        )
        return pin

    def delete(self, pin_id: str) -> None:
        with self._lock:
            removed = self.store.delete(_KEY_PREFIX + pin_id)
        if not removed:
            raise NotFound("Pin not found")
        logger.info(f"[AUDIT/PIN_DELETED] {pin_id}")

    def upvote(self, pin_id: str) -> HazardPin:
        with self._lock:
            pin = self.get(pin_id)
            updated = pin.model_copy(update={"upvotes": pin.upvotes + 1})
            self.store.put(_KEY_PREFIX + pin_id, updated)
        return updated

    def danger_pins(self) -> List[HazardPin]:
        return [pin for pin in self.list() if pin.type == "danger"]


_repository: Optional[PinRepository] = None


def get_pin_repository() -> PinRepository:
    global _repository
    if _repository is None:
        _repository = PinRepository()
    return _repository


def reset_pin_repository(repository: Optional[PinRepository] = None) -> None:
    global _repository
    _repository = repository
