"""
Audit trail — content-addressed receipts for every consultation and extraction.

The hash is SHA-256 over a canonical JSON serialization of the returned
content (compact separators, field order as given), so the holder of a receipt
can later recompute it and prove the content was not altered. Identical content
with identical field order always yields the identical hash.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

from carenexa.config import RECEIPT_HISTORY_SIZE

logger = logging.getLogger(__name__)

DEFAULT_DISCLAIMER = "AI-generated health information. Not a substitute for professional medical advice."
EXTRACTION_DISCLAIMER = "AI extraction — verify with your healthcare provider before acting on results."

_SUMMARY_CHARS = 80


def canonical_json(content: Any) -> str:
    return json.dumps(content, separators=(",", ":"), ensure_ascii=False, default=str)


def content_hash(content: Any) -> str:
    """Hex SHA-256 of the canonical JSON form of ``content``."""
    return hashlib.sha256(canonical_json(content).encode("utf-8")).hexdigest()


def summarize_prompt(prompt: str) -> str:
    return prompt if len(prompt) <= _SUMMARY_CHARS else prompt[:_SUMMARY_CHARS] + "..."


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class ConsultationReceipt:
    id: str
    timestamp: str
    agent_type: str
    prompt_summary: str
    prompt_length: int
    content_hash: str
    model_id: str
    disclaimer: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class AuditTrailRecorder:
    """Creates receipts and keeps the most recent ones in memory."""

    def __init__(self, history_size: int = RECEIPT_HISTORY_SIZE) -> None:
        self._receipts: Deque[ConsultationReceipt] = deque(maxlen=history_size)
        self._lock = threading.Lock()
        self._last_id_ms = 0

    def _next_id(self) -> str:
        # Millisecond ids, bumped so two receipts in the same ms stay unique
        with self._lock:
            ms = max(int(time.time() * 1000), self._last_id_ms + 1)
            self._last_id_ms = ms
        return f"cr_{ms}"

    def record_consultation(
        self,
        agent_type: str,
        prompt_length: int,
        response_content: Any,
        model_id: str,
        *,
        prompt_summary: Optional[str] = None,
        disclaimer: Optional[str] = None,
    ) -> ConsultationReceipt:
        receipt = ConsultationReceipt(
            id=self._next_id(),
            timestamp=utc_now_iso(),
            agent_type=agent_type,
            prompt_summary=prompt_summary if prompt_summary is not None else "",
            prompt_length=prompt_length,
            content_hash=content_hash(response_content),
            model_id=model_id,
            disclaimer=disclaimer or DEFAULT_DISCLAIMER,
        )
        with self._lock:
            self._receipts.appendleft(receipt)

        logger.info(
            "[AUDIT] "
            + json.dumps(
                {
                    "id": receipt.id,
                    "timestamp": receipt.timestamp,
                    "agentType": agent_type,
                    "model": model_id,
                    "promptLength": prompt_length,
                    "contentHash": receipt.content_hash,
                }
            )
        )
        return receipt

    @staticmethod
    def verify(content: Any, expected_hash: str) -> bool:
        """True if ``content`` still hashes to ``expected_hash``."""
        return content_hash(content) == (expected_hash or "").strip().lower()

    def receipts(self) -> List[ConsultationReceipt]:
        """Newest first."""
        with self._lock:
            return list(self._receipts)


_recorder: Optional[AuditTrailRecorder] = None


def get_audit_recorder() -> AuditTrailRecorder:
    global _recorder
    if _recorder is None:
        _recorder = AuditTrailRecorder()
    return _recorder


def reset_audit_recorder(recorder: Optional[AuditTrailRecorder] = None) -> None:
    global _recorder
    _recorder = recorder
