"""Consultation receipts — list recent receipts and verify content against a hash."""

from __future__ import annotations

import logging

from fastapi import APIRouter

from api.common import receipt_to_response
from api.schemas import ReceiptListResponse, VerifyReceiptRequest, VerifyReceiptResponse
from carenexa.audit import AuditTrailRecorder, content_hash, get_audit_recorder

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["receipts"])


@router.get("/receipts", response_model=ReceiptListResponse)
def list_receipts() -> ReceiptListResponse:
    receipts = get_audit_recorder().receipts()
    return ReceiptListResponse(
        receipts=[receipt_to_response(r) for r in receipts], count=len(receipts)
    )


@router.post("/receipts/verify", response_model=VerifyReceiptResponse)
def verify_receipt(body: VerifyReceiptRequest) -> VerifyReceiptResponse:
    """Recompute the canonical hash of ``content`` and compare it to ``contentHash``."""
    valid = AuditTrailRecorder.verify(body.content, body.contentHash)
    if not valid:
        logger.info(f"Receipt verification failed for hash {body.contentHash[:12]}...")
    return VerifyReceiptResponse(valid=valid, contentHash=content_hash(body.content))
