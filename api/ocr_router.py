"""
Lab report OCR API Router.

Single endpoint that accepts one image or PDF lab report and returns the
extracted results, an integrity hash and a consultation receipt whose
content hash equals that integrity hash.

LLM usage: 1 call per document.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from fastapi import APIRouter, File, Request, UploadFile, status

from api.common import enforce_rate_limit, receipt_to_response
from api.schemas import LabResultResponse, OCRResponse
from carenexa.audit import EXTRACTION_DISCLAIMER, get_audit_recorder
from carenexa.errors import ValidationError
from carenexa.health.quests import get_quest_boards
from carenexa.ocr.engine import run_extraction, validate_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["ocr"])


@router.post("/ocr", response_model=OCRResponse, status_code=status.HTTP_200_OK)
async def extract_lab_report(request: Request, file: Optional[UploadFile] = File(None)) -> OCRResponse:
    """Extract lab results from a JPEG, PNG, WebP or PDF report (max 10 MB)."""
    key = enforce_rate_limit(request)

    if file is None:
        raise ValidationError("No file provided")

    content_type = file.content_type or ""
    data = await file.read()
    validate_upload(data, content_type)

    logger.info(f"OCR request: {file.filename} ({content_type}, {len(data)} bytes)")
    start = time.time()

    result = await asyncio.to_thread(run_extraction, data, content_type)

    metrics = [m.to_dict() for m in result.extracted_metrics]
    receipt = get_audit_recorder().record_consultation(
        agent_type="ocr",
        prompt_length=len(data),
        response_content={"metrics": metrics, "originalText": result.original_text},
        model_id=result.model,
        prompt_summary=f"Medical report OCR: {result.lab_name or 'Unknown Lab'}",
        disclaimer=EXTRACTION_DISCLAIMER,
    )

    board = get_quest_boards().get(key)
    board.reward_action("lab_upload")
    board.complete_task("q3", "Upload a lab report", award=False)

    logger.info(
        f"[AUDIT/OCR] auditHash={result.audit_hash} metrics={len(metrics)} "
        f"in {time.time() - start:.2f}s"
    )

    return OCRResponse(
        extractedMetrics=[LabResultResponse(**m) for m in metrics],
        originalText=result.original_text,
        reportDate=result.report_date,
        labName=result.lab_name,
        patientAge=result.patient_age,
        recommendedAction=result.recommended_action,
        auditHash=result.audit_hash,
        timestamp=result.timestamp,
        receipt=receipt_to_response(receipt),
    )
