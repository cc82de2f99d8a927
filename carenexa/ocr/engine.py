"""
Lab report extraction — turn an uploaded image or PDF into structured lab results.

Architecture:
    1a. Image → vision model reads the report directly     (1 API call)
    1b. PDF   → text layer via PyPDF2, then the model      (1 API call)
    2.  Parse the model's JSON (code-fence tolerant)        (pure Python)
    3.  SHA-256 audit hash over metrics + original text     (pure Python)

Public entry point:
    from carenexa.ocr.engine import run_extraction
    result = run_extraction(data=b"...", mime_type="image/png")
"""

from __future__ import annotations

import base64
import io
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from carenexa.audit import content_hash, utc_now_iso
from carenexa.config import UPLOAD_MAX_BYTES
from carenexa.errors import UpstreamUnavailable, ValidationError
from carenexa.llm import ProviderChain, get_vision_chain
from carenexa.parsing import parse_json_object

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
ALLOWED_MIME_TYPES = ("image/jpeg", "image/png", "image/webp", PDF_MIME)
RESULT_STATUSES = ("normal", "low", "high", "critical")

# Cap on PDF text sent to the model
_MAX_PDF_CHARS = 20_000

EXTRACTION_PROMPT = """You are a medical document analyst. Extract all lab results from this medical report.

Return ONLY this exact JSON structure (no markdown):
{
  "extractedMetrics": [
    {
      "testName": "Hemoglobin",
      "value": 14.5,
      "unit": "g/dL",
      "referenceRange": "12.0-16.0",
      "status": "normal",
      "confidence": 0.95
    }
  ],
  "originalText": "raw text extracted from document",
  "reportDate": "YYYY-MM-DD or unknown",
  "labName": "lab name or unknown",
  "patientAge": "age or unknown",
  "recommendedAction": "brief recommendation"
}

Extract ALL visible test results. Status: normal/low/high/critical based on reference ranges.
Confidence is how sure you are about the extraction (0.0-1.0)."""


# ── Dataclasses for extraction results ───────────────────────────────────────


@dataclass
class LabResult:
    test_name: str
    value: Any
    unit: str = ""
    reference_range: str = ""
    status: str = "normal"
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "testName": self.test_name,
            "value": self.value,
            "unit": self.unit,
            "referenceRange": self.reference_range,
            "status": self.status,
            "confidence": self.confidence,
        }


@dataclass
class ExtractionResult:
    extracted_metrics: List[LabResult] = field(default_factory=list)
    original_text: str = ""
    report_date: str = "unknown"
    lab_name: str = "unknown"
    patient_age: str = "unknown"
    recommended_action: str = ""
    audit_hash: str = ""
    model: str = ""
    timestamp: str = field(default_factory=utc_now_iso)


# ── 0. Upload validation ─────────────────────────────────────────────────────


def validate_upload(data: bytes, mime_type: str) -> None:
    if mime_type not in ALLOWED_MIME_TYPES:
        raise ValidationError("Unsupported file type. Use JPEG, PNG, WebP or PDF.")
    if len(data) > UPLOAD_MAX_BYTES:
        raise ValidationError("File too large. Maximum 10MB.")
    if not data:
        raise ValidationError("No file provided")


# ── 1b. PDF → text via PyPDF2 (0 API calls) ─────────────────────────────────


def extract_text_from_pdf(pdf_bytes: bytes) -> str:
    """Concatenated text of every page, stripped. Scanned PDFs yield ''.

    Any PyPDF2 failure, on open or on a single malformed page, is a
    ValidationError (400), not a server error.
    """
    try:
        reader = PdfReader(io.BytesIO(pdf_bytes))
        pages = list(reader.pages)
    except PdfReadError as e:
        raise ValidationError(f"Could not read PDF: {e}")
    except Exception as e:
        logger.warning(f"PyPDF2 failed to open upload: {e!r}")
        raise ValidationError(f"Could not read PDF: {e}")

    texts: List[str] = []
    for number, page in enumerate(pages, start=1):
        try:
            texts.append(page.extract_text() or "")
        except Exception as e:
            logger.warning(f"PyPDF2 failed on page {number}: {e!r}")
            raise ValidationError(f"Could not read PDF page {number}: {e}")
    return "\n".join(texts).strip()


# ── 2. Parsing ───────────────────────────────────────────────────────────────


def _to_confidence(value: Any) -> float:
    try:
        return max(0.0, min(1.0, float(value)))
    except (TypeError, ValueError):
        return 0.0


def _parse_metrics(raw: Any) -> List[LabResult]:
    if not isinstance(raw, list):
        return []
    metrics: List[LabResult] = []
    for item in raw:
        if not isinstance(item, dict) or not item.get("testName"):
            continue
        status = str(item.get("status") or "normal").lower()
        metrics.append(
            LabResult(
                test_name=str(item["testName"]),
                value=item.get("value"),
                unit=str(item.get("unit") or ""),
                reference_range=str(item.get("referenceRange") or ""),
                status=status if status in RESULT_STATUSES else "normal",
                confidence=_to_confidence(item.get("confidence")),
            )
        )
    return metrics


def audit_hash_for(metrics: List[Dict[str, Any]], original_text: str) -> str:
    """Hash over exactly {"metrics": ..., "originalText": ...}, in that order."""
    return content_hash({"metrics": metrics, "originalText": original_text})


# ── Public interface ─────────────────────────────────────────────────────────


def run_extraction(
    data: bytes, mime_type: str, chain: Optional[ProviderChain] = None
) -> ExtractionResult:
    """Extract lab results from one uploaded document.

    Raises ValidationError for bad uploads, ConfigurationError without a
    credential, and UpstreamUnavailable when the model fails or its answer
    is not the expected JSON.
    """
    validate_upload(data, mime_type)
    chain = chain or get_vision_chain()

    if mime_type == PDF_MIME:
        text = extract_text_from_pdf(data)
        if text:
            prompt = f"{EXTRACTION_PROMPT}\n\nREPORT TEXT:\n{text[:_MAX_PDF_CHARS]}"
            result = chain.generate(prompt)
        else:
            raise ValidationError("PDF has no extractable text. Upload a photo of the report instead.")
    else:
        image = {"b64": base64.b64encode(data).decode("ascii"), "mime": mime_type}
        result = chain.generate(EXTRACTION_PROMPT, attachments=[image])

    parsed = parse_json_object(result.text)
    if not parsed or "extractedMetrics" not in parsed:
        raise UpstreamUnavailable("Failed to process document. Please try again.")

    metrics = _parse_metrics(parsed.get("extractedMetrics"))
    original_text = str(parsed.get("originalText") or "")
    metric_dicts = [m.to_dict() for m in metrics]

    extraction = ExtractionResult(
        extracted_metrics=metrics,
        original_text=original_text,
        report_date=str(parsed.get("reportDate") or "unknown"),
        lab_name=str(parsed.get("labName") or "unknown"),
        patient_age=str(parsed.get("patientAge") or "unknown"),
        recommended_action=str(parsed.get("recommendedAction") or ""),
        audit_hash=audit_hash_for(metric_dicts, original_text),
        model=result.model,
    )
    logger.info(
        f"Extraction complete | model={result.model} | "
        f"metrics={len(metrics)} | auditHash={extraction.audit_hash[:12]}..."
    )
    return extraction
