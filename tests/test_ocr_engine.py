import io
import json

import pytest
from PyPDF2 import PdfWriter

from carenexa.audit import content_hash
from carenexa.errors import UpstreamUnavailable, ValidationError
from carenexa.llm import ProviderChain
from carenexa.ocr.engine import run_extraction, validate_upload

from tests.conftest import FakeProvider, fake_chain

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32

REPORT = {
    "extractedMetrics": [
        {"testName": "Hemoglobin", "value": 14.5, "unit": "g/dL", "referenceRange": "12.0-16.0",
         "status": "normal", "confidence": 0.95},
        {"testName": "Glucose", "value": 182, "unit": "mg/dL", "referenceRange": "70-99",
         "status": "HIGH", "confidence": 1.7},
        {"value": 3},
    ],
    "originalText": "Hemoglobin 14.5 g/dL\nGlucose 182 mg/dL",
    "reportDate": "2024-03-01",
    "labName": "City Lab",
}


def _blank_pdf() -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    buf = io.BytesIO()
    writer.write(buf)
    return buf.getvalue()


def test_validate_upload():
    with pytest.raises(ValidationError, match="Unsupported file type"):
        validate_upload(b"x", "text/plain")
    with pytest.raises(ValidationError, match="File too large"):
        validate_upload(b"x" * (10 * 1024 * 1024 + 1), "image/png")
    with pytest.raises(ValidationError, match="No file provided"):
        validate_upload(b"", "image/png")


def test_image_extraction_and_audit_hash():
    provider = FakeProvider("vision", text="```json\n" + json.dumps(REPORT) + "\n```")

    result = run_extraction(PNG, "image/png", chain=ProviderChain([provider]))

    assert [m.test_name for m in result.extracted_metrics] == ["Hemoglobin", "Glucose"]
    glucose = result.extracted_metrics[1]
    assert glucose.status == "high"
    assert glucose.confidence == 1.0
    assert result.lab_name == "City Lab"
    assert result.patient_age == "unknown"
    assert result.model == "vision"

    metrics = [m.to_dict() for m in result.extracted_metrics]
    assert result.audit_hash == content_hash({"metrics": metrics, "originalText": REPORT["originalText"]})


def test_unparseable_answer_is_upstream_failure():
    with pytest.raises(UpstreamUnavailable, match="Failed to process document"):
        run_extraction(PNG, "image/png", chain=fake_chain("I cannot read this"))


def test_pdf_without_text_layer_rejected():
    with pytest.raises(ValidationError, match="no extractable text"):
        run_extraction(_blank_pdf(), "application/pdf", chain=fake_chain("{}"))


def test_corrupt_pdf_rejected():
    with pytest.raises(ValidationError, match="Could not read PDF"):
        run_extraction(b"%PDF-garbage", "application/pdf", chain=fake_chain("{}"))


class _BrokenPage:
    def extract_text(self):
        raise KeyError("/Contents")


class _BrokenReader:
    def __init__(self, stream):
        self.pages = [_BrokenPage()]


def test_malformed_pdf_page_is_a_validation_error(monkeypatch):
    monkeypatch.setattr("carenexa.ocr.engine.PdfReader", _BrokenReader)
    with pytest.raises(ValidationError, match="Could not read PDF page 1"):
        run_extraction(b"%PDF-1.4", "application/pdf", chain=fake_chain("{}"))
