"""
CareNexa API Server

FastAPI REST API behind the CareNexa health dashboard: AI doctor chat, vitals
insights, lab report OCR, safe emergency routing, community hazard pins,
consultation receipts and health quests.

Run:
    uvicorn api.server:app --host 0.0.0.0 --port 8000 --reload
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Ensure project root is on sys.path
PROJECT_ROOT = str(Path(__file__).parent.parent)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from api.chat_router import router as chat_router
from api.insights_router import router as insights_router
from api.ocr_router import router as ocr_router
from api.pins_router import router as pins_router
from api.quests_router import router as quests_router
from api.receipts_router import router as receipts_router
from api.route_router import router as route_router
from api.schemas import ErrorResponse
from carenexa.config import CORS_ORIGINS, LLM_MODEL_CANDIDATES, get_api_key
from carenexa.errors import CareNexaError, InternalError
from carenexa.ratelimit import get_rate_limiter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifecycle ───────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Report configuration on startup, drop expired rate-limit windows on shutdown."""
    logger.info("🚀 Starting CareNexa API")
    if get_api_key():
        logger.info(f"✅ LLM credential found | models: {', '.join(LLM_MODEL_CANDIDATES)}")
    else:
        logger.warning("⚠️  No LLM credential set; chat and OCR will answer 500, insights use the local fallback")
    yield
    removed = get_rate_limiter().sweep()
    logger.info(f"Shutting down, swept {removed} expired rate-limit windows")


app = FastAPI(
    title="CareNexa API",
    description="AI health companion: consultations, vitals scoring, lab OCR and safe routing",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    responses={
        code: {"model": ErrorResponse}
        for code in (400, 404, 429, 500, 503)
    },
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat_router)
app.include_router(insights_router)
app.include_router(ocr_router)
app.include_router(route_router)
app.include_router(pins_router)
app.include_router(receipts_router)
app.include_router(quests_router)


# ── Error handling ──────────────────────────────────────────────────────────


@app.exception_handler(CareNexaError)
async def carenexa_error_handler(request: Request, exc: CareNexaError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} → {exc.status_code}: {exc}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"Invalid {field}: {first.get('msg', 'bad value')}" if field else "Invalid request body"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message, "fallback": False},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    error = InternalError("Internal server error")
    return JSONResponse(status_code=error.status_code, content=error.to_payload())


# ── Endpoints ───────────────────────────────────────────────────────────────


@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> Dict[str, str]:
    """Health check endpoint for monitoring and load balancers."""
    return {"status": "healthy", "service": "carenexa-api"}
