"""
API Request / Response Models — Pydantic schemas for the REST API.

Field names are camelCase where the dashboard sends/reads camelCase JSON.
Required-field checks that need a specific error message are done in the
routers, so most request fields are Optional here.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from carenexa.routing.scorer import FacilityCandidate


# ── Shared ──────────────────────────────────────────────────────────────────


class Coordinate(BaseModel):
    lat: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    lng: float = Field(..., ge=-180, le=180, description="Longitude in decimal degrees")


class ErrorResponse(BaseModel):
    error: str
    fallback: bool = False
    expected: Optional[List[str]] = None


class ReceiptResponse(BaseModel):
    id: str
    timestamp: str
    agentType: str
    promptSummary: str
    promptLength: int
    contentHash: str
    modelId: str
    disclaimer: str


# ── Chat ────────────────────────────────────────────────────────────────────


class ChatRequest(BaseModel):
    prompt: Optional[str] = Field(None, description="User question (max 4000 chars)")
    systemContext: Optional[str] = Field(None, description="Health context from the dashboard")
    agentType: Optional[str] = Field("general", description="Which agent template to use")


class TriageResponse(BaseModel):
    agentType: str
    urgency: str
    reasoning: str


class ChatResponse(BaseModel):
    response: str
    agentType: str
    model: str
    timestamp: str
    receipt: ReceiptResponse
    triage: Optional[TriageResponse] = None


# ── Health insights ─────────────────────────────────────────────────────────


class HealthInsightsRequest(BaseModel):
    heartRate: Optional[float] = None
    oxygenLevel: Optional[float] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    activityLevel: Optional[str] = None
    sleepHours: Optional[float] = None
    medications: List[str] = Field(default_factory=list)
    conditions: List[str] = Field(default_factory=list)


class HealthInsightsResponse(BaseModel):
    insights: List[str]
    recommendations: List[str]
    riskFactors: List[str]
    score: int = Field(..., ge=0, le=100)
    healthVector: Dict[str, float]
    overallStatus: str
    vectorScore: int = Field(..., ge=0, le=100, description="L2 score of healthVector")
    fallback: bool


# ── Lab report OCR ──────────────────────────────────────────────────────────


class LabResultResponse(BaseModel):
    testName: str
    value: Any = None
    unit: str = ""
    referenceRange: str = ""
    status: str
    confidence: float


class OCRResponse(BaseModel):
    extractedMetrics: List[LabResultResponse]
    originalText: str
    reportDate: str
    labName: str
    patientAge: str
    recommendedAction: str
    auditHash: str = Field(..., description="SHA-256 of extracted metrics + original text")
    timestamp: str
    receipt: ReceiptResponse


# ── Safe route ──────────────────────────────────────────────────────────────


class RoutePin(BaseModel):
    """Hazard pin as sent by the map widget (only type == "danger" affects routing)."""

    lat: float
    lng: float
    type: str
    description: str = ""


class SafeRouteRequest(BaseModel):
    userLocation: Optional[Coordinate] = None
    emergencyType: str = "general"
    communityPins: Optional[List[RoutePin]] = Field(
        None, description="Pins to avoid; the stored community pins are used when omitted"
    )
    candidates: Optional[List[FacilityCandidate]] = Field(
        None, description="Known hospitals; discovered via the LLM when omitted"
    )


class ScoredHospital(BaseModel):
    name: str
    lat: float
    lng: float
    distance_km: Optional[float] = None
    estimated_minutes: float
    specialty: str
    hasCapability: bool
    dangerCount: int
    score: float
    route: List[Coordinate]


class SafeRouteResponse(BaseModel):
    hospital: ScoredHospital
    route: List[Coordinate]
    safetyNote: str
    allHospitals: List[ScoredHospital]
    timestamp: str


# ── Community pins ──────────────────────────────────────────────────────────


class PinCreate(BaseModel):
    lat: Optional[float] = None
    lng: Optional[float] = None
    type: Optional[str] = None
    category: Optional[str] = "general"
    description: Optional[str] = None


class PinResponse(BaseModel):
    id: str
    lat: float
    lng: float
    type: str
    category: str
    description: str
    timestamp: str
    upvotes: int


class PinListResponse(BaseModel):
    pins: List[PinResponse]
    count: int


class PinEnvelope(BaseModel):
    pin: PinResponse


# ── Receipts ────────────────────────────────────────────────────────────────


class ReceiptListResponse(BaseModel):
    receipts: List[ReceiptResponse]
    count: int


class VerifyReceiptRequest(BaseModel):
    content: Any = Field(..., description="The content the receipt was issued for")
    contentHash: str


class VerifyReceiptResponse(BaseModel):
    valid: bool
    contentHash: str


# ── Quests ──────────────────────────────────────────────────────────────────


class QuestTaskResponse(BaseModel):
    name: str
    complete: bool


class QuestResponse(BaseModel):
    id: str
    title: str
    description: str
    progress: int
    reward: int
    deadline: str
    category: str
    tasks: List[QuestTaskResponse]


class QuestBoardResponse(BaseModel):
    quests: List[QuestResponse]
    vitaPoints: int
    level: int


class CompleteTaskRequest(BaseModel):
    taskName: str
