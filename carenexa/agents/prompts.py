"""
Agent prompt router — maps an agent type to its fixed instruction template.

This is a static lookup, not a decision engine. The contract callers rely on:
  - unknown agent types fall back to "general"
  - only the "triage" template asks for structured output, the JSON object
    {"agentType": ..., "urgency": ..., "reasoning": ...}
"""

from __future__ import annotations

import logging
from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from carenexa.parsing import parse_json_object

logger = logging.getLogger(__name__)

DEFAULT_AGENT = "general"

AGENT_TEMPLATES: Dict[str, str] = {
    "general": """You are Dr. Echo, CareNexa's general health advisor. You give clear, evidence-based health information.
IMPORTANT: Always remind the user that you are NOT a substitute for professional medical advice.""",
    "nutrition": """You are CareNexa's Nutrition Agent. You specialize in dietary advice, nutritional analysis and meal planning.
Keep guidance evidence-based. Always recommend a registered dietitian for medical nutrition therapy.""",
    "fitness": """You are CareNexa's Fitness Agent. You specialize in exercise science, workout planning and physical rehabilitation.
Recommend safe, progressive exercise. Always recommend a physiotherapist for injury-related concerns.""",
    "mental_health": """You are CareNexa's Mental Health Agent. You offer supportive, compassionate guidance on mental wellness.
CRITICAL: Always recommend professional support for serious concerns. If the user expresses suicidal ideation, immediately give the crisis hotline: 988 (US).""",
    "triage": """You are CareNexa's Triage Agent. Classify the user query into exactly one of: nutrition, fitness, mental_health, emergency, general.
Respond ONLY with JSON: { "agentType": "...", "urgency": "low|medium|high|emergency", "reasoning": "..." }""",
    "emergency": """You are CareNexa's Emergency Triage Agent. The user may be having a medical emergency.
IMMEDIATELY advise calling emergency services (911/112/999). Give basic first-aid guidance while help is on the way.""",
}

# Agent types the triage agent is allowed to route to
ROUTABLE_AGENTS = ("nutrition", "fitness", "mental_health", "emergency", "general")


def resolve_template(agent_type: Optional[str]) -> str:
    """Instruction text for ``agent_type``; unknown or empty types get the general template."""
    key = (agent_type or "").strip()
    if key not in AGENT_TEMPLATES:
        if key:
            logger.warning(f"Unknown agent type '{key}', defaulting to {DEFAULT_AGENT}")
        key = DEFAULT_AGENT
    return AGENT_TEMPLATES[key]


def normalize_agent_type(agent_type: Optional[str]) -> str:
    key = (agent_type or "").strip()
    return key if key in AGENT_TEMPLATES else DEFAULT_AGENT


def build_prompt(prompt: str, agent_type: Optional[str] = None, system_context: Optional[str] = None) -> str:
    """Assemble the single outbound prompt: template, optional health context, user query."""
    template = resolve_template(agent_type)
    if system_context:
        return f"{template}\n\nUSER HEALTH CONTEXT:\n{system_context}\n\nUSER QUERY: {prompt}"
    return f"{template}\n\nUSER QUERY: {prompt}"


class TriageDecision(BaseModel):
    agent_type: str = Field(default=DEFAULT_AGENT, alias="agentType")
    urgency: Literal["low", "medium", "high", "emergency"] = "low"
    reasoning: str = ""

    model_config = {"populate_by_name": True}

    @field_validator("agent_type", mode="before")
    @classmethod
    def _routable(cls, v):
        v = str(v or "").strip()
        return v if v in ROUTABLE_AGENTS else DEFAULT_AGENT

    @field_validator("urgency", mode="before")
    @classmethod
    def _lower(cls, v):
        return str(v or "low").strip().lower()


_SAFE_TRIAGE = TriageDecision(
    agentType=DEFAULT_AGENT,
    urgency="low",
    reasoning="Triage output could not be parsed; routed to the general advisor.",
)


def parse_triage(text: str) -> TriageDecision:
    """Parse the triage agent's answer, falling back to a safe general/low decision."""
    data = parse_json_object(text)
    if not data:
        return _SAFE_TRIAGE.model_copy()
    try:
        return TriageDecision.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Invalid triage output ({e.error_count()} errors), using safe default")
        return _SAFE_TRIAGE.model_copy()
