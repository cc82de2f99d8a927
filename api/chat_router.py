"""
Chat API Router — forwards a user prompt to the selected AI doctor agent.

One pass: rate limit → validate → agent template → provider fallback chain →
consultation receipt. Missing credentials answer 500 with the expected
variable names; an exhausted chain answers 503 with ``fallback: true``.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Request, status

from api.common import enforce_rate_limit, receipt_to_response
from api.schemas import ChatRequest, ChatResponse, TriageResponse
from carenexa.agents.prompts import build_prompt, normalize_agent_type, parse_triage
from carenexa.audit import get_audit_recorder, summarize_prompt, utc_now_iso
from carenexa.config import PROMPT_MAX_CHARS
from carenexa.errors import ValidationError
from carenexa.llm import get_provider_chain

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/chat", response_model=ChatResponse, status_code=status.HTTP_200_OK)
async def chat(req: ChatRequest, request: Request) -> ChatResponse:
    """Answer a health question with the agent named by ``agentType``.

    Unknown agent types are answered by the general advisor. For ``triage`` the
    structured classification is parsed and returned alongside the raw text.
    """
    enforce_rate_limit(request)

    if not req.prompt or not req.prompt.strip():
        raise ValidationError("Invalid prompt")
    if len(req.prompt) > PROMPT_MAX_CHARS:
        raise ValidationError("Prompt too long")

    agent_type = normalize_agent_type(req.agentType)
    full_prompt = build_prompt(req.prompt, agent_type, req.systemContext)

    chain = get_provider_chain()
    result = await asyncio.to_thread(chain.generate, full_prompt)

    receipt = get_audit_recorder().record_consultation(
        agent_type=agent_type,
        prompt_length=len(req.prompt),
        response_content=result.text,
        model_id=result.model,
        prompt_summary=summarize_prompt(req.prompt),
    )
    logger.info(
        f"Chat answered | agent={agent_type} | model={result.model} | "
        f"context={'yes' if req.systemContext else 'no'} | {len(result.text)} chars"
    )

    triage = None
    if agent_type == "triage":
        decision = parse_triage(result.text)
        triage = TriageResponse(
            agentType=decision.agent_type,
            urgency=decision.urgency,
            reasoning=decision.reasoning,
        )

    return ChatResponse(
        response=result.text,
        agentType=agent_type,
        model=result.model,
        timestamp=utc_now_iso(),
        receipt=receipt_to_response(receipt),
        triage=triage,
    )
