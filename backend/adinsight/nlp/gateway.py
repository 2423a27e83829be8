"""
Language-Model Gateway Adapter
==============================

Sends the question, recent history and a compact JSON view of the dataset to
an OpenAI-compatible `/responses` endpoint and returns the answer text.

Related files:
- adinsight/nlp/prompts.py: System and user prompts
- adinsight/services/qa_service.py: Falls back to rules on GatewayFailure
- adinsight/deps.py: Settings the GatewayConfig is built from

Design:
- One immutable GatewayConfig, built once at startup, passed by reference
- Exactly one HTTP attempt per question, no retries
- Bounded by a timeout; cancellation surfaces as a failure result
- Never raises for gateway problems: the result is either GatewayAnswer
  or GatewayFailure, and failures are logged at WARNING only
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

import httpx

from adinsight.answer.aggregates import (
    AccountTotals,
    AdMetric,
    CampaignMetric,
    compute_totals,
    derive_ads,
    derive_campaigns,
)
from adinsight.nlp.prompts import build_system_prompt, build_user_prompt
from adinsight.schemas import ChatMessage

logger = logging.getLogger(__name__)

DEFAULT_GATEWAY_BASE_URL = "https://ai-gateway.vercel.sh/v1"
DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_GATEWAY_MODEL = "openai/gpt-4.1-mini"
DEFAULT_OPENAI_MODEL = "gpt-4.1-mini"

CONTEXT_CAMPAIGN_LIMIT = 80
CONTEXT_AD_LIMIT = 120
ERROR_BODY_PREVIEW = 300


@dataclass(frozen=True)
class GatewayConfig:
    """
    Connection settings for the answer gateway.

    kind is "gateway" (AI gateway key) or "openai" (direct OpenAI key).
    """
    kind: str
    api_key: str
    base_url: str
    model: str
    timeout_seconds: float = 15.0
    temperature: float = 0.2
    max_output_tokens: int = 260

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/responses"


def build_gateway_config(settings) -> Optional[GatewayConfig]:
    """
    Pick the provider from settings.

    A gateway key wins over an OpenAI key; with neither, there is no gateway
    and every question is answered by the rule-based engine.
    """
    model_override = settings.OPENAI_CHAT_MODEL or settings.AI_CHAT_MODEL
    gateway_key = settings.AI_GATEWAY_API_KEY or settings.VERCEL_AI_GATEWAY_API_KEY

    if gateway_key:
        kind, api_key = "gateway", gateway_key
        base_url = settings.AI_GATEWAY_BASE_URL or DEFAULT_GATEWAY_BASE_URL
        model = model_override or DEFAULT_GATEWAY_MODEL
    elif settings.OPENAI_API_KEY:
        kind, api_key = "openai", settings.OPENAI_API_KEY
        base_url = settings.OPENAI_BASE_URL or DEFAULT_OPENAI_BASE_URL
        model = model_override or DEFAULT_OPENAI_MODEL
    else:
        return None

    return GatewayConfig(
        kind=kind,
        api_key=api_key,
        base_url=base_url.rstrip("/"),
        model=model,
        timeout_seconds=settings.AI_TIMEOUT_SECONDS,
        temperature=settings.AI_TEMPERATURE,
        max_output_tokens=settings.AI_MAX_OUTPUT_TOKENS,
    )


@dataclass(frozen=True)
class GatewayAnswer:
    text: str


@dataclass(frozen=True)
class GatewayFailure:
    """Why the gateway could not answer (never raised, always returned)."""
    reason: str
    status_code: Optional[int] = None


GatewayResult = Union[GatewayAnswer, GatewayFailure]


# =============================================================================
# CONTEXT + RESPONSE PARSING
# =============================================================================

def _round(value: Optional[float]) -> float:
    return round(float(value or 0.0), 2)


def _totals_payload(totals: AccountTotals) -> Dict[str, Any]:
    return {
        "campaign_count": totals.campaign_count,
        "spend": _round(totals.spend),
        "impressions": totals.impressions,
        "clicks": totals.clicks,
        "results": totals.results,
        "ctr": _round(totals.ctr),
        "avg_cpc": _round(totals.avg_cpc),
        "avg_cpm": _round(totals.avg_cpm),
    }


def build_prompt_context(
    campaigns: Sequence[CampaignMetric],
    ads: Sequence[AdMetric],
) -> Dict[str, Any]:
    """
    Compact JSON context: account totals, the 80 highest-spend campaigns and
    the 120 highest-spend ads, values rounded to 2 decimals.
    """
    top_campaigns = sorted(derive_campaigns(campaigns), key=lambda c: c.spend, reverse=True)
    top_ads = sorted(derive_ads(ads), key=lambda a: a.spend, reverse=True)

    return {
        "totals": _totals_payload(compute_totals(campaigns)),
        "campaigns": [
            {
                "name": c.name,
                "platform": c.platform,
                "spend": _round(c.spend),
                "impressions": c.impressions,
                "clicks": c.clicks,
                "results": c.results,
                "ctr": _round(c.ctr),
                "cpc": _round(c.safe_cpc),
                "cpm": _round(c.safe_cpm),
            }
            for c in top_campaigns[:CONTEXT_CAMPAIGN_LIMIT]
        ],
        "ads": [
            {
                "name": a.name,
                "campaign": a.campaign_name,
                "ad_set": a.ad_set_name,
                "spend": _round(a.spend),
                "impressions": a.impressions,
                "clicks": a.clicks,
                "results": a.results,
                "ctr": _round(a.ctr),
                "cpc": _round(a.safe_cpc),
                "cpm": _round(a.safe_cpm),
            }
            for a in top_ads[:CONTEXT_AD_LIMIT]
        ],
    }


def extract_response_text(payload: Any) -> str:
    """
    Pull answer text out of a /responses payload.

    Accepts either a flat `output_text` string or `output[].content[]` blocks
    carrying `text` (or `output_text`); blocks are joined with newlines.
    Returns "" when nothing usable is present.
    """
    if not isinstance(payload, dict):
        return ""

    flat = payload.get("output_text")
    if isinstance(flat, str) and flat.strip():
        return flat.strip()

    parts: List[str] = []
    output = payload.get("output")
    for block in output if isinstance(output, list) else []:
        contents = block.get("content") if isinstance(block, dict) else None
        for content in contents if isinstance(contents, list) else []:
            if not isinstance(content, dict):
                continue
            for key in ("text", "output_text"):
                value = content.get(key)
                if isinstance(value, str) and value.strip():
                    parts.append(value.strip())
                    break

    return "\n".join(parts).strip()


# =============================================================================
# CLIENT
# =============================================================================

class GatewayClient:
    """
    Single-attempt client for the answer gateway.

    Usage:
        client = GatewayClient(config)
        result = await client.ask(question, history, campaigns, ads)
        if isinstance(result, GatewayAnswer):
            ...

    `transport` lets tests substitute httpx.MockTransport.
    """

    def __init__(self, config: GatewayConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport

    def build_request_body(
        self,
        question: str,
        history: Sequence[ChatMessage],
        campaigns: Sequence[CampaignMetric],
        ads: Sequence[AdMetric],
    ) -> Dict[str, Any]:
        user_prompt = build_user_prompt(question, history, build_prompt_context(campaigns, ads))
        return {
            "model": self.config.model,
            "temperature": self.config.temperature,
            "max_output_tokens": self.config.max_output_tokens,
            "input": [
                {"role": "system", "content": [{"type": "input_text", "text": build_system_prompt()}]},
                {"role": "user", "content": [{"type": "input_text", "text": user_prompt}]},
            ],
        }

    async def _post(self, body: Dict[str, Any]) -> httpx.Response:
        async with httpx.AsyncClient(
            timeout=self.config.timeout_seconds,
            transport=self._transport,
        ) as client:
            return await client.post(
                self.config.endpoint,
                json=body,
                headers={
                    "Authorization": f"Bearer {self.config.api_key}",
                    "Content-Type": "application/json",
                },
            )

    async def ask(
        self,
        question: str,
        history: Sequence[ChatMessage],
        campaigns: Sequence[CampaignMetric],
        ads: Sequence[AdMetric],
    ) -> GatewayResult:
        """Ask the gateway once. Every failure mode becomes a GatewayFailure."""
        start = time.time()
        body = self.build_request_body(question, history, campaigns, ads)

        try:
            response = await asyncio.wait_for(self._post(body), timeout=self.config.timeout_seconds)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return self._fail(f"timeout after {self.config.timeout_seconds}s")
        except httpx.RequestError as e:
            return self._fail(f"transport error: {e}")

        if not response.is_success:
            preview = response.text[:ERROR_BODY_PREVIEW]
            return self._fail(
                f"request failed ({self.config.kind}) with status {response.status_code}: {preview}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError:
            return self._fail("response was not valid JSON", status_code=response.status_code)

        text = extract_response_text(payload)
        if not text:
            return self._fail("response did not include text output", status_code=response.status_code)

        latency_ms = int((time.time() - start) * 1000)
        logger.info(f"[GATEWAY] Answer received from {self.config.kind} ({self.config.model}) in {latency_ms}ms")
        return GatewayAnswer(text=text)

    def _fail(self, reason: str, status_code: Optional[int] = None) -> GatewayFailure:
        logger.warning(f"[GATEWAY] {self.config.kind} gateway unavailable: {reason}")
        return GatewayFailure(reason=reason, status_code=status_code)
