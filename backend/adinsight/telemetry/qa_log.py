"""
QA Run Logging
==============

One structured summary line per answered question.

The chat service is read-only with respect to the database, so runs are
recorded as log records (message + `extra` fields) instead of table rows.
Log shippers that understand `extra` (Sentry breadcrumbs, JSON formatters)
pick the fields up as-is.

Related files:
- adinsight/services/qa_service.py: Calls log_qa_run() once per question
"""

from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)

# Questions are truncated in logs; the full text is never needed for ops
QUESTION_PREVIEW_CHARS = 120


def log_qa_run(
    question: str,
    mode: str,
    latency_ms: int,
    campaign_count: int,
    ad_count: int,
    intent: Optional[str] = None,
    gateway_error: Optional[str] = None,
) -> None:
    """
    Log the outcome of one question.

    Args:
        question: The user's question (truncated in the record)
        mode: "ai" or "basic"
        latency_ms: End-to-end answer latency
        campaign_count / ad_count: Size of the dataset snapshot
        intent: Rule that answered (basic mode only)
        gateway_error: Failure reason when the gateway was tried and failed
    """
    fields = {
        "qa_mode": mode,
        "qa_latency_ms": latency_ms,
        "qa_campaigns": campaign_count,
        "qa_ads": ad_count,
        "qa_intent": intent,
        "qa_gateway_error": gateway_error,
        "qa_question": question[:QUESTION_PREVIEW_CHARS],
    }
    logger.info(
        f"[QA_RUN] mode={mode} intent={intent or '-'} latency={latency_ms}ms "
        f"campaigns={campaign_count} ads={ad_count}"
        + (f" gateway_error={gateway_error!r}" if gateway_error else ""),
        extra=fields,
    )
