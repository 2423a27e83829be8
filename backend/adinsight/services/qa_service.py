"""
QA Service
==========

Orchestrates one chat question end to end.

STATES:
    NoData     dataset has no campaigns → fixed message, mode "basic"
    TryGateway only when a gateway is configured; success → mode "ai"
    RuleBased  always reachable; any gateway failure lands here silently

    NoData ──(terminal)
    TryGateway ──GatewayAnswer──▶ done ("ai")
               └─GatewayFailure─▶ RuleBased ("basic")

Related files:
- adinsight/nlp/gateway.py: GatewayClient + GatewayAnswer / GatewayFailure
- adinsight/answer/answer_builder.py: compose_answer()
- adinsight/routers/chat.py: HTTP surface
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional, Sequence

from adinsight.answer.answer_builder import compose_answer
from adinsight.nlp.gateway import GatewayAnswer, GatewayClient, GatewayFailure
from adinsight.schemas import ChatMessage
from adinsight.services.dataset_loader import Dataset
from adinsight.telemetry.qa_log import log_qa_run

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "I do not have campaign data yet. Upload a CSV first, then ask again."

MODE_AI = "ai"
MODE_BASIC = "basic"


class QAServiceError(Exception):
    """
    Raised when the rule-based path fails unexpectedly.

    Attributes:
        message: Human-readable error description
        question: Original user question
    """
    def __init__(self, message: str, question: str = ""):
        super().__init__(message)
        self.message = message
        self.question = question


@dataclass(frozen=True)
class QAResult:
    answer: str
    mode: str


class QAService:
    """
    Stateless orchestrator: safe to share across concurrent requests.

    Usage:
        service = QAService(gateway=GatewayClient(config))
        result = await service.answer(question, history, dataset)
    """

    def __init__(self, gateway: Optional[GatewayClient] = None):
        self.gateway = gateway

    async def answer(self, question: str, history: Sequence[ChatMessage], dataset: Dataset) -> QAResult:
        """
        Answer a question against a dataset snapshot.

        Never surfaces gateway problems. Raises QAServiceError only when the
        rule-based engine itself fails.
        """
        start_time = time.time()
        gateway_error = None

        logger.info(f"[QA_PIPELINE] ===== Starting QA pipeline =====")
        logger.info(f"[QA_PIPELINE] Question: '{question}' (history: {len(history)} messages)")

        if dataset.is_empty:
            logger.info("[QA_PIPELINE] No campaign data, returning fixed message")
            self._log_run(question, MODE_BASIC, start_time, dataset, intent="no_data")
            return QAResult(answer=NO_DATA_MESSAGE, mode=MODE_BASIC)

        if self.gateway is not None:
            logger.info(f"[QA_PIPELINE] Trying {self.gateway.config.kind} gateway")
            try:
                result = await self.gateway.ask(question, history, dataset.campaigns, dataset.ads)
            except Exception as e:
                logger.warning(f"[QA_PIPELINE] Gateway raised unexpectedly: {e}")
                result = GatewayFailure(reason=f"unexpected error: {e}")
            if isinstance(result, GatewayAnswer):
                self._log_run(question, MODE_AI, start_time, dataset)
                return QAResult(answer=result.text, mode=MODE_AI)
            if isinstance(result, GatewayFailure):
                gateway_error = result.reason
                logger.info("[QA_PIPELINE] Gateway failed, falling back to rule-based answer")

        try:
            composed = compose_answer(question, history, dataset.campaigns, dataset.ads)
        except Exception as e:
            logger.exception(f"[QA_PIPELINE] Rule-based answer failed: {e}")
            raise QAServiceError(f"Rule-based answer failed: {e}", question=question) from e

        logger.info(f"[QA_PIPELINE] Answered by rule: {composed.intent.value}")
        self._log_run(
            question,
            MODE_BASIC,
            start_time,
            dataset,
            intent=composed.intent.value,
            gateway_error=gateway_error,
        )
        return QAResult(answer=composed.text, mode=MODE_BASIC)

    def _log_run(
        self,
        question: str,
        mode: str,
        start_time: float,
        dataset: Dataset,
        intent: Optional[str] = None,
        gateway_error: Optional[str] = None,
    ) -> None:
        log_qa_run(
            question=question,
            mode=mode,
            latency_ms=int((time.time() - start_time) * 1000),
            campaign_count=len(dataset.campaigns),
            ad_count=len(dataset.ads),
            intent=intent,
            gateway_error=gateway_error,
        )
