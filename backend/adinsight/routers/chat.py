"""
Chat Router
===========

HTTP endpoint for conversational questions about campaign performance.

Related files:
- adinsight/services/qa_service.py: Orchestrator (NoData / gateway / rules)
- adinsight/services/dataset_loader.py: Snapshot loading
- adinsight/schemas.py: Request/response models

Endpoints:
- POST /chat: Answer one question given the conversation so far

Errors:
- 400 {"error": "Validation error", "details": [...]}   (see main.py handler)
- 500 {"error": "Internal server error", "message": "..."}
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from adinsight.deps import get_dataset_loader, get_qa_service
from adinsight.schemas import ChatRequest, ChatResponse, ErrorResponse
from adinsight.services.dataset_loader import DatasetLoader
from adinsight.services.qa_service import QAService, QAServiceError
from adinsight.telemetry.sentry import capture_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


def internal_error_response(message: str) -> JSONResponse:
    payload = ErrorResponse(error="Internal server error", message=message)
    return JSONResponse(status_code=500, content=payload.model_dump(exclude_none=True))


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Ask a question about campaign performance",
)
async def chat(
    req: ChatRequest,
    loader: DatasetLoader = Depends(get_dataset_loader),
    qa_service: QAService = Depends(get_qa_service),
):
    """
    POST /chat

    Answers from the language-model gateway when one is configured and
    reachable ("ai"), otherwise from the rule-based engine ("basic").
    The client sends the recent history with every request; nothing is
    stored server-side.

    Example:
        {"question": "what about the second one?",
         "history": [{"role": "assistant", "content": "Top 2 campaigns by CTR:\\n1. ..."}]}
    """
    try:
        dataset = await run_in_threadpool(loader.load)
    except Exception as e:
        logger.exception(f"[CHAT] Dataset load failed: {e}")
        capture_exception(e, extra={"stage": "dataset_load"})
        return internal_error_response(str(e))

    try:
        result = await qa_service.answer(req.question, req.history, dataset)
    except QAServiceError as e:
        capture_exception(e, extra={"stage": "rule_based_answer"})
        return internal_error_response(e.message)

    logger.info(f"[CHAT] Answered in {result.mode} mode")
    return ChatResponse(success=True, answer=result.answer, mode=result.mode)
