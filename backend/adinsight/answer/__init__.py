"""
Answer Module - Rule-based answering engine
===========================================

Deterministic answers over the current campaign/ad snapshot.

Related files:
- adinsight/answer/answer_builder.py: Ordered intent rules + handlers
- adinsight/answer/entity_resolver.py: Campaign references from history
- adinsight/answer/ranking.py: Top/bottom-N ranking
- adinsight/answer/formatters.py: Metric value formatting utilities
- adinsight/services/qa_service.py: Orchestrator using this engine
"""

from adinsight.answer.answer_builder import ANSWER_RULES, ComposedAnswer, IntentRule, compose_answer
from adinsight.answer.formatters import (
    format_metric_value,
    fmt_count,
    fmt_currency,
    fmt_percent,
    fmt_score,
)
from adinsight.answer.intent_classifier import AnswerIntent

__all__ = [
    "ANSWER_RULES",
    "AnswerIntent",
    "ComposedAnswer",
    "IntentRule",
    "compose_answer",
    "format_metric_value",
    "fmt_count",
    "fmt_currency",
    "fmt_percent",
    "fmt_score",
]
