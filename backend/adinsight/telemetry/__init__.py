"""
Telemetry Module
================

Observability for the chat service.

Components:
- sentry.py: Error tracking
- qa_log.py: Structured per-question logging

Environment Variables:
- SENTRY_DSN: Sentry project DSN (optional)
- ENVIRONMENT: Environment name reported to Sentry

Usage:
    from adinsight.telemetry import init_sentry, capture_exception, log_qa_run

Related modules:
- adinsight/main.py: Initializes Sentry on startup
- adinsight/services/qa_service.py: Logs every answered question
"""

from adinsight.telemetry.qa_log import log_qa_run
from adinsight.telemetry.sentry import capture_exception, init_sentry

__all__ = [
    "init_sentry",
    "capture_exception",
    "log_qa_run",
]
