"""
Sentry Error Tracking
=====================

Centralized error tracking for the chat service.

Related files:
- adinsight/main.py: Initializes Sentry in create_app()
- adinsight/routers/chat.py: Forwards internal errors via capture_exception()

Environment Variables:
- SENTRY_DSN: Sentry project DSN (Sentry stays disabled when unset)
- ENVIRONMENT: Environment name (production, staging, development)
"""

from __future__ import annotations

import logging
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

logger = logging.getLogger(__name__)


def init_sentry(dsn: Optional[str], environment: str = "development", release: Optional[str] = None) -> bool:
    """
    Initialize Sentry SDK for FastAPI.

    Returns:
        True if Sentry was initialized, False when no DSN is configured
        or initialization failed.

    Example:
        settings = get_settings()
        init_sentry(settings.SENTRY_DSN, settings.ENVIRONMENT)
    """
    if not dsn:
        return False

    try:
        sentry_sdk.init(
            dsn=dsn,
            environment=environment,
            integrations=[
                FastApiIntegration(transaction_style="endpoint"),
                SqlalchemyIntegration(),
                LoggingIntegration(
                    level=logging.INFO,        # INFO+ as breadcrumbs
                    event_level=logging.ERROR,  # ERROR+ as events
                ),
            ],
            traces_sample_rate=0.1,
            send_default_pii=False,  # questions can contain campaign names
            release=release,
        )
    except Exception as e:
        logger.error(f"[SENTRY] Failed to initialize: {e}")
        return False

    logger.debug(f"[SENTRY] Initialized for {environment} environment")
    return True


def capture_exception(exception: BaseException, extra: Optional[dict] = None) -> None:
    """
    Report a handled exception to Sentry (no-op when Sentry is not initialized).

    Example:
        except Exception as e:
            capture_exception(e, extra={"stage": "dataset_load"})
            return error_response()
    """
    try:
        with sentry_sdk.new_scope() as scope:
            for key, value in (extra or {}).items():
                scope.set_extra(key, value)
            sentry_sdk.capture_exception(exception)
    except Exception as e:
        logger.error(f"[SENTRY] Failed to capture exception: {e}")
