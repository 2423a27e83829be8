"""
Metric Formatters
=================

Single source of truth for display formatting of metrics.

WHY:
- Every answer template formats numbers the same way
- Prevent rounding bugs (e.g., CPC showing "$0" due to integer formatting)
- Keep formatting rules explicit & easy to extend

Used by:
- adinsight/answer/answer_builder.py (deterministic answer templates)
- adinsight/nlp/gateway.py (rounded values in the prompt context)

Design principles:
- Pure functions: no side effects
- Explicit sets: easy to see which metrics use which format
- CTR is carried in percentage points (4.0 = 4.00%), never as a fraction
"""

from typing import Optional


# =====================================================================
# METRIC CATEGORIZATION BY DISPLAY FORMAT
# =====================================================================

# Currency metrics: dollar amounts with 2 decimals
# Examples: $1,234.56, $0.48, $25.30
CURRENCY = {
    "spend",
    "cpc",
    "cpm",
}

# Percentage metrics: percentage points with 2 decimals
# Examples: 4.00%, 0.57%
PERCENT = {
    "ctr",
}

# Count metrics: whole numbers with thousands separators
# Examples: 12,345, 1,000,000, 500
COUNTS = {
    "impressions",
    "clicks",
    "results",
}


# =====================================================================
# FORMATTING FUNCTIONS
# =====================================================================

def fmt_currency(v: Optional[float], symbol: str = "$") -> str:
    """
    Format numeric as currency with 2 decimals and thousands separators.

    Examples:
        >>> fmt_currency(1234.5)
        "$1,234.50"

        >>> fmt_currency(0.4794)
        "$0.48"

        >>> fmt_currency(None)
        "N/A"
    """
    if v is None:
        return "N/A"
    if v < 0:
        return f"-{symbol}{abs(v):,.2f}"
    return f"{symbol}{v:,.2f}"


def fmt_percent(v: Optional[float]) -> str:
    """
    Format a value already expressed in percentage points.

    Examples:
        >>> fmt_percent(4)
        "4.00%"

        >>> fmt_percent(0.5714)
        "0.57%"
    """
    if v is None:
        return "N/A"
    return f"{v:.2f}%"


def fmt_count(v: Optional[float]) -> str:
    """
    Format integer-like metrics as whole numbers with thousands separators.

    Examples:
        >>> fmt_count(1234)
        "1,234"

        >>> fmt_count(1234.9)
        "1,235"
    """
    if v is None:
        return "N/A"
    return f"{v:,.0f}"


def fmt_score(v: Optional[float]) -> str:
    """Format a unitless score (efficiency) with 2 decimals."""
    if v is None:
        return "N/A"
    return f"{v:.2f}"


# =====================================================================
# MAIN ROUTING FUNCTION
# =====================================================================

def format_metric_value(metric: str, value: Optional[float], symbol: str = "$") -> str:
    """
    Route metric to appropriate formatter based on its type.

    This is the MAIN entry point for metric formatting in answers.

    Examples:
        >>> format_metric_value("cpc", 0.4794)
        "$0.48"

        >>> format_metric_value("ctr", 4)
        "4.00%"

        >>> format_metric_value("clicks", 1234)
        "1,234"

        >>> format_metric_value("unknown_metric", 123.456)
        "123.46"
    """
    m = str(getattr(metric, "value", metric) or "").lower()

    if m in CURRENCY:
        return fmt_currency(value, symbol)

    if m in PERCENT:
        return fmt_percent(value)

    if m in COUNTS:
        return fmt_count(value)

    # Scores and unknown metrics share the 2-decimal fallback
    return fmt_score(value)
