"""
Answer Builder - Deterministic, rule-based answers
==================================================

WHAT: Composes a plain-text answer from the question, the conversation
      history and the current dataset snapshot.
WHY: The language-model gateway is optional and can fail; this path must
     always produce *some* answer, with no randomness and no network.
WHERE: Called by adinsight/services/qa_service.py (RuleBased state).

HOW IT WORKS:
    1. build_context(): derive campaign/ad rows + account totals and read
       the keyword signals of the question (once per request)
    2. Walk ANSWER_RULES in order; the first rule whose predicate matches
       and whose handler returns text wins
    3. A handler may return None to fall through to the next rule
    4. The HELP rule always matches, so an answer is always produced

PRECEDENCE (ANSWER_RULES order):
    COUNT → EFFICIENCY_DEFINITION → AD_RANKING → METRIC_DEFINITION →
    SUMMARY → PLATFORM_BREAKDOWN → TOTAL_METRIC → ACCOUNT_RATE →
    COMPARISON → ENTITY_PROFILE → CAMPAIGN_RANKING → RECOMMENDATIONS → HELP

References:
- adinsight/answer/intent_classifier.py: keyword signals + predicates
- adinsight/answer/entity_resolver.py: named / ordinal / pronoun references
- adinsight/answer/ranking.py: filter → sort → truncate
- adinsight/answer/formatters.py: number formatting
"""

import logging
from dataclasses import dataclass
from functools import cached_property
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from adinsight.answer.aggregates import (
    AccountTotals,
    AdMetric,
    CampaignMetric,
    DerivedAd,
    DerivedCampaign,
    compute_ctr,
    compute_totals,
    ctr_per_cost,
    derive_ads,
    derive_campaigns,
)
from adinsight.answer.entity_resolver import (
    find_most_recent_assistant_mention,
    find_named_entities,
    find_quoted_entities,
    resolve_references,
)
from adinsight.answer.formatters import fmt_count, fmt_currency, fmt_percent, fmt_score, format_metric_value
from adinsight.answer.intent_classifier import (
    AnswerIntent,
    QuestionSignals,
    account_rate_requested,
    is_ad_ranking,
    is_campaign_ranking,
    is_comparison_query,
    is_count_query,
    is_efficiency_definition,
    is_metric_definition,
    is_platform_query,
    is_recommendation_query,
    is_summary_query,
    read_signals,
    total_metric_requested,
)
from adinsight.answer.metrics import (
    DEFINITIONS,
    Metric,
    SortOrder,
    detect_order,
    find_top_n,
    is_favourable_order,
)
from adinsight.answer.ranking import metric_value, rank_entities, spend_rank, sort_by_metric
from adinsight.schemas import ChatMessage

logger = logging.getLogger(__name__)


NO_AD_ROWS_MESSAGE = "I do not have ad-level rows yet. Upload data with ads first, then ask again."
NOT_ENOUGH_AD_DATA_MESSAGE = "Not enough ad-level data to rank performance yet."
NO_MATCHING_CAMPAIGNS_MESSAGE = "No matching campaigns found for that request."

PLATFORM_BREAKDOWN_LIMIT = 4
UNKNOWN_PLATFORM = "unknown"

METRIC_LABELS: Dict[Metric, str] = {
    Metric.SPEND: "Spend",
    Metric.IMPRESSIONS: "Impressions",
    Metric.CLICKS: "Clicks",
    Metric.RESULTS: "Results",
    Metric.CTR: "CTR",
    Metric.CPC: "CPC",
    Metric.CPM: "CPM",
    Metric.EFFICIENCY: "Efficiency score",
}


# =============================================================================
# CONTEXT
# =============================================================================

@dataclass
class AnswerContext:
    """
    Everything a handler may read, derived once per question.

    Entity references are resolved lazily: most questions never need them.
    """
    question: str
    history: Sequence[ChatMessage]
    signals: QuestionSignals
    campaigns: List[DerivedCampaign]
    ads: List[DerivedAd]
    totals: AccountTotals

    @cached_property
    def quoted_campaigns(self) -> List[DerivedCampaign]:
        return find_quoted_entities(self.question, self.campaigns)

    @cached_property
    def named_campaigns(self) -> List[DerivedCampaign]:
        return find_named_entities(self.question, self.campaigns)

    @cached_property
    def referenced_campaigns(self) -> List[DerivedCampaign]:
        return resolve_references(self.question, self.history, self.campaigns)


def build_context(
    question: str,
    history: Sequence[ChatMessage],
    campaigns: Sequence[CampaignMetric],
    ads: Sequence[AdMetric],
) -> AnswerContext:
    return AnswerContext(
        question=question,
        history=list(history),
        signals=read_signals(question),
        campaigns=derive_campaigns(campaigns),
        ads=derive_ads(ads),
        totals=compute_totals(campaigns),
    )


# =============================================================================
# HANDLERS
# =============================================================================

def answer_count(ctx: AnswerContext) -> str:
    if ctx.signals.mentions_campaign:
        return f"There are {fmt_count(len(ctx.campaigns))} campaigns in the current dataset."
    return f"There are {fmt_count(len(ctx.ads))} ads in the current dataset."


def answer_efficiency_definition(ctx: AnswerContext) -> str:
    """
    Efficiency score definition plus a worked example.

    The example uses the ad the assistant mentioned most recently, falling
    back to the best-scoring eligible ad.
    """
    definition = DEFINITIONS[Metric.EFFICIENCY]
    example = find_most_recent_assistant_mention(ctx.history, ctx.ads)
    if example is None:
        best = rank_entities(ctx.ads, Metric.EFFICIENCY, SortOrder.DESC, 1)
        example = best[0] if best else None

    if example is None:
        return definition

    return "\n".join([
        definition,
        f'For "{example.name}", score = {fmt_score(example.efficiency_score)} '
        f"(CTR {fmt_percent(example.ctr)} / CPC {fmt_currency(example.safe_cpc)}).",
    ])


def ad_ranking_metric(signals: QuestionSignals) -> Metric:
    """Explicit metric word, else efficiency for "best performer" questions, else CTR."""
    if signals.metric is not None:
        return signals.metric
    if signals.mentions_performance or signals.asks_efficiency or "best" in signals.text:
        return Metric.EFFICIENCY
    return Metric.CTR


def format_ad_value(ad: DerivedAd, metric: Metric) -> str:
    if metric == Metric.EFFICIENCY:
        return f"{fmt_score(ad.efficiency_score)} score"
    return format_metric_value(metric, metric_value(ad, metric))


def render_ad_profile(ad: DerivedAd, metric: Metric, favourable: bool) -> str:
    heading = "Best" if favourable else "Weakest"
    placement = f"- Campaign: {ad.campaign_name}"
    if ad.ad_set_name:
        placement += f" | Ad Set: {ad.ad_set_name}"

    lines = [
        f'{heading} ad by {METRIC_LABELS[metric]}: "{ad.name}"',
        placement,
        f"- Spend {fmt_currency(ad.spend)} | Impressions {fmt_count(ad.impressions)} | Clicks {fmt_count(ad.clicks)}",
        f"- CTR {fmt_percent(ad.ctr)} | CPC {fmt_currency(ad.safe_cpc)} | CPM {fmt_currency(ad.safe_cpm)}",
    ]
    if metric == Metric.EFFICIENCY:
        lines.append(f"- Efficiency score {fmt_score(ad.efficiency_score)} (CTR / max(CPC, 0.01)).")
    return "\n".join(lines)


def answer_ad_ranking(ctx: AnswerContext) -> str:
    if not ctx.ads:
        return NO_AD_ROWS_MESSAGE

    signals = ctx.signals
    metric = ad_ranking_metric(signals)
    if metric == Metric.EFFICIENCY:
        order = SortOrder.ASC if signals.wants_worst else SortOrder.DESC
    else:
        order = detect_order(ctx.question, metric)

    top_n = find_top_n(ctx.question)
    selected = rank_entities(ctx.ads, metric, order, top_n)
    if not selected:
        return NOT_ENOUGH_AD_DATA_MESSAGE

    favourable = is_favourable_order(metric, order)
    if top_n == 1:
        return render_ad_profile(selected[0], metric, favourable)

    heading = "Top" if favourable else "Bottom"
    lines = [
        f"{index}. {ad.name} - {format_ad_value(ad, metric)} ({ad.campaign_name})"
        for index, ad in enumerate(selected, start=1)
    ]
    return "\n".join([f"{heading} {len(selected)} ads by {METRIC_LABELS[metric]}:"] + lines)


def answer_metric_definition(ctx: AnswerContext) -> Optional[str]:
    return DEFINITIONS.get(ctx.signals.metric)


def answer_summary(ctx: AnswerContext) -> str:
    t = ctx.totals
    return (
        f"Summary: Spend {fmt_currency(t.spend)}, Impressions {fmt_count(t.impressions)}, "
        f"Clicks {fmt_count(t.clicks)}, Results {fmt_count(t.results)}, CTR {fmt_percent(t.ctr)}, "
        f"Avg CPC {fmt_currency(t.avg_cpc)}, Avg CPM {fmt_currency(t.avg_cpm)}."
    )


def answer_platform_breakdown(ctx: AnswerContext) -> Optional[str]:
    """Spend and CTR per platform, highest spend first, top 4."""
    grouped: Dict[str, List[float]] = {}
    for campaign in ctx.campaigns:
        bucket = grouped.setdefault(campaign.platform or UNKNOWN_PLATFORM, [0.0, 0, 0])
        bucket[0] += campaign.spend
        bucket[1] += campaign.clicks
        bucket[2] += campaign.impressions

    if not grouped:
        return None

    ranked = sorted(grouped.items(), key=lambda item: item[1][0], reverse=True)[:PLATFORM_BREAKDOWN_LIMIT]
    lines = [
        f"- {platform}: {fmt_currency(spend)} spend, {fmt_percent(compute_ctr(clicks, impressions))} CTR"
        for platform, (spend, clicks, impressions) in ranked
    ]
    return "\n".join(["Platform breakdown:"] + lines)


def answer_total_metric(ctx: AnswerContext) -> Optional[str]:
    metric = total_metric_requested(ctx.signals)
    t = ctx.totals
    if metric == Metric.SPEND:
        return f"Total spend is {fmt_currency(t.spend)} across {fmt_count(t.campaign_count)} campaigns."
    if metric == Metric.IMPRESSIONS:
        return f"Total impressions are {fmt_count(t.impressions)}."
    if metric == Metric.CLICKS:
        return f"Total clicks are {fmt_count(t.clicks)}."
    if metric == Metric.RESULTS:
        return f"Total results are {fmt_count(t.results)}."
    return None


def answer_account_rate(ctx: AnswerContext) -> Optional[str]:
    metric = account_rate_requested(ctx.signals)
    t = ctx.totals
    if metric == Metric.CTR:
        return f"Overall CTR is {fmt_percent(t.ctr)} (clicks / impressions)."
    if metric == Metric.CPC:
        return f"Average CPC is {fmt_currency(t.avg_cpc)}."
    if metric == Metric.CPM:
        return f"Average CPM is {fmt_currency(t.avg_cpm)}."
    return None


def answer_comparison(ctx: AnswerContext) -> Optional[str]:
    """Two resolved campaigns side by side; winner by CTR / max(CPC, 0.01), ties to the first."""
    referenced = ctx.referenced_campaigns
    if len(referenced) < 2:
        return None

    left, right = referenced[0], referenced[1]
    left_score = ctr_per_cost(left.ctr, left.safe_cpc)
    right_score = ctr_per_cost(right.ctr, right.safe_cpc)
    winner = left if left_score >= right_score else right

    def side(campaign: DerivedCampaign) -> str:
        return (
            f"- {campaign.name}: Spend {fmt_currency(campaign.spend)}, "
            f"CTR {fmt_percent(campaign.ctr)}, CPC {fmt_currency(campaign.safe_cpc)}"
        )

    return "\n".join([
        f'Comparison: "{left.name}" vs "{right.name}"',
        side(left),
        side(right),
        f"Winner by efficiency (CTR/CPC): {winner.name}",
    ])


def answer_entity_profile(ctx: AnswerContext) -> Optional[str]:
    referenced = ctx.referenced_campaigns
    if not referenced:
        return None

    campaign = referenced[0]
    total_spend = ctx.totals.spend
    share = (campaign.spend / total_spend) * 100 if total_spend > 0 else 0.0
    rank = spend_rank(campaign, ctx.campaigns)

    return "\n".join([
        f'"{campaign.name}" summary:',
        f"- Spend {fmt_currency(campaign.spend)} ({fmt_percent(share)} of account spend, rank #{rank})",
        f"- Impressions {fmt_count(campaign.impressions)} | Clicks {fmt_count(campaign.clicks)} "
        f"| Results {fmt_count(campaign.results)}",
        f"- CTR {fmt_percent(campaign.ctr)} | CPC {fmt_currency(campaign.safe_cpc)} "
        f"| CPM {fmt_currency(campaign.safe_cpm)}",
    ])


def answer_campaign_ranking(ctx: AnswerContext) -> str:
    """
    Top/bottom-N campaigns by the detected metric (spend when none).

    Lines are numbered "N. <name> - <value>" so a follow-up such as
    "the second one" can be resolved from this answer.
    """
    metric = ctx.signals.metric or Metric.SPEND
    order = detect_order(ctx.question, metric)
    selected = rank_entities(ctx.campaigns, metric, order, find_top_n(ctx.question))
    if not selected:
        return NO_MATCHING_CAMPAIGNS_MESSAGE

    heading = "Top" if is_favourable_order(metric, order) else "Bottom"
    noun = "campaign" if len(selected) == 1 else f"{len(selected)} campaigns"
    lines = [
        f"{index}. {campaign.name} - {format_metric_value(metric, metric_value(campaign, metric))}"
        for index, campaign in enumerate(selected, start=1)
    ]
    return "\n".join([f"{heading} {noun} by {METRIC_LABELS[metric]}:"] + lines)


def answer_recommendations(ctx: AnswerContext) -> str:
    """
    Three independent heuristics; each degrades to a "not enough data" line.

    - Review: highest spend (lowest CTR breaks spend ties)
    - Scale: best CTR / CPC among campaigns with clicks
    - Delivery: fewest impressions among campaigns with spend
    """
    spending = [c for c in ctx.campaigns if c.spend > 0]
    clicked = [c for c in ctx.campaigns if c.clicks > 0]

    review = min(spending, key=lambda c: (-c.spend, c.ctr), default=None)
    scale = max(clicked, key=lambda c: ctr_per_cost(c.ctr, c.safe_cpc), default=None)
    by_impressions = sort_by_metric(spending, Metric.IMPRESSIONS, SortOrder.ASC)
    delivery = by_impressions[0] if by_impressions else None

    lines = ["Suggested actions:"]
    if review is not None:
        lines.append(
            f"- Review {review.name}: high spend ({fmt_currency(review.spend)}) "
            f"but CTR at {fmt_percent(review.ctr)}."
        )
    else:
        lines.append("- Not enough data for spend/CTR review.")

    if scale is not None:
        lines.append(
            f"- Consider scaling {scale.name}: CTR {fmt_percent(scale.ctr)} "
            f"at CPC {fmt_currency(scale.safe_cpc)}."
        )
    else:
        lines.append("- Not enough data for scaling recommendation.")

    if delivery is not None:
        lines.append(f"- Check delivery on {delivery.name}: only {fmt_count(delivery.impressions)} impressions.")
    else:
        lines.append("- Not enough data for delivery recommendation.")

    return "\n".join(lines)


def answer_help(ctx: AnswerContext) -> str:
    examples = [
        '"show top 5 by CTR"',
        '"compare those two"',
        '"what about the second one?"',
        '"recommend optimizations"',
    ]
    if ctx.campaigns:
        examples.append(f'"tell me about {ctx.campaigns[0].name}"')
    return f"I can answer detailed questions now. Try: {', '.join(examples[:-1])}, or {examples[-1]}."


# =============================================================================
# RULES
# =============================================================================

def _defers_to_ranking(ctx: AnswerContext) -> bool:
    # "top campaign by ctr" can fuzzy-match a campaign named "... Campaign".
    # Quoted names and ordinal/pronoun references from history still get a profile.
    fuzzy_only = bool(ctx.named_campaigns) and not ctx.quoted_campaigns
    return ctx.signals.has_ranking_language and fuzzy_only


@dataclass(frozen=True)
class IntentRule:
    """One entry of the precedence table: when `matches`, try `build`."""
    intent: AnswerIntent
    matches: Callable[[AnswerContext], bool]
    build: Callable[[AnswerContext], Optional[str]]


ANSWER_RULES: Tuple[IntentRule, ...] = (
    IntentRule(AnswerIntent.COUNT, lambda ctx: is_count_query(ctx.signals), answer_count),
    IntentRule(
        AnswerIntent.EFFICIENCY_DEFINITION,
        lambda ctx: is_efficiency_definition(ctx.signals),
        answer_efficiency_definition,
    ),
    IntentRule(AnswerIntent.AD_RANKING, lambda ctx: is_ad_ranking(ctx.signals), answer_ad_ranking),
    IntentRule(
        AnswerIntent.METRIC_DEFINITION,
        lambda ctx: is_metric_definition(ctx.signals),
        answer_metric_definition,
    ),
    IntentRule(AnswerIntent.SUMMARY, lambda ctx: is_summary_query(ctx.signals), answer_summary),
    IntentRule(
        AnswerIntent.PLATFORM_BREAKDOWN,
        lambda ctx: is_platform_query(ctx.signals),
        answer_platform_breakdown,
    ),
    IntentRule(
        AnswerIntent.TOTAL_METRIC,
        lambda ctx: total_metric_requested(ctx.signals) is not None and not ctx.quoted_campaigns,
        answer_total_metric,
    ),
    IntentRule(
        AnswerIntent.ACCOUNT_RATE,
        lambda ctx: account_rate_requested(ctx.signals) is not None and not ctx.quoted_campaigns,
        answer_account_rate,
    ),
    IntentRule(
        AnswerIntent.COMPARISON,
        lambda ctx: is_comparison_query(ctx.signals) and bool(ctx.referenced_campaigns),
        answer_comparison,
    ),
    IntentRule(
        AnswerIntent.ENTITY_PROFILE,
        lambda ctx: bool(ctx.referenced_campaigns) and not _defers_to_ranking(ctx),
        answer_entity_profile,
    ),
    IntentRule(
        AnswerIntent.CAMPAIGN_RANKING,
        lambda ctx: is_campaign_ranking(ctx.signals),
        answer_campaign_ranking,
    ),
    IntentRule(
        AnswerIntent.RECOMMENDATIONS,
        lambda ctx: is_recommendation_query(ctx.signals),
        answer_recommendations,
    ),
    IntentRule(AnswerIntent.HELP, lambda ctx: True, answer_help),
)


@dataclass(frozen=True)
class ComposedAnswer:
    intent: AnswerIntent
    text: str


def compose_answer(
    question: str,
    history: Sequence[ChatMessage],
    campaigns: Sequence[CampaignMetric],
    ads: Sequence[AdMetric],
    rules: Sequence[IntentRule] = ANSWER_RULES,
) -> ComposedAnswer:
    """
    Answer a question with the first matching rule.

    Deterministic: the same question, history and rows always produce the
    same answer.

    Examples:
        >>> compose_answer("how many campaigns", [], campaigns, ads).text
        "There are 2 campaigns in the current dataset."
    """
    ctx = build_context(question, history, campaigns, ads)

    for rule in rules:
        if not rule.matches(ctx):
            continue
        text = rule.build(ctx)
        if text:
            logger.debug(f"[ANSWER] Intent matched: {rule.intent.value}")
            return ComposedAnswer(intent=rule.intent, text=text)
        logger.debug(f"[ANSWER] {rule.intent.value} matched but produced no text, falling through")

    # Only reachable with a custom rule list that has no catch-all
    return ComposedAnswer(intent=AnswerIntent.HELP, text=answer_help(ctx))
