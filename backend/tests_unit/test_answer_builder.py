"""
Answer Builder Tests (Unit)
===========================

WHAT: End-to-end rule-based answers for each intent, the precedence table
      and fall-through behaviour.
WHY: The rule-based path is the guaranteed answer when the gateway is down;
     its templates and ordering are user-visible behaviour.

REFERENCES:
- backend/adinsight/answer/answer_builder.py
- backend/adinsight/answer/intent_classifier.py (AnswerIntent order)
"""

from adinsight.answer.aggregates import AdMetric, CampaignMetric
from adinsight.answer.answer_builder import (
    ANSWER_RULES,
    NO_AD_ROWS_MESSAGE,
    IntentRule,
    answer_help,
    compose_answer,
)
from adinsight.answer.intent_classifier import AnswerIntent
from adinsight.answer.metrics import DEFINITIONS, Metric
from adinsight.schemas import ChatMessage

CAMPAIGNS = [
    CampaignMetric(id="c1", name="Spring Sale", platform="meta", spend=120.0, impressions=4000, clicks=80, results=6),
    CampaignMetric(id="c2", name="Brand Search", platform="google", spend=90.0, impressions=3000, clicks=30, results=3),
    CampaignMetric(id="c3", name="Cambodia Average", platform="meta", spend=15.0, impressions=900, clicks=4),
    CampaignMetric(id="c4", name="Dormant"),
]

ADS = [
    AdMetric(id="a1", name="Hero Video", campaign_name="Spring Sale", ad_set_name="Broad",
             spend=60.0, impressions=2000, clicks=50),
    AdMetric(id="a2", name="Carousel", campaign_name="Spring Sale", spend=60.0, impressions=2000, clicks=30),
    AdMetric(id="a3", name="Search Text", campaign_name="Brand Search", spend=90.0, impressions=3000, clicks=30),
    AdMetric(id="a4", name="Tiny", campaign_name="Cambodia Average", spend=15.0, impressions=90, clicks=4),
]

RANKED_REPLY = ChatMessage(
    role="assistant",
    content="Top 2 campaigns by Spend:\n1. Spring Sale - $120.00\n2. Brand Search - $90.00",
)


def ask(question, history=(), campaigns=CAMPAIGNS, ads=ADS):
    return compose_answer(question, list(history), campaigns, ads)


# =============================================================================
# PRECEDENCE TABLE
# =============================================================================

def test_rules_follow_intent_order() -> None:
    assert [rule.intent for rule in ANSWER_RULES] == list(AnswerIntent)


def test_count_wins_over_ranking_words() -> None:
    assert ask("how many campaigns have the best ctr").intent == AnswerIntent.COUNT


def test_handler_returning_none_falls_through() -> None:
    rules = (
        IntentRule(AnswerIntent.SUMMARY, lambda ctx: True, lambda ctx: None),
        IntentRule(AnswerIntent.HELP, lambda ctx: True, answer_help),
    )
    result = compose_answer("summary", [], CAMPAIGNS, ADS, rules=rules)
    assert result.intent == AnswerIntent.HELP


def test_same_input_gives_same_answer() -> None:
    history = [RANKED_REPLY]
    first = ask("compare those two", history)
    second = ask("compare those two", history)
    assert first == second


# =============================================================================
# COUNTS, DEFINITIONS, ACCOUNT-WIDE NUMBERS
# =============================================================================

def test_count_campaigns_and_ads() -> None:
    assert ask("how many campaigns").text == "There are 4 campaigns in the current dataset."
    assert ask("how many ads do we have?").text == "There are 4 ads in the current dataset."


def test_efficiency_definition_includes_best_ad_example() -> None:
    result = ask("what is the efficiency score?")

    assert result.intent == AnswerIntent.EFFICIENCY_DEFINITION
    assert result.text.startswith(DEFINITIONS[Metric.EFFICIENCY])
    assert 'For "Hero Video", score = 2.08 (CTR 2.50% / CPC $1.20).' in result.text


def test_efficiency_definition_prefers_recently_mentioned_ad() -> None:
    history = [ChatMessage(role="assistant", content='Weakest ad by CTR: "Carousel"')]

    result = ask("efficiency score", history)

    assert 'For "Carousel", score = 0.75' in result.text


def test_metric_definition() -> None:
    result = ask("what is cpc")
    assert result.intent == AnswerIntent.METRIC_DEFINITION
    assert result.text == DEFINITIONS[Metric.CPC]


def test_summary() -> None:
    assert ask("give me a summary").text == (
        "Summary: Spend $225.00, Impressions 7,900, Clicks 114, Results 9, "
        "CTR 1.44%, Avg CPC $1.97, Avg CPM $28.48."
    )


def test_platform_breakdown_sorted_by_spend() -> None:
    assert ask("platform breakdown").text == (
        "Platform breakdown:\n"
        "- meta: $135.00 spend, 1.71% CTR\n"
        "- google: $90.00 spend, 1.00% CTR\n"
        "- unknown: $0.00 spend, 0.00% CTR"
    )


def test_total_metrics() -> None:
    assert ask("what is our total spend").text == "Total spend is $225.00 across 4 campaigns."
    assert ask("overall clicks").text == "Total clicks are 114."


def test_account_rate() -> None:
    result = ask("what is my ctr")
    assert result.intent == AnswerIntent.ACCOUNT_RATE
    assert result.text == "Overall CTR is 1.44% (clicks / impressions)."


def test_account_rate_defers_to_quoted_campaign() -> None:
    result = ask('ctr of "Spring Sale"')
    assert result.intent == AnswerIntent.ENTITY_PROFILE
    assert result.text.startswith('"Spring Sale" summary:')


def test_account_rate_beats_partial_campaign_name_overlap() -> None:
    """"average" also appears in "Cambodia Average"; the question is still account-wide."""
    result = ask("what is the average cpc?")

    assert result.intent == AnswerIntent.ACCOUNT_RATE
    assert result.text == "Average CPC is $1.97."


def test_total_metric_beats_partial_campaign_name_overlap() -> None:
    campaigns = CAMPAIGNS + [CampaignMetric(id="c5", name="Total Reach", spend=5.0, impressions=100, clicks=1)]

    result = ask("total clicks", campaigns=campaigns)

    assert result.intent == AnswerIntent.TOTAL_METRIC
    assert result.text == "Total clicks are 115."


# =============================================================================
# AD RANKINGS
# =============================================================================

def test_best_ad_by_efficiency_renders_profile() -> None:
    result = ask("which ads have the best efficiency score")

    assert result.intent == AnswerIntent.AD_RANKING
    assert result.text == (
        'Best ad by Efficiency score: "Hero Video"\n'
        "- Campaign: Spring Sale | Ad Set: Broad\n"
        "- Spend $60.00 | Impressions 2,000 | Clicks 50\n"
        "- CTR 2.50% | CPC $1.20 | CPM $30.00\n"
        "- Efficiency score 2.08 (CTR / max(CPC, 0.01))."
    )


def test_worst_performing_ad_uses_efficiency_ascending() -> None:
    result = ask("worst performing ads")
    assert result.text.startswith('Weakest ad by Efficiency score: "Search Text"')


def test_top_n_ads_by_metric_renders_numbered_list() -> None:
    assert ask("top 3 ads by ctr").text == (
        "Top 3 ads by CTR:\n"
        "1. Tiny - 4.44% (Cambodia Average)\n"
        "2. Hero Video - 2.50% (Spring Sale)\n"
        "3. Carousel - 1.50% (Spring Sale)"
    )


def test_ad_ranking_without_ad_rows() -> None:
    assert ask("top ads by ctr", ads=[]).text == NO_AD_ROWS_MESSAGE


# =============================================================================
# CAMPAIGN REFERENCES + RANKINGS
# =============================================================================

def test_top_campaign_by_ctr_single_entity() -> None:
    """Scenario: B has 4.00% CTR vs A's 1.00%."""
    campaigns = [
        CampaignMetric(id="a", name="A", spend=100.0, clicks=10, impressions=1000),
        CampaignMetric(id="b", name="B", spend=50.0, clicks=20, impressions=500),
    ]

    result = ask("top campaign by ctr", campaigns=campaigns, ads=[])

    assert result.intent == AnswerIntent.CAMPAIGN_RANKING
    assert result.text == "Top campaign by CTR:\n1. B - 4.00%"


def test_best_cpc_campaigns_sorted_ascending() -> None:
    assert ask("best 2 campaigns by cpc").text == (
        "Top 2 campaigns by CPC:\n"
        "1. Spring Sale - $1.50\n"
        "2. Brand Search - $3.00"
    )


def test_lowest_ctr_campaign_is_labelled_bottom() -> None:
    assert ask("lowest ctr campaign").text == "Bottom campaign by CTR:\n1. Cambodia Average - 0.44%"


def test_second_one_gives_profile_not_ranking() -> None:
    """Scenario: follow-up on a numbered list resolves to its second entry."""
    campaigns = [
        CampaignMetric(id="x", name="CampaignX", spend=10.0, impressions=100, clicks=1),
        CampaignMetric(id="y", name="CampaignY", spend=5.0, impressions=100, clicks=2),
    ]
    history = [ChatMessage(role="assistant", content="1. CampaignX - $10.00\n2. CampaignY - $5.00")]

    result = ask("tell me about the second one", history, campaigns=campaigns, ads=[])

    assert result.intent == AnswerIntent.ENTITY_PROFILE
    assert result.text.startswith('"CampaignY" summary:')


def test_ordinal_reference_with_ranking_words_gives_profile() -> None:
    history = [
        ChatMessage(role="assistant", content="Top 2 campaigns by Spend:\n1. Spring Sale - $120.00\n2. Cambodia Average - $15.00"),
    ]

    result = ask("is the second one our best campaign?", history)

    assert result.intent == AnswerIntent.ENTITY_PROFILE
    assert result.text.startswith('"Cambodia Average" summary:')


def test_pronoun_reference_with_ranking_words_gives_profile() -> None:
    result = ask("is that one the top spender?", [RANKED_REPLY])

    assert result.intent == AnswerIntent.ENTITY_PROFILE
    assert result.text.startswith('"Spring Sale" summary:')


def test_fuzzy_name_match_yields_to_ranking_language() -> None:
    campaigns = [
        CampaignMetric(id="1", name="Retargeting Campaign", spend=40.0, impressions=1000, clicks=10),
        CampaignMetric(id="2", name="Prospecting", spend=20.0, impressions=500, clicks=20),
    ]

    result = ask("top campaign by ctr", campaigns=campaigns, ads=[])

    assert result.intent == AnswerIntent.CAMPAIGN_RANKING
    assert result.text == "Top campaign by CTR:\n1. Prospecting - 4.00%"


def test_entity_profile() -> None:
    assert ask('how is "Brand Search" doing').text == (
        '"Brand Search" summary:\n'
        "- Spend $90.00 (40.00% of account spend, rank #2)\n"
        "- Impressions 3,000 | Clicks 30 | Results 3\n"
        "- CTR 1.00% | CPC $3.00 | CPM $30.00"
    )


def test_compare_those_two() -> None:
    result = ask("compare those two", [RANKED_REPLY])

    assert result.intent == AnswerIntent.COMPARISON
    assert result.text == (
        'Comparison: "Spring Sale" vs "Brand Search"\n'
        "- Spring Sale: Spend $120.00, CTR 2.00%, CPC $1.50\n"
        "- Brand Search: Spend $90.00, CTR 1.00%, CPC $3.00\n"
        "Winner by efficiency (CTR/CPC): Spring Sale"
    )


def test_comparison_tie_goes_to_first_entity() -> None:
    campaigns = [
        CampaignMetric(id="l", name="Left One", spend=10.0, impressions=100, clicks=5),
        CampaignMetric(id="r", name="Right One", spend=10.0, impressions=100, clicks=5),
    ]
    history = [ChatMessage(role="assistant", content="1. Left One - $10.00\n2. Right One - $10.00")]

    result = ask("compare both", history, campaigns=campaigns, ads=[])

    assert result.text.endswith("Winner by efficiency (CTR/CPC): Left One")


def test_comparison_with_one_entity_falls_through_to_profile() -> None:
    result = ask("compare spring sale")
    assert result.intent == AnswerIntent.ENTITY_PROFILE


# =============================================================================
# RECOMMENDATIONS + HELP
# =============================================================================

def test_recommendations() -> None:
    assert ask("recommend optimizations").text == (
        "Suggested actions:\n"
        "- Review Spring Sale: high spend ($120.00) but CTR at 2.00%.\n"
        "- Consider scaling Spring Sale: CTR 2.00% at CPC $1.50.\n"
        "- Check delivery on Cambodia Average: only 900 impressions."
    )


def test_recommendations_degrade_without_data() -> None:
    result = ask("how can I improve", campaigns=[CampaignMetric(id="d", name="Dormant")], ads=[])
    assert result.text == (
        "Suggested actions:\n"
        "- Not enough data for spend/CTR review.\n"
        "- Not enough data for scaling recommendation.\n"
        "- Not enough data for delivery recommendation."
    )


def test_help_fallback_names_a_real_campaign() -> None:
    result = ask("hello")
    assert result.intent == AnswerIntent.HELP
    assert result.text == (
        'I can answer detailed questions now. Try: "show top 5 by CTR", "compare those two", '
        '"what about the second one?", "recommend optimizations", or "tell me about Spring Sale".'
    )
