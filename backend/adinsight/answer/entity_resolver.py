"""
Entity Resolver - Which campaign(s) does this question refer to?

WHAT: Resolves named, ordinal and pronoun references to campaigns using the
      current question first and the conversation history second.
WHY: Follow-ups like "what about the second one?" or "compare those two" only
     make sense against the list the assistant showed a moment ago.
WHERE: Used by the answer builder (comparison + entity profile handlers).

RESOLUTION PRECEDENCE (first match wins):
    1. Quoted exact match        "Spring Sale"  → exact normalized name
    2. Fuzzy token overlap       ratio >= 0.35, best 3, deduplicated
    3. "those two" / "both"      first two entries of the ranked-list memory
    4. Ordinals                  "second", "3rd one", "number 4", "#5"
    5. Pronouns                  "that one", "this campaign", "about it", ...

RANKED-LIST MEMORY:
    Assistant messages are scanned newest → oldest for lines shaped like
    "N. <name> - ...". The first message that has any such line supplies the
    ordered name list; the names are then resolved against the dataset.

CONTRACT:
- Pure functions over immutable inputs (no hidden state)
- Never raises; an empty list means "no reference found"
- Only the last HISTORY_WINDOW messages are inspected
"""

import re
from typing import Dict, Iterable, List, Optional, Sequence, TypeVar

from adinsight.answer.text import normalize, tokenize
from adinsight.schemas import ChatMessage

HISTORY_WINDOW = 10
FUZZY_MIN_RATIO = 0.35
FUZZY_MAX_MATCHES = 3

_QUOTED = re.compile(r'"([^"]{2,140})"')
# "1. Spring Sale - 4.00%" and the bulleted "- 1. Spring Sale - 4.00%"
_RANKED_LINE = re.compile(r"^[ \t]*(?:[-*•][ \t]*)?\d+\.[ \t]+(.+?)[ \t]+[-–—][ \t]", re.MULTILINE)

NAMED_ORDINALS: Dict[str, int] = {
    "first": 0,
    "second": 1,
    "third": 2,
    "fourth": 3,
    "fifth": 4,
    "sixth": 5,
    "seventh": 6,
    "eighth": 7,
    "ninth": 8,
    "tenth": 9,
}
_NUMERIC_ORDINAL = re.compile(r"\b(\d{1,2})(?:st|nd|rd|th)?\s+(?:one|campaign|option)\b")
_NUMBERED_REFERENCE = re.compile(r"(?:\bnumber\s+|#)(\d{1,2})\b")

_PAIR_PHRASES = ("those two", "both")
_PRONOUN_PHRASES = ("that one", "that campaign", "this campaign", " about it", "about that")

T = TypeVar("T")


def recent_history(history: Sequence[ChatMessage]) -> List[ChatMessage]:
    return list(history[-HISTORY_WINDOW:])


def unique_entities(entities: Iterable[Optional[T]]) -> List[T]:
    """Drop None and repeated identities while keeping first-seen order."""
    seen = set()
    result = []
    for entity in entities:
        if entity is None or entity.id in seen:
            continue
        seen.add(entity.id)
        result.append(entity)
    return result


def extract_quoted_names(text: str) -> List[str]:
    return [match.group(1) for match in _QUOTED.finditer(text)]


def extract_ranked_lines(text: str) -> List[str]:
    return [match.group(1).strip() for match in _RANKED_LINE.finditer(text)]


def match_by_name(name: str, entities: Sequence[T]) -> Optional[T]:
    """
    Find an entity by name: exact normalized match first, then containment
    in either direction ("spring sale" ↔ "spring sale us").
    """
    normalized = normalize(name)
    if not normalized:
        return None

    for entity in entities:
        if normalize(entity.name) == normalized:
            return entity

    for entity in entities:
        entity_name = normalize(entity.name)
        if entity_name and (normalized in entity_name or entity_name in normalized):
            return entity

    return None


def find_quoted_entities(question: str, entities: Sequence[T]) -> List[T]:
    """Quoted names in the question matched exactly (after normalization)."""
    quoted = [normalize(name) for name in extract_quoted_names(question)]
    if not quoted:
        return []

    by_name = {}
    for entity in entities:
        by_name.setdefault(normalize(entity.name), entity)

    return unique_entities(by_name.get(name) for name in quoted)


def find_fuzzy_entities(question: str, entities: Sequence[T]) -> List[T]:
    """
    Rank entities by the share of their name tokens that appear in the question.

    ratio = |question tokens ∩ name tokens| / |name tokens|
    """
    question_tokens = set(tokenize(question))
    if not question_tokens:
        return []

    scored = []
    for entity in entities:
        name_tokens = tokenize(entity.name)
        overlap = sum(1 for token in name_tokens if token in question_tokens)
        ratio = overlap / max(len(name_tokens), 1)
        if ratio >= FUZZY_MIN_RATIO:
            scored.append((ratio, entity))

    # sorted() is stable: equal ratios keep dataset order
    scored = sorted(scored, key=lambda item: item[0], reverse=True)
    return unique_entities(entity for _, entity in scored)[:FUZZY_MAX_MATCHES]


def find_named_entities(question: str, entities: Sequence[T]) -> List[T]:
    """Steps 1-2: quoted exact match, else fuzzy token overlap."""
    quoted = find_quoted_entities(question, entities)
    if quoted:
        return quoted
    return find_fuzzy_entities(question, entities)


def extract_ranked_names(history: Sequence[ChatMessage]) -> List[str]:
    """
    Names from the most recent assistant message containing a numbered list.

    Iterates newest → oldest and returns as soon as one message yields lines.
    """
    for message in reversed(recent_history(history)):
        if message.role != "assistant":
            continue
        names = extract_ranked_lines(message.content)
        if names:
            return names
    return []


def ranked_list_memory(history: Sequence[ChatMessage], entities: Sequence[T]) -> List[T]:
    """Ranked-list names resolved against the dataset, in list order."""
    names = extract_ranked_names(history)
    return unique_entities(match_by_name(name, entities) for name in names)


def extract_ordinal_indexes(question: str) -> List[int]:
    """
    Zero-based indexes referenced by the question.

    Named ordinals come first (in first..tenth order), then "2nd one" style,
    then "number 3" / "#4" style; duplicates are dropped.

    Examples:
        >>> extract_ordinal_indexes("what about the second one?")
        [1]

        >>> extract_ordinal_indexes("compare #1 and number 3")
        [0, 2]
    """
    q = question.lower()
    indexes: List[int] = []

    for word, index in NAMED_ORDINALS.items():
        if re.search(rf"\b{word}\b", q):
            indexes.append(index)

    for pattern in (_NUMERIC_ORDINAL, _NUMBERED_REFERENCE):
        for match in pattern.finditer(q):
            index = int(match.group(1)) - 1
            if 0 <= index < len(NAMED_ORDINALS):
                indexes.append(index)

    return list(dict.fromkeys(indexes))


def is_pronoun_reference(question: str) -> bool:
    q = question.lower().strip()
    return q == "it" or any(phrase in q for phrase in _PRONOUN_PHRASES)


def is_pair_reference(question: str) -> bool:
    q = question.lower()
    return any(phrase in q for phrase in _PAIR_PHRASES)


def find_most_recent_mention(history: Sequence[ChatMessage], entities: Sequence[T]) -> List[T]:
    """
    Entities named in the newest message (any role) that mentions one.

    Quoted names are preferred over ranked-list lines within a message.
    """
    for message in reversed(recent_history(history)):
        quoted = unique_entities(
            match_by_name(name, entities) for name in extract_quoted_names(message.content)
        )
        if quoted:
            return quoted

        ranked = unique_entities(
            match_by_name(name, entities) for name in extract_ranked_lines(message.content)
        )
        if ranked:
            return ranked
    return []


def find_most_recent_assistant_mention(history: Sequence[ChatMessage], entities: Sequence[T]) -> Optional[T]:
    """First entity the assistant mentioned most recently (quoted, then ranked)."""
    for message in reversed(recent_history(history)):
        if message.role != "assistant":
            continue
        for name in extract_quoted_names(message.content) + extract_ranked_lines(message.content):
            entity = match_by_name(name, entities)
            if entity is not None:
                return entity
    return None


def resolve_references(question: str, history: Sequence[ChatMessage], entities: Sequence[T]) -> List[T]:
    """
    Resolve which entities the question refers to.

    Returns an ordered, possibly empty list; never raises.
    """
    explicit = find_named_entities(question, entities)
    if explicit:
        return explicit

    ranked = ranked_list_memory(history, entities)

    if is_pair_reference(question) and len(ranked) >= 2:
        return ranked[:2]

    ordinals = extract_ordinal_indexes(question)
    if ordinals and ranked:
        picked = unique_entities(ranked[index] for index in ordinals if index < len(ranked))
        if picked:
            return picked

    if is_pronoun_reference(question):
        if ranked:
            return [ranked[0]]
        mentioned = find_most_recent_mention(history, entities)
        if mentioned:
            return [mentioned[0]]

    return []
