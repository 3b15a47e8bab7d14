"""
Heuristic parsing of AI assistant answers.

Pure, provider-agnostic functions that turn free text into the signals used
for scoring: whether the business was mentioned, at which rank, with which
sentiment, which rivals were named and which content gaps were called out.

These are best-effort classifiers, not a verified NLP model. Thresholds are
module constants so callers and tests can override them per call.
"""

import re
from typing import Iterable, List, Optional, Pattern, Sequence

from ai_visibility.models.report import Analysis, Sentiment

# Characters of context taken on each side of the mention for sentiment
SENTIMENT_WINDOW_CHARS = 200
# Mentions in the first N lines without an explicit marker rank by line position
IMPLICIT_RANK_LINES = 3
MIN_NAME_WORD_LENGTH = 3

MAX_COMPETITORS_PER_RESPONSE = 10
MIN_COMPETITOR_NAME_LENGTH = 3
MAX_COMPETITOR_NAME_WORDS = 6

CONTENT_GAP_MIN_LENGTH = 10
CONTENT_GAP_MAX_LENGTH = 200
MAX_CONTENT_GAPS = 5

RECOMMENDATION_MIN_LENGTH = 15
RECOMMENDATION_MAX_LENGTH = 200
MAX_RECOMMENDATIONS = 5

SENTENCE_MIN_LENGTH = 20
SENTENCE_MAX_LENGTH = 200
MAX_STRENGTHS = 3
MAX_WEAKNESSES = 3

POSITIVE_WORDS = (
    "excellent",
    "outstanding",
    "best",
    "top",
    "great",
    "amazing",
    "highly recommended",
    "quality",
    "superior",
    "exceptional",
    "popular",
    "favorite",
    "award",
    "praised",
    "renowned",
)

NEGATIVE_WORDS = (
    "poor",
    "worst",
    "bad",
    "disappointing",
    "mediocre",
    "avoid",
    "lacking",
    "limited",
    "inferior",
    "subpar",
    "complaints",
    "issues",
    "problems",
    "unreliable",
)

STRENGTH_KEYWORDS = (
    "excellent",
    "great",
    "best",
    "top",
    "outstanding",
    "exceptional",
    "quality",
    "professional",
    "reliable",
    "trusted",
    "popular",
    "award",
    "certified",
    "experienced",
    "specialized",
    "expert",
)

WEAKNESS_KEYWORDS = (
    "however",
    "but",
    "limited",
    "lacking",
    "could improve",
    "downside",
    "weakness",
    "issue",
    "problem",
    "concern",
    "expensive",
    "slow",
    "small",
    "fewer",
    "less",
)

COMPETITOR_STOP_WORDS = frozenset(
    {"the", "and", "or", "other", "more", "such", "like", "many", "some", "several"}
)

# "#1", "1.", "1)", "1:", "**1.**", "**1. Name**"
_RANK_MARKER = re.compile(r"^\s*(?:\*\*)?(?:#(\d+)|(\d+)[.:)])")

_COMPETITOR_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(
        r"\b(?:competitors?|alternatives?|similar (?:businesses|business|companies|company|services|service)"
        r"|other options?)(?:\s+(?:include|are|like|such as))?\s*:?\s*([^.!?\n]+)",
        re.IGNORECASE,
    ),
    # Names after "compared to" must be capitalized words
    re.compile(r"(?i:\bcompared to|\bversus|\bvs\.?)\s+([A-Z][\w'&-]*(?:\s+[A-Z][\w'&-]*)*)"),
)
_COMPETITOR_SPLIT = re.compile(r",|;|\sand\s|\sor\s")
_COMPETITOR_JUNK = re.compile(r"[^\w\s'&-]")

_CONTENT_GAP_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(
        r"\b(?:could improve|should add|missing|lacks?|doesn't have|does not have"
        r"|would benefit from|consider adding)\s+([^.!?\n]+)",
        re.IGNORECASE,
    ),
    re.compile(
        r"\b(?:competitors have|others offer|also provides?)\s+([^.!?\n]+)",
        re.IGNORECASE,
    ),
)

_RECOMMENDATION_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(
        r"\b(?:recommend|suggest|should|could|try|consider)\s+([^.!?\n]+)",
        re.IGNORECASE,
    ),
    re.compile(r"\b(?:tip|advice|best practice):\s*([^.!?\n]+)", re.IGNORECASE),
)

_SENTENCE_SPLIT = re.compile(r"[.!?]+")


def _significant_words(business_name: str) -> List[str]:
    return [w for w in business_name.lower().split() if len(w) >= MIN_NAME_WORD_LENGTH]


def is_business_mentioned(text: str, business_name: str) -> bool:
    """
    Case-insensitive check for the business in ``text``.

    The full name wins; otherwise every name word of at least three characters
    must appear somewhere in the text.
    """
    if not text or not business_name.strip():
        return False

    lowered = text.lower()
    if business_name.lower().strip() in lowered:
        return True

    words = _significant_words(business_name)
    return bool(words) and all(word in lowered for word in words)


def extract_ranking(
    text: str, business_name: str, implicit_rank_lines: int = IMPLICIT_RANK_LINES
) -> Optional[int]:
    """
    Position of the business in a ranked answer, if inferable.

    The first line mentioning the business with a leading ordinal marker gives
    the rank. A mention within the first ``implicit_rank_lines`` lines without
    a marker ranks by its 1-based line position.
    """
    for index, line in enumerate(text.split("\n")):
        if not is_business_mentioned(line, business_name):
            continue

        match = _RANK_MARKER.match(line)
        if match:
            rank = int(match.group(1) or match.group(2))
            if rank > 0:
                return rank

        if index < implicit_rank_lines:
            return index + 1

    return None


def _mention_position(lowered_text: str, business_name: str) -> Optional[tuple]:
    """(start, end) of the first mention, falling back to the first name word."""
    name = business_name.lower().strip()
    start = lowered_text.find(name)
    if start != -1:
        return start, start + len(name)

    positions = [
        (lowered_text.find(word), word)
        for word in _significant_words(business_name)
        if word in lowered_text
    ]
    if not positions:
        return None
    start, word = min(positions)
    return start, start + len(word)


def _count_terms(context: str, terms: Iterable[str]) -> int:
    return sum(
        len(re.findall(r"\b" + re.escape(term) + r"\b", context)) for term in terms
    )


def analyze_sentiment(
    text: str, business_name: str, window: int = SENTIMENT_WINDOW_CHARS
) -> Optional[Sentiment]:
    """
    Sentiment of the text surrounding the business mention.

    Counts positive and negative indicator words within ``window`` characters
    either side of the mention; the majority wins and a tie is neutral.
    Returns None when the business is not mentioned.
    """
    if not is_business_mentioned(text, business_name):
        return None

    lowered = text.lower()
    position = _mention_position(lowered, business_name)
    if position is None:
        return None

    start, end = position
    context = lowered[max(0, start - window) : end + window]

    positive = _count_terms(context, POSITIVE_WORDS)
    negative = _count_terms(context, NEGATIVE_WORDS)

    if positive > negative:
        return Sentiment.POSITIVE
    if negative > positive:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def _clean_competitor_name(raw: str) -> str:
    cleaned = _COMPETITOR_JUNK.sub("", raw)
    cleaned = " ".join(cleaned.split())
    return cleaned.strip("'-& ")


def extract_competitors(
    text: str, business_name: str, limit: int = MAX_COMPETITORS_PER_RESPONSE
) -> List[str]:
    """
    Rival business names from phrasing such as "competitors include X, Y" or
    "compared to X".

    Names are deduplicated case-insensitively (first spelling wins), and any
    name containing the business's own name is dropped.
    """
    own_name = business_name.lower().strip()
    seen = set()
    competitors: List[str] = []

    for pattern in _COMPETITOR_PATTERNS:
        for match in pattern.finditer(text):
            for candidate in _COMPETITOR_SPLIT.split(match.group(1)):
                name = _clean_competitor_name(candidate)
                key = name.lower()

                if len(name) < MIN_COMPETITOR_NAME_LENGTH:
                    continue
                if key in COMPETITOR_STOP_WORDS:
                    continue
                if len(name.split()) > MAX_COMPETITOR_NAME_WORDS:
                    continue
                if own_name and own_name in key:
                    continue
                if key in seen:
                    continue

                seen.add(key)
                competitors.append(name)

    return competitors[:limit]


def _extract_phrases(
    text: str,
    patterns: Sequence[Pattern[str]],
    min_length: int,
    max_length: int,
    limit: int,
) -> List[str]:
    phrases: List[str] = []
    for pattern in patterns:
        for match in pattern.finditer(text):
            phrase = match.group(1).strip()
            if min_length < len(phrase) < max_length and phrase not in phrases:
                phrases.append(phrase)
    return phrases[:limit]


def extract_content_gaps(text: str, limit: int = MAX_CONTENT_GAPS) -> List[str]:
    """Phrases such as "could improve …", "missing …", "competitors have …"."""
    return _extract_phrases(
        text,
        _CONTENT_GAP_PATTERNS,
        CONTENT_GAP_MIN_LENGTH,
        CONTENT_GAP_MAX_LENGTH,
        limit,
    )


def extract_recommendations(text: str, limit: int = MAX_RECOMMENDATIONS) -> List[str]:
    """Phrases such as "recommend …", "consider …", "tip: …"."""
    return _extract_phrases(
        text,
        _RECOMMENDATION_PATTERNS,
        RECOMMENDATION_MIN_LENGTH,
        RECOMMENDATION_MAX_LENGTH,
        limit,
    )


def _mention_sentences(
    text: str, business_name: str, keywords: Sequence[str], limit: int
) -> List[str]:
    if not is_business_mentioned(text, business_name):
        return []

    found: List[str] = []
    for sentence in _SENTENCE_SPLIT.split(text):
        if not is_business_mentioned(sentence, business_name):
            continue
        lowered = sentence.lower()
        if not any(keyword in lowered for keyword in keywords):
            continue
        cleaned = sentence.strip()
        if SENTENCE_MIN_LENGTH < len(cleaned) < SENTENCE_MAX_LENGTH:
            found.append(cleaned)
    return found[:limit]


def extract_strengths(text: str, business_name: str) -> List[str]:
    """Sentences praising the business."""
    return _mention_sentences(text, business_name, STRENGTH_KEYWORDS, MAX_STRENGTHS)


def extract_weaknesses(text: str, business_name: str) -> List[str]:
    """Sentences raising a concern about the business."""
    return _mention_sentences(text, business_name, WEAKNESS_KEYWORDS, MAX_WEAKNESSES)


def analyze_response(text: str, business_name: str) -> Analysis:
    """Run every heuristic over one answer text."""
    text = text or ""
    return Analysis(
        business_mentioned=is_business_mentioned(text, business_name),
        business_ranking=extract_ranking(text, business_name),
        competitors_mentioned=tuple(extract_competitors(text, business_name)),
        sentiment=analyze_sentiment(text, business_name),
        strengths=tuple(extract_strengths(text, business_name)),
        weaknesses=tuple(extract_weaknesses(text, business_name)),
        content_gaps=tuple(extract_content_gaps(text)),
        recommendations=tuple(extract_recommendations(text)),
    )
