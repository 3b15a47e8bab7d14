"""
Query generation for AI visibility analysis.

Queries are rendered from a template library keyed by business category.
They are phrased the way a customer would ask an assistant for a
recommendation, so that the answers contain ranked lists of businesses.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import structlog

from ai_visibility.models.report import GeneratedQuery, QueryIntent

logger = structlog.get_logger(__name__)

DEFAULT_CATEGORY = "default"
DEFAULT_QUERY_COUNT = 10

QUERY_MIN_LENGTH = 10
QUERY_MAX_LENGTH = 200

CUSTOM_QUERY_DESCRIPTION = "Custom query"


@dataclass(frozen=True)
class QueryTemplate:
    """Template for generating discovery queries."""

    intent: QueryIntent
    template: str
    description: str


def _t(intent: str, template: str, description: str) -> QueryTemplate:
    return QueryTemplate(QueryIntent(intent), template, description)


QUERY_TEMPLATES: Dict[str, List[QueryTemplate]] = {
    "coffee_shop": [
        _t("discovery", "best coffee shops in {location}", "General discovery query"),
        _t("specific", "where to get specialty coffee in {location}", "Specialty coffee seekers"),
        _t("discovery", "coffee shops with great atmosphere in {location}", "Ambiance-focused query"),
        _t("comparison", "top rated coffee shops {location}", "Quality comparison"),
        _t("specific", "coffee shops with wifi for working in {location}", "Remote worker query"),
    ],
    "restaurant": [
        _t("discovery", "best restaurants in {location}", "General dining query"),
        _t("specific", "top {cuisine} restaurants in {location}", "Cuisine-specific search"),
        _t("comparison", "highly rated restaurants {location}", "Quality-focused search"),
        _t("reviews", "restaurants with best reviews in {location}", "Review-based discovery"),
        _t("specific", "romantic dinner spots in {location}", "Occasion-based search"),
    ],
    "dental_office": [
        _t("discovery", "best dentists in {location}", "General dentist search"),
        _t("specific", "family dentist {location}", "Family-focused search"),
        _t("comparison", "top rated dental offices {location}", "Quality comparison"),
        _t("specific", "emergency dental care {location}", "Urgent care search"),
        _t("reviews", "dentists with best patient reviews {location}", "Review-based search"),
    ],
    "auto_repair": [
        _t("discovery", "best auto repair shops in {location}", "General repair search"),
        _t("specific", "trusted mechanic {location}", "Trust-focused search"),
        _t("comparison", "top rated auto repair {location}", "Quality comparison"),
        _t("specific", "affordable car repair {location}", "Budget-conscious search"),
        _t("reviews", "honest mechanics with good reviews {location}", "Integrity-focused search"),
    ],
    "gym": [
        _t("discovery", "best gyms in {location}", "General gym search"),
        _t("specific", "gyms with personal trainers {location}", "Training-focused search"),
        _t("comparison", "top fitness centers {location}", "Quality comparison"),
        _t("specific", "24 hour gym {location}", "Schedule-based search"),
        _t("reviews", "gyms with best member reviews {location}", "Member satisfaction search"),
    ],
    "hair_salon": [
        _t("discovery", "best hair salons in {location}", "General salon search"),
        _t("specific", "hair colorist specialists {location}", "Specialty service search"),
        _t("comparison", "top rated hair stylists {location}", "Quality comparison"),
        _t("reviews", "hair salons with excellent reviews {location}", "Review-based search"),
        _t("specific", "affordable haircuts {location}", "Budget-conscious search"),
    ],
    DEFAULT_CATEGORY: [
        _t("discovery", "best {business_type} in {location}", "General discovery"),
        _t("comparison", "top rated {business_type} {location}", "Quality comparison"),
        _t("reviews", "{business_type} with best reviews {location}", "Review-based search"),
        _t("specific", "recommended {business_type} near {location}", "Recommendation search"),
        _t("comparison", "most popular {business_type} in {location}", "Popularity-based search"),
    ],
}

# Common spellings of the supported categories
CATEGORY_ALIASES: Dict[str, str] = {
    "cafe": "coffee_shop",
    "coffee": "coffee_shop",
    "espresso_bar": "coffee_shop",
    "dentist": "dental_office",
    "dental": "dental_office",
    "orthodontist": "dental_office",
    "mechanic": "auto_repair",
    "car_repair": "auto_repair",
    "auto_shop": "auto_repair",
    "fitness_center": "gym",
    "fitness": "gym",
    "health_club": "gym",
    "salon": "hair_salon",
    "hair_stylist": "hair_salon",
    "barber": "hair_salon",
    "dining": "restaurant",
    "eatery": "restaurant",
    "bistro": "restaurant",
}

_PLACEHOLDER = re.compile(r"\{(\w+)\}")
_SEPARATORS = re.compile(r"[\s\-]+")


def normalize_business_type(
    business_type: str, templates: Optional[Mapping[str, Sequence[QueryTemplate]]] = None
) -> str:
    """
    Map a free-text category onto a template key.

    "Coffee Shop", "coffee-shop" and "cafe" all map to ``coffee_shop``;
    anything unknown maps to ``default``.
    """
    templates = QUERY_TEMPLATES if templates is None else templates
    key = _SEPARATORS.sub("_", (business_type or "").strip().lower())

    if key in templates:
        return key
    return CATEGORY_ALIASES.get(key, DEFAULT_CATEGORY)


def _clean_value(value: str) -> str:
    # Braces in user input must not survive into a query
    return " ".join(value.replace("{", "").replace("}", "").split())


def render_template(template: str, business_type: str, location: str) -> str:
    """Substitute every placeholder; unknown placeholders render as the category."""
    values = {
        "location": _clean_value(location),
        "business_type": _clean_value(business_type),
        "cuisine": _clean_value(business_type),
    }
    rendered = _PLACEHOLDER.sub(
        lambda m: values.get(m.group(1), values["business_type"]), template
    )
    return " ".join(rendered.split())


class QueryGenerator:
    """
    Builds the list of queries sent to every platform for one report.

    Custom queries come first, verbatim; remaining slots cycle through the
    category's templates, at most twice.
    """

    def __init__(
        self, templates: Optional[Mapping[str, Sequence[QueryTemplate]]] = None
    ):
        self.templates = dict(QUERY_TEMPLATES if templates is None else templates)
        if DEFAULT_CATEGORY not in self.templates:
            raise ValueError("Template library must define a 'default' category")

    def templates_for(self, business_type: str) -> Sequence[QueryTemplate]:
        key = normalize_business_type(business_type, self.templates)
        return self.templates.get(key) or self.templates[DEFAULT_CATEGORY]

    def generate(
        self,
        business_name: str,
        business_type: str,
        location: str,
        custom_queries: Iterable[str] = (),
        count: int = DEFAULT_QUERY_COUNT,
        include_business_name: bool = False,
    ) -> List[GeneratedQuery]:
        """
        Generate custom queries plus templates up to ``count`` in total.

        Every non-blank custom query is kept verbatim, even past ``count``;
        ``count`` only limits how many template slots are filled.

        Args:
            business_name: Business being analyzed
            business_type: Free-text category
            location: Free-text location
            custom_queries: Caller-supplied queries, included first
            count: Total wanted; caps template queries only
            include_business_name: Append "like <name>" to every third
                template query

        Returns:
            Queries in stable order (custom, then template order)
        """
        queries: List[GeneratedQuery] = [
            GeneratedQuery(
                query=custom,
                intent=QueryIntent.SPECIFIC,
                description=CUSTOM_QUERY_DESCRIPTION,
            )
            for custom in custom_queries
            if custom and custom.strip()
        ]

        templates = self.templates_for(business_type)
        template_index = 0
        # Two passes at most, so short template lists cannot loop forever
        while len(queries) < count and template_index < len(templates) * 2:
            template = templates[template_index % len(templates)]
            query = render_template(template.template, business_type, location)
            if include_business_name and template_index % 3 == 0:
                query = f"{query} like {_clean_value(business_name)}"
            template_index += 1

            problems = validate_query(query)
            if problems:
                logger.warning("Skipping invalid query", query=query, problems=problems)
                continue

            queries.append(
                GeneratedQuery(
                    query=query,
                    intent=template.intent,
                    description=template.description,
                )
            )

        logger.info(
            "Queries generated",
            business_type=business_type,
            template_key=normalize_business_type(business_type, self.templates),
            requested=count,
            generated=len(queries),
            custom=sum(1 for q in queries if q.description == CUSTOM_QUERY_DESCRIPTION),
            intents=get_query_intent_distribution(queries),
        )
        return queries


def validate_query(query: str) -> List[str]:
    """
    Quality problems with a query; an empty list means the query is valid.
    """
    errors = []
    if len(query) < QUERY_MIN_LENGTH:
        errors.append(f"Query too short (minimum {QUERY_MIN_LENGTH} characters)")
    if len(query) > QUERY_MAX_LENGTH:
        errors.append(f"Query too long (maximum {QUERY_MAX_LENGTH} characters)")
    if "{" in query or "}" in query:
        errors.append("Query contains unreplaced placeholders")
    if query.strip() != query:
        errors.append("Query has leading/trailing whitespace")
    return errors


def get_query_intent_distribution(queries: Iterable[GeneratedQuery]) -> Dict[str, int]:
    """Number of queries per intent, every intent present."""
    distribution = {intent.value: 0 for intent in QueryIntent}
    for query in queries:
        distribution[query.intent.value] += 1
    return distribution
