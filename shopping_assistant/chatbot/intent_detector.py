"""Rule-based intent detection for chat messages (no model calls)."""

import logging
import re
from typing import Any, Dict, List, Optional

from ..database.models import FilterCriteria, Intent
from .query_parser import detect_colors, detect_sizes, extract_price_range, mentions, primary_color

logger = logging.getLogger(__name__)

GREETING_PATTERNS = [
    re.compile(r"^(hi|hey|hello|hola|howdy)[!.\s]*$"),
    re.compile(r"^good\s+(morning|afternoon|evening)[!.\s]*$"),
]

CURRENT_PRODUCT_PATTERNS = [
    "tell me more", "about this", "this product", "about the product", "more info",
    "more information", "details", "describe", "what is this", "what's this",
]

# Note "issue" and "problem" also match product questions ("an issue with sizing")
TICKET_PATTERNS = [
    "talk to someone", "speak to", "human", "support", "help me", "frustrated",
    "not working", "issue", "problem", "complaint", "create ticket", "create a ticket",
    "want to create", "need a ticket", "support ticket", "talk to agent", "speak to agent",
]

SEARCH_PATTERNS = [
    "show me", "find", "search", "looking for", "do you have", "have any", "any",
    "available", "in stock", "buy", "purchase", "get", "looking to buy", "want to buy",
    "browse", "see", "view",
]

PRODUCT_KEYWORDS = [
    "jacket", "coat", "shirt", "pants", "jeans", "shoe", "boot", "sneaker",
    "dress", "sweater", "hoodie", "t-shirt", "tshirt", "belt", "bag", "hat", "scarf",
    "shorts", "skirt", "socks", "underwear", "bra", "watch", "jewelry", "necklace",
    "ring", "bracelet", "earring", "sunglasses", "glasses", "wallet",
]

RECOMMENDATION_PATTERNS = [
    "recommend", "suggest", "what should", "what else", "similar", "any suggestions",
    "matching", "goes well", "pair with", "complement", "go with", "goes with",
    "match", "style with",
]

POLICY_PATTERNS = [
    "shipping", "delivery", "return policy", "refund policy", "exchange",
    "warranty", "terms", "privacy",
]

ORDER_PATTERNS = ["my order", "order status", "track my", "tracking", "where is my"]
ACCOUNT_PATTERNS = ["my account", "password", "log in", "login", "sign in"]

KEYWORD_STOP_WORDS = {
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "is", "are", "was", "were",
}


def _has_phrase(text: str, phrases: List[str]) -> bool:
    return any(re.search(rf"\b{re.escape(phrase)}", text) for phrase in phrases)


def _field(product: Any, name: str) -> Any:
    if product is None:
        return None
    if isinstance(product, dict):
        return product.get(name)
    return getattr(product, name, None)


def extract_keywords(message: str) -> List[str]:
    """Distinct words longer than two letters, punctuation removed."""
    words = re.sub(r"[^\w\s]", "", message.lower()).split()
    keywords: List[str] = []
    for word in words:
        if len(word) > 2 and word not in KEYWORD_STOP_WORDS and word not in keywords:
            keywords.append(word)
    return keywords


def analyze_intent(message: str, current_product: Optional[Any] = None,
                   conversation_history: Optional[List[Dict[str, str]]] = None) -> Intent:
    """Classify one user message.

    Priority (first match wins): ticket request, policy question, greeting or
    question about the product being viewed, recommendation, product search,
    general question. Filters are extracted whichever branch is taken.
    ``conversation_history`` is accepted for interface parity and not used.
    """
    lower = message.lower().strip()

    is_greeting = any(pattern.match(lower) for pattern in GREETING_PATTERNS)
    is_about_current_product = current_product is not None and _has_phrase(lower, CURRENT_PRODUCT_PATTERNS)
    wants_ticket = _has_phrase(lower, TICKET_PATTERNS)
    is_search = _has_phrase(lower, SEARCH_PATTERNS)
    has_product_keyword = any(mentions(lower, keyword) for keyword in PRODUCT_KEYWORDS)
    wants_recommendations = _has_phrase(lower, RECOMMENDATION_PATTERNS)
    is_policy_query = _has_phrase(lower, POLICY_PATTERNS)

    min_price, max_price = extract_price_range(lower)
    colors = detect_colors(lower)
    sizes = detect_sizes(lower)

    if wants_ticket:
        intent_type = "ticket_creation"
    elif is_policy_query:
        intent_type = "policy_query"
    elif is_greeting or is_about_current_product:
        intent_type = "question"
    elif wants_recommendations:
        intent_type = "recommendation"
    elif is_search or has_product_keyword or colors or max_price or min_price:
        intent_type = "search"
    else:
        intent_type = "question"

    filters = FilterCriteria(
        min_price=min_price,
        max_price=max_price,
        color=primary_color(colors),
        colors=colors,
        size=sizes[0] if sizes else None,
        sizes=sizes,
        keywords=extract_keywords(message),
        # Category only narrows when the shopper asks about the product on screen
        category=_field(current_product, "category") or None if is_about_current_product else None,
    )

    if is_policy_query:
        query_type = "policy"
    elif _has_phrase(lower, ORDER_PATTERNS):
        query_type = "order"
    elif _has_phrase(lower, ACCOUNT_PATTERNS):
        query_type = "account"
    elif intent_type in ("search", "recommendation") or is_about_current_product or has_product_keyword:
        query_type = "product"
    else:
        query_type = "general"

    intent = Intent(
        type=intent_type,
        confidence=0.85,
        wants_recommendations=wants_recommendations or (intent_type == "search" and (is_search or has_product_keyword)),
        wants_ticket=wants_ticket,
        ticket_stage="offer" if wants_ticket else None,
        filters=filters,
        query_type=query_type,
        sentiment="frustrated" if wants_ticket else "neutral",
    )
    logger.debug(f"Intent for '{message[:50]}': {intent.type}")
    return intent
