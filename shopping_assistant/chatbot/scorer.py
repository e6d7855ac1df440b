"""Weighted additive relevance scoring of one product against one query."""

import re
from typing import List, Tuple

from ..database.models import Product, QueryIntent
from .query_parser import STOP_WORDS, product_color_text, product_sizes, product_text

CATEGORY_WEIGHT = 10
TYPE_WEIGHT = 10
COLOR_WEIGHT = 5
COMPOUND_COLOR_WEIGHT = 8
KEYWORD_WEIGHT = 3
PRICE_BOUND_WEIGHT = 5
PRICE_RANGE_BONUS = 3
SCENARIO_WEIGHT = 5
TITLE_MATCH_WEIGHT = 8
STYLE_WEIGHT = 3
SIZE_WEIGHT = 5
IN_STOCK_BONUS = 2
OUT_OF_STOCK_PENALTY = -10

# Scenario -> (label, product type words); any "clothing" category also qualifies
SCENARIO_TYPES = {
    "formal": ("formal", ("suit", "dress")),
    "casual": ("casual", ("t-shirt", "jeans")),
    "winter": ("winter", ("jacket", "coat")),
    "summer": ("summer", ("t-shirt", "shorts")),
}

_WORD = re.compile(r"[a-z0-9][a-z0-9'\-]*")


def _title_words(query: str) -> List[str]:
    words = []
    for word in _WORD.findall(query.lower()):
        if len(word) > 3 and word not in STOP_WORDS and word not in words:
            words.append(word)
    return words


def score_product(product: Product, intent: QueryIntent, query: str) -> Tuple[int, List[str]]:
    """Return ``(score, reasons)``; reasons are for diagnostics only."""
    score = 0
    reasons: List[str] = []

    text = product_text(product)
    category = product.category.lower()
    product_type = product.type.lower()

    if intent.category and intent.category.lower() in category:
        score += CATEGORY_WEIGHT
        reasons.append("Category match")

    if intent.type and intent.type.lower() in product_type:
        score += TYPE_WEIGHT
        reasons.append("Type match")

    if intent.colors:
        color_text = f"{product_color_text(product)} {product.description.lower()}"
        for color in intent.colors:
            if color.lower() in color_text:
                score += COLOR_WEIGHT
                reasons.append(f"Color: {color}")
                break
        if "black" in intent.colors and "blue" in intent.colors:
            if "navy" in color_text or "dark blue" in color_text:
                score += COMPOUND_COLOR_WEIGHT
                reasons.append("Color: black-blue/navy")

    for keyword in intent.keywords:
        if keyword.lower() in text:
            score += KEYWORD_WEIGHT
            reasons.append(f"Keyword: {keyword}")

    price_min = intent.price_range.min
    price_max = intent.price_range.max
    if price_max is not None and product.price <= price_max:
        score += PRICE_BOUND_WEIGHT
        reasons.append("Within max budget")
    if price_min is not None and product.price >= price_min:
        score += PRICE_BOUND_WEIGHT
        reasons.append("Within min budget")
    if price_min is not None and price_max is not None and price_min <= product.price <= price_max:
        score += PRICE_RANGE_BONUS
        reasons.append("Price in range")

    if intent.scenario:
        scenario = intent.scenario.lower()
        for key, (label, type_words) in SCENARIO_TYPES.items():
            if key in scenario and ("clothing" in category or any(w in product_type for w in type_words)):
                score += SCENARIO_WEIGHT
                reasons.append(f"Scenario: {label}")

    title = product.title.lower()
    for word in _title_words(query):
        if word in title:
            score += TITLE_MATCH_WEIGHT
            reasons.append(f"Title match: {word}")

    for style in intent.style_keywords:
        if style.lower() in text:
            score += STYLE_WEIGHT
            reasons.append(f"Style: {style}")

    wanted_sizes = [intent.size] if intent.size else intent.sizes
    if wanted_sizes:
        available = {s.lower() for s in product_sizes(product)}
        if any(size.lower() in available for size in wanted_sizes):
            score += SIZE_WEIGHT
            reasons.append(f"Size match: {', '.join(wanted_sizes)}")

    if product.in_stock:
        score += IN_STOCK_BONUS
    else:
        score += OUT_OF_STOCK_PENALTY

    return score, reasons
