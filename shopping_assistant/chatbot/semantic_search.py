"""Product retrieval: filter, score and fall back so a catalog query is never empty."""

import logging
from typing import List, Optional, Union

from ..database.models import Intent, Product, QueryIntent, ScoredProduct
from .query_parser import extract_query_intent, product_text, smart_filter_products
from .scorer import score_product

logger = logging.getLogger(__name__)

SMALL_CATALOG_THRESHOLD = 50

# Intent type -> maximum products handed to the caller
PRODUCT_LIMITS = {
    "search": 10,
    "recommendation": 20,
    "question": 5,
    "comparison": 4,
}
DEFAULT_PRODUCT_LIMIT = 15


def get_product_limit_for_query(intent: Union[Intent, str], catalog_size: int) -> int:
    """How many products to return for this kind of message, bounded by the catalog."""
    intent_type = intent if isinstance(intent, str) else intent.type
    return max(0, min(PRODUCT_LIMITS.get(intent_type, DEFAULT_PRODUCT_LIMIT), catalog_size))


def rank_products(products: List[Product], query_intent: QueryIntent, query: str,
                  max_results: int) -> List[ScoredProduct]:
    scored = []
    for product in products:
        score, reasons = score_product(product, query_intent, query)
        scored.append(ScoredProduct(product=product, score=score, match_reasons=reasons))
    # sorted() is stable, equal scores keep catalog order
    return sorted(scored, key=lambda s: s.score, reverse=True)[:max_results]


def semantic_product_search(products: List[Product], query: str, intent: Optional[Intent] = None,
                            max_results: int = 10,
                            small_catalog_threshold: int = SMALL_CATALOG_THRESHOLD) -> List[ScoredProduct]:
    """Filter and rank products for a query.

    Small catalogs are scored whole. Larger ones are narrowed by the strict
    filter first, then by keyword containment, and when both come back empty
    the whole catalog is scored so a non-empty catalog always yields results.
    ``intent`` is accepted for callers that already classified the message;
    ranking only depends on the query text.
    """
    if max_results <= 0 or not products:
        return []

    query_intent = extract_query_intent(query)

    if len(products) <= small_catalog_threshold:
        return rank_products(products, query_intent, query, max_results)

    filtered = smart_filter_products(products, query)
    if filtered:
        logger.debug(f"Strict filter matched {len(filtered)} products")
        return rank_products(filtered, query_intent, query, max_results)

    if query_intent.keywords:
        keywords = [k.lower() for k in query_intent.keywords]
        keyword_matches = [p for p in products if any(k in product_text(p) for k in keywords)]
        if keyword_matches:
            logger.debug(f"Keyword fallback matched {len(keyword_matches)} products")
            return rank_products(keyword_matches, query_intent, query, max_results)

    logger.info(f"No filtered match for '{query}', ranking the full catalog")
    return rank_products(products, query_intent, query, max_results)
