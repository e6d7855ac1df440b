"""Rule-based query understanding for product search.

Everything here is pure string handling: no network, no model calls. The
colour palette, price phrasing and size detection are shared with the intent
classifier so both read a message the same way.
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..database.models import FilterCriteria, PriceRange, Product, QueryIntent

logger = logging.getLogger(__name__)

COLOR_PALETTE = [
    "black", "white", "blue", "red", "green", "yellow", "gray", "grey",
    "brown", "pink", "purple", "orange", "navy", "beige", "tan", "khaki",
    "olive", "maroon", "gold", "silver", "cream", "ivory",
]

STYLE_KEYWORDS = ["casual", "formal", "sporty", "elegant", "trendy", "classic", "modern", "vintage"]

# Occasion words -> scenario tag, first match wins
SCENARIOS = [
    (("wedding",), "wedding"),
    (("interview", "job"), "job interview"),
    (("casual", "weekend"), "casual wear"),
    (("formal", "business"), "formal event"),
    (("winter", "cold"), "winter"),
    (("summer", "hot"), "summer"),
]

STOP_WORDS = {
    "the", "a", "an", "and", "or", "but", "is", "are", "was", "were", "have", "has", "had",
    "do", "does", "did", "you", "your", "i", "me", "my", "we", "our", "can", "could",
    "would", "should", "want", "need", "get", "got", "give", "show", "find", "search",
    "looking", "for", "which", "what", "any", "some", "this", "that", "these", "those",
    "less", "than", "under", "below", "over", "above", "between", "with", "in", "on",
    "at", "to", "of", "from", "up", "more", "max", "min", "maximum", "minimum",
    "available", "buy", "purchase", "please",
}

_CURRENCY_WORDS = {"pound", "pounds", "gbp", "usd", "dollar", "dollars"}
_NUMERIC_TOKEN = re.compile(r"^[$£]?(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?(?:pounds?|gbp|usd)?$")

_AMOUNT = r"(?:\$|£)?\s*((?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?)\s*(?:pounds?\b|£|gbp\b|dollars?\b|usd\b)?"
_MAX_PRICE = re.compile(r"(?:\bless than|\bunder|\bbelow|\bmaximum|\bmax|\bup to|<)\s*" + _AMOUNT)
_MIN_PRICE = re.compile(r"(?:\bmore than|\bover|\babove|\bminimum|\bmin|>)\s*" + _AMOUNT)
_RANGE_PRICE = re.compile(r"\b(?:between|from)\s*" + _AMOUNT + r"\s*(?:and|to|-)\s*" + _AMOUNT)
_PRICE_WORDS = re.compile(r"\b(?:under|below|less than|over|above|more than|between|price|budget|cost)\b")

# Product nouns recognised for QueryIntent.category (singular forms, plurals accepted)
CATEGORY_NOUNS = [
    "t-shirt", "tshirt", "jacket", "coat", "shirt", "pants", "jeans", "shoe", "boot",
    "sneaker", "dress", "sweater", "hoodie", "belt", "bag", "hat", "scarf",
]
_CATEGORY_SYNONYMS = {"shoe": "footwear", "boot": "footwear", "sneaker": "footwear", "tshirt": "t-shirt"}
_CATEGORY_NOUN = re.compile(
    r"\b(" + "|".join(re.escape(n) for n in CATEGORY_NOUNS) + r")(?:s|es)?\b"
)

# Filter parser vocabulary, checked in order
FILTER_CATEGORIES = [
    "accessories", "clothing", "footwear", "sunglasses", "watch", "handbag",
    "shoes", "jacket", "coat", "shirt", "pants", "jeans", "trousers",
    "shorts", "jersey", "dress", "sweater", "hoodie", "t-shirt", "belt", "bag", "hat", "scarf",
]
_NAMED_CATEGORIES = {"accessories": "Accessories", "clothing": "Clothing", "footwear": "Footwear", "shoes": "Footwear"}
_TYPE_CATEGORIES = {"sunglasses", "watch", "handbag"}
TYPE_MAPPINGS = [
    ("sunglasses", ["sunglasses"]),
    ("watch", ["watch"]),
    ("handbag", ["handbag", "bag", "tote"]),
    ("shoes", ["shoes", "sneakers", "cleats", "boots", "footwear"]),
    ("jacket", ["jacket", "coat"]),
    ("shorts", ["shorts"]),
    ("jersey", ["jersey"]),
    ("shirt", ["shirt", "t-shirt", "tshirt"]),
    ("pants", ["pants", "trousers"]),
    ("jeans", ["jeans"]),
    ("dress", ["dress"]),
    ("sweater", ["sweater"]),
    ("hoodie", ["hoodie"]),
]

FOOTWEAR_WORDS = ("shoe", "sneaker", "cleat", "footwear", "boot")
LETTER_SIZES = {"xs", "s", "m", "l", "xl", "xxl", "xxxl"}
_SIZE_PHRASE = re.compile(
    r"\b(?:sizes?|in size|available in)\s*:?\s*(xxxl|xxl|xl|xs|s|m|l|\d{1,2}(?:\.5)?)\b"
)
_SIZE_WORD = re.compile(r"\b(extra small|extra large|x-small|x-large|small|medium|large)\b")
_SIZE_WORDS = {
    "extra small": "XS", "x-small": "XS", "small": "S", "medium": "M",
    "large": "L", "x-large": "XL", "extra large": "XL",
}
# Stand-alone letter sizes; apostrophes and ampersands excluded so "i'm", "women's" or "m&s" never count
_LETTER_SIZE = re.compile(r"(?<![\w'&\-])(xxxl|xxl|xl|xs|s|m|l)(?![\w'&\-])")
_BARE_SHOE_SIZE = re.compile(r"(?<![\w$£.])([4-9]|1[0-5])(?:\.5)?(?![\w.])")
_PLAIN_NUMBER = re.compile(r"\d+(?:\.\d+)?", re.ASCII)


def mentions(text: str, word: str, plural: bool = True) -> bool:
    """Whole-word match on lower-cased text, optionally allowing s/es plurals."""
    suffix = r"(?:s|es)?" if plural else ""
    return re.search(rf"\b{re.escape(word)}{suffix}\b", text) is not None


def _to_minor_units(amount: str) -> int:
    return int(round(float(amount.replace(",", "")) * 100))


def extract_price_range(text: str) -> Tuple[Optional[int], Optional[int]]:
    """(min, max) in minor units from under/over/between phrasing."""
    lower = text.lower()
    min_price = max_price = None

    match = _MAX_PRICE.search(lower)
    if match:
        max_price = _to_minor_units(match.group(1))
    match = _MIN_PRICE.search(lower)
    if match:
        min_price = _to_minor_units(match.group(1))

    match = _RANGE_PRICE.search(lower)
    if match:
        min_price = _to_minor_units(match.group(1))
        max_price = _to_minor_units(match.group(2))

    return min_price, max_price


def detect_colors(text: str) -> List[str]:
    """Palette colours mentioned in the text; black + blue also implies navy."""
    lower = text.lower()
    colors = [color for color in COLOR_PALETTE if mentions(lower, color, plural=False)]
    if "dark blue" in lower and "navy" not in colors:
        colors.append("navy")
    if "black" in colors and "blue" in colors:
        for compound in ("navy", "dark blue"):
            if compound not in colors:
                colors.append(compound)
    return colors


def primary_color(colors: List[str]) -> Optional[str]:
    if "black" in colors and "blue" in colors:
        return "navy"
    return colors[0] if colors else None


def _normalize_size(value: str) -> Optional[str]:
    if _PLAIN_NUMBER.fullmatch(value):
        return value if 4 <= float(value) <= 15 else None
    return value.upper()


def detect_sizes(text: str, allow_bare_numbers: bool = False) -> List[str]:
    """Clothing and shoe sizes mentioned in the text, canonical upper-case.

    Bare numbers (4-15) only count as shoe sizes when ``allow_bare_numbers`` is
    set and the text also talks about footwear.
    """
    lower = text.lower()
    sizes: List[str] = []

    def add(size: Optional[str]):
        if size and size not in sizes:
            sizes.append(size)

    for match in _SIZE_PHRASE.finditer(lower):
        add(_normalize_size(match.group(1)))
    for match in _SIZE_WORD.finditer(lower):
        add(_SIZE_WORDS[match.group(1)])
    for match in _LETTER_SIZE.finditer(lower):
        add(match.group(1).upper())

    if not sizes and allow_bare_numbers and any(word in lower for word in FOOTWEAR_WORDS):
        match = _BARE_SHOE_SIZE.search(lower)
        if match:
            add(match.group(0))

    return sizes


def extract_category(text: str) -> Optional[str]:
    """Canonical product noun (``jackets`` -> ``jacket``, ``sneakers`` -> ``footwear``)."""
    match = _CATEGORY_NOUN.search(text.lower())
    if not match:
        return None
    noun = match.group(1)
    return _CATEGORY_SYNONYMS.get(noun, noun)


def extract_keywords(query: str, limit: int = 10) -> List[str]:
    """Free-text words left after dropping stop words and price/number tokens."""
    keywords: List[str] = []
    for raw in query.lower().split():
        word = raw.strip(".,!?;:\"()[]{}")
        if len(word) <= 2 or word in STOP_WORDS or word in _CURRENCY_WORDS:
            continue
        if _NUMERIC_TOKEN.match(word):
            continue
        if word not in keywords:
            keywords.append(word)
    return keywords[:limit]


def parse_filter_query(query: str) -> FilterCriteria:
    """Structured filter criteria (category, type, price, colour, size) from a query."""
    lower = query.lower()
    category = None
    product_type = None

    min_price, max_price = extract_price_range(lower)

    for noun in FILTER_CATEGORIES:
        if mentions(lower, noun):
            if noun in _NAMED_CATEGORIES:
                category = _NAMED_CATEGORIES[noun]
            elif noun in _TYPE_CATEGORIES:
                product_type = noun.capitalize()
            else:
                category = noun
            break

    if not product_type:
        for key, variations in TYPE_MAPPINGS:
            if any(mentions(lower, v) for v in variations):
                if key == "shoes":
                    category = "Footwear"
                else:
                    product_type = key.capitalize()
                break

    colors = detect_colors(lower)
    sizes = detect_sizes(lower, allow_bare_numbers=min_price is None and max_price is None)

    return FilterCriteria(
        category=category,
        type=product_type,
        min_price=min_price,
        max_price=max_price,
        color=primary_color(colors),
        colors=colors,
        size=sizes[0] if sizes else None,
        sizes=sizes,
    )


def extract_query_intent(query: str) -> QueryIntent:
    """Search-focused reading of one query."""
    lower = query.lower()
    criteria = parse_filter_query(query)
    category = extract_category(lower)

    scenario = None
    for words, tag in SCENARIOS:
        if any(mentions(lower, word) for word in words):
            scenario = tag
            break

    structured = criteria.has_structured_criteria() or category is not None
    keywords = [] if structured else extract_keywords(query)

    return QueryIntent(
        category=category,
        type=criteria.type,
        colors=criteria.colors,
        keywords=keywords,
        price_range=PriceRange(min=criteria.min_price, max=criteria.max_price),
        style_keywords=[style for style in STYLE_KEYWORDS if mentions(lower, style, plural=False)],
        scenario=scenario,
        is_price_query=bool(criteria.min_price or criteria.max_price) or bool(_PRICE_WORDS.search(lower)),
        is_category_query=bool(criteria.category or criteria.type or category),
        is_size_query=bool(criteria.sizes) or mentions(lower, "size"),
        size=criteria.size,
        sizes=criteria.sizes,
    )


def _flatten_values(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return [str(value)]
    if isinstance(value, dict):
        return [v for item in value.values() for v in _flatten_values(item)]
    if isinstance(value, (list, tuple, set)):
        return [v for item in value for v in _flatten_values(item)]
    return []


def _variant_options(variants: Any) -> Dict[str, List[str]]:
    """Option values from variants, keyed by 'size', 'color' or 'other'."""
    options: Dict[str, List[str]] = {"size": [], "color": [], "other": []}
    if isinstance(variants, dict):
        for key, value in variants.items():
            bucket = "size" if "size" in key.lower() else "color" if "colo" in key.lower() else "other"
            options[bucket].extend(_flatten_values(value))
    elif isinstance(variants, (list, tuple)):
        for variant in variants:
            if isinstance(variant, dict):
                for key, value in variant.items():
                    lowered = key.lower()
                    if "size" in lowered:
                        options["size"].extend(_flatten_values(value))
                    elif "colo" in lowered:
                        options["color"].extend(_flatten_values(value))
                    elif lowered.startswith("option") or lowered == "title":
                        options["other"].extend(_flatten_values(value))
            else:
                options["other"].extend(_flatten_values(variant))
    return options


def _looks_like_size(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in LETTER_SIZES or lowered in _SIZE_WORDS:
        return True
    return _PLAIN_NUMBER.fullmatch(lowered) is not None and 0 < float(lowered) <= 60


def product_sizes(product: Product) -> List[str]:
    """Sizes a product is offered in, from metadata and variant options."""
    sizes = _flatten_values(product.metadata.get("sizes")) + _flatten_values(product.metadata.get("size"))
    options = _variant_options(product.variants)
    sizes += options["size"]
    sizes += [value for value in options["other"] if _looks_like_size(value)]
    canonical = []
    for size in sizes:
        size = size.strip()
        size = _SIZE_WORDS.get(size.lower(), size)
        if size and size.lower() not in [s.lower() for s in canonical]:
            canonical.append(size)
    return canonical


def product_color_text(product: Product) -> str:
    """Lower-cased text that may carry a product's colour."""
    parts = _flatten_values(product.metadata.get("color")) + _flatten_values(product.metadata.get("colors"))
    options = _variant_options(product.variants)
    parts += options["color"] + options["other"]
    parts += product.tags
    parts.append(product.title)
    return " ".join(parts).lower()


def product_text(product: Product) -> str:
    return f"{product.title} {product.description} {product.category} {product.type}".lower()


def _color_matches(product: Product, color: str) -> bool:
    text = product_color_text(product)
    wanted = [color.lower()]
    if wanted[0] == "navy":
        wanted.append("dark blue")
    return any(re.search(rf"\b{re.escape(c)}\b", text) for c in wanted)


def _size_matches(product: Product, wanted: Iterable[str]) -> bool:
    sizes = product_sizes(product)
    if not sizes:
        return True
    available = {s.lower() for s in sizes}
    return any(size.lower() in available for size in wanted)


def filter_products(products: List[Product], criteria: FilterCriteria) -> List[Product]:
    """Strict filter; every criterion that is set must hold."""
    filtered = list(products)

    if criteria.category or criteria.type:
        # Category and type both describe the kind of product; either may hit
        wanted = [c.lower() for c in (criteria.category, criteria.type) if c]
        filtered = [
            p for p in filtered
            if any(w in f"{p.category} {p.type}".lower() for w in wanted)
        ]

    if criteria.min_price is not None:
        filtered = [p for p in filtered if p.price >= criteria.min_price]
    if criteria.max_price is not None:
        filtered = [p for p in filtered if p.price <= criteria.max_price]

    if criteria.color:
        filtered = [p for p in filtered if _color_matches(p, criteria.color)]

    wanted_sizes = [criteria.size] if criteria.size else criteria.sizes
    if wanted_sizes:
        filtered = [p for p in filtered if _size_matches(p, wanted_sizes)]

    if criteria.brand:
        filtered = [p for p in filtered if criteria.brand.lower() in p.vendor.lower()]

    if criteria.keywords:
        keywords = [k.lower() for k in criteria.keywords]
        filtered = [p for p in filtered if any(k in product_text(p) for k in keywords)]

    return filtered


def smart_filter_products(products: List[Product], query: str) -> List[Product]:
    """Strict filter from parsed criteria, falling back to keywords when nothing structured was found."""
    criteria = parse_filter_query(query)
    if not criteria.has_structured_criteria():
        keywords = extract_keywords(query, limit=50)
        if keywords:
            criteria = criteria.model_copy(update={"keywords": keywords})
    filtered = filter_products(products, criteria)
    logger.debug(f"Smart filter kept {len(filtered)} of {len(products)} products")
    return filtered
