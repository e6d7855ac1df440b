"""Schema mapper - transforms source rows into the canonical Product shape."""

import logging
import math
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..database.models import Product, SchemaMapping
from ..errors import MappingError

logger = logging.getLogger(__name__)

_MISSING = object()
_INDEX = re.compile(r"\[(\d+)\]")
_TRUE_STRINGS = {"true", "yes", "1"}

# Fallbacks tried, in order, when a canonical field has no explicit mapping
FIELD_ALIASES = {
    "product_id": ["id", "productId"],
    "title": ["title", "name"],
    "description": ["description"],
    "price": ["price"],
    "category": ["category", "type"],
    "type": [],
    "vendor": ["vendor", "brand"],
    "tags": ["tags"],
    "images": ["images"],
    "variants": ["variants"],
    "in_stock": ["inStock", "in_stock"],
}

# Field name patterns used for auto-detection, keyed by canonical mapping key
DETECTION_PATTERNS = {
    "productId": ["id", "productId", "product_id", "sku", "itemId"],
    "title": ["title", "name", "productName", "product_name"],
    "description": ["description", "desc", "details", "productDescription"],
    "price": ["price", "cost", "amount", "productPrice", "salePrice"],
    "category": ["category", "categories", "productCategory", "type"],
    "type": ["type", "productType", "itemType"],
    "vendor": ["vendor", "brand", "manufacturer", "seller"],
    "tags": ["tags", "tag", "keywords", "labels"],
    "images": ["images", "image", "imageUrl", "image_url", "photos", "pictures"],
    "variants": ["variants", "options", "attributes"],
    "inStock": ["inStock", "in_stock", "available", "stock", "quantity"],
}


def get_path(source: Any, path: Optional[str]) -> Any:
    """Walk a dot path (``a.b``, ``a[0].b`` or ``a.0.b``); missing -> ``_MISSING``."""
    if not path:
        return _MISSING
    value = source
    for part in _INDEX.sub(r".\1", path).split("."):
        if part == "":
            continue
        if isinstance(value, Mapping):
            if part not in value:
                return _MISSING
            value = value[part]
        elif isinstance(value, (list, tuple)) and part.isdecimal():
            index = int(part)
            if index >= len(value):
                return _MISSING
            value = value[index]
        else:
            return _MISSING
    return _MISSING if value is None else value


def _resolve(source: Any, mapped_path: Optional[str], aliases: Iterable[str]) -> Any:
    value = get_path(source, mapped_path)
    if value is not _MISSING:
        return value
    for alias in aliases:
        value = get_path(source, alias)
        if value is not _MISSING:
            return value
    return _MISSING


def normalize_price(value: Any) -> int:
    """Convert a major-unit price (number or string) to non-negative minor units."""
    if value is _MISSING or value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        amount = float(value)
    elif isinstance(value, str):
        cleaned = re.sub(r"[^0-9.]", "", value)
        try:
            amount = float(cleaned)
        except ValueError:
            return 0
    else:
        return 0
    if math.isnan(amount) or math.isinf(amount):
        return 0
    return max(0, int(round(amount * 100)))


def normalize_bool(value: Any, default: bool = True) -> bool:
    """Coerce stock-style values; unknown data never hides a product."""
    if value is _MISSING or value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    if isinstance(value, (int, float)):
        return value > 0
    return default


def _as_string_list(value: Any) -> List[str]:
    if value is _MISSING or value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = []
        for item in value:
            if isinstance(item, Mapping):
                item = item.get("src") or item.get("url") or item.get("name")
            if item is not None and str(item).strip():
                items.append(str(item).strip())
        return items
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return []


def _as_text(value: Any, default: str = "") -> str:
    if value is _MISSING or value is None:
        return default
    if isinstance(value, (list, tuple)):
        return ", ".join(_as_string_list(value))
    return str(value)


def map_product(
    source_row: Any,
    mapping: Optional[Union[SchemaMapping, Dict[str, Any]]] = None,
    fallback_id: Optional[str] = None,
) -> Product:
    """Map one source row to a Product using ``mapping`` plus alias fallbacks."""
    if not isinstance(source_row, Mapping):
        raise MappingError("id", f"Source row is not an object: {type(source_row).__name__}")
    if mapping is None:
        mapping = SchemaMapping()
    elif not isinstance(mapping, SchemaMapping):
        mapping = SchemaMapping.model_validate(mapping)

    def field(name: str) -> Any:
        return _resolve(source_row, getattr(mapping, name), FIELD_ALIASES[name])

    product_id = field("product_id")
    if product_id is _MISSING or str(product_id).strip() == "":
        if fallback_id is None:
            raise MappingError("id")
        product_id = fallback_id

    metadata: Dict[str, Any] = {}
    for key, path in mapping.metadata.items():
        value = get_path(source_row, path)
        if value is not _MISSING:
            metadata[key] = value

    variants = field("variants")

    return Product(
        id=str(product_id),
        title=_as_text(field("title"), "Untitled Product"),
        description=_as_text(field("description")),
        price=normalize_price(field("price")),
        category=_as_text(field("category")),
        type=_as_text(field("type")),
        vendor=_as_text(field("vendor")),
        tags=_as_string_list(field("tags")),
        images=_as_string_list(field("images")),
        variants={} if variants is _MISSING else variants,
        in_stock=normalize_bool(field("in_stock")),
        metadata=metadata,
    )


def map_products(
    rows: Iterable[Any],
    mapping: Optional[Union[SchemaMapping, Dict[str, Any]]] = None,
) -> List[Product]:
    """Map a batch of rows, skipping (and logging) rows that cannot be mapped."""
    products = []
    for row in rows:
        try:
            products.append(map_product(row, mapping))
        except MappingError as e:
            logger.warning(f"Skipping unmappable row: {e}")
    return products


def auto_detect_mapping(sample_rows: List[Any]) -> SchemaMapping:
    """Guess a mapping from the keys of the first sample row."""
    if not sample_rows or not isinstance(sample_rows[0], Mapping):
        return SchemaMapping()

    keys = set(sample_rows[0].keys())
    detected: Dict[str, str] = {}
    for field_name, candidates in DETECTION_PATTERNS.items():
        found = next((name for name in candidates if name in keys), None)
        if found:
            detected[field_name] = found

    logger.debug(f"Auto-detected schema mapping: {detected}")
    return SchemaMapping.model_validate(detected)
