# shopping_assistant/database/models.py

from typing import List, Dict, Optional, Any, Literal
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

class Product(BaseModel):
    """Canonical product model that every catalog adapter maps to.

    Prices are integers in minor currency units (cents). Instances are frozen:
    a correction means re-fetching from the source.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    title: str
    description: str = ""
    price: int = Field(default=0, ge=0)
    category: str = ""
    type: str = ""
    vendor: str = ""
    tags: List[str] = []
    images: List[str] = []
    variants: Any = None
    in_stock: bool = Field(default=True, alias="inStock")
    metadata: Dict[str, Any] = {}

    def to_json(self) -> Dict[str, Any]:
        """Canonical JSON shape (camelCase boundary names)."""
        return self.model_dump(by_alias=True)

class SchemaMapping(BaseModel):
    """Canonical field -> source field path (dot notation for nesting)."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    product_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("productId", "product_id", "id"),
        serialization_alias="productId",
    )
    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[str] = None
    category: Optional[str] = None
    type: Optional[str] = None
    vendor: Optional[str] = None
    tags: Optional[str] = None
    images: Optional[str] = None
    variants: Optional[str] = None
    in_stock: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("inStock", "in_stock"),
        serialization_alias="inStock",
    )
    metadata: Dict[str, str] = {}

    def is_empty(self) -> bool:
        return not any(self.model_dump(exclude={"metadata"}).values()) and not self.metadata

class FilterCriteria(BaseModel):
    """Structured product constraints; a missing field means no constraint."""
    category: Optional[str] = None
    type: Optional[str] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    color: Optional[str] = None
    colors: List[str] = []
    size: Optional[str] = None
    sizes: List[str] = []
    brand: Optional[str] = None
    keywords: List[str] = []

    def has_structured_criteria(self) -> bool:
        return bool(
            self.category or self.type or self.max_price or self.min_price
            or self.color or self.size
        )

class PriceRange(BaseModel):
    min: Optional[int] = None
    max: Optional[int] = None

class QueryIntent(BaseModel):
    """Search-focused interpretation of a single query."""
    model_config = ConfigDict(frozen=True)

    category: Optional[str] = None
    type: Optional[str] = None
    colors: List[str] = []
    keywords: List[str] = []
    price_range: PriceRange = PriceRange()
    style_keywords: List[str] = []
    scenario: Optional[str] = None
    is_price_query: bool = False
    is_category_query: bool = False
    is_size_query: bool = False
    size: Optional[str] = None
    sizes: List[str] = []

IntentType = Literal["search", "recommendation", "question", "ticket_creation", "comparison", "policy_query"]
TicketStage = Literal["offer", "awaiting_confirmation", "create"]

class Intent(BaseModel):
    """Classified conversational purpose of one user message."""
    type: IntentType = "question"
    confidence: float = 0.85
    wants_recommendations: bool = False
    wants_ticket: bool = False
    ticket_stage: Optional[TicketStage] = None
    filters: FilterCriteria = FilterCriteria()
    query_type: Literal["order", "policy", "account", "product", "general"] = "general"
    sentiment: Literal["positive", "neutral", "negative", "frustrated"] = "neutral"

class ScoredProduct(BaseModel):
    """A product with its relevance score for one query. Never persisted."""
    product: Product
    score: float
    match_reasons: List[str] = []

class FetchResult(BaseModel):
    """One page of products returned by an adapter."""
    products: List[Product] = []
    total: Optional[int] = None
    has_more: bool = False
    next_cursor: Optional[str] = None

class ConnectionTestResult(BaseModel):
    success: bool
    error: Optional[str] = None

class SourceStats(BaseModel):
    product_count: int = 0
    category_count: int = 0
