# api/main.py
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from shopping_assistant.cache.data_cache import DataCache
from shopping_assistant.chatbot.intent_detector import analyze_intent
from shopping_assistant.chatbot.semantic_search import get_product_limit_for_query, semantic_product_search
from shopping_assistant.config import Config
from shopping_assistant.database.models import Intent, SchemaMapping, ScoredProduct
from shopping_assistant.integrations.manager import CatalogManager
from shopping_assistant.integrations.sources import SourceStatus, SourceType, parse_connection_config

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = Config()
    cache = DataCache(config)
    app.state.config = config
    app.state.cache = cache
    app.state.catalog = CatalogManager(cache, config)
    cache.start()
    try:
        yield
    finally:
        cache.stop()


app = FastAPI(title="Shopping Assistant API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class CatalogSourceTestRequest(BaseModel):
    source_type: SourceType = Field(alias="sourceType")
    connection_config: Dict[str, Any] = Field(alias="connectionConfig")
    schema_mapping: Optional[SchemaMapping] = Field(default=None, alias="schemaMapping")

    model_config = ConfigDict(populate_by_name=True)


class SearchRequest(BaseModel):
    shop_domain: str = Field(alias="shopDomain")
    message: str
    current_product: Optional[Dict[str, Any]] = Field(default=None, alias="currentProduct")
    max_results: Optional[int] = Field(default=None, alias="maxResults", ge=0)

    model_config = ConfigDict(populate_by_name=True)


class SourceStatusRequest(BaseModel):
    status: SourceStatus


class SearchResponse(BaseModel):
    intent: Intent
    products: List[ScoredProduct]
    catalog_size: int


@app.get("/api/health")
async def health_check():
    """Basic health check"""
    return {"status": "healthy", "service": "shopping-assistant-api"}


@app.post("/api/catalog-sources/test")
def test_catalog_source(body: CatalogSourceTestRequest, request: Request):
    """Validate a source config, check connectivity and report product/category counts."""
    catalog: CatalogManager = request.app.state.catalog
    try:
        config = parse_connection_config(body.source_type, body.connection_config)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

    result = catalog.test_catalog_source(body.source_type, config)
    response: Dict[str, Any] = result.model_dump()
    if result.success:
        response["stats"] = catalog.get_source_stats(body.source_type, config, body.schema_mapping).model_dump()
    return response


@app.patch("/api/catalog-sources/{source_id}/status")
def update_source_status(source_id: int, body: SourceStatusRequest, request: Request):
    """Reactivate a failed source or take one out of rotation."""
    catalog: CatalogManager = request.app.state.catalog
    try:
        source = catalog.set_source_status(source_id, body.status)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"id": source.id, "status": source.status, "lastSyncError": source.last_sync_error}


@app.post("/api/search", response_model=SearchResponse)
def search_products(body: SearchRequest, request: Request):
    """Classify the message and return ranked products from the shop's catalog."""
    catalog: CatalogManager = request.app.state.catalog
    try:
        intent = analyze_intent(body.message, body.current_product)
        products = catalog.get_all_products(body.shop_domain)
        max_results = body.max_results
        if max_results is None:
            max_results = get_product_limit_for_query(intent, len(products))
        ranked = semantic_product_search(
            products,
            body.message,
            intent,
            max_results,
            small_catalog_threshold=request.app.state.config.SMALL_CATALOG_THRESHOLD,
        )
    except Exception as e:
        logger.error(f"Search failed for {body.shop_domain}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return SearchResponse(intent=intent, products=ranked, catalog_size=len(products))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
