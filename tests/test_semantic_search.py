import pytest

from shopping_assistant.chatbot.semantic_search import (
    get_product_limit_for_query,
    semantic_product_search,
)
from shopping_assistant.database.models import Intent, Product


@pytest.fixture
def large_catalog():
    products = [
        Product(id=f"m{i}", title=f"Plain Mug {i}", category="Kitchen", type="Mug", price=1500)
        for i in range(56)
    ]
    products += [
        Product(id="j1", title="Blue Rain Jacket", category="Outerwear", type="Jacket", price=8000),
        Product(id="j2", title="Blue Down Jacket", category="Outerwear", type="Jacket", price=15000),
        Product(id="j3", title="Red Rain Jacket", category="Outerwear", type="Jacket", price=7000),
        Product(id="p1", title="Everest Parka", category="Outerwear", price=20000, in_stock=False),
    ]
    return products


def test_no_slots_or_no_products():
    assert semantic_product_search([Product(id="1", title="Mug")], "mug", max_results=0) == []
    assert semantic_product_search([], "mug") == []


def test_large_catalog_never_empty(large_catalog):
    results = semantic_product_search(large_catalog, "zzz qqq", max_results=10)
    assert len(results) == 10


def test_strict_filter_narrows_large_catalog(large_catalog):
    results = semantic_product_search(large_catalog, "blue jackets under $100")
    assert [r.product.id for r in results] == ["j1"]
    assert "Category match" not in results[0].match_reasons
    assert "Type match" in results[0].match_reasons


def test_keyword_filter_on_free_text(large_catalog):
    results = semantic_product_search(large_catalog, "the everest")
    assert [r.product.id for r in results] == ["p1"]


def test_small_catalog_scores_everything():
    products = [
        Product(id="1", title="Plain Mug", category="Kitchen"),
        Product(id="2", title="Blue Rain Jacket", category="Outerwear", type="Jacket"),
        Product(id="3", title="Tote", category="Bags"),
    ]
    results = semantic_product_search(products, "blue jacket")
    assert [r.product.id for r in results] == ["2", "1", "3"]


def test_ties_keep_catalog_order():
    products = [Product(id=str(i), title="Same") for i in range(5)]
    results = semantic_product_search(products, "anything", max_results=3)
    assert [r.product.id for r in results] == ["0", "1", "2"]
    assert len({r.score for r in results}) == 1


def test_results_bounded(large_catalog):
    assert len(semantic_product_search(large_catalog, "mug", max_results=4)) == 4


@pytest.mark.parametrize("intent_type, catalog_size, expected", [
    ("search", 100, 10),
    ("recommendation", 100, 20),
    ("question", 100, 5),
    ("comparison", 100, 4),
    ("ticket_creation", 100, 15),
    ("recommendation", 7, 7),
    ("search", 0, 0),
])
def test_result_limit_policy(intent_type, catalog_size, expected):
    assert get_product_limit_for_query(intent_type, catalog_size) == expected


def test_result_limit_accepts_intent():
    assert get_product_limit_for_query(Intent(type="comparison"), 50) == 4


@pytest.mark.parametrize("query", ["size: m", "shoes 12", "M&S jumper", "black and blue coat size XL"])
def test_odd_variant_values_never_break_search(large_catalog, query):
    catalog = large_catalog + [Product(id="odd", title="Odd Tee", variants=[{"option1": "²"}])]
    results = semantic_product_search(catalog, query, max_results=5)
    assert len(results) == 5
