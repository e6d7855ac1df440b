import pytest

from shopping_assistant.database.models import FilterCriteria, Product
from shopping_assistant.chatbot.query_parser import (
    detect_colors,
    detect_sizes,
    extract_category,
    extract_keywords,
    extract_price_range,
    extract_query_intent,
    filter_products,
    parse_filter_query,
    product_sizes,
    smart_filter_products,
)


def test_blue_jackets_under_100():
    intent = extract_query_intent("Show me blue jackets under $100")
    assert intent.category == "jacket"
    assert "blue" in intent.colors
    assert intent.price_range.max == 10000
    assert intent.price_range.min is None
    assert intent.is_price_query is True
    assert intent.is_category_query is True
    assert intent.keywords == []


@pytest.mark.parametrize("query, expected", [
    ("coats under 50 pounds", (None, 5000)),
    ("dresses under £40", (None, 4000)),
    ("anything below $19.99", (None, 1999)),
    ("bags over 30 dollars", (3000, None)),
    ("shoes between $20 and $50", (2000, 5000)),
    ("from 15 to 25 gbp", (1500, 2500)),
    ("sofas under $1,000", (None, 100000)),
    ("between £1,200 and £2,500.50", (120000, 250050)),
    ("a nice hat", (None, None)),
])
def test_price_phrasing(query, expected):
    assert extract_price_range(query) == expected


def test_black_and_blue_means_navy():
    colors = detect_colors("black and blue jacket")
    assert colors[:2] == ["black", "blue"]
    assert "navy" in colors and "dark blue" in colors
    assert parse_filter_query("black and blue jacket").color == "navy"


def test_colours_are_whole_words():
    assert detect_colors("a tangerine bluebird tee") == []
    assert detect_colors("Dark Blue chinos") == ["blue", "navy"]


@pytest.mark.parametrize("text, expected", [
    ("Do you have this in medium?", ["M"]),
    ("need a size xl please", ["XL"]),
    ("sizes: 10", ["10"]),
    ("extra large hoodie", ["XL"]),
    ("I'm looking for women's shoes", []),
    ("M&S jumper", []),
    ("show me tees", []),
])
def test_size_detection(text, expected):
    assert detect_sizes(text) == expected


def test_bare_shoe_sizes_need_footwear_context():
    assert detect_sizes("sneakers in 9.5", allow_bare_numbers=True) == ["9.5"]
    assert detect_sizes("sneakers in 9.5") == []
    assert detect_sizes("a scarf in 9", allow_bare_numbers=True) == []
    assert parse_filter_query("boots 11").sizes == ["11"]
    assert parse_filter_query("boots under 90").sizes == []


def test_category_synonyms():
    assert extract_category("white sneakers") == "footwear"
    assert extract_category("leather boots") == "footwear"
    assert extract_category("graphic tshirts") == "t-shirt"
    assert extract_category("two jackets") == "jacket"
    assert extract_category("something nice") is None


def test_filter_vocabulary():
    assert parse_filter_query("women's shoes").category == "Footwear"
    assert parse_filter_query("polarized sunglasses").type == "Sunglasses"
    criteria = parse_filter_query("a canvas tote")
    assert criteria.type == "Handbag"
    assert criteria.category is None


def test_free_text_becomes_keywords():
    intent = extract_query_intent("Looking for the Everest parka")
    assert intent.keywords == ["everest", "parka"]
    assert intent.category is None


def test_keywords_drop_prices_and_stop_words():
    assert extract_keywords("Show me something under $50 in 20pounds, please!") == ["something"]
    assert extract_keywords("a sofa under $1,000") == ["sofa"]


@pytest.mark.parametrize("query, scenario", [
    ("something for a winter wedding", "wedding"),
    ("outfit for a job interview", "job interview"),
    ("clothes for the weekend", "casual wear"),
    ("layers for cold weather", "winter"),
    ("a shirt", None),
])
def test_scenarios(query, scenario):
    assert extract_query_intent(query).scenario == scenario


def test_style_keywords_in_palette_order():
    intent = extract_query_intent("a classic formal look")
    assert intent.style_keywords == ["formal", "classic"]
    assert intent.scenario == "formal event"


def test_size_question_flag():
    assert extract_query_intent("what size should I get").is_size_query is True
    assert extract_query_intent("red scarf").is_size_query is False


@pytest.fixture
def wardrobe():
    return [
        Product(id="1", title="Blue Rain Jacket", category="Outerwear", type="Jacket", price=8000),
        Product(id="2", title="Red Rain Jacket", category="Outerwear", type="Jacket", price=8000),
        Product(id="3", title="Blue Oxford", category="Shirts", type="Shirt", price=4000),
        Product(id="4", title="Blue Parka", category="Outerwear", type="Jacket", price=12000),
        Product(id="5", title="Bluebird Jacket", category="Outerwear", type="Jacket", price=5000),
    ]


def test_filter_all_criteria_hold(wardrobe):
    kept = filter_products(wardrobe, parse_filter_query("Show me blue jackets under $100"))
    assert [p.id for p in kept] == ["1"]


def test_filter_navy_accepts_dark_blue():
    products = [
        Product(id="1", title="Dark Blue Chinos"),
        Product(id="2", title="Chinos", tags=["navy"]),
        Product(id="3", title="Sky Chinos"),
    ]
    kept = filter_products(products, FilterCriteria(color="navy"))
    assert [p.id for p in kept] == ["1", "2"]


def test_filter_sizes():
    products = [
        Product(id="1", title="Tee", variants=[{"option1": "S"}, {"option1": "M"}]),
        Product(id="2", title="Tee", variants={"Size": ["L", "XL"]}),
        Product(id="3", title="Tee", metadata={"sizes": ["medium"]}),
        Product(id="4", title="Tee"),
    ]
    kept = filter_products(products, FilterCriteria(size="M", sizes=["M"]))
    assert [p.id for p in kept] == ["1", "3", "4"]


def test_product_sizes_ignore_non_size_options():
    product = Product(id="1", title="Tee", variants=[{"option1": "Red", "option2": "XL", "sku": "T-1"}])
    assert product_sizes(product) == ["XL"]


def test_product_sizes_skip_non_ascii_digits():
    product = Product(id="1", title="Tee", variants=[{"option1": "²"}, {"option1": "M"}])
    assert product_sizes(product) == ["M"]


def test_filter_brand_and_keywords(wardrobe):
    acme = Product(id="9", title="Trail Cap", vendor="ACME Outdoors")
    assert filter_products(wardrobe + [acme], FilterCriteria(brand="acme")) == [acme]
    kept = filter_products(wardrobe, FilterCriteria(keywords=["parka"]))
    assert [p.id for p in kept] == ["4"]


def test_empty_criteria_keep_everything(wardrobe):
    assert filter_products(wardrobe, FilterCriteria()) == wardrobe


def test_smart_filter_falls_back_to_keywords(wardrobe):
    assert [p.id for p in smart_filter_products(wardrobe, "the oxford")] == ["3"]
    assert [p.id for p in smart_filter_products(wardrobe, "red jackets")] == ["2"]
