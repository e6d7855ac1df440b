import pytest

from shopping_assistant.chatbot.intent_detector import analyze_intent, extract_keywords
from shopping_assistant.database.models import Product


def test_ticket_request():
    intent = analyze_intent("I want to create a ticket")
    assert intent.type == "ticket_creation"
    assert intent.wants_ticket is True
    assert intent.ticket_stage == "offer"
    assert intent.sentiment == "frustrated"


def test_issue_wording_reads_as_ticket():
    # Product questions phrased with "issue" still route to a ticket offer
    intent = analyze_intent("Is there an issue with sizing on this jacket?")
    assert intent.type == "ticket_creation"


def test_frustration():
    intent = analyze_intent("This is not working, I'm frustrated")
    assert intent.type == "ticket_creation"
    assert intent.sentiment == "frustrated"


@pytest.mark.parametrize("message", ["What is your return policy?", "How long does shipping take?"])
def test_policy_questions(message):
    intent = analyze_intent(message)
    assert intent.type == "policy_query"
    assert intent.query_type == "policy"
    assert intent.wants_ticket is False


@pytest.mark.parametrize("message", ["Hello!", "hey", "Good morning."])
def test_greetings(message):
    intent = analyze_intent(message)
    assert intent.type == "question"
    assert intent.query_type == "general"
    assert intent.sentiment == "neutral"


def test_question_about_product_on_screen():
    intent = analyze_intent("Tell me more about this", current_product={"category": "Jackets"})
    assert intent.type == "question"
    assert intent.filters.category == "Jackets"
    assert intent.query_type == "product"

    product = Product(id="1", title="Parka", category="Outerwear")
    assert analyze_intent("Describe it", current_product=product).filters.category == "Outerwear"

    assert analyze_intent("Tell me more about this").filters.category is None


def test_recommendation():
    intent = analyze_intent("Can you recommend something that goes with my jeans")
    assert intent.type == "recommendation"
    assert intent.wants_recommendations is True
    assert intent.query_type == "product"


def test_search_with_filters():
    intent = analyze_intent("Show me red dresses under $80")
    assert intent.type == "search"
    assert intent.filters.color == "red"
    assert intent.filters.max_price == 8000
    assert intent.wants_recommendations is True
    assert intent.query_type == "product"


def test_size_question():
    intent = analyze_intent("Do you have this in medium?")
    assert intent.type == "search"
    assert intent.filters.sizes == ["M"]
    assert intent.filters.size == "M"


def test_order_and_account_questions():
    assert analyze_intent("Where is my order?").query_type == "order"
    assert analyze_intent("I forgot my password").query_type == "account"


def test_history_does_not_change_result():
    history = [{"role": "user", "content": "I want to speak to a human"}]
    assert analyze_intent("hey", conversation_history=history).type == "question"


def test_keywords():
    assert extract_keywords("Show me the red dresses, please!") == ["show", "red", "dresses", "please"]
