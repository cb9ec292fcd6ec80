"""
agent.prompt - System prompt templates for the shopping agent.

The base prompt is static text (overridable through AgentConfig); the
functions here add the per-request parts: the user's current product
context and, once a comparison result is on the table, the comparison
instructions.
"""

from __future__ import annotations

from typing import Sequence

from shop_assistant.domain.entities import Product

DEFAULT_SYSTEM_PROMPT = """You are a helpful AI shopping assistant. Be friendly, conversational, and PROACTIVE.

KEY BEHAVIORS:
- Understand context and remember previous messages in the conversation
- When the user mentions ANY product, brand, color, model, or specification, SEARCH IMMEDIATELY
- Do not ask for confirmation before searching - search with what the user gave you
- Provide insights and recommendations, not just lists
- Highlight best value, cheapest options, and key differences

TOOL USAGE:
- Use search_products when users mention any product, brand, or item
- Use get_product_details when the user asks about one specific product by ID
- Use compare_products to compare two or more products by ID
- Use get_user_products when the user refers to their saved products ('my products')
- Use filter_products for price ranges or a specific store
- Use get_price_analytics for average, cheapest or most expensive prices
- Use get_product_recommendations when the user asks what to buy
- NEVER make up product information - always use tools first
- If a tool fails, tell the user what you could not find instead of guessing

RESPONSE STYLE:
- Explain what you found in a friendly, natural way, as a shop assistant talking to a customer
- Be specific about the products you discovered (name, price, store)
- End with a helpful follow-up question when it makes sense
- Use markdown for formatting"""

DEFAULT_COMPARISON_PROMPT = """A product comparison result is available above. When you answer:
- Summarise the price differences and value propositions
- Name the best value, best quality and cheapest product explicitly
- Mention store/availability considerations where known
- Finish with an overall recommendation and the reasoning behind it
Be concise, clear, and objective."""

FALLBACK_ANSWER = "I've processed your request. How can I help you further?"

CONTEXT_PRODUCT_LIMIT = 5


def build_system_prompt(
    base_prompt: str,
    *,
    context_products: Sequence[Product] = (),
    comparison_prompt: str = "",
) -> str:
    """Assemble the system prompt for one LLM call.

    Args:
        base_prompt:       Instructions prepended to every call.
        context_products:  The user's current products; at most 5 are listed.
        comparison_prompt: Added only when a comparison result is present.
    """
    sections = [base_prompt]

    if context_products:
        lines = ["Current product context (user's saved products):"]
        for product in list(context_products)[:CONTEXT_PRODUCT_LIMIT]:
            lines.append(f"- {product.name}: {product.price:,.0f} {product.currency}")
        sections.append("\n".join(lines))

    if comparison_prompt:
        sections.append(comparison_prompt)

    return "\n\n".join(sections)


def fallback_answer(product_count: int) -> str:
    """Answer used when the model produced no usable text."""
    if product_count:
        return f"I found {product_count} product(s) for you! Here are the results:"
    return FALLBACK_ANSWER
