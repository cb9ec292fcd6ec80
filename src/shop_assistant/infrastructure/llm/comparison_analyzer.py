"""
infrastructure.llm.comparison_analyzer - LLM-written product comparisons.

Implements ComparisonAnalyzerPort using a LangChain prompt | llm | parser
chain. Winner extraction and the rule-based fallback live in
application.services.comparison; this module only produces the narrative.
"""

from __future__ import annotations

import logging
from typing import Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate

from shop_assistant.domain.entities import Product

logger = logging.getLogger(__name__)

_SYSTEM_INSTRUCTIONS = """You are an expert product comparison analyst.
Compare products objectively based on price, features and value for money.
Name the best value, the highest quality and the cheapest product by their Product ID,
and finish with a section that starts with the word "Recommendation"."""


class LLMComparisonAnalyzer:
    """Implements ComparisonAnalyzerPort with any supported chat model."""

    def __init__(self, llm: BaseChatModel, system_prompt: str = _SYSTEM_INSTRUCTIONS):
        prompt = ChatPromptTemplate.from_messages([
            ("system", system_prompt),
            ("user", "{comparison}"),
        ])
        self._chain = prompt | llm | StrOutputParser()

    async def analyze(self, products: Sequence[Product]) -> str:
        """Return the model's comparison narrative for *products*."""
        logger.info("Requesting LLM comparison of %d products", len(products))
        return await self._chain.ainvoke({"comparison": build_comparison_prompt(products)})


def build_comparison_prompt(products: Sequence[Product]) -> str:
    """User prompt handed to the model."""
    lines = ["Please compare the following products in detail:", ""]
    for index, product in enumerate(products, start=1):
        lines.append(f"Product {index} (ID: {product.id}):")
        lines.append(f"  Name: {product.name}")
        lines.append(f"  Price: {product.price:,.0f} {product.currency}")
        if product.store_name:
            lines.append(f"  Store: {product.store_name}")
        lines.append("")
    lines.extend([
        "Please provide:",
        "1. A detailed analysis comparing all products",
        "2. Which product offers the best value for money (mention Product ID)",
        "3. Which product appears to be the highest quality (mention Product ID)",
        "4. Which product is the cheapest (mention Product ID)",
        "5. Your overall recommendation with reasoning",
    ])
    return "\n".join(lines)
