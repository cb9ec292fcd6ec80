"""
factory - Composition root for the shop assistant.

ALL dependency wiring happens here. No other module constructs its own
dependencies. Adapters (CLI, REST) call this factory to get fully
configured services and agents.

Usage:
    from shop_assistant.factory import ServiceFactory
    from shop_assistant.infrastructure.config import Settings

    config = Settings.from_env()
    factory = ServiceFactory(config)
    await factory.initialize()  # one-time startup

    agent = factory.create_agent()
    response = await agent.respond("find me a laptop", user_id="alice")
"""

from __future__ import annotations

import logging
from typing import Optional

from langchain_core.language_models import BaseChatModel

from shop_assistant.agent.executor import ConversationalAgent
from shop_assistant.agent.memory import ConversationMemory
from shop_assistant.agent.tools.compare_products import CompareProductsTool
from shop_assistant.agent.tools.filter_products import FilterProductsTool
from shop_assistant.agent.tools.get_price_analytics import GetPriceAnalyticsTool
from shop_assistant.agent.tools.get_product_details import GetProductDetailsTool
from shop_assistant.agent.tools.get_product_recommendations import GetProductRecommendationsTool
from shop_assistant.agent.tools.get_user_products import GetUserProductsTool
from shop_assistant.agent.tools.registry import ToolRegistry
from shop_assistant.agent.tools.search_products import SearchProductsTool
from shop_assistant.application.services.comparison import ProductComparisonService
from shop_assistant.application.services.product_catalog import ProductCatalogService
from shop_assistant.domain.ports import LLMGatewayPort
from shop_assistant.infrastructure.config import Settings
from shop_assistant.infrastructure.llm.comparison_analyzer import LLMComparisonAnalyzer
from shop_assistant.infrastructure.llm.gateway import LangChainGateway
from shop_assistant.infrastructure.llm.llm_builder import build_llm
from shop_assistant.infrastructure.persistence.connection import AsyncSQLiteConnection
from shop_assistant.infrastructure.persistence.conversation_repo import SQLiteConversationRepository
from shop_assistant.infrastructure.persistence.migrations import run_migrations
from shop_assistant.infrastructure.persistence.product_repo import SQLiteProductRepository
from shop_assistant.infrastructure.persistence.turn_repo import SQLiteTurnRepository
from shop_assistant.infrastructure.scraping.scraping_client import ScrapingServiceClient

logger = logging.getLogger(__name__)


class ServiceFactory:
    """Composition root: wires all dependencies together.

    Call initialize() once at startup, then create services/agents as needed.
    A gateway can be injected (tests, alternative providers); otherwise one
    is built from the configured LLM provider on first use.
    """

    def __init__(self, config: Settings, gateway: Optional[LLMGatewayPort] = None):
        self._config = config
        self._connection = AsyncSQLiteConnection(config.db_path)
        self._gateway = gateway
        self._gateway_injected = gateway is not None
        self._llm: Optional[BaseChatModel] = None
        self._catalog: Optional[ProductCatalogService] = None
        self._initialized = False

    @property
    def config(self) -> Settings:
        return self._config

    async def initialize(self) -> None:
        """One-time startup: run migrations.

        Must be called before creating services or agents.
        """
        logger.info("Initializing ServiceFactory (db=%s)...", self._config.db_path)
        await run_migrations(self._connection)
        logger.info("Database migrations complete")
        self._initialized = True
        logger.info("ServiceFactory ready")

    # ------------------------------------------------------------------
    # Service creation
    # ------------------------------------------------------------------

    def create_memory(self) -> ConversationMemory:
        """Create a ConversationMemory over the SQLite repositories."""
        return ConversationMemory(
            conversation_repo=SQLiteConversationRepository(self._connection),
            turn_repo=SQLiteTurnRepository(self._connection),
        )

    def create_product_repository(self) -> SQLiteProductRepository:
        """Return the local product store."""
        return SQLiteProductRepository(self._connection)

    def get_catalog(self) -> ProductCatalogService:
        """The shared product catalogue, scraping-backed when a service URL is set."""
        if self._catalog is not None:
            return self._catalog
        scraper = None
        if self._config.scraping_service_url:
            scraper = ScrapingServiceClient(
                service_url=self._config.scraping_service_url,
                timeout=self._config.scraping_timeout,
            )
            logger.info("Product search: scraping service at %s", self._config.scraping_service_url)
        else:
            logger.info("Product search: local product store only")
        self._catalog = ProductCatalogService(self.create_product_repository(), scraper=scraper)
        return self._catalog

    def create_comparison_service(self) -> ProductComparisonService:
        """Create the comparison service, LLM-backed when LLM_COMPARISONS is on."""
        analyzer = None
        if self._config.llm_comparisons and not self._gateway_injected:
            analyzer = LLMComparisonAnalyzer(self._build_llm())
        return ProductComparisonService(analyzer=analyzer)

    def create_tool_registry(self) -> ToolRegistry:
        """Register the product tools and freeze the set."""
        catalog = self.get_catalog()
        registry = ToolRegistry()
        registry.register(SearchProductsTool(catalog))
        registry.register(GetProductDetailsTool(catalog))
        registry.register(CompareProductsTool(catalog, self.create_comparison_service()))
        registry.register(GetUserProductsTool(catalog))
        registry.register(FilterProductsTool(catalog))
        registry.register(GetPriceAnalyticsTool(catalog))
        registry.register(GetProductRecommendationsTool(catalog))
        registry.freeze()
        return registry

    def create_gateway(self) -> LLMGatewayPort:
        """Return the injected gateway or a LangChainGateway for the configured provider."""
        if self._gateway is None:
            self._gateway = LangChainGateway(self._build_llm())
        return self._gateway

    # ------------------------------------------------------------------
    # Agent creation
    # ------------------------------------------------------------------

    def create_agent(self) -> ConversationalAgent:
        """Create a fully configured ConversationalAgent.

        Returns:
            ConversationalAgent ready for chat with DB-backed conversation history.
        """
        self._ensure_initialized()
        return ConversationalAgent(
            gateway=self.create_gateway(),
            tools=self.create_tool_registry(),
            memory=self.create_memory(),
            config=self._config.agent_config(),
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _build_llm(self) -> BaseChatModel:
        """Build (once) the chat model shared by the gateway and the analyzer."""
        if self._llm is None:
            self._llm = build_llm(
                provider=self._config.llm_provider,
                model=self._config.active_llm_model,
                temperature=0,
                ollama_base_url=self._config.ollama_base_url,
                openai_api_key=self._config.openai_api_key,
                groq_api_key=self._config.groq_api_key,
                timeout=self._config.agent_request_timeout,
            )
        return self._llm

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(
                "ServiceFactory not initialized. Call await factory.initialize() first."
            )
