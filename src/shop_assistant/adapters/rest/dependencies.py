"""
Shared FastAPI dependencies.

- get_factory(): returns the initialized ServiceFactory (set at startup).
- get_agent(): one ConversationalAgent per application, built on first use.
- get_catalog(): the factory's shared product catalogue.
"""

from __future__ import annotations

from fastapi import Depends

from shop_assistant.agent.executor import ConversationalAgent
from shop_assistant.application.services.product_catalog import ProductCatalogService
from shop_assistant.factory import ServiceFactory

# Module-level references set by app lifespan
_factory: ServiceFactory | None = None
_agent: ConversationalAgent | None = None


def set_factory(factory: ServiceFactory) -> None:
    global _factory, _agent
    _factory = factory
    _agent = None


def get_factory() -> ServiceFactory:
    if _factory is None:
        raise RuntimeError("ServiceFactory not initialized.")
    return _factory


def get_agent(factory: ServiceFactory = Depends(get_factory)) -> ConversationalAgent:
    global _agent
    if _agent is None:
        _agent = factory.create_agent()
    return _agent


def get_catalog(factory: ServiceFactory = Depends(get_factory)) -> ProductCatalogService:
    return factory.get_catalog()
