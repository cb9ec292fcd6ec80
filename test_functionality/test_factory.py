"""ServiceFactory wiring: the agent it builds and the services behind the tools."""

import asyncio

import pytest

from conftest import ScriptedGateway, text
from shop_assistant.factory import ServiceFactory
from shop_assistant.infrastructure.config import Settings
from shop_assistant.infrastructure.llm.comparison_analyzer import LLMComparisonAnalyzer
from shop_assistant.infrastructure.llm.gateway import LangChainGateway


def make_factory(tmp_path, gateway=None, **overrides):
    settings = Settings(
        project_root=tmp_path,
        db_path=str(tmp_path / "factory.db"),
        llm_provider="ollama",
        **overrides,
    )
    factory = ServiceFactory(settings, gateway=gateway)
    asyncio.run(factory.initialize())
    return factory


def comparison_analyzer(agent):
    return agent._tools._tools["compare_products"]._comparison._analyzer


def test_agent_gets_llm_comparisons_from_configured_provider(tmp_path):
    agent = make_factory(tmp_path, llm_comparisons=True).create_agent()

    assert isinstance(agent._gateway, LangChainGateway)
    assert isinstance(comparison_analyzer(agent), LLMComparisonAnalyzer)


def test_analyzer_survives_gateway_being_built_first(tmp_path):
    factory = make_factory(tmp_path, llm_comparisons=True)

    factory.create_gateway()

    assert isinstance(factory.create_comparison_service()._analyzer, LLMComparisonAnalyzer)


def test_llm_comparisons_switched_off(tmp_path):
    agent = make_factory(tmp_path, llm_comparisons=False).create_agent()

    assert comparison_analyzer(agent) is None


def test_injected_gateway_keeps_comparisons_rule_based(tmp_path):
    gateway = ScriptedGateway(text("hi"))
    agent = make_factory(tmp_path, gateway=gateway, llm_comparisons=True).create_agent()

    assert agent._gateway is gateway
    assert comparison_analyzer(agent) is None


def test_agent_registers_every_product_tool(tmp_path):
    agent = make_factory(tmp_path, llm_comparisons=False).create_agent()

    assert [s.name for s in agent._tools.list_schemas()] == [
        "search_products", "get_product_details", "compare_products", "get_user_products",
        "filter_products", "get_price_analytics", "get_product_recommendations",
    ]


def test_create_agent_requires_initialize(tmp_path):
    settings = Settings(project_root=tmp_path, db_path=str(tmp_path / "f.db"))
    factory = ServiceFactory(settings, gateway=ScriptedGateway(text("hi")))

    with pytest.raises(RuntimeError):
        factory.create_agent()


def test_catalog_is_shared(tmp_path):
    factory = make_factory(tmp_path, llm_comparisons=False)

    assert factory.get_catalog() is factory.get_catalog()
