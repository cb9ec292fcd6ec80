"""Chat endpoint: one user message in, one recorded answer out."""

from fastapi import APIRouter, Depends

from shop_assistant.adapters.rest.dependencies import get_agent, get_catalog, get_factory
from shop_assistant.adapters.rest.schemas import ChatBody, ChatOut, ProductOut
from shop_assistant.agent.executor import ConversationalAgent
from shop_assistant.application.services.product_catalog import ProductCatalogService
from shop_assistant.factory import ServiceFactory

router = APIRouter(tags=["chat"])

ANONYMOUS_USER = "anonymous"


@router.post("/chat", response_model=ChatOut)
async def chat(
    body: ChatBody,
    agent: ConversationalAgent = Depends(get_agent),
    catalog: ProductCatalogService = Depends(get_catalog),
    factory: ServiceFactory = Depends(get_factory),
):
    user_id = (body.user_id or "").strip() or ANONYMOUS_USER
    context_products = await catalog.for_user(user_id)

    response = await agent.respond(
        body.message,
        user_id,
        body.conversation_id or None,
        context_products=context_products,
        deadline=factory.config.agent_deadline,
    )
    return ChatOut(
        answer=response.answer,
        products=[ProductOut.from_entity(p) for p in response.products],
        conversation_id=response.conversation_id,
    )
