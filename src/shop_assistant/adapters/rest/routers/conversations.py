"""Conversation history endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query

from shop_assistant.adapters.rest.dependencies import get_factory
from shop_assistant.adapters.rest.schemas import ConversationOut, TurnOut
from shop_assistant.factory import ServiceFactory

router = APIRouter(tags=["conversations"])


@router.get("/conversations", response_model=list[ConversationOut])
async def list_conversations(
    user_id: str = Query(..., min_length=1),
    factory: ServiceFactory = Depends(get_factory),
):
    memory = factory.create_memory()
    conversations = await memory.list_conversations(user_id)
    return [ConversationOut.from_entity(c) for c in conversations]


@router.get(
    "/conversations/{conversation_id}/messages",
    response_model=list[TurnOut],
)
async def get_messages(
    conversation_id: str,
    user_id: str | None = None,
    factory: ServiceFactory = Depends(get_factory),
):
    memory = factory.create_memory()
    conversation = await memory.find_conversation(conversation_id)
    # Ensure the caller owns this conversation when they say who they are
    if conversation is None or (user_id and conversation.user_id != user_id):
        raise HTTPException(status_code=404, detail="Conversation not found.")
    turns = await memory.get_turns(conversation_id)
    return [TurnOut.from_entity(t) for t in turns]
