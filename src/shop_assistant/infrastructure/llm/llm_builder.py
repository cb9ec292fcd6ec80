"""
infrastructure.llm.llm_builder - Centralized chat model construction.

Single source of truth for the chat model behind the agent gateway and the
comparison analyzer. The provider is controlled by LLM_PROVIDER.

Supported providers:
    - "openai"  → langchain_openai.ChatOpenAI
    - "groq"    → langchain_groq.ChatGroq
    - "ollama"  → langchain_ollama.ChatOllama

Client-side retries are switched off: the agent retries a failed call
exactly once itself.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from langchain_core.language_models import BaseChatModel

logger = logging.getLogger(__name__)


def _openai(model: str, temperature: float, *, openai_api_key: str = "",
            max_tokens: Optional[int] = None, timeout: Optional[float] = None,
            **_) -> BaseChatModel:
    from langchain_openai import ChatOpenAI

    if not openai_api_key:
        raise ValueError("OPENAI_API_KEY is required when LLM_PROVIDER='openai'")
    return ChatOpenAI(
        model=model,
        temperature=temperature,
        api_key=openai_api_key,
        max_tokens=max_tokens,
        timeout=timeout,
        max_retries=0,
    )


def _groq(model: str, temperature: float, *, groq_api_key: str = "",
          max_tokens: Optional[int] = None, timeout: Optional[float] = None,
          **_) -> BaseChatModel:
    from langchain_groq import ChatGroq

    if not groq_api_key:
        raise ValueError("GROQ_API_KEY is required when LLM_PROVIDER='groq'")
    return ChatGroq(
        model=model,
        temperature=temperature,
        api_key=groq_api_key,
        max_tokens=max_tokens if max_tokens is not None else 1024,
        timeout=timeout,
        max_retries=0,
    )


def _ollama(model: str, temperature: float, *, ollama_base_url: str = "http://localhost:11434/",
            timeout: Optional[float] = None, **_) -> BaseChatModel:
    from langchain_ollama import ChatOllama

    return ChatOllama(
        model=model,
        temperature=temperature,
        base_url=ollama_base_url,
        client_kwargs={"timeout": timeout} if timeout is not None else {},
    )


_BUILDERS: dict[str, Callable[..., BaseChatModel]] = {
    "openai": _openai,
    "groq": _groq,
    "ollama": _ollama,
}


def build_llm(
    *,
    provider: str,
    model: str,
    temperature: float = 0,
    ollama_base_url: str = "http://localhost:11434/",
    openai_api_key: str = "",
    groq_api_key: str = "",
    max_tokens: Optional[int] = None,
    timeout: Optional[float] = None,
) -> BaseChatModel:
    """Build a tool-calling chat model for the given provider.

    Args:
        provider: One of "openai", "groq", "ollama".
        model: Model name for the selected provider.
        temperature: Sampling temperature.
        ollama_base_url: Ollama server URL (only used when provider="ollama").
        openai_api_key: API key for OpenAI.
        groq_api_key: API key for Groq.
        max_tokens: Maximum completion tokens. Defaults to 1024 for Groq.
        timeout: HTTP timeout in seconds for one completion request.

    Raises:
        ValueError: If the provider is unknown or required credentials are missing.
    """
    provider = provider.lower().strip()
    builder = _BUILDERS.get(provider)
    if builder is None:
        raise ValueError(
            f"Unsupported LLM_PROVIDER: '{provider}'. "
            "Must be 'openai', 'groq', or 'ollama'."
        )

    logger.info("Building %s chat model (model=%s)", provider, model)
    return builder(
        model,
        temperature,
        ollama_base_url=ollama_base_url,
        openai_api_key=openai_api_key,
        groq_api_key=groq_api_key,
        max_tokens=max_tokens,
        timeout=timeout,
    )
