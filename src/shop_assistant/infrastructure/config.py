"""
infrastructure.config - Typed, injectable configuration.

A frozen dataclass that can be constructed from the environment (and an
optional .env file) or passed explicitly in tests.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from shop_assistant.agent.config import AgentConfig
from shop_assistant.agent.prompt import DEFAULT_COMPARISON_PROMPT, DEFAULT_SYSTEM_PROMPT


@dataclass(frozen=True)
class Settings:
    """Centralized configuration for the shop assistant.

    No module-level globals: construct via from_env() or pass explicitly
    in tests.
    """
    project_root: Path

    # ── Centralized LLM Provider ────────────────────────────────
    # One setting controls the agent LLM and the comparison analyzer.
    # Allowed: "openai", "groq", "ollama"
    llm_provider: str = "ollama"

    # Model names: only the one matching llm_provider is used.
    llm_model_ollama: str = "llama3.2"
    llm_model_openai: str = "gpt-4.1-mini"
    llm_model_groq: str = "llama-3.3-70b-versatile"

    # Connection details
    ollama_base_url: str = "http://localhost:11434/"
    groq_api_key: str = ""
    openai_api_key: str = ""

    # Agent
    agent_max_iterations: int = 5
    agent_history_window: int = 10
    agent_request_timeout: float = 120.0
    agent_tool_timeout: float = 30.0
    agent_llm_max_attempts: int = 2
    # Whole-request deadline for adapters; None means no deadline
    agent_deadline: Optional[float] = None
    agent_system_prompt: str = DEFAULT_SYSTEM_PROMPT
    agent_comparison_prompt: str = DEFAULT_COMPARISON_PROMPT

    # Use the LLM to write comparison narratives (rule-based otherwise)
    llm_comparisons: bool = True

    # Database
    db_path: str = "shop_assistant.db"

    # Scraping service; empty means search the local product store only
    scraping_service_url: str = ""
    scraping_timeout: float = 30.0

    log_level: str = "INFO"

    @property
    def active_llm_model(self) -> str:
        """Return the model name for the currently active LLM provider."""
        if self.llm_provider == "openai":
            return self.llm_model_openai
        elif self.llm_provider == "groq":
            return self.llm_model_groq
        return self.llm_model_ollama

    def agent_config(self) -> AgentConfig:
        """The explicit configuration value handed to ConversationalAgent."""
        return AgentConfig(
            system_prompt=self.agent_system_prompt,
            comparison_prompt=self.agent_comparison_prompt,
            request_timeout=self.agent_request_timeout,
            tool_timeout=self.agent_tool_timeout,
            max_iterations=self.agent_max_iterations,
            history_window=self.agent_history_window,
            llm_max_attempts=self.agent_llm_max_attempts,
        )

    @classmethod
    def from_env(cls, project_root: Optional[Path] = None) -> Settings:
        """Build Settings from environment variables (and .env if present)."""
        from dotenv import load_dotenv
        load_dotenv()

        root = project_root or Path(__file__).resolve().parent.parent.parent.parent

        return cls(
            project_root=root,

            # Centralized LLM provider
            llm_provider=os.getenv("LLM_PROVIDER", "ollama"),
            llm_model_ollama=os.getenv("LLM_MODEL_OLLAMA", "llama3.2"),
            llm_model_openai=os.getenv("LLM_MODEL_OPENAI", "gpt-4.1-mini"),
            llm_model_groq=os.getenv("LLM_MODEL_GROQ", "llama-3.3-70b-versatile"),
            ollama_base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434/"),
            groq_api_key=os.getenv("GROQ_API_KEY", ""),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),

            agent_max_iterations=int(os.getenv("AGENT_MAX_ITERATIONS", "5")),
            agent_history_window=int(os.getenv("AGENT_HISTORY_WINDOW", "10")),
            agent_request_timeout=float(os.getenv("AGENT_REQUEST_TIMEOUT", "120")),
            agent_tool_timeout=float(os.getenv("AGENT_TOOL_TIMEOUT", "30")),
            agent_llm_max_attempts=int(os.getenv("AGENT_LLM_MAX_ATTEMPTS", "2")),
            agent_deadline=_optional_float(os.getenv("AGENT_DEADLINE")),
            agent_system_prompt=os.getenv("AGENT_SYSTEM_PROMPT") or DEFAULT_SYSTEM_PROMPT,
            agent_comparison_prompt=(
                os.getenv("AGENT_COMPARISON_PROMPT") or DEFAULT_COMPARISON_PROMPT
            ),
            llm_comparisons=os.getenv("LLM_COMPARISONS", "true").lower() in ("1", "true", "yes"),

            db_path=os.getenv("DB_PATH", "shop_assistant.db"),
            scraping_service_url=os.getenv("SCRAPING_SERVICE_URL", ""),
            scraping_timeout=float(os.getenv("SCRAPING_TIMEOUT", "30")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    return float(value)
