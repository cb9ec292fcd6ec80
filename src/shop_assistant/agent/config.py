"""
agent.config - Explicit configuration for the conversational agent.

Handed to ConversationalAgent's constructor. Nothing inside the agent loop
reads environment variables or module globals; build this value from
Settings.agent_config() or construct it directly in tests.
"""

from __future__ import annotations

from dataclasses import dataclass

from shop_assistant.agent.prompt import DEFAULT_COMPARISON_PROMPT, DEFAULT_SYSTEM_PROMPT


@dataclass(frozen=True)
class AgentConfig:
    """Tunables for one ConversationalAgent.

    Attributes:
        system_prompt:     Instructions prepended to every LLM call.
        comparison_prompt: Extra instructions once a comparison result is present.
        request_timeout:   Bound (seconds) on one LLM gateway call.
        tool_timeout:      Bound (seconds) on one tool execution.
        max_iterations:    Maximum LLM calls (rounds) per request.
        history_window:    Maximum number of prior turns loaded into the prompt.
        llm_max_attempts:  Attempts per LLM call (2 = retry once).
    """
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    comparison_prompt: str = DEFAULT_COMPARISON_PROMPT
    request_timeout: float = 120.0
    tool_timeout: float = 30.0
    max_iterations: int = 5
    history_window: int = 10
    llm_max_attempts: int = 2

    def __post_init__(self):
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        if self.history_window < 0:
            raise ValueError("history_window cannot be negative")
        if self.llm_max_attempts < 1:
            raise ValueError("llm_max_attempts must be at least 1")
        if self.request_timeout <= 0 or self.tool_timeout <= 0:
            raise ValueError("timeouts must be positive")
