"""
agent - The shopping agent's LLM + tool loop.

Holds the tool set, conversation memory, prompt assembly and the executor.
Talks to the LLM and the stores only through domain/ports. Never imports
from infrastructure/.
"""
