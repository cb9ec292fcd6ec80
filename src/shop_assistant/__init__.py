"""
shop_assistant - Tool-calling shopping assistant.

Layers (inner to outer): domain, application, agent, infrastructure,
adapters. factory.py is the composition root.
"""

__version__ = "0.1.0"
