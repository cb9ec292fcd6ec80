"""
domain - Entities, value objects, exceptions and ports.

Pure Python: no LangChain, no SQLite, no HTTP.
"""
