"""
Run the Shop Assistant REST API.

Usage:
    python run_api.py

Environment variables (all optional):
    LLM_PROVIDER           "openai", "groq", or "ollama" (default: ollama)
    LLM_MODEL_OPENAI       Model name when LLM_PROVIDER=openai (default: gpt-4.1-mini)
    LLM_MODEL_GROQ         Model name when LLM_PROVIDER=groq (default: llama-3.3-70b-versatile)
    LLM_MODEL_OLLAMA       Model name when LLM_PROVIDER=ollama (default: llama3.2)
    OPENAI_API_KEY         Required when LLM_PROVIDER=openai
    GROQ_API_KEY           Required when LLM_PROVIDER=groq
    OLLAMA_BASE_URL        Ollama server URL (default: http://localhost:11434/)
    DB_PATH                SQLite database file path (default: shop_assistant.db)
    SCRAPING_SERVICE_URL   Scraping service base URL (default: local product store only)
    AGENT_DEADLINE         Seconds one /chat request may take (default: no deadline)
    LOG_LEVEL              Logging level (default: INFO)
"""

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "shop_assistant.adapters.rest.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
