"""
Run the Shop Assistant CLI.

Usage:
    python run_cli.py [COMMAND] [OPTIONS]

Commands:
    init-db        Create the database tables
    ask            One-shot question (continues the last conversation unless --new)
    chat           Interactive chat session
    conversations  List your conversations

Examples:
    python run_cli.py init-db
    python run_cli.py ask "cheapest 27 inch monitor"
    python run_cli.py chat --user alice

Environment variables: see run_api.py.
"""

from shop_assistant.adapters.cli.main import app

if __name__ == "__main__":
    app()
