"""
adapters.cli.session - Local CLI session storage.

The CLI user id and the conversation the last `ask` continued are stored
in ~/.shop-assistant/session.json so consecutive one-shot questions stay
in the same conversation.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

_SESSION_DIR  = Path.home() / ".shop-assistant"
_SESSION_FILE = _SESSION_DIR / "session.json"


@dataclass
class Session:
    user_id: str
    conversation_id: str = ""


def load_session(path: Path = _SESSION_FILE) -> Session | None:
    """Return the stored session, or None if there is none (or it is unreadable)."""
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Session(**data)
    except (OSError, ValueError, TypeError) as e:
        logger.warning("Ignoring unreadable CLI session file %s: %s", path, e)
        return None


def save_session(session: Session, path: Path = _SESSION_FILE) -> None:
    """Persist the session to disk."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(asdict(session), indent=2), encoding="utf-8"
    )


def clear_session(path: Path = _SESSION_FILE) -> None:
    """Forget the stored conversation."""
    if path.exists():
        path.unlink()
