"""
application.context - Request-scoped session context.

Every tool receives its context explicitly. Two concurrent requests get
two different SessionContext instances: nothing is shared between them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import uuid4


@dataclass
class SessionContext:
    """Per-request context passed to every tool invocation.

    Attributes:
        user_id:          Caller's user ID (authenticated by the adapter).
        conversation_id:  Conversation the request belongs to.
        request_id:       Unique per request, for tracing/logging.
    """
    user_id: str
    conversation_id: str
    request_id: str = field(default_factory=lambda: uuid4().hex)
