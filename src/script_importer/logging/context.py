"""
Log context propagated through contextvars.

Values set here survive across await points, so every log line emitted
while a debugging session is downloading a bundle carries its session id.
"""

from contextvars import ContextVar
from typing import Dict, Optional

_session_id: ContextVar[Optional[str]] = ContextVar("session_id", default=None)
_stage: ContextVar[Optional[str]] = ContextVar("stage", default=None)


def set_log_context(
    session_id: Optional[str] = None,
    stage: Optional[str] = None,
) -> None:
    """Set context values. Arguments left as None are not changed."""
    if session_id is not None:
        _session_id.set(session_id)
    if stage is not None:
        _stage.set(stage)


def get_log_context() -> Dict[str, Optional[str]]:
    """Return the current context values."""
    return {
        "session_id": _session_id.get(),
        "stage": _stage.get(),
    }


def clear_log_context() -> None:
    """Reset all context values (primarily for testing)."""
    _session_id.set(None)
    _stage.set(None)
