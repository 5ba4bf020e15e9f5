"""Session ID logging context for following one visitor across modules.

The browsing session ID kept in client storage is bound to a ContextVar
while a flow runs, and a logging filter copies it onto every record so a
formatter can print ``%(session_id)s`` next to checkout and wizard logs.

Usage:
    from planbeau.logging_context import get_session_logger, session_scope

    logger = get_session_logger(__name__)
    with session_scope("sess_1718000000000_k3j2h1abcdefg"):
        logger.info("Creating payment intent")
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

NO_SESSION = "NO_SESSION"

_session_id: ContextVar[str] = ContextVar("session_id", default=NO_SESSION)


def set_session_id(session_id: str) -> None:
    _session_id.set(session_id)


def get_session_id() -> str:
    return _session_id.get()


@contextmanager
def session_scope(session_id: str) -> Iterator[str]:
    """Bind a session ID for a block, restoring the outer one afterwards."""
    token = _session_id.set(session_id or NO_SESSION)
    try:
        yield _session_id.get()
    finally:
        _session_id.reset(token)


class SessionIdFilter(logging.Filter):
    """Copies the bound session ID onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = _session_id.get()  # type: ignore[attr-defined]
        return True


def get_session_logger(name: str) -> logging.Logger:
    """Module logger with a single SessionIdFilter attached."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, SessionIdFilter) for f in logger.filters):
        logger.addFilter(SessionIdFilter())
    return logger
