"""
Client-side key/value storage.

The browser keeps the auth token and recent searches in localStorage and
the prefilled selection and view-tracking session ID in sessionStorage.
Here both are an injected ``ClientStorage`` so callers can pass a real
backing store or an ``InMemoryStorage`` in tests. Writes are
last-write-wins; nothing coordinates concurrent writers.
"""

import json
import logging
import random
import string
import time
from typing import Any, Optional, Protocol

from planbeau.config import settings

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
RECENT_SEARCHES_KEY = "recentSearches"
SESSION_ID_KEY = "sessionId"
PREFILL_PACKAGE_KEY = "prefillPackageId"
PREFILL_SERVICE_KEY = "prefillServiceId"


class ClientStorage(Protocol):
    """String key/value store with localStorage semantics."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class InMemoryStorage:
    """Dict-backed ClientStorage."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


def get_auth_token(storage: ClientStorage) -> Optional[str]:
    return storage.get(TOKEN_KEY)


def load_recent_searches(storage: ClientStorage) -> list[dict[str, Any]]:
    """Recent searches, newest first. Corrupt entries load as an empty list."""
    raw = storage.get(RECENT_SEARCHES_KEY)
    if not raw:
        return []
    try:
        searches = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Discarding unreadable recent searches")
        return []
    if not isinstance(searches, list):
        return []
    return searches[: settings.storage.max_recent_searches]


def save_recent_search(storage: ClientStorage, search: dict[str, Any]) -> list[dict[str, Any]]:
    """
    Put a search at the front of the recent list.

    An older entry with the same category and location is replaced, and
    the list is capped at the configured size.
    """
    existing = [
        s for s in load_recent_searches(storage)
        if s.get("category") != search.get("category")
        or s.get("location") != search.get("location")
    ]
    recent = [search] + existing
    recent = recent[: settings.storage.max_recent_searches]
    storage.set(RECENT_SEARCHES_KEY, json.dumps(recent))
    return recent


def remove_recent_search(storage: ClientStorage, index: int) -> list[dict[str, Any]]:
    recent = [s for i, s in enumerate(load_recent_searches(storage)) if i != index]
    storage.set(RECENT_SEARCHES_KEY, json.dumps(recent))
    return recent


def generate_session_id() -> str:
    """Session ID in the ``sess_<epoch ms>_<random>`` form."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=13))
    return f"sess_{int(time.time() * 1000)}_{suffix}"


def get_or_create_session_id(storage: ClientStorage) -> str:
    """Reuse the stored session ID, creating and storing one if missing."""
    session_id = storage.get(SESSION_ID_KEY)
    if not session_id:
        session_id = generate_session_id()
        storage.set(SESSION_ID_KEY, session_id)
        logger.debug("New session %s", session_id)
    return session_id


def save_prefill_selection(
    storage: ClientStorage,
    package_id: Optional[str] = None,
    service_id: Optional[str] = None,
) -> None:
    """Remember a package/service picked on the vendor profile for the booking page."""
    if package_id:
        storage.set(PREFILL_PACKAGE_KEY, str(package_id))
    if service_id:
        storage.set(PREFILL_SERVICE_KEY, str(service_id))


def pop_prefill_selection(storage: ClientStorage) -> tuple[Optional[str], Optional[str]]:
    """Read and clear the prefilled ``(package_id, service_id)``."""
    package_id = storage.get(PREFILL_PACKAGE_KEY)
    service_id = storage.get(PREFILL_SERVICE_KEY)
    storage.remove(PREFILL_PACKAGE_KEY)
    storage.remove(PREFILL_SERVICE_KEY)
    return package_id, service_id
