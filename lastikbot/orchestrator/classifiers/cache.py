"""Label cache for the closed-label canned classifier, so a message is labelled once."""
from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from typing import Optional, Tuple

from lastikbot.orchestrator.text import fold
from lastikbot.orchestrator.types import ChatCategory

logger = logging.getLogger(__name__)

_NONE_LABEL = "none"


class LabelCache:
    """LRU cache keyed on the folded message, with TTL expiry.

    A cached "none" is stored too, so ``get`` returns a (hit, label) pair.
    """

    def __init__(self, max_size: int = 500, ttl_seconds: int = 3600) -> None:
        self._max_size = max_size
        self._ttl = ttl_seconds
        self._store: OrderedDict[str, Tuple[str, float]] = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def _key(message: str) -> str:
        return fold(message.strip())

    def get(self, message: str) -> Tuple[bool, Optional[ChatCategory]]:
        key = self._key(message)
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return False, None
            label, ts = entry
            if time.monotonic() - ts > self._ttl:
                self._store.pop(key, None)
                return False, None
            self._store.move_to_end(key)
        logger.debug("LabelCache: hit for '%s'", message[:60])
        return True, None if label == _NONE_LABEL else ChatCategory(label)

    def put(self, message: str, category: Optional[ChatCategory]) -> None:
        key = self._key(message)
        with self._lock:
            self._store[key] = (category.value if category else _NONE_LABEL, time.monotonic())
            self._store.move_to_end(key)
            while len(self._store) > self._max_size:
                self._store.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    @property
    def size(self) -> int:
        return len(self._store)
