"""Per-key asyncio locks that are dropped once nobody holds or waits on them."""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict


@dataclass
class _Slot:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    refs: int = 0


class KeyedLock:
    """``async with locks.hold(session_id):`` serialises work per session id.

    Meant for use from one event loop; the slot map is not thread-safe.
    """

    def __init__(self) -> None:
        self._slots: Dict[str, _Slot] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        slot = self._slots.get(key)
        if slot is None:
            slot = self._slots[key] = _Slot()
        slot.refs += 1
        try:
            async with slot.lock:
                yield
        finally:
            slot.refs -= 1
            if slot.refs == 0:
                self._slots.pop(key, None)

    def is_locked(self, key: str) -> bool:
        slot = self._slots.get(key)
        return slot is not None and slot.lock.locked()

    def __len__(self) -> int:
        return len(self._slots)
