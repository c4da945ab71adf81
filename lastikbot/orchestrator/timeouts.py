"""Deadline helper for outbound collaborator calls."""
from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, TypeVar

T = TypeVar("T")


async def with_timeout(awaitable: Awaitable[T], seconds: Optional[float]) -> T:
    """Await with a deadline; ``None`` or a non-positive value means no deadline.

    Raises ``asyncio.TimeoutError`` when the deadline passes.
    """
    if seconds is not None and seconds > 0:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    return await awaitable
