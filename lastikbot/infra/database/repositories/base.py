"""Async repository base for the chat tables; every model is keyed by a single column."""
from __future__ import annotations

from typing import Any, ClassVar, Dict, Generic, Optional, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

ModelT = TypeVar("ModelT")


class BaseRepository(Generic[ModelT]):
    """Works inside the caller's session; flushes but never commits."""

    model: ClassVar[type]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, key: Any) -> Optional[ModelT]:
        return await self.session.get(self.model, key)  # type: ignore[return-value]

    async def create(self, data: Dict[str, Any]) -> ModelT:
        instance = self.model(**data)
        self.session.add(instance)
        await self.session.flush()
        return instance  # type: ignore[return-value]

    async def assign(self, instance: ModelT, data: Dict[str, Any]) -> ModelT:
        """Copy *data* onto an already loaded row and flush."""
        for attr, value in data.items():
            setattr(instance, attr, value)
        await self.session.flush()
        return instance

    async def delete(self, key: Any) -> bool:
        instance = await self.get_by_id(key)
        if instance is None:
            return False
        await self.session.delete(instance)
        await self.session.flush()
        return True
