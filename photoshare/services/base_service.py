"""Base service class with common database operations."""

from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from photoshare.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(Generic[ModelType]):
    """Base service with common CRUD operations on integer-keyed models."""

    def __init__(self, db: AsyncSession, model: type[ModelType]):
        self.db = db
        self.model = model

    async def get_by_id(self, id: Any) -> ModelType | None:
        """Get entity by primary key."""
        return await self.db.get(self.model, id)

    async def get_many(self, ids: Iterable[int]) -> list[ModelType]:
        """Get all entities whose primary key is in ``ids``."""
        id_list = list(dict.fromkeys(ids))
        if not id_list:
            return []
        result = await self.db.execute(
            select(self.model).where(self.model.id.in_(id_list))  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(self.model))
        return result.scalar() or 0

    async def create(self, obj: ModelType) -> ModelType:
        """Create new entity."""
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def update(self, obj: ModelType) -> ModelType:
        """Persist pending changes to an entity."""
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def delete(self, obj: ModelType) -> None:
        """Delete entity."""
        await self.db.delete(obj)
        await self.db.commit()
