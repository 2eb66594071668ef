from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.base_repository import DocumentRepository
from app.schemas.entities import Client
from app.utils.coercion import coerce_key


class ClientRepository(DocumentRepository[Client]):
    """Repository for the ``clientes`` collection."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Client)

    async def find_active(self) -> List[Client]:
        return await self.find(lambda client: client.active)

    async def get_by_national_id(self, national_id: str) -> Optional[Client]:
        """Find the client holding a national id, if any."""
        normalized = coerce_key(national_id)
        if normalized is None:
            return None
        matches = await self.find(lambda client: client.national_id == normalized)
        return matches[0] if matches else None
