from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.base_repository import DocumentRepository
from app.schemas.entities import Vehicle


class VehicleRepository(DocumentRepository[Vehicle]):
    """Repository for the ``vehiculos`` collection."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Vehicle)

    async def find_insured(self) -> List[Vehicle]:
        return await self.find(lambda vehicle: vehicle.insured)
