from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.base_repository import DocumentRepository
from app.schemas.entities import Claim, ClaimState


class ClaimRepository(DocumentRepository[Claim]):
    """Repository for the ``siniestros`` collection."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Claim)

    async def find_by_state(self, state: ClaimState) -> List[Claim]:
        return await self.find(lambda claim: claim.state is state)
