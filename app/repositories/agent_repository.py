from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.base_repository import DocumentRepository
from app.schemas.entities import Agent


class AgentRepository(DocumentRepository[Agent]):
    """Repository for the ``agentes`` collection."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Agent)

    async def find_active(self) -> List[Agent]:
        return await self.find(lambda agent: agent.active)
