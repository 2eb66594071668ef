from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.base_repository import DocumentRepository
from app.schemas.entities import Policy, PolicyState


class PolicyRepository(DocumentRepository[Policy]):
    """Repository for the ``polizas`` collection."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Policy)

    async def find_by_state(self, state: PolicyState) -> List[Policy]:
        return await self.find(lambda policy: policy.state is state)

