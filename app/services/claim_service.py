from typing import Any, Mapping

from app.core.exceptions import NotFoundError
from app.repositories.claim_repository import ClaimRepository
from app.schemas.entities import Claim
from app.services.base_service import BaseService
from app.services.sequence_service import SequenceAllocator
from app.services.validators import ClaimValidator


class ClaimService(BaseService):
    """Claims filed against active policies."""

    def __init__(
        self,
        claims: ClaimRepository,
        sequences: SequenceAllocator,
        validator: ClaimValidator,
    ):
        super().__init__()
        self.claims = claims
        self.sequences = sequences
        self.validator = validator

    async def create_claim(self, payload: Mapping[str, Any]) -> Claim:
        """File a claim.

        Raises:
            ValidationError: If the payload is invalid or the policy is not active
        """
        values = await self.validator.validate_create(payload)

        async def create() -> Claim:
            claim_id = await self.sequences.next_value(
                Claim.collection, self.claims.max_numeric_key
            )
            return await self.claims.insert(Claim(id=str(claim_id), **values))

        claim = await self._execute("create_claim", create)
        self.logger.info(
            "Claim created",
            extra={"claim_id": claim.id, "policy_number": claim.policy_number},
        )
        return claim

    async def get_claim(self, claim_id: str) -> Claim:
        claim = await self._execute("get_claim", self.claims.get_by_key, claim_id)
        if claim is None:
            raise NotFoundError(f"Claim {claim_id} not found")
        return claim

    async def update_claim(self, claim_id: str, changes: Mapping[str, Any]) -> Claim:
        await self.get_claim(claim_id)
        values = self.validator.validate_changes(changes)
        claim = await self._execute("update_claim", self.claims.update_by_key, claim_id, values)
        if claim is None:
            raise NotFoundError(f"Claim {claim_id} not found")
        return claim
