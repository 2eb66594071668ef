"""Policy issuance and maintenance.

Issuing a policy persists it and then adds its coverage to the client's
ranking score. The two steps are not atomic: if the increment fails the
policy stays issued and the score catches up on the next ranking rebuild.
"""

from typing import Any, List, Mapping

from app.core.exceptions import CacheError, NotFoundError, ValidationError
from app.repositories.policy_repository import PolicyRepository
from app.schemas.entities import Policy
from app.schemas.reports import RankingEntry
from app.services.base_service import BaseService
from app.services.ranking_cache import RankingCache
from app.services.sequence_service import SequenceAllocator
from app.services.validators import PolicyValidator


class PolicyService(BaseService):
    """Issues policies under sequential numbers and keeps the ranking current."""

    def __init__(
        self,
        policies: PolicyRepository,
        sequences: SequenceAllocator,
        validator: PolicyValidator,
        ranking: RankingCache,
        number_prefix: str = "POL-",
        number_width: int = 6,
        sequence_start: int = 1001,
        max_ranking_size: int = 100,
    ):
        super().__init__()
        self.policies = policies
        self.sequences = sequences
        self.validator = validator
        self.ranking = ranking
        self.number_prefix = number_prefix
        self.number_width = number_width
        self.sequence_start = sequence_start
        self.max_ranking_size = max_ranking_size

    def format_number(self, value: int) -> str:
        return f"{self.number_prefix}{value:0{self.number_width}d}"

    async def _number_floor(self) -> int:
        used = await self.policies.max_numeric_key(prefix=self.number_prefix)
        return max(self.sequence_start - 1, used)

    async def issue_policy(self, payload: Mapping[str, Any]) -> Policy:
        """Validate, number and persist a new policy, then update the ranking.

        Raises:
            ValidationError: If the payload or its references are invalid
            ConflictError: If the allocated number is already taken
        """
        values = await self.validator.validate_create(payload)

        async def issue() -> Policy:
            value = await self.sequences.next_value(Policy.collection, self._number_floor)
            policy = Policy(policy_number=self.format_number(value), **values)
            return await self.policies.insert(policy)

        policy = await self._execute("issue_policy", issue)
        self.logger.info(
            "Policy issued",
            extra={
                "policy_number": policy.policy_number,
                "client_id": policy.client_id,
                "total_coverage": str(policy.total_coverage),
            },
        )

        try:
            await self.ranking.record_issuance(policy.client_id, policy.total_coverage)
        except CacheError:
            self.logger.warning(
                "Policy issued but ranking score not updated",
                extra={"policy_number": policy.policy_number, "client_id": policy.client_id},
            )
        return policy

    async def get_policy(self, policy_number: str) -> Policy:
        policy = await self._execute("get_policy", self.policies.get_by_key, policy_number)
        if policy is None:
            raise NotFoundError(f"Policy {policy_number} not found")
        return policy

    async def update_policy(self, policy_number: str, changes: Mapping[str, Any]) -> Policy:
        """Change the state or end date of a policy."""
        current = await self.get_policy(policy_number)
        values = self.validator.validate_update(current, changes)
        policy = await self._execute(
            "update_policy", self.policies.update_by_key, policy_number, values
        )
        if policy is None:
            raise NotFoundError(f"Policy {policy_number} not found")
        return policy

    async def top_clients(self, n: int) -> List[RankingEntry]:
        """Clients with the highest cumulative coverage, at most ``max_ranking_size``."""
        if n > self.max_ranking_size:
            raise ValidationError(
                f"n must not exceed {self.max_ranking_size}", field="n"
            )
        return await self._execute("top_clients", self.ranking.get_top, n)
