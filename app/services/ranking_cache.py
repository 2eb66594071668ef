"""Top-N clients by cumulative coverage, cached in a Redis sorted set.

Cache-aside with two update paths:

* ``get_top`` serves from the sorted set while the snapshot marker is alive
  and otherwise rebuilds the whole set from the policies in the store;
* ``record_issuance`` increments one client's score on every new policy,
  whether or not a snapshot is currently alive.

Both paths derive from the same summation of ``total_coverage``, so they
agree once in-flight writes settle. Between inserting a policy and
incrementing its client's score a concurrent rebuild may count the policy
twice or not at all; that window closes when the snapshot expires.
"""

from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.core.exceptions import CacheError, EmptyResultError, ValidationError
from app.pipeline.aggregation import Group, Match, Pipeline, sum_of
from app.repositories.client_repository import ClientRepository
from app.repositories.policy_repository import PolicyRepository
from app.schemas.reports import RankingEntry
from app.utils.coercion import coerce_key, key_sort_value
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

Score = Tuple[str, float]


def rank(scores: List[Score], n: int) -> List[Score]:
    """Order by descending score, then ascending client id, and keep the first n."""
    return sorted(scores, key=lambda item: (-item[1], key_sort_value(item[0])))[:n]


class RankingCache:
    """Maintains the cached coverage ranking."""

    def __init__(
        self,
        redis: Redis,
        policies: PolicyRepository,
        clients: ClientRepository,
        key: str = "ranking:coverage",
        ttl_seconds: int = 60,
    ):
        self.redis = redis
        self.policies = policies
        self.clients = clients
        self.key = key
        self.snapshot_key = f"{key}:snapshot"
        self.ttl_seconds = ttl_seconds

    async def get_top(self, n: int) -> List[RankingEntry]:
        """Top n clients by cumulative coverage with their current names.

        Raises:
            ValidationError: If n is not positive
            EmptyResultError: If there are no policies to rank
            CacheError: If Redis is unavailable
        """
        if n < 1:
            raise ValidationError("n must be a positive integer", field="n")

        scores = await self._read_snapshot(n)
        if scores is None:
            LOGGER.info("Ranking snapshot missing or expired, rebuilding", extra={"key": self.key})
            scores = await self._rebuild(n)

        clients = await self.clients.get_many(client_id for client_id, _ in scores)
        entries = []
        for client_id, score in scores:
            client = clients.get(client_id)
            entries.append(
                RankingEntry(
                    client_id=client_id,
                    name=client.name if client else None,
                    surname=client.surname if client else None,
                    total_coverage=score,
                )
            )
        return entries

    async def record_issuance(self, client_id: str, amount: Decimal) -> float:
        """Add a new policy's coverage to its client's cached score.

        Returns:
            The client's score after the increment
        """
        member = coerce_key(client_id)
        if member is None:
            raise ValidationError("Client id is required", field="client_id")
        try:
            score = await self.redis.zincrby(self.key, float(amount), member)
        except RedisError as e:
            LOGGER.error(
                "Failed to increment ranking score",
                exc_info=True,
                extra={"client_id": member, "amount": str(amount)},
            )
            raise CacheError("Ranking cache unavailable", original_error=e)
        LOGGER.debug("Ranking score incremented", extra={"client_id": member, "score": score})
        return float(score)

    async def get_score(self, client_id: str) -> Optional[float]:
        """Cached score of one client, None when the client has no entry."""
        try:
            score = await self.redis.zscore(self.key, coerce_key(client_id))
        except RedisError as e:
            raise CacheError("Ranking cache unavailable", original_error=e)
        return float(score) if score is not None else None

    async def invalidate(self) -> None:
        """Drop the snapshot so the next read rebuilds it from the store."""
        try:
            await self.redis.delete(self.key, self.snapshot_key)
        except RedisError as e:
            raise CacheError("Ranking cache unavailable", original_error=e)

    async def _read_snapshot(self, n: int) -> Optional[List[Score]]:
        try:
            if not await self.redis.exists(self.snapshot_key):
                return None

            head = await self.redis.zrevrange(self.key, 0, n - 1, withscores=True)
            if not head:
                return None
            if len(head) < n:
                return rank([(member, float(score)) for member, score in head], n)

            # Members tied with the n-th score may sit outside the head in
            # Redis' own order; fetch them all so the id tie-break applies.
            cutoff = head[-1][1]
            tied = await self.redis.zrevrangebyscore(self.key, "+inf", cutoff, withscores=True)
        except RedisError as e:
            LOGGER.error("Failed to read ranking snapshot", exc_info=True)
            raise CacheError("Ranking cache unavailable", original_error=e)

        return rank([(member, float(score)) for member, score in tied], n)

    async def _rebuild(self, n: int) -> List[Score]:
        pipeline = Pipeline(
            "coverage_totals_by_client",
            self.policies.find,
            [
                Match(lambda row: row["client_id"] is not None and row["total_coverage"] is not None),
                Group("client_id", {"total": sum_of("total_coverage")}),
            ],
        )
        rows = await pipeline.run()
        if not rows:
            raise EmptyResultError("There are no policies to rank")

        totals: Dict[str, float] = {row["_id"]: float(row["total"]) for row in rows}
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.delete(self.key)
                pipe.zadd(self.key, totals)
                pipe.expire(self.key, self.ttl_seconds)
                pipe.set(self.snapshot_key, "1", ex=self.ttl_seconds)
                await pipe.execute()
        except RedisError as e:
            LOGGER.error("Failed to store ranking snapshot", exc_info=True)
            raise CacheError("Ranking cache unavailable", original_error=e)

        LOGGER.info(
            "Ranking snapshot rebuilt",
            extra={"clients": len(totals), "ttl_seconds": self.ttl_seconds},
        )
        return rank(list(totals.items()), n)
