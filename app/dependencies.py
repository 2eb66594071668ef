"""Centralized dependency injection for FastAPI application.

This module provides factory functions for creating service and repository
instances with proper dependency injection following FastAPI best practices.
Every request gets its own session-bound repositories; the Redis client is
shared.
"""

from typing import Annotated

from fastapi import Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_async_session
from app.core.redis_client import get_redis
from app.repositories.agent_repository import AgentRepository
from app.repositories.claim_repository import ClaimRepository
from app.repositories.client_repository import ClientRepository
from app.repositories.policy_repository import PolicyRepository
from app.repositories.vehicle_repository import VehicleRepository
from app.services.claim_service import ClaimService
from app.services.client_service import ClientService
from app.services.policy_service import PolicyService
from app.services.ranking_cache import RankingCache
from app.services.reporting_service import ReportingService
from app.services.sequence_service import SequenceAllocator
from app.services.validators import ClaimValidator, ClientValidator, PolicyValidator


async def get_agent_repository(
    db_session: Annotated[AsyncSession, Depends(get_async_session)]
) -> AgentRepository:
    return AgentRepository(db_session)


async def get_client_repository(
    db_session: Annotated[AsyncSession, Depends(get_async_session)]
) -> ClientRepository:
    return ClientRepository(db_session)


async def get_policy_repository(
    db_session: Annotated[AsyncSession, Depends(get_async_session)]
) -> PolicyRepository:
    return PolicyRepository(db_session)


async def get_claim_repository(
    db_session: Annotated[AsyncSession, Depends(get_async_session)]
) -> ClaimRepository:
    return ClaimRepository(db_session)


async def get_vehicle_repository(
    db_session: Annotated[AsyncSession, Depends(get_async_session)]
) -> VehicleRepository:
    return VehicleRepository(db_session)


async def get_sequence_allocator(
    redis: Annotated[Redis, Depends(get_redis)]
) -> SequenceAllocator:
    return SequenceAllocator(redis, prefix=settings.redis.sequence_key_prefix)


async def get_ranking_cache(
    redis: Annotated[Redis, Depends(get_redis)],
    policies: Annotated[PolicyRepository, Depends(get_policy_repository)],
    clients: Annotated[ClientRepository, Depends(get_client_repository)],
) -> RankingCache:
    """Get ranking cache instance.

    Args:
        redis: Shared Redis client
        policies: Source of coverage totals on rebuild
        clients: Source of client names

    Returns:
        RankingCache: Cache configured from ``RedisSettings``
    """
    return RankingCache(
        redis,
        policies,
        clients,
        key=settings.redis.ranking_key,
        ttl_seconds=settings.ranking_ttl_seconds,
    )


async def get_reporting_service(
    agents: Annotated[AgentRepository, Depends(get_agent_repository)],
    clients: Annotated[ClientRepository, Depends(get_client_repository)],
    policies: Annotated[PolicyRepository, Depends(get_policy_repository)],
    claims: Annotated[ClaimRepository, Depends(get_claim_repository)],
    vehicles: Annotated[VehicleRepository, Depends(get_vehicle_repository)],
) -> ReportingService:
    """Get reporting service instance.

    Returns:
        ReportingService: Service running the reporting views
    """
    return ReportingService(agents, clients, policies, claims, vehicles)


async def get_client_service(
    clients: Annotated[ClientRepository, Depends(get_client_repository)],
    sequences: Annotated[SequenceAllocator, Depends(get_sequence_allocator)],
) -> ClientService:
    return ClientService(clients, sequences, ClientValidator(clients))


async def get_policy_service(
    policies: Annotated[PolicyRepository, Depends(get_policy_repository)],
    clients: Annotated[ClientRepository, Depends(get_client_repository)],
    agents: Annotated[AgentRepository, Depends(get_agent_repository)],
    sequences: Annotated[SequenceAllocator, Depends(get_sequence_allocator)],
    ranking: Annotated[RankingCache, Depends(get_ranking_cache)],
) -> PolicyService:
    """Get policy service instance.

    Returns:
        PolicyService: Service for issuance, updates and the coverage ranking
    """
    return PolicyService(
        policies,
        sequences,
        PolicyValidator(clients, agents),
        ranking,
        number_prefix=settings.policy.number_prefix,
        number_width=settings.policy.number_width,
        sequence_start=settings.policy.sequence_start,
        max_ranking_size=settings.policy.ranking_max_n,
    )


async def get_claim_service(
    claims: Annotated[ClaimRepository, Depends(get_claim_repository)],
    policies: Annotated[PolicyRepository, Depends(get_policy_repository)],
    sequences: Annotated[SequenceAllocator, Depends(get_sequence_allocator)],
) -> ClaimService:
    return ClaimService(claims, sequences, ClaimValidator(policies))


ReportingServiceDep = Annotated[ReportingService, Depends(get_reporting_service)]
ClientServiceDep = Annotated[ClientService, Depends(get_client_service)]
PolicyServiceDep = Annotated[PolicyService, Depends(get_policy_service)]
ClaimServiceDep = Annotated[ClaimService, Depends(get_claim_service)]
