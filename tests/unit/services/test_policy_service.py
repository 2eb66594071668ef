"""Unit tests for policy issuance and the ranking side effects."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from app.core.exceptions import CacheError, ConflictError, NotFoundError, ValidationError
from app.schemas.entities import PolicyState


class TestIssuePolicy:
    @pytest.mark.asyncio
    async def test_issues_next_number_after_existing_policies(self, seeded, policy_service, policy_payload):
        policy = await policy_service.issue_policy(policy_payload)

        assert policy.policy_number == "POL-001006"
        assert policy.state is PolicyState.ACTIVE
        stored = await seeded.policies.get_by_key("POL-001006")
        assert stored.total_coverage == Decimal("1000")

    @pytest.mark.asyncio
    async def test_first_policy_starts_the_sequence(self, repos, policy_service, policy_payload):
        await repos.insert_raw(repos.clients, {"id_cliente": 1, "activo": True})
        await repos.insert_raw(repos.agents, {"id_agente": 2, "activo": True})

        first = await policy_service.issue_policy(policy_payload)
        second = await policy_service.issue_policy(policy_payload)

        assert [first.policy_number, second.policy_number] == ["POL-001001", "POL-001002"]

    @pytest.mark.asyncio
    async def test_coverage_accumulates_in_ranking(self, repos, policy_service, ranking, policy_payload):
        await repos.insert_raw(repos.clients, {"id_cliente": 5, "nombre": "Lucia", "activo": True})
        await repos.insert_raw(repos.agents, {"id_agente": 2, "activo": "True"})
        policy_payload["client_id"] = 5

        await policy_service.issue_policy({**policy_payload, "total_coverage": 1000})
        await policy_service.issue_policy({**policy_payload, "total_coverage": 500})

        assert await ranking.get_score("5") == 1500.0
        top = await policy_service.top_clients(1)
        assert [(e.client_id, e.name, e.total_coverage) for e in top] == [("5", "Lucia", 1500.0)]

    @pytest.mark.asyncio
    async def test_increment_lands_on_a_live_snapshot(self, seeded, policy_service, ranking, policy_payload):
        await ranking.get_top(3)

        await policy_service.issue_policy({**policy_payload, "total_coverage": "200000"})

        top = await ranking.get_top(1)
        assert (top[0].client_id, top[0].total_coverage) == ("1", 350000.0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("client_id, agent_id", [(3, 1), (99, 1), (1, 3), (1, 99)])
    async def test_referential_guard_mutates_nothing(
        self, seeded, policy_service, fake_redis, policy_payload, client_id, agent_id
    ):
        policy_payload.update(client_id=client_id, agent_id=agent_id)
        before = await seeded.policies.count()

        with pytest.raises(ValidationError):
            await policy_service.issue_policy(policy_payload)

        assert await seeded.policies.count() == before
        assert await fake_redis.keys("*") == []

    @pytest.mark.asyncio
    async def test_ranking_failure_does_not_undo_issuance(self, seeded, policy_service, policy_payload):
        policy_service.ranking.record_issuance = AsyncMock(side_effect=CacheError("redis down"))

        policy = await policy_service.issue_policy(policy_payload)

        assert await seeded.policies.get_by_key(policy.policy_number) is not None

    @pytest.mark.asyncio
    async def test_taken_number_is_a_conflict(self, seeded, policy_service, fake_redis, policy_payload):
        await fake_redis.set("sequence:polizas", 1000)

        with pytest.raises(ConflictError):
            await policy_service.issue_policy(policy_payload)


class TestMaintainPolicy:
    @pytest.mark.asyncio
    async def test_get_policy(self, seeded, policy_service):
        policy = await policy_service.get_policy("POL-001003")

        assert policy.state is PolicyState.ACTIVE

    @pytest.mark.asyncio
    async def test_get_missing_policy(self, seeded, policy_service):
        with pytest.raises(NotFoundError):
            await policy_service.get_policy("POL-404")

    @pytest.mark.asyncio
    async def test_update_state_and_end_date(self, seeded, policy_service):
        policy = await policy_service.update_policy(
            "POL-001001", {"state": "Suspended", "end_date": "2025-12-31"}
        )

        assert policy.state is PolicyState.SUSPENDED
        stored = await seeded.policies.get_by_key("POL-001001")
        assert stored.state is PolicyState.SUSPENDED
        assert stored.end_date.isoformat() == "2025-12-31"
        assert stored.total_coverage == Decimal("150000")

    @pytest.mark.asyncio
    async def test_end_date_must_follow_start(self, seeded, policy_service):
        with pytest.raises(ValidationError):
            await policy_service.update_policy("POL-001001", {"end_date": "2023-12-31"})

    @pytest.mark.asyncio
    async def test_top_clients_is_capped(self, seeded, policy_service):
        with pytest.raises(ValidationError):
            await policy_service.top_clients(101)
