"""Unit tests for the cached coverage ranking."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.exceptions import CacheError, EmptyResultError, ValidationError
from app.services.ranking_cache import RankingCache, rank


def test_rank_breaks_ties_by_ascending_numeric_client_id():
    scores = [("10", 500.0), ("2", 500.0), ("7", 900.0), ("abc", 500.0)]

    assert rank(scores, 3) == [("7", 900.0), ("2", 500.0), ("10", 500.0)]


class TestGetTop:
    @pytest.mark.asyncio
    async def test_rebuilds_from_store_when_no_snapshot(self, seeded, ranking, fake_redis):
        top = await ranking.get_top(2)

        assert [(e.client_id, e.name, e.total_coverage) for e in top] == [
            ("2", "Martin", 290000.0),
            ("1", "Laura", 150000.0),
        ]
        assert await fake_redis.exists(ranking.snapshot_key) == 1
        assert 0 < await fake_redis.ttl(ranking.key) <= 60
        assert 0 < await fake_redis.ttl(ranking.snapshot_key) <= 60

    @pytest.mark.asyncio
    async def test_serves_from_snapshot_while_alive(self, seeded, ranking, fake_redis):
        await ranking.get_top(3)
        seeded.policies.find = AsyncMock(side_effect=AssertionError("store must not be read"))

        top = await ranking.get_top(1)

        assert top[0].client_id == "2"

    @pytest.mark.asyncio
    async def test_expired_snapshot_is_rebuilt(self, seeded, ranking, expire_keys):
        await ranking.get_top(1)
        await seeded.insert_raw(
            seeded.policies,
            {"nro_poliza": "POL-003000", "id_cliente": 3, "cobertura_total": "1000000"}
        )

        await expire_keys(ranking.key, ranking.snapshot_key)
        top = await ranking.get_top(1)

        assert (top[0].client_id, top[0].total_coverage) == ("3", 1050000.0)

    @pytest.mark.asyncio
    async def test_ties_at_the_cutoff_use_client_id(self, repos, ranking):
        for client_id in (10, 3, 7):
            await repos.insert_raw(repos.clients, {"id_cliente": client_id, "nombre": f"C{client_id}"})
            await repos.insert_raw(
                repos.policies,
                {"nro_poliza": f"P-{client_id}", "id_cliente": client_id, "cobertura_total": 100}
            )

        rebuilt = await ranking.get_top(2)
        cached = await ranking.get_top(2)

        assert [e.client_id for e in rebuilt] == ["3", "7"]
        assert [e.client_id for e in cached] == ["3", "7"]

    @pytest.mark.asyncio
    async def test_missing_client_yields_null_names(self, repos, ranking):
        await repos.insert_raw(repos.policies, {"nro_poliza": "P-1", "id_cliente": 42, "cobertura_total": 10})

        top = await ranking.get_top(5)

        assert [(e.client_id, e.name, e.surname) for e in top] == [("42", None, None)]

    @pytest.mark.asyncio
    async def test_no_policies_is_an_empty_result(self, repos, ranking):
        with pytest.raises(EmptyResultError):
            await ranking.get_top(5)

    @pytest.mark.asyncio
    async def test_n_must_be_positive(self, seeded, ranking):
        with pytest.raises(ValidationError):
            await ranking.get_top(0)


class TestRecordIssuance:
    @pytest.mark.asyncio
    async def test_increments_accumulate(self, repos, ranking):
        await ranking.record_issuance("5", Decimal("1000"))
        score = await ranking.record_issuance(5, Decimal("500"))

        assert score == 1500.0
        assert await ranking.get_score("5") == 1500.0

    @pytest.mark.asyncio
    async def test_incremental_score_matches_full_recompute(self, seeded, ranking):
        await ranking.get_top(4)
        amounts = [Decimal("1000.10"), Decimal("2500"), Decimal("333.33")]
        for number, amount in enumerate(amounts):
            await seeded.insert_raw(seeded.policies, {
                "nro_poliza": f"POL-00900{number}",
                "id_cliente": 4,
                "cobertura_total": str(amount),
            })
            await ranking.record_issuance("4", amount)

        incremental = await ranking.get_score("4")
        await ranking.invalidate()
        rebuilt = {e.client_id: e.total_coverage for e in await ranking.get_top(10)}

        assert incremental == pytest.approx(rebuilt["4"])
        assert rebuilt["4"] == pytest.approx(75000 + 3833.43)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("marker_only", [False, True])
    async def test_increment_after_expiry_is_not_counted_twice(
        self, seeded, ranking, expire_keys, marker_only
    ):
        await ranking.get_top(4)
        expired = (ranking.snapshot_key,) if marker_only else (ranking.key, ranking.snapshot_key)
        await expire_keys(*expired)

        await seeded.insert_raw(
            seeded.policies,
            {"nro_poliza": "POL-004000", "id_cliente": 1, "cobertura_total": "5000"},
        )
        await ranking.record_issuance("1", Decimal("5000"))

        top = {e.client_id: e.total_coverage for e in await ranking.get_top(4)}

        assert top["1"] == pytest.approx(155000.0)
        assert top["2"] == pytest.approx(290000.0)
        assert await ranking.get_score("1") == pytest.approx(155000.0)

    @pytest.mark.asyncio
    async def test_get_score_of_unknown_client(self, ranking):
        assert await ranking.get_score("404") is None

    @pytest.mark.asyncio
    async def test_redis_failure_is_a_cache_error(self, repos):
        redis = AsyncMock()
        redis.zincrby.side_effect = RedisConnectionError("refused")
        cache = RankingCache(redis, repos.policies, repos.clients)

        with pytest.raises(CacheError):
            await cache.record_issuance("1", Decimal("10"))
