"""Unit tests for the aggregation pipeline stages."""

from decimal import Decimal

import pytest

from app.core.exceptions import DatabaseError, PipelineError
from app.pipeline.aggregation import (
    AddFields,
    Group,
    Lookup,
    Match,
    Pipeline,
    Project,
    Sort,
    Unwind,
    count,
    first,
    get_path,
    sum_of,
)


def loader(rows):
    async def load():
        return rows
    return load


POLICIES = [
    {"policy_number": "P1", "client_id": 5, "coverage": "1000"},
    {"policy_number": "P2", "client_id": "5", "coverage": "500"},
    {"policy_number": "P3", "client_id": 7.0, "coverage": 200},
    {"policy_number": "P4", "client_id": None, "coverage": 50},
]


class TestLookup:
    @pytest.mark.asyncio
    async def test_joins_on_coerced_keys(self):
        stage = Lookup(loader(POLICIES), "id", "client_id", "policies")

        rows = await stage.apply([{"id": "5"}, {"id": 7}, {"id": 9}])

        assert [p["policy_number"] for p in rows[0]["policies"]] == ["P1", "P2"]
        assert [p["policy_number"] for p in rows[1]["policies"]] == ["P3"]
        assert rows[2]["policies"] == []

    @pytest.mark.asyncio
    async def test_where_and_project(self):
        stage = Lookup(
            loader(POLICIES), "id", "client_id", "numbers",
            where=lambda p: p["policy_number"] != "P1",
            project=lambda p: p["policy_number"],
        )

        rows = await stage.apply([{"id": 5}])

        assert rows[0]["numbers"] == ["P2"]

    @pytest.mark.asyncio
    async def test_rows_without_local_key_get_no_matches(self):
        stage = Lookup(loader(POLICIES), "id", "client_id", "policies")

        rows = await stage.apply([{"id": None}])

        assert rows[0]["policies"] == []

    @pytest.mark.asyncio
    async def test_dotted_local_field(self):
        stage = Lookup(loader([{"id": 5, "name": "Laura"}]), "policy.client_id", "id", "client")

        rows = await stage.apply([{"policy": {"client_id": "5"}}])

        assert rows[0]["client"] == [{"id": 5, "name": "Laura"}]


class TestUnwind:
    @pytest.mark.asyncio
    async def test_one_row_per_element_and_empty_lists_dropped(self):
        rows = await Unwind("items").apply([{"k": 1, "items": [1, 2]}, {"k": 2, "items": []}])

        assert rows == [{"k": 1, "items": 1}, {"k": 1, "items": 2}]


class TestGroup:
    @pytest.mark.asyncio
    async def test_groups_by_coerced_key_in_first_seen_order(self):
        stage = Group("client_id", {
            "total": sum_of("coverage"),
            "policies": count(),
            "first_policy": first("policy_number"),
        })

        rows = await stage.apply(POLICIES[:3])

        assert rows == [
            {"_id": "5", "total": Decimal("1500"), "policies": 2, "first_policy": "P1"},
            {"_id": "7", "total": Decimal("200"), "policies": 1, "first_policy": "P3"},
        ]


class TestReshapingStages:
    @pytest.mark.asyncio
    async def test_add_fields_sort_and_project(self):
        pipeline = Pipeline(
            "reshape",
            loader(POLICIES),
            [
                Match(lambda row: row["client_id"] is not None),
                AddFields({"amount": lambda row: Decimal(str(row["coverage"]))}),
                Sort(lambda row: row["amount"]),
                Project({"number": "policy_number", "double": lambda row: row["amount"] * 2}),
            ],
        )

        rows = await pipeline.run()

        assert rows == [
            {"number": "P3", "double": Decimal("400")},
            {"number": "P2", "double": Decimal("1000")},
            {"number": "P1", "double": Decimal("2000")},
        ]

    def test_get_path_missing_segments(self):
        assert get_path({"a": {"b": 1}}, "a.b") == 1
        assert get_path({"a": None}, "a.b") is None
        assert get_path({}, "a") is None


class TestPipelineErrors:
    @pytest.mark.asyncio
    async def test_stage_failure_is_reported_with_stage_name(self):
        pipeline = Pipeline(
            "broken",
            loader(POLICIES),
            [Project({"ratio": lambda row: 1 / 0})],
        )

        with pytest.raises(PipelineError) as exc_info:
            await pipeline.run()

        assert exc_info.value.stage == "project"
        assert isinstance(exc_info.value.original_error, ZeroDivisionError)

    @pytest.mark.asyncio
    async def test_store_errors_pass_through(self):
        async def failing_source():
            raise DatabaseError("store down")

        pipeline = Pipeline("store", loader(POLICIES), [Lookup(failing_source, "id", "id", "x")])

        with pytest.raises(DatabaseError):
            await pipeline.run()
