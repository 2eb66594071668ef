"""Unit tests for client registration and maintenance."""

import pytest

from app.core.exceptions import ConflictError, NotFoundError, ValidationError


class TestClientService:
    @pytest.mark.asyncio
    async def test_create_client_gets_next_id(self, seeded, client_service):
        client = await client_service.create_client({
            "name": "Julia",
            "surname": "Ramos",
            "national_id": "30999888",
            "email": "julia@example.com",
        })

        assert client.id == "5"
        assert client.active is True
        assert (await seeded.clients.get_by_key(5)).surname == "Ramos"

    @pytest.mark.asyncio
    async def test_text_flag_false_creates_inactive_client(self, seeded, client_service):
        client = await client_service.create_client({
            "name": "Julia",
            "surname": "Ramos",
            "national_id": "30999888",
            "email": "julia@example.com",
            "active": "false",
        })

        assert client.active is False
        assert (await seeded.clients.get_by_key(client.id)).active is False

    @pytest.mark.asyncio
    async def test_duplicate_national_id(self, seeded, client_service):
        with pytest.raises(ConflictError):
            await client_service.create_client({
                "name": "Laura",
                "surname": "Gomez",
                "national_id": 30111222,
                "email": "laura2@example.com",
            })

    @pytest.mark.asyncio
    async def test_update_contact_details(self, seeded, client_service):
        client = await client_service.update_client("1", {"city": "Córdoba", "phone": "351 555 0101"})

        assert client.city == "Córdoba"
        assert client.name == "Laura"

    @pytest.mark.asyncio
    async def test_update_rejects_identity_fields(self, seeded, client_service):
        with pytest.raises(ValidationError):
            await client_service.update_client("1", {"name": "Otra"})

    @pytest.mark.asyncio
    async def test_update_missing_client(self, seeded, client_service):
        with pytest.raises(NotFoundError):
            await client_service.update_client("99", {"city": "Salta"})

    @pytest.mark.asyncio
    async def test_deactivate_moves_client_out_of_active_views(self, seeded, client_service, reporting):
        client = await client_service.deactivate_client("4")

        assert client.active is False
        active = await reporting.active_clients_with_current_policies()
        assert "4" not in [c.id for c in active]


class TestClientScenario:
    @pytest.mark.asyncio
    async def test_issuing_a_policy_moves_client_between_views(
        self, repos, reporting, policy_service, policy_payload
    ):
        await repos.insert_raw(repos.clients, {"id_cliente": 1, "nombre": "Laura", "activo": "True"})
        await repos.insert_raw(repos.agents, {"id_agente": 2, "activo": True})

        without = await reporting.clients_without_active_policies()
        assert [c.id for c in without] == ["1"]

        await policy_service.issue_policy(policy_payload)

        assert await reporting.clients_without_active_policies() == []
        current = await reporting.active_clients_with_current_policies()
        assert [(c.id, c.current_policies) for c in current] == [("1", ["POL-001001"])]
