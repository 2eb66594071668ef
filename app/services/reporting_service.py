"""Reporting views rebuilt from denormalized collections.

Each view is a fixed aggregation pipeline. Views are read-only, so running
one twice against an unchanged store returns identical rows.
"""

from datetime import date
from functools import partial
from typing import Callable, List, Optional, Type, TypeVar

from pydantic import BaseModel

from app.core.exceptions import NotFoundError, ReportQueryError, ValidationError
from app.pipeline.aggregation import (
    AddFields,
    Group,
    Lookup,
    Match,
    Pipeline,
    Project,
    Row,
    Sort,
    Unwind,
    count,
    first,
)
from app.repositories.agent_repository import AgentRepository
from app.repositories.claim_repository import ClaimRepository
from app.repositories.client_repository import ClientRepository
from app.repositories.policy_repository import PolicyRepository
from app.repositories.vehicle_repository import VehicleRepository
from app.schemas.entities import Agent, ClaimState, PolicyState, Vehicle, is_active_like
from app.schemas.reports import (
    ActiveAgentReport,
    ActivePolicyReport,
    AgentClaimsReport,
    ClientCurrentPoliciesReport,
    ClientVehiclesReport,
    ClientWithoutActivePoliciesReport,
    ExpiredPolicyReport,
    InsuredVehicleReport,
    OpenClaimReport,
    RecentClaimReport,
    SuspendedPolicyReport,
)
from app.services.base_service import BaseService
from app.utils.coercion import clean_text, one_year_before

ReportType = TypeVar("ReportType", bound=BaseModel)

POLICY_FIELDS = {
    "policy_number": "policy_number",
    "client_id": "client_id",
    "agent_id": "agent_id",
    "type": "type",
    "start_date": "start_date",
    "end_date": "end_date",
    "monthly_premium": "monthly_premium",
    "total_coverage": "total_coverage",
    "state": "state",
}


def _person(row: Row) -> Row:
    return {"name": row.get("name"), "surname": row.get("surname")}


class ReportingService(BaseService):
    """Runs the reporting pipelines against the document store."""

    failure_error = ReportQueryError

    def __init__(
        self,
        agents: AgentRepository,
        clients: ClientRepository,
        policies: PolicyRepository,
        claims: ClaimRepository,
        vehicles: VehicleRepository,
        today: Callable[[], date] = date.today,
    ):
        super().__init__()
        self.agents = agents
        self.clients = clients
        self.policies = policies
        self.claims = claims
        self.vehicles = vehicles
        self.today = today

    async def _report(
        self, pipeline: Pipeline, model: Type[ReportType]
    ) -> List[ReportType]:
        async def run() -> List[ReportType]:
            rows = await pipeline.run()
            return [model.model_validate(row) for row in rows]

        return await self._execute(pipeline.name, run)

    # ------------------------------------------------------------------ #
    # Agents
    # ------------------------------------------------------------------ #

    async def active_agents_with_policy_counts(self) -> List[ActiveAgentReport]:
        """Active agents with the number of policies each one wrote."""
        pipeline = Pipeline(
            "active_agents_with_policy_counts",
            self.agents.find_active,
            [
                Lookup(self.policies.find, "id", "agent_id", "policies"),
                AddFields({"policy_count": lambda row: len(row["policies"])}),
                Project({
                    "id": "id",
                    "name": "name",
                    "surname": "surname",
                    "license_code": "license_code",
                    "policy_count": "policy_count",
                }),
            ],
        )
        return await self._report(pipeline, ActiveAgentReport)

    async def agents_with_claim_counts(self) -> List[AgentClaimsReport]:
        """Active agents with the total claims filed against their policies.

        Agents without any claim are left out: both joins are flattened, so
        an agent only survives if at least one claim row reaches the group.
        """
        pipeline = Pipeline(
            "agents_with_claim_counts",
            self.agents.find_active,
            [
                Lookup(self.policies.find, "id", "agent_id", "policies"),
                Unwind("policies"),
                Lookup(self.claims.find, "policies.policy_number", "policy_number", "claims"),
                Unwind("claims"),
                Group("id", {
                    "name": first("name"),
                    "surname": first("surname"),
                    "license_code": first("license_code"),
                    "total_claims": count(),
                }),
                Project({
                    "id": "_id",
                    "name": "name",
                    "surname": "surname",
                    "license_code": "license_code",
                    "total_claims": "total_claims",
                }),
            ],
        )
        return await self._report(pipeline, AgentClaimsReport)

    # ------------------------------------------------------------------ #
    # Clients
    # ------------------------------------------------------------------ #

    def _current_policies_lookup(self) -> Lookup:
        return Lookup(
            self.policies.find,
            "id",
            "client_id",
            "current_policies",
            where=lambda policy: is_active_like(policy["state"]),
            project=lambda policy: policy["policy_number"],
        )

    async def active_clients_with_current_policies(self) -> List[ClientCurrentPoliciesReport]:
        """Active clients holding at least one active-like policy."""
        pipeline = Pipeline(
            "active_clients_with_current_policies",
            self.clients.find_active,
            [
                self._current_policies_lookup(),
                Match(lambda row: len(row["current_policies"]) > 0),
                Project({
                    "id": "id",
                    "name": "name",
                    "surname": "surname",
                    "current_policies": "current_policies",
                }),
            ],
        )
        return await self._report(pipeline, ClientCurrentPoliciesReport)

    async def clients_without_active_policies(self) -> List[ClientWithoutActivePoliciesReport]:
        """Clients, active or not, holding no active-like policy."""
        pipeline = Pipeline(
            "clients_without_active_policies",
            self.clients.find,
            [
                self._current_policies_lookup(),
                Match(lambda row: len(row["current_policies"]) == 0),
                Project({"id": "id", "name": "name", "surname": "surname", "active": "active"}),
            ],
        )
        return await self._report(pipeline, ClientWithoutActivePoliciesReport)

    async def clients_with_multiple_insured_vehicles(self) -> List[ClientVehiclesReport]:
        pipeline = Pipeline(
            "clients_with_multiple_insured_vehicles",
            self.clients.find,
            [
                Lookup(self.vehicles.find_insured, "id", "client_id", "vehicles"),
                AddFields({"insured_vehicles": lambda row: len(row["vehicles"])}),
                Match(lambda row: row["insured_vehicles"] > 1),
                Project({
                    "id": "id",
                    "name": "name",
                    "surname": "surname",
                    "insured_vehicles": "insured_vehicles",
                }),
            ],
        )
        return await self._report(pipeline, ClientVehiclesReport)

    # ------------------------------------------------------------------ #
    # Policies
    # ------------------------------------------------------------------ #

    def _client_lookup(self, local_field: str = "client_id", with_flag: bool = False) -> Lookup:
        def project(client: Row) -> Row:
            summary = _person(client)
            if with_flag:
                summary["active"] = client["active"]
            return summary

        return Lookup(self.clients.find, local_field, "id", "client", project=project)

    async def expired_policies_with_client(self) -> List[ExpiredPolicyReport]:
        pipeline = Pipeline(
            "expired_policies_with_client",
            partial(self.policies.find_by_state, PolicyState.EXPIRED),
            [
                self._client_lookup(),
                Unwind("client"),
                Project({"policy_number": "policy_number", "end_date": "end_date", "client": "client"}),
            ],
        )
        return await self._report(pipeline, ExpiredPolicyReport)

    async def active_policies_by_start_date(self) -> List[ActivePolicyReport]:
        """Active policies, earliest start first; undated policies go last."""
        pipeline = Pipeline(
            "active_policies_by_start_date",
            partial(self.policies.find_by_state, PolicyState.ACTIVE),
            [
                Sort(lambda row: (row["start_date"] is None, row["start_date"] or date.min)),
                Project(POLICY_FIELDS),
            ],
        )
        return await self._report(pipeline, ActivePolicyReport)

    async def suspended_policies_with_client(self) -> List[SuspendedPolicyReport]:
        pipeline = Pipeline(
            "suspended_policies_with_client",
            partial(self.policies.find_by_state, PolicyState.SUSPENDED),
            [
                self._client_lookup(with_flag=True),
                Unwind("client"),
                Project({**POLICY_FIELDS, "client": "client"}),
            ],
        )
        return await self._report(pipeline, SuspendedPolicyReport)

    # ------------------------------------------------------------------ #
    # Claims
    # ------------------------------------------------------------------ #

    async def open_claims_with_client(self) -> List[OpenClaimReport]:
        """Open claims with the name of the policy holder.

        Claims whose policy or client cannot be resolved are dropped.
        """
        pipeline = Pipeline(
            "open_claims_with_client",
            partial(self.claims.find_by_state, ClaimState.OPEN),
            [
                Lookup(
                    self.policies.find, "policy_number", "policy_number", "policy",
                    project=lambda policy: {"client_id": policy["client_id"]},
                ),
                Unwind("policy"),
                self._client_lookup(local_field="policy.client_id"),
                Unwind("client"),
                Project({"date": "date", "type": "type", "amount": "estimated_amount", "client": "client"}),
            ],
        )
        return await self._report(pipeline, OpenClaimReport)

    async def recent_claims_by_type(self, claim_type: Optional[str]) -> List[RecentClaimReport]:
        """Claims of one type dated within the last twelve months.

        Args:
            claim_type: Claim type, compared case-insensitively

        Raises:
            ValidationError: If no claim type is given
        """
        wanted = clean_text(claim_type)
        if wanted is None:
            raise ValidationError("Claim type is required", field="type")
        wanted = wanted.casefold()
        since = one_year_before(self.today())

        pipeline = Pipeline(
            "recent_claims_by_type",
            self.claims.find,
            [
                Match(lambda row: (row["type"] or "").casefold() == wanted),
                Match(lambda row: row["date"] is not None and row["date"] >= since),
                Project({
                    "id": "id",
                    "policy_number": "policy_number",
                    "date": "date",
                    "type": "type",
                    "estimated_amount": "estimated_amount",
                    "description": "description",
                    "state": "state",
                }),
            ],
        )
        return await self._report(pipeline, RecentClaimReport)

    # ------------------------------------------------------------------ #
    # Vehicles
    # ------------------------------------------------------------------ #

    async def insured_vehicles_with_owner_and_policy(self) -> List[InsuredVehicleReport]:
        """One row per (insured vehicle, owner's policy) pair."""
        pipeline = Pipeline(
            "insured_vehicles_with_owner_and_policy",
            self.vehicles.find_insured,
            [
                self._client_lookup(),
                Unwind("client"),
                Lookup(
                    self.policies.find, "client_id", "client_id", "policies",
                    project=lambda policy: policy["policy_number"],
                ),
                Unwind("policies"),
                Project({"plate": "plate", "client": "client", "policy_number": "policies"}),
            ],
        )
        return await self._report(pipeline, InsuredVehicleReport)

    # ------------------------------------------------------------------ #
    # Single-record lookups
    # ------------------------------------------------------------------ #

    async def get_agent(self, agent_id: str) -> Agent:
        agent = await self._execute("get_agent", self.agents.get_by_key, agent_id)
        if agent is None:
            raise NotFoundError(f"Agent {agent_id} not found")
        return agent

    async def get_vehicle(self, vehicle_id: str) -> Vehicle:
        vehicle = await self._execute("get_vehicle", self.vehicles.get_by_key, vehicle_id)
        if vehicle is None:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")
        return vehicle

