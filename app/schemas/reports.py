"""Row shapes returned by the reporting views and the ranking."""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from app.schemas.entities import ClaimState, PolicyState

DateValue = Optional[date]


class PersonName(BaseModel):
    name: Optional[str] = None
    surname: Optional[str] = None


class ClientSummary(PersonName):
    active: bool


class ActiveAgentReport(BaseModel):
    id: str
    name: Optional[str] = None
    surname: Optional[str] = None
    license_code: Optional[str] = None
    policy_count: int = Field(..., description="Policies written by the agent")


class AgentClaimsReport(BaseModel):
    id: str
    name: Optional[str] = None
    surname: Optional[str] = None
    license_code: Optional[str] = None
    total_claims: int = Field(..., description="Claims filed against the agent's policies")


class ClientCurrentPoliciesReport(BaseModel):
    id: str
    name: Optional[str] = None
    surname: Optional[str] = None
    current_policies: List[str]


class ClientWithoutActivePoliciesReport(BaseModel):
    id: str
    name: Optional[str] = None
    surname: Optional[str] = None
    active: bool


class ClientVehiclesReport(BaseModel):
    id: str
    name: Optional[str] = None
    surname: Optional[str] = None
    insured_vehicles: int


class ExpiredPolicyReport(BaseModel):
    policy_number: str
    end_date: DateValue = None
    client: PersonName


class ActivePolicyReport(BaseModel):
    policy_number: str
    client_id: Optional[str] = None
    agent_id: Optional[str] = None
    type: Optional[str] = None
    start_date: DateValue = None
    end_date: DateValue = None
    monthly_premium: Optional[Decimal] = None
    total_coverage: Optional[Decimal] = None
    state: Optional[PolicyState] = None


class SuspendedPolicyReport(ActivePolicyReport):
    client: ClientSummary


class OpenClaimReport(BaseModel):
    date: DateValue = None
    type: Optional[str] = None
    amount: Optional[Decimal] = None
    client: PersonName


class RecentClaimReport(BaseModel):
    id: str
    policy_number: Optional[str] = None
    date: DateValue = None
    type: Optional[str] = None
    estimated_amount: Optional[Decimal] = None
    description: Optional[str] = None
    state: Optional[ClaimState] = None


class InsuredVehicleReport(BaseModel):
    plate: Optional[str] = None
    client: PersonName
    policy_number: str


class RankingEntry(BaseModel):
    client_id: str
    name: Optional[str] = None
    surname: Optional[str] = None
    total_coverage: float
