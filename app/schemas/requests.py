"""Request payloads for the write endpoints.

Fields are deliberately permissive: presence, referential and business
checks run in the entity validators, in a fixed order, so callers get one
specific error for the first thing that is wrong instead of a bulk schema
failure.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

IdValue = Union[int, str, None]
AmountValue = Union[Decimal, str, None]
DateValue = Union[date, str, None]


class WritePayload(BaseModel):
    """Base for write payloads; unknown fields are kept so validators can reject them by name."""

    model_config = ConfigDict(extra="allow")

    def provided(self) -> Dict[str, Any]:
        """Fields the caller actually sent."""
        return self.model_dump(exclude_unset=True)


class ClientCreateRequest(WritePayload):
    name: Optional[str] = Field(default=None, examples=["Laura"])
    surname: Optional[str] = Field(default=None, examples=["Gomez"])
    national_id: IdValue = Field(default=None, examples=["30123456"])
    email: Optional[str] = Field(default=None, examples=["laura@example.com"])
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    active: Optional[bool] = None


class ClientUpdateRequest(WritePayload):
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None


class PolicyCreateRequest(WritePayload):
    client_id: IdValue = None
    agent_id: IdValue = None
    type: Optional[str] = Field(default=None, examples=["Auto"])
    start_date: DateValue = Field(default=None, examples=["2025-01-01"])
    end_date: DateValue = Field(default=None, examples=["2026-01-01"])
    monthly_premium: AmountValue = Field(default=None, examples=["120.50"])
    total_coverage: AmountValue = Field(default=None, examples=["150000"])
    state: Optional[str] = Field(default=None, description="Defaults to Activa")


class PolicyUpdateRequest(WritePayload):
    state: Optional[str] = None
    end_date: DateValue = None


class ClaimCreateRequest(WritePayload):
    policy_number: IdValue = Field(default=None, examples=["POL-001001"])
    date: DateValue = None
    type: Optional[str] = Field(default=None, examples=["Choque"])
    estimated_amount: AmountValue = None
    description: Optional[str] = None
    state: Optional[str] = Field(default=None, description="Defaults to Abierto")


class ClaimUpdateRequest(WritePayload):
    state: Optional[str] = None
    estimated_amount: AmountValue = None
    description: Optional[str] = None
