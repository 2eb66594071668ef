"""Write validators, one per entity.

Every validator runs its checks in the same order: required fields first,
then references to other entities, then business rules on the values.
The first failing check raises a ``ValidationError`` naming the field and
nothing after it runs. Create and update paths share the same per-field
parsers, so both accept and reject exactly the same values.
"""

import re
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from app.core.exceptions import ConflictError, ValidationError
from app.repositories.agent_repository import AgentRepository
from app.repositories.client_repository import ClientRepository
from app.repositories.policy_repository import PolicyRepository
from app.schemas.entities import (
    ClaimState,
    Policy,
    PolicyState,
    normalize_claim_state,
    normalize_policy_state,
)
from app.utils.coercion import clean_text, coerce_key, to_bool, to_date, to_decimal

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")
PHONE_RE = re.compile(r"^\+?[0-9 ()\-]{6,20}$")

FieldParser = Callable[[Any, str], Any]


def is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require(payload: Mapping[str, Any], fields: Sequence[str]) -> None:
    """Raise for the first required field that is absent or blank."""
    for field in fields:
        if is_missing(payload.get(field)):
            raise ValidationError(f"Field '{field}' is required", field=field)


def reject_unknown(changes: Mapping[str, Any], allowed: Iterable[str]) -> None:
    allowed = set(allowed)
    for field in changes:
        if field not in allowed:
            raise ValidationError(f"Field '{field}' cannot be updated", field=field)


def parse_text(value: Any, field: str) -> Optional[str]:
    return clean_text(value)


def parse_key(value: Any, field: str) -> str:
    key = coerce_key(value)
    if key is None:
        raise ValidationError(f"Field '{field}' must be an id", field=field)
    return key


def parse_date(value: Any, field: str) -> date:
    parsed = to_date(value)
    if parsed is None:
        raise ValidationError(f"Field '{field}' must be a date (YYYY-MM-DD)", field=field)
    return parsed


def parse_positive_amount(value: Any, field: str) -> Decimal:
    amount = to_decimal(value)
    if amount is None or not amount.is_finite():
        raise ValidationError(f"Field '{field}' must be a number", field=field)
    if amount <= 0:
        raise ValidationError(f"Field '{field}' must be greater than zero", field=field)
    return amount


def parse_email(value: Any, field: str) -> Optional[str]:
    email = clean_text(value)
    if email is not None and not EMAIL_RE.match(email):
        raise ValidationError(f"Field '{field}' must be a valid email address", field=field)
    return email


def parse_phone(value: Any, field: str) -> Optional[str]:
    phone = clean_text(value)
    if phone is not None and not PHONE_RE.match(phone):
        raise ValidationError(f"Field '{field}' must be a valid phone number", field=field)
    return phone


def parse_policy_state(value: Any, field: str) -> PolicyState:
    state = normalize_policy_state(value)
    if state is None:
        allowed = ", ".join(s.value for s in PolicyState)
        raise ValidationError(f"Field '{field}' must be one of: {allowed}", field=field)
    return state


def parse_claim_state(value: Any, field: str) -> ClaimState:
    state = normalize_claim_state(value)
    if state is None:
        allowed = ", ".join(s.value for s in ClaimState)
        raise ValidationError(f"Field '{field}' must be one of: {allowed}", field=field)
    return state


def check_date_range(start: date, end: date) -> None:
    if end <= start:
        raise ValidationError("Field 'end_date' must be after 'start_date'", field="end_date")


class EntityValidator:
    """Shared machinery: per-field parsers applied to a chosen field set."""

    parsers: Dict[str, FieldParser] = {}
    updatable: Tuple[str, ...] = ()

    def parse_fields(self, payload: Mapping[str, Any], fields: Iterable[str]) -> Dict[str, Any]:
        """Parse the given fields that are present in ``payload``, in order."""
        values = {}
        for field in fields:
            if field in payload and not is_missing(payload[field]):
                values[field] = self.parsers[field](payload[field], field)
        return values

    def validate_changes(self, changes: Mapping[str, Any]) -> Dict[str, Any]:
        """Validate a partial update against the whitelist and field parsers."""
        if not changes:
            raise ValidationError("No fields to update")
        reject_unknown(changes, self.updatable)
        values = self.parse_fields(changes, self.updatable)
        if not values:
            raise ValidationError("No fields to update")
        return values


class ClientValidator(EntityValidator):
    required = ("name", "surname", "national_id", "email")
    parsers = {
        "name": parse_text,
        "surname": parse_text,
        "national_id": parse_key,
        "email": parse_email,
        "phone": parse_phone,
        "address": parse_text,
        "city": parse_text,
        "province": parse_text,
    }
    updatable = ("email", "phone", "address", "city", "province")

    def __init__(self, clients: ClientRepository):
        self.clients = clients

    async def validate_create(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        require(payload, self.required)

        existing = await self.clients.get_by_national_id(payload["national_id"])
        if existing is not None:
            raise ConflictError(
                f"A client with national id {coerce_key(payload['national_id'])} already exists"
            )

        values = self.parse_fields(payload, self.parsers)
        values["active"] = to_bool(payload["active"]) if payload.get("active") is not None else True
        return values


class PolicyValidator(EntityValidator):
    required = (
        "client_id",
        "agent_id",
        "type",
        "start_date",
        "end_date",
        "monthly_premium",
        "total_coverage",
    )
    parsers = {
        "type": parse_text,
        "start_date": parse_date,
        "end_date": parse_date,
        "monthly_premium": parse_positive_amount,
        "total_coverage": parse_positive_amount,
        "state": parse_policy_state,
    }
    updatable = ("state", "end_date")

    def __init__(self, clients: ClientRepository, agents: AgentRepository):
        self.clients = clients
        self.agents = agents

    async def validate_create(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """Validate a policy issuance.

        Order: required fields, client, agent, date range, amounts, state.
        """
        require(payload, self.required)

        client = await self.clients.get_by_key(payload["client_id"])
        if client is None:
            raise ValidationError(f"Client {payload['client_id']} does not exist", field="client_id")
        if not client.active:
            raise ValidationError(f"Client {client.id} is not active", field="client_id")

        agent = await self.agents.get_by_key(payload["agent_id"])
        if agent is None:
            raise ValidationError(f"Agent {payload['agent_id']} does not exist", field="agent_id")
        if not agent.active:
            raise ValidationError(f"Agent {agent.id} is not active", field="agent_id")

        values = self.parse_fields(payload, ("type", "start_date", "end_date"))
        check_date_range(values["start_date"], values["end_date"])

        values.update(self.parse_fields(payload, ("monthly_premium", "total_coverage")))

        values["state"] = (
            PolicyState.ACTIVE
            if is_missing(payload.get("state"))
            else parse_policy_state(payload["state"], "state")
        )
        values["client_id"] = client.id
        values["agent_id"] = agent.id
        return values

    def validate_update(self, current: Policy, changes: Mapping[str, Any]) -> Dict[str, Any]:
        values = self.validate_changes(changes)
        if "end_date" in values and current.start_date is not None:
            check_date_range(current.start_date, values["end_date"])
        return values


class ClaimValidator(EntityValidator):
    required = ("policy_number", "date", "type", "estimated_amount")
    parsers = {
        "date": parse_date,
        "type": parse_text,
        "estimated_amount": parse_positive_amount,
        "description": parse_text,
        "state": parse_claim_state,
    }
    updatable = ("state", "estimated_amount", "description")

    def __init__(self, policies: PolicyRepository, today: Callable[[], date] = date.today):
        self.policies = policies
        self.today = today

    async def validate_create(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """Validate a new claim.

        Order: required fields, policy, policy state, date, amount, state.
        """
        require(payload, self.required)

        policy = await self.policies.get_by_key(payload["policy_number"])
        if policy is None:
            raise ValidationError(
                f"Policy {payload['policy_number']} does not exist", field="policy_number"
            )
        if not policy.is_active_like:
            state = policy.state.value if policy.state else "unknown"
            raise ValidationError(
                f"Policy {policy.policy_number} is not active (state: {state})",
                field="policy_number",
            )

        values = self.parse_fields(payload, ("date", "type"))
        if values["date"] > self.today():
            raise ValidationError("Field 'date' cannot be in the future", field="date")

        values.update(self.parse_fields(payload, ("estimated_amount", "description")))

        values["state"] = (
            ClaimState.OPEN
            if is_missing(payload.get("state"))
            else parse_claim_state(payload["state"], "state")
        )
        values["policy_number"] = policy.policy_number
        return values
