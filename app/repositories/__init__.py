"""Repository layer modules."""

from app.repositories.agent_repository import AgentRepository
from app.repositories.base_repository import DocumentRepository
from app.repositories.claim_repository import ClaimRepository
from app.repositories.client_repository import ClientRepository
from app.repositories.policy_repository import PolicyRepository
from app.repositories.vehicle_repository import VehicleRepository

__all__ = [
    "DocumentRepository",
    "AgentRepository",
    "ClientRepository",
    "PolicyRepository",
    "ClaimRepository",
    "VehicleRepository",
]
