from typing import Any, Mapping

from app.core.exceptions import NotFoundError
from app.repositories.client_repository import ClientRepository
from app.schemas.entities import Client
from app.services.base_service import BaseService
from app.services.sequence_service import SequenceAllocator
from app.services.validators import ClientValidator


class ClientService(BaseService):
    """Client registration and maintenance."""

    def __init__(
        self,
        clients: ClientRepository,
        sequences: SequenceAllocator,
        validator: ClientValidator,
    ):
        super().__init__()
        self.clients = clients
        self.sequences = sequences
        self.validator = validator

    async def create_client(self, payload: Mapping[str, Any]) -> Client:
        """Register a new client under the next free numeric id.

        Raises:
            ValidationError: If a required field is missing or malformed
            ConflictError: If the national id is already registered
        """
        values = await self.validator.validate_create(payload)

        async def create() -> Client:
            client_id = await self.sequences.next_value(
                Client.collection, self.clients.max_numeric_key
            )
            return await self.clients.insert(Client(id=str(client_id), **values))

        client = await self._execute("create_client", create)
        self.logger.info("Client created", extra={"client_id": client.id})
        return client

    async def get_client(self, client_id: str) -> Client:
        client = await self._execute("get_client", self.clients.get_by_key, client_id)
        if client is None:
            raise NotFoundError(f"Client {client_id} not found")
        return client

    async def update_client(self, client_id: str, changes: Mapping[str, Any]) -> Client:
        """Update the contact fields of a client."""
        await self.get_client(client_id)
        values = self.validator.validate_changes(changes)
        client = await self._execute("update_client", self.clients.update_by_key, client_id, values)
        if client is None:
            raise NotFoundError(f"Client {client_id} not found")
        return client

    async def deactivate_client(self, client_id: str) -> Client:
        """Mark a client inactive; its policies and vehicles are left untouched."""
        await self.get_client(client_id)
        client = await self._execute(
            "deactivate_client", self.clients.update_by_key, client_id, {"active": False}
        )
        if client is None:
            raise NotFoundError(f"Client {client_id} not found")
        self.logger.info("Client deactivated", extra={"client_id": client.id})
        return client
