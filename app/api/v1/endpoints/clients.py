"""Client reporting and maintenance endpoints."""

from fastapi import APIRouter, Request, status

from app.dependencies import ClientServiceDep, ReportingServiceDep
from app.schemas.common import ApiResponse
from app.schemas.requests import ClientCreateRequest, ClientUpdateRequest
from app.utils.logging import get_logger
from app.utils.responses import create_api_response

LOGGER = get_logger(__name__)

router = APIRouter()


@router.get(
    "/active",
    response_model=ApiResponse,
    summary="Active clients with current policies",
    operation_id="list_active_clients",
)
async def list_active_clients(request: Request, reporting: ReportingServiceDep) -> ApiResponse:
    """Active clients holding at least one active policy, with the policy numbers."""
    clients = await reporting.active_clients_with_current_policies()
    return create_api_response(
        data=clients,
        message="Active clients retrieved successfully",
        request=request
    )


@router.get(
    "/without-active-policies",
    response_model=ApiResponse,
    summary="Clients without active policies",
    operation_id="list_clients_without_active_policies",
)
async def list_clients_without_active_policies(
    request: Request, reporting: ReportingServiceDep
) -> ApiResponse:
    clients = await reporting.clients_without_active_policies()
    return create_api_response(
        data=clients,
        message="Clients without active policies retrieved successfully",
        request=request
    )


@router.get(
    "/multiple-insured-vehicles",
    response_model=ApiResponse,
    summary="Clients with more than one insured vehicle",
    operation_id="list_clients_with_multiple_vehicles",
)
async def list_clients_with_multiple_vehicles(
    request: Request, reporting: ReportingServiceDep
) -> ApiResponse:
    clients = await reporting.clients_with_multiple_insured_vehicles()
    return create_api_response(
        data=clients,
        message="Clients with multiple insured vehicles retrieved successfully",
        request=request
    )


@router.post(
    "",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a client",
    operation_id="create_client",
)
async def create_client(
    request: Request, payload: ClientCreateRequest, client_service: ClientServiceDep
) -> ApiResponse:
    client = await client_service.create_client(payload.provided())
    return create_api_response(
        data=client,
        message="Client created successfully",
        request=request
    )


@router.get(
    "/{client_id}",
    response_model=ApiResponse,
    summary="Get client",
    operation_id="get_client",
)
async def get_client(request: Request, client_id: str, client_service: ClientServiceDep) -> ApiResponse:
    client = await client_service.get_client(client_id)
    return create_api_response(
        data=client,
        message="Client retrieved successfully",
        request=request
    )


@router.patch(
    "/{client_id}",
    response_model=ApiResponse,
    summary="Update client contact details",
    operation_id="update_client",
)
async def update_client(
    request: Request,
    client_id: str,
    payload: ClientUpdateRequest,
    client_service: ClientServiceDep,
) -> ApiResponse:
    """Update email, phone or address fields; other fields are rejected."""
    client = await client_service.update_client(client_id, payload.provided())
    return create_api_response(
        data=client,
        message="Client updated successfully",
        request=request
    )


@router.post(
    "/{client_id}/deactivate",
    response_model=ApiResponse,
    summary="Deactivate client",
    operation_id="deactivate_client",
)
async def deactivate_client(
    request: Request, client_id: str, client_service: ClientServiceDep
) -> ApiResponse:
    client = await client_service.deactivate_client(client_id)
    LOGGER.info("Client deactivated via API", extra={"client_id": client.id})
    return create_api_response(
        data=client,
        message="Client deactivated successfully",
        request=request
    )
