"""Vehicle reporting endpoints."""

from fastapi import APIRouter, Request

from app.dependencies import ReportingServiceDep
from app.schemas.common import ApiResponse
from app.utils.responses import create_api_response

router = APIRouter()


@router.get(
    "/insured",
    response_model=ApiResponse,
    summary="Insured vehicles with owner and policy",
    operation_id="list_insured_vehicles",
)
async def list_insured_vehicles(request: Request, reporting: ReportingServiceDep) -> ApiResponse:
    """One row per insured vehicle and policy held by its owner."""
    vehicles = await reporting.insured_vehicles_with_owner_and_policy()
    return create_api_response(
        data=vehicles,
        message="Insured vehicles retrieved successfully",
        request=request
    )


@router.get(
    "/{vehicle_id}",
    response_model=ApiResponse,
    summary="Get vehicle",
    operation_id="get_vehicle",
)
async def get_vehicle(request: Request, vehicle_id: str, reporting: ReportingServiceDep) -> ApiResponse:
    vehicle = await reporting.get_vehicle(vehicle_id)
    return create_api_response(
        data=vehicle,
        message="Vehicle retrieved successfully",
        request=request
    )
