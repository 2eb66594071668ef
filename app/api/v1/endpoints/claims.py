"""Claim reporting and filing endpoints."""

from typing import Optional

from fastapi import APIRouter, Query, Request, status

from app.dependencies import ClaimServiceDep, ReportingServiceDep
from app.schemas.common import ApiResponse
from app.schemas.requests import ClaimCreateRequest, ClaimUpdateRequest
from app.utils.responses import create_api_response

router = APIRouter()


@router.get(
    "/open",
    response_model=ApiResponse,
    summary="Open claims with client info",
    operation_id="list_open_claims",
)
async def list_open_claims(request: Request, reporting: ReportingServiceDep) -> ApiResponse:
    claims = await reporting.open_claims_with_client()
    return create_api_response(
        data=claims,
        message="Open claims retrieved successfully",
        request=request
    )


@router.get(
    "/recent",
    response_model=ApiResponse,
    summary="Claims of a type in the last twelve months",
    operation_id="list_recent_claims_by_type",
)
async def list_recent_claims(
    request: Request,
    reporting: ReportingServiceDep,
    claim_type: Optional[str] = Query(None, alias="type", description="Claim type, case-insensitive"),
) -> ApiResponse:
    claims = await reporting.recent_claims_by_type(claim_type)
    return create_api_response(
        data=claims,
        message="Recent claims retrieved successfully",
        request=request
    )


@router.post(
    "",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="File a claim",
    operation_id="create_claim",
)
async def create_claim(
    request: Request, payload: ClaimCreateRequest, claim_service: ClaimServiceDep
) -> ApiResponse:
    """File a claim against an active policy."""
    claim = await claim_service.create_claim(payload.provided())
    return create_api_response(
        data=claim,
        message="Claim created successfully",
        request=request
    )


@router.get(
    "/{claim_id}",
    response_model=ApiResponse,
    summary="Get claim",
    operation_id="get_claim",
)
async def get_claim(request: Request, claim_id: str, claim_service: ClaimServiceDep) -> ApiResponse:
    claim = await claim_service.get_claim(claim_id)
    return create_api_response(
        data=claim,
        message="Claim retrieved successfully",
        request=request
    )


@router.patch(
    "/{claim_id}",
    response_model=ApiResponse,
    summary="Update claim",
    operation_id="update_claim",
)
async def update_claim(
    request: Request,
    claim_id: str,
    payload: ClaimUpdateRequest,
    claim_service: ClaimServiceDep,
) -> ApiResponse:
    claim = await claim_service.update_claim(claim_id, payload.provided())
    return create_api_response(
        data=claim,
        message="Claim updated successfully",
        request=request
    )
