"""Policy reporting, ranking and issuance endpoints."""

from typing import Optional

from fastapi import APIRouter, Query, Request, status

from app.core.config import settings
from app.dependencies import PolicyServiceDep, ReportingServiceDep
from app.schemas.common import ApiResponse
from app.schemas.requests import PolicyCreateRequest, PolicyUpdateRequest
from app.utils.responses import create_api_response

router = APIRouter()


@router.get(
    "/expired",
    response_model=ApiResponse,
    summary="Expired policies with client name",
    operation_id="list_expired_policies",
)
async def list_expired_policies(request: Request, reporting: ReportingServiceDep) -> ApiResponse:
    policies = await reporting.expired_policies_with_client()
    return create_api_response(
        data=policies,
        message="Expired policies retrieved successfully",
        request=request
    )


@router.get(
    "/active-by-date",
    response_model=ApiResponse,
    summary="Active policies ordered by start date",
    operation_id="list_active_policies_by_date",
)
async def list_active_policies_by_date(request: Request, reporting: ReportingServiceDep) -> ApiResponse:
    policies = await reporting.active_policies_by_start_date()
    return create_api_response(
        data=policies,
        message="Active policies retrieved successfully",
        request=request
    )


@router.get(
    "/suspended-with-client-info",
    response_model=ApiResponse,
    summary="Suspended policies with client info",
    operation_id="list_suspended_policies",
)
async def list_suspended_policies(request: Request, reporting: ReportingServiceDep) -> ApiResponse:
    policies = await reporting.suspended_policies_with_client()
    return create_api_response(
        data=policies,
        message="Suspended policies retrieved successfully",
        request=request
    )


@router.get(
    "/top-clients",
    response_model=ApiResponse,
    summary="Top clients by total coverage",
    description="Served from the ranking cache; rebuilt from the store when the snapshot has expired.",
    operation_id="list_top_clients_by_coverage",
)
async def list_top_clients(
    request: Request,
    policy_service: PolicyServiceDep,
    n: Optional[int] = Query(None, description="Number of clients to return"),
) -> ApiResponse:
    size = n if n is not None else settings.policy.ranking_default_n
    ranking = await policy_service.top_clients(size)
    return create_api_response(
        data=ranking,
        message="Top clients retrieved successfully",
        request=request
    )


@router.post(
    "",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue a policy",
    operation_id="issue_policy",
)
async def issue_policy(
    request: Request, payload: PolicyCreateRequest, policy_service: PolicyServiceDep
) -> ApiResponse:
    """Issue a policy under the next policy number and add its coverage to the ranking."""
    policy = await policy_service.issue_policy(payload.provided())
    return create_api_response(
        data=policy,
        message=f"Policy {policy.policy_number} issued successfully",
        request=request
    )


@router.get(
    "/{policy_number}",
    response_model=ApiResponse,
    summary="Get policy",
    operation_id="get_policy",
)
async def get_policy(request: Request, policy_number: str, policy_service: PolicyServiceDep) -> ApiResponse:
    policy = await policy_service.get_policy(policy_number)
    return create_api_response(
        data=policy,
        message="Policy retrieved successfully",
        request=request
    )


@router.patch(
    "/{policy_number}",
    response_model=ApiResponse,
    summary="Update policy state or end date",
    operation_id="update_policy",
)
async def update_policy(
    request: Request,
    policy_number: str,
    payload: PolicyUpdateRequest,
    policy_service: PolicyServiceDep,
) -> ApiResponse:
    policy = await policy_service.update_policy(policy_number, payload.provided())
    return create_api_response(
        data=policy,
        message="Policy updated successfully",
        request=request
    )
