"""Agent reporting endpoints."""

from fastapi import APIRouter, Request

from app.dependencies import ReportingServiceDep
from app.schemas.common import ApiResponse
from app.utils.responses import create_api_response

router = APIRouter()


@router.get(
    "/active",
    response_model=ApiResponse,
    summary="Active agents with policy counts",
    operation_id="list_active_agents",
)
async def list_active_agents(request: Request, reporting: ReportingServiceDep) -> ApiResponse:
    """Active agents with the number of policies each one wrote."""
    agents = await reporting.active_agents_with_policy_counts()
    return create_api_response(
        data=agents,
        message="Active agents retrieved successfully",
        request=request
    )


@router.get(
    "/claims-count",
    response_model=ApiResponse,
    summary="Agents with total claims",
    operation_id="list_agents_claim_counts",
)
async def list_agents_claim_counts(request: Request, reporting: ReportingServiceDep) -> ApiResponse:
    """Active agents with the number of claims filed against their policies."""
    agents = await reporting.agents_with_claim_counts()
    return create_api_response(
        data=agents,
        message="Agent claim counts retrieved successfully",
        request=request
    )


@router.get(
    "/{agent_id}",
    response_model=ApiResponse,
    summary="Get agent",
    operation_id="get_agent",
)
async def get_agent(request: Request, agent_id: str, reporting: ReportingServiceDep) -> ApiResponse:
    agent = await reporting.get_agent(agent_id)
    return create_api_response(
        data=agent,
        message="Agent retrieved successfully",
        request=request
    )
