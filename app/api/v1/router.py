from fastapi import APIRouter
from app.api.v1.endpoints import agents, claims, clients, policies, vehicles

# Create API router
api_router = APIRouter()

# Include routers
api_router.include_router(agents.router, prefix="/agents", tags=["Agents"])
api_router.include_router(clients.router, prefix="/clients", tags=["Clients"])
api_router.include_router(policies.router, prefix="/policies", tags=["Policies"])
api_router.include_router(claims.router, prefix="/claims", tags=["Claims"])
api_router.include_router(vehicles.router, prefix="/vehicles", tags=["Vehicles"])

__all__ = ["api_router"]
