from .entities import Agent, Claim, ClaimState, Client, Policy, PolicyState, Vehicle

__all__ = [
    "Agent",
    "Client",
    "Vehicle",
    "Policy",
    "Claim",
    "PolicyState",
    "ClaimState",
]
