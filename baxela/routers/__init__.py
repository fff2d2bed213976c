from fastapi import APIRouter

from . import admin, analytics, candidates, elections, incidents, ipfs, registrations, votes

api_router = APIRouter()
api_router.include_router(incidents.router)
api_router.include_router(registrations.router)
api_router.include_router(candidates.router)
api_router.include_router(elections.router)
api_router.include_router(admin.router)
api_router.include_router(votes.router)
api_router.include_router(ipfs.router)
api_router.include_router(analytics.router)

__all__ = ["api_router"]
