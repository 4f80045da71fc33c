"""
API v1 Router - Main Entry Point
Aggregates all v1 API endpoints of the billing engine
"""
from fastapi import APIRouter

from challan_engine.api.v1 import challans, fee_structures

# Create main API v1 router with proper configuration
router = APIRouter(
    responses={
        400: {"description": "Bad Request"},
        404: {"description": "Not Found"},
        409: {"description": "Conflict"},
        422: {"description": "Validation Error"},
        500: {"description": "Internal Server Error"}
    }
)

router.include_router(challans.router)
router.include_router(fee_structures.router)

__all__ = ["router"]
